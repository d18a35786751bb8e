"""
Investment engine.

Structure:
- core.py: Shared collaborators and investment queries
- placement.py: Create or increase the single active investment
- accrual.py: Daily profit accrual
- cancellation.py: Cancellation with principal refund

Usage:
    from app.services.investment import InvestmentService

    investment_service = InvestmentService(session)
    result = await investment_service.create_or_increase_investment(user_id, "500")
    await investment_service.accrue_daily_profit()
"""

from sqlalchemy.ext.asyncio import AsyncSession

from app.services.investment.accrual import AccrualResult, InvestmentAccrualMixin
from app.services.investment.cancellation import InvestmentCancellationMixin
from app.services.investment.core import InvestmentServiceCore
from app.services.investment.placement import (
    InvestmentPlacementMixin,
    InvestmentResult,
)


class InvestmentService(
    InvestmentServiceCore,
    InvestmentPlacementMixin,
    InvestmentAccrualMixin,
    InvestmentCancellationMixin,
):
    """
    Combined investment service.

    Inherits from all investment mixins to provide complete functionality.
    """

    def __init__(self, session: AsyncSession) -> None:
        """
        Initialize investment service.

        Args:
            session: Database session
        """
        InvestmentServiceCore.__init__(self, session)


__all__ = [
    "AccrualResult",
    "InvestmentResult",
    "InvestmentService",
]
