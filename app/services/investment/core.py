"""
Core investment service functionality.

Holds the collaborators shared by the investment mixins and the
read-only investment queries.
"""

from sqlalchemy.ext.asyncio import AsyncSession

from app.models.investment import Investment
from app.repositories.investment_repository import InvestmentRepository
from app.repositories.user_repository import UserRepository
from app.services.base_service import BaseService
from app.services.ledger_service import LedgerService
from app.services.package_catalog import PackageCatalogService
from app.services.transaction_service import TransactionLogService
from app.utils.exceptions import NotFoundError


class InvestmentServiceCore(BaseService):
    """
    Core investment service.

    Provides investment retrieval methods.
    """

    def __init__(self, session: AsyncSession) -> None:
        """
        Initialize investment service core.

        Args:
            session: Database session
        """
        super().__init__(session)
        self.investment_repo = InvestmentRepository(session)
        self.user_repo = UserRepository(session)
        self.ledger = LedgerService(session)
        self.tx_log = TransactionLogService(session)
        self.catalog_service = PackageCatalogService(session)

    async def get_investment(self, investment_id: int) -> Investment:
        """
        Get investment by ID with its package.

        Args:
            investment_id: Investment ID

        Returns:
            Investment

        Raises:
            NotFoundError: If missing
        """
        investment = await self.investment_repo.get_with_package(investment_id)
        if not investment:
            raise NotFoundError(f"Investment {investment_id} not found")
        return investment

    async def get_active_investment(self, user_id: int) -> Investment | None:
        """
        Get the user's active investment.

        Args:
            user_id: User ID

        Returns:
            Active investment or None
        """
        return await self.investment_repo.get_active_for_user(user_id)

    async def get_user_investments(self, user_id: int) -> list[Investment]:
        """
        Get all investments of a user, newest first.

        Args:
            user_id: User ID

        Returns:
            List of investments with packages loaded

        Raises:
            NotFoundError: If user is missing
        """
        if not await self.user_repo.exists(id=user_id):
            raise NotFoundError(f"User {user_id} not found")
        return await self.investment_repo.get_by_user(user_id)
