"""
Investment cancellation.

Closes an active investment and returns its principal to the main bucket.
"""

from app.models.enums import BalanceBucket, InvestmentStatus, TransactionType
from app.models.investment import Investment
from app.services.base_service import transaction
from app.utils.datetime_utils import utc_now
from app.utils.exceptions import AlreadyClosedError, NotFoundError


class InvestmentCancellationMixin:
    """
    Mixin for investment cancellation.

    Expects the attributes set up by InvestmentServiceCore.
    """

    @transaction
    async def cancel_investment(self, investment_id: int) -> Investment:
        """
        Cancel an active investment and refund its principal.

        Accrued profit already lives in the profit bucket and is left
        untouched. Cancellation is terminal.

        Args:
            investment_id: Investment ID

        Returns:
            Canceled investment

        Raises:
            NotFoundError: If missing
            AlreadyClosedError: If not active
        """
        investment = await self.investment_repo.get_with_package(
            investment_id, for_update=True
        )
        if not investment:
            raise NotFoundError(f"Investment {investment_id} not found")
        if not investment.is_active:
            raise AlreadyClosedError("Investment already closed")

        investment.status = InvestmentStatus.CANCELED.value
        investment.canceled_at = utc_now()
        await self.session.flush()

        await self.ledger.credit(
            investment.user_id, BalanceBucket.MAIN, investment.amount
        )
        await self.tx_log.record(
            investment.user_id,
            TransactionType.REFUND,
            investment.amount,
            note="Investment canceled and refunded",
        )

        self.logger.info(
            "Investment canceled and funds returned",
            extra={
                "investment_id": investment.id,
                "user_id": investment.user_id,
                "amount": str(investment.amount),
            },
        )
        return investment
