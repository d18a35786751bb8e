"""
Bonus service.

Credits admin-granted bonuses to the bonus bucket.
"""

from dataclasses import dataclass
from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession

from app.models.enums import BalanceBucket, TransactionType
from app.models.transaction import Transaction
from app.services.base_service import BaseService, transaction
from app.services.ledger_service import BalanceSnapshot, LedgerService
from app.services.transaction_service import TransactionLogService
from app.utils.exceptions import InvalidInputError
from app.validators.amounts import parse_amount


@dataclass(frozen=True)
class BonusResult:
    """Outcome of a bonus grant."""

    balances: BalanceSnapshot
    transaction: Transaction
    replayed: bool = False


class BonusService(BaseService):
    """Service for granting bonuses."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize bonus service."""
        super().__init__(session)
        self.ledger = LedgerService(session)
        self.tx_log = TransactionLogService(session)

    @transaction
    async def grant_bonus(
        self,
        user_id: int,
        amount: Decimal | int | str,
        reason: str,
        request_id: str | None = None,
    ) -> BonusResult:
        """
        Grant a bonus to a user.

        Args:
            user_id: User receiving the bonus
            amount: Bonus amount
            reason: Reason shown in the log note
            request_id: Optional idempotency key

        Returns:
            BonusResult

        Raises:
            InvalidInputError: If reason is empty
            NotFoundError: If user is missing
        """
        if not reason or not reason.strip():
            raise InvalidInputError("Bonus reason is required")

        amount = parse_amount(amount)

        replay = await self.tx_log.find_replay(
            request_id, user_id, TransactionType.BONUS
        )
        if replay is not None:
            return BonusResult(
                balances=await self.ledger.get_balances(user_id),
                transaction=replay,
                replayed=True,
            )

        user = await self.ledger.credit(user_id, BalanceBucket.BONUS, amount)
        entry = await self.tx_log.record(
            user_id,
            TransactionType.BONUS,
            amount,
            note=f"Bonus: {reason.strip()}",
            request_id=request_id,
        )

        self.logger.info(
            "Bonus granted",
            extra={
                "user_id": user_id,
                "amount": str(amount),
                "reason": reason,
            },
        )
        return BonusResult(
            balances=BalanceSnapshot.from_user(user),
            transaction=entry,
        )
