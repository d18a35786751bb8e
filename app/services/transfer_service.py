"""
Balance transfer service.

Moves value from the profit, referral or bonus bucket into the main
bucket, logging one ``transfer`` entry per move.
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
from app.utils.formatters import format_decimal
from app.validators.amounts import parse_amount

TRANSFER_SOURCES = {
    BalanceBucket.PROFIT: "profit balance",
    BalanceBucket.REFERRAL: "referral profit",
    BalanceBucket.BONUS: "bonus balance",
}


@dataclass(frozen=True)
class TransferResult:
    """Outcome of a bucket transfer."""

    balances: BalanceSnapshot
    message: str
    transaction: Transaction
    replayed: bool = False


class BalanceTransferService(BaseService):
    """Bucket to main transfers."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize balance transfer service."""
        super().__init__(session)
        self.ledger = LedgerService(session)
        self.tx_log = TransactionLogService(session)

    @transaction
    async def transfer_to_main(
        self,
        user_id: int,
        source: BalanceBucket,
        amount: Decimal | int | str,
        request_id: str | None = None,
    ) -> TransferResult:
        """
        Move an amount from a source bucket into main.

        Args:
            user_id: User ID
            source: PROFIT, REFERRAL or BONUS
            amount: Amount to move
            request_id: Optional idempotency key

        Returns:
            TransferResult with the updated balances

        Raises:
            InvalidInputError: If source is not a transferable bucket
            NotFoundError: If user is missing
            InsufficientFundsError: If the source bucket is too low
        """
        if source not in TRANSFER_SOURCES:
            raise InvalidInputError(f"Cannot transfer from {source.value}")

        amount = parse_amount(amount)
        label = TRANSFER_SOURCES[source]

        replay = await self.tx_log.find_replay(
            request_id, user_id, TransactionType.TRANSFER
        )
        if replay is not None:
            return TransferResult(
                balances=await self.ledger.get_balances(user_id),
                message="Request already processed",
                transaction=replay,
                replayed=True,
            )

        user = await self.ledger.transfer(
            user_id, source, BalanceBucket.MAIN, amount
        )
        message = (
            f"Transferred {format_decimal(amount)} USD "
            f"from {label} to main balance."
        )
        entry = await self.tx_log.record(
            user_id,
            TransactionType.TRANSFER,
            amount,
            note=f"Transfer from {source.value} to main",
            request_id=request_id,
        )

        return TransferResult(
            balances=BalanceSnapshot.from_user(user),
            message=message,
            transaction=entry,
        )

    async def transfer_profit_to_main(
        self,
        user_id: int,
        amount: Decimal | int | str,
        request_id: str | None = None,
    ) -> TransferResult:
        """Move profit balance into main."""
        return await self.transfer_to_main(
            user_id, BalanceBucket.PROFIT, amount, request_id
        )

    async def transfer_referral_to_main(
        self,
        user_id: int,
        amount: Decimal | int | str,
        request_id: str | None = None,
    ) -> TransferResult:
        """Move referral profit into main."""
        return await self.transfer_to_main(
            user_id, BalanceBucket.REFERRAL, amount, request_id
        )

    async def transfer_bonus_to_main(
        self,
        user_id: int,
        amount: Decimal | int | str,
        request_id: str | None = None,
    ) -> TransferResult:
        """Move bonus balance into main."""
        return await self.transfer_to_main(
            user_id, BalanceBucket.BONUS, amount, request_id
        )
