"""
Withdrawal service.

The full requested amount leaves the main bucket when the request is
made. The fee is withheld from the disbursement: the log entry stores the
gross amount and notes the fee and the net payout. Requests stay
``pending`` until approved or rejected.
"""

from dataclasses import dataclass
from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession

from app.config.settings import settings
from app.models.enums import BalanceBucket, TransactionStatus, TransactionType
from app.models.transaction import Transaction
from app.repositories.transaction_repository import TransactionRepository
from app.services.base_service import BaseService, transaction
from app.services.ledger_service import BalanceSnapshot, LedgerService
from app.services.transaction_service import TransactionLogService
from app.utils.exceptions import ConflictError, InvalidInputError, NotFoundError
from app.utils.formatters import format_decimal
from app.validators.amounts import parse_amount, percent_of


def calculate_withdrawal_fee(
    amount: Decimal, fee_percent: Decimal | None = None
) -> tuple[Decimal, Decimal]:
    """
    Split a gross withdrawal into fee and net payout.

    Args:
        amount: Gross amount
        fee_percent: Fee percent (defaults to settings)

    Returns:
        Tuple of (fee, net)
    """
    if fee_percent is None:
        fee_percent = settings.withdrawal_fee_percent
    fee = percent_of(amount, fee_percent)
    return fee, amount - fee


@dataclass(frozen=True)
class WithdrawalResult:
    """Outcome of a withdrawal request."""

    transaction: Transaction
    amount: Decimal
    fee: Decimal
    net_amount: Decimal
    balances: BalanceSnapshot
    replayed: bool = False


class WithdrawalService(BaseService):
    """Withdrawal requests and their manual settlement."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize withdrawal service."""
        super().__init__(session)
        self.transaction_repo = TransactionRepository(session)
        self.ledger = LedgerService(session)
        self.tx_log = TransactionLogService(session)

    @transaction
    async def request_withdrawal(
        self,
        user_id: int,
        amount: Decimal | int | str,
        request_id: str | None = None,
    ) -> WithdrawalResult:
        """
        Debit main and log a pending withdrawal.

        Args:
            user_id: User ID
            amount: Gross amount
            request_id: Optional idempotency key

        Returns:
            WithdrawalResult

        Raises:
            ConflictError: If withdrawals are stopped
            InvalidAmountError: If amount is malformed or below the minimum
            NotFoundError: If user is missing
            InsufficientFundsError: If main balance is too low
        """
        if settings.emergency_stop_withdrawals:
            raise ConflictError("Withdrawals are temporarily disabled")

        amount = parse_amount(
            amount, min_val=settings.minimum_withdrawal_amount
        )

        replay = await self.tx_log.find_replay(
            request_id, user_id, TransactionType.WITHDRAW
        )
        if replay is not None:
            fee, net = calculate_withdrawal_fee(replay.amount)
            return WithdrawalResult(
                transaction=replay,
                amount=replay.amount,
                fee=fee,
                net_amount=net,
                balances=await self.ledger.get_balances(user_id),
                replayed=True,
            )

        fee, net = calculate_withdrawal_fee(amount)
        user = await self.ledger.debit(user_id, BalanceBucket.MAIN, amount)

        entry = await self.tx_log.record(
            user_id,
            TransactionType.WITHDRAW,
            amount,
            status=TransactionStatus.PENDING,
            note=(
                f"Withdrawal requested: fee "
                f"{format_decimal(settings.withdrawal_fee_percent)}% "
                f"({format_decimal(fee)}), payout {format_decimal(net)}"
            ),
            request_id=request_id,
        )

        self.logger.info(
            "Withdrawal requested",
            extra={
                "user_id": user_id,
                "amount": str(amount),
                "fee": str(fee),
                "net_amount": str(net),
                "transaction_id": entry.id,
            },
        )
        return WithdrawalResult(
            transaction=entry,
            amount=amount,
            fee=fee,
            net_amount=net,
            balances=BalanceSnapshot.from_user(user),
        )

    async def _get_pending_withdrawal(self, transaction_id: int) -> Transaction:
        entry = await self.transaction_repo.get_by_id(
            transaction_id, for_update=True
        )
        if entry is None or entry.type != TransactionType.WITHDRAW.value:
            raise NotFoundError(f"Withdrawal {transaction_id} not found")
        if not entry.is_pending:
            raise ConflictError(
                f"Withdrawal {transaction_id} is already {entry.status}"
            )
        return entry

    @transaction
    async def approve_withdrawal(
        self, transaction_id: int, tx_hash: str | None = None
    ) -> Transaction:
        """
        Mark a pending withdrawal as paid out.

        Args:
            transaction_id: Withdrawal transaction ID
            tx_hash: Payout transaction hash

        Returns:
            Completed transaction

        Raises:
            NotFoundError: If no such withdrawal
            ConflictError: If it is not pending
        """
        entry = await self._get_pending_withdrawal(transaction_id)
        await self.tx_log.settle(
            entry, TransactionStatus.COMPLETED, tx_hash=tx_hash
        )

        self.logger.info(
            "Withdrawal approved",
            extra={
                "transaction_id": transaction_id,
                "user_id": entry.user_id,
                "tx_hash": tx_hash,
            },
        )
        return entry

    @transaction
    async def reject_withdrawal(
        self, transaction_id: int, reason: str
    ) -> Transaction:
        """
        Reject a pending withdrawal and return the gross amount to main.

        Args:
            transaction_id: Withdrawal transaction ID
            reason: Rejection reason

        Returns:
            Refund transaction

        Raises:
            NotFoundError: If no such withdrawal
            ConflictError: If it is not pending
        """
        if not reason or not reason.strip():
            raise InvalidInputError("Rejection reason is required")

        entry = await self._get_pending_withdrawal(transaction_id)
        await self.tx_log.settle(
            entry,
            TransactionStatus.FAILED,
            note=f"{entry.note or 'Withdrawal'}; rejected: {reason}",
        )

        await self.ledger.credit(entry.user_id, BalanceBucket.MAIN, entry.amount)
        refund = await self.tx_log.record(
            entry.user_id,
            TransactionType.REFUND,
            entry.amount,
            note=f"Withdrawal #{entry.id} rejected: {reason}",
            source_transaction_id=entry.id,
        )

        self.logger.info(
            "Withdrawal rejected",
            extra={
                "transaction_id": transaction_id,
                "user_id": entry.user_id,
                "amount": str(entry.amount),
                "reason": reason,
            },
        )
        return refund
