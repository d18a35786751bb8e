"""
Transaction log service.

Append-only audit log of balance-affecting events. Completed and failed
entries are immutable; pending entries may be settled once in place.
"""

from datetime import datetime
from decimal import Decimal

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.config.constants import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE
from app.config.settings import settings
from app.models.enums import TransactionStatus, TransactionType
from app.models.transaction import Transaction
from app.repositories.transaction_repository import TransactionRepository
from app.services.base_service import BaseService
from app.utils.exceptions import ConflictError, InvalidInputError, NotFoundError
from app.validators.amounts import quantize_money


class TransactionLogService(BaseService):
    """Writes and reads transaction log entries."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize transaction log service."""
        super().__init__(session)
        self.transaction_repo = TransactionRepository(session)

    async def record(
        self,
        user_id: int,
        transaction_type: TransactionType,
        amount: Decimal,
        status: TransactionStatus = TransactionStatus.COMPLETED,
        note: str | None = None,
        currency: str | None = None,
        payment_id: str | None = None,
        tx_hash: str | None = None,
        status_url: str | None = None,
        request_id: str | None = None,
        source_user_id: int | None = None,
        source_transaction_id: int | None = None,
        referral_level: int | None = None,
    ) -> Transaction:
        """
        Append a log entry.

        Args:
            user_id: Owner of the entry
            transaction_type: Entry type
            amount: Amount (non-negative)
            status: Entry status
            note: Human-readable note
            currency: Currency code, defaults to settings
            payment_id: Gateway payment ID
            tx_hash: Blockchain transaction hash
            status_url: Gateway status URL
            request_id: Caller-supplied idempotency key
            source_user_id: User whose event produced this entry
            source_transaction_id: Entry that produced this entry
            referral_level: Upline level for referral payouts

        Returns:
            Created transaction

        Raises:
            ConflictError: If request_id was already used
        """
        if amount < 0:
            raise InvalidInputError("Transaction amount cannot be negative")

        # Savepoint keeps the session usable after a duplicate request_id
        try:
            async with self.session.begin_nested():
                entry = await self.transaction_repo.create(
                    user_id=user_id,
                    type=transaction_type.value,
                    amount=quantize_money(amount),
                    currency=currency or settings.default_currency,
                    status=status.value,
                    note=note,
                    payment_id=payment_id,
                    tx_hash=tx_hash,
                    status_url=status_url,
                    request_id=request_id,
                    source_user_id=source_user_id,
                    source_transaction_id=source_transaction_id,
                    referral_level=referral_level,
                )
        except IntegrityError as e:
            if request_id is not None:
                raise ConflictError(
                    f"Request {request_id} was already processed"
                ) from e
            raise

        self.logger.debug(
            "Transaction recorded",
            extra={
                "transaction_id": entry.id,
                "user_id": user_id,
                "type": transaction_type.value,
                "amount": str(entry.amount),
                "status": status.value,
            },
        )
        return entry

    async def find_replay(
        self,
        request_id: str | None,
        user_id: int,
        transaction_type: TransactionType | tuple[TransactionType, ...],
    ) -> Transaction | None:
        """
        Look up an entry already written for an idempotency key.

        Args:
            request_id: Caller-supplied key (None disables the check)
            user_id: Expected owner
            transaction_type: Expected entry type(s)

        Returns:
            Existing entry or None

        Raises:
            ConflictError: If the key belongs to another user or operation
        """
        if not request_id:
            return None

        entry = await self.transaction_repo.get_by_request_id(request_id)
        if entry is None:
            return None

        expected = (
            transaction_type
            if isinstance(transaction_type, tuple)
            else (transaction_type,)
        )
        if entry.user_id != user_id or entry.type not in {
            t.value for t in expected
        }:
            raise ConflictError(
                f"Request {request_id} belongs to another operation"
            )

        self.logger.info(
            "Replayed request ignored",
            extra={
                "request_id": request_id,
                "transaction_id": entry.id,
                "user_id": user_id,
            },
        )
        return entry

    async def get_user_transactions(
        self,
        user_id: int,
        limit: int = DEFAULT_PAGE_SIZE,
        offset: int = 0,
        transaction_type: TransactionType | None = None,
    ) -> list[Transaction]:
        """
        Get user's entries, newest first.

        Args:
            user_id: User ID
            limit: Page size (capped)
            offset: Entries to skip
            transaction_type: Optional type filter

        Returns:
            List of transactions
        """
        limit = max(1, min(limit, MAX_PAGE_SIZE))
        offset = max(0, offset)
        return await self.transaction_repo.get_user_transactions(
            user_id, limit, offset, transaction_type
        )

    async def get_transaction(self, transaction_id: int) -> Transaction:
        """
        Get entry by ID.

        Args:
            transaction_id: Transaction ID

        Returns:
            Transaction

        Raises:
            NotFoundError: If missing
        """
        entry = await self.transaction_repo.get_by_id(transaction_id)
        if not entry:
            raise NotFoundError(f"Transaction {transaction_id} not found")
        return entry

    async def get_transactions_in_window(
        self,
        start: datetime,
        end: datetime,
        transaction_type: TransactionType | None = None,
    ) -> list[Transaction]:
        """
        Get entries created in [start, end), oldest first.

        Args:
            start: Window start
            end: Window end
            transaction_type: Optional type filter

        Returns:
            List of transactions
        """
        if end <= start:
            raise InvalidInputError("Window end must be after its start")
        return await self.transaction_repo.get_in_window(
            start, end, transaction_type
        )

    async def settle(
        self,
        entry: Transaction,
        status: TransactionStatus,
        tx_hash: str | None = None,
        note: str | None = None,
    ) -> Transaction:
        """
        Move a pending entry to its final status.

        Args:
            entry: Pending transaction
            status: COMPLETED or FAILED
            tx_hash: Optional transaction hash
            note: Optional replacement note

        Returns:
            Updated transaction

        Raises:
            ConflictError: If the entry is no longer pending
        """
        if not entry.is_pending:
            raise ConflictError(
                f"Transaction {entry.id} is already {entry.status}"
            )
        if status == TransactionStatus.PENDING:
            raise InvalidInputError("Cannot settle to pending")

        entry.status = status.value
        if tx_hash:
            entry.tx_hash = tx_hash
        if note:
            entry.note = note
        await self.session.flush()

        self.logger.info(
            "Transaction settled",
            extra={
                "transaction_id": entry.id,
                "status": status.value,
                "tx_hash": tx_hash,
            },
        )
        return entry

    async def update_status_by_payment_id(
        self,
        payment_id: str,
        status: TransactionStatus,
        tx_hash: str | None = None,
    ) -> Transaction:
        """
        Settle the pending entry of a gateway payment.

        Args:
            payment_id: Gateway payment ID
            status: New status
            tx_hash: Optional transaction hash

        Returns:
            Updated transaction

        Raises:
            NotFoundError: If no entry matches
            ConflictError: If the entry is no longer pending
        """
        entry = await self.transaction_repo.get_by_payment_id(
            payment_id, for_update=True
        )
        if not entry:
            raise NotFoundError(f"No transaction for payment {payment_id}")
        return await self.settle(entry, status, tx_hash=tx_hash)
