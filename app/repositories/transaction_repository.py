"""
Transaction repository.

Data access layer for Transaction model.
"""

from datetime import datetime

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.enums import TransactionStatus, TransactionType
from app.models.transaction import Transaction
from app.repositories.base import BaseRepository


class TransactionRepository(BaseRepository[Transaction]):
    """Transaction repository with specific queries."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize transaction repository."""
        super().__init__(Transaction, session)

    async def get_by_request_id(
        self, request_id: str
    ) -> Transaction | None:
        """
        Get entry by caller-supplied idempotency key.

        Args:
            request_id: Request identifier

        Returns:
            Transaction or None
        """
        return await self.get_by(request_id=request_id)

    async def get_by_payment_id(
        self, payment_id: str, for_update: bool = False
    ) -> Transaction | None:
        """
        Get the latest entry for a gateway payment.

        Args:
            payment_id: Gateway payment ID
            for_update: Lock the row

        Returns:
            Transaction or None
        """
        stmt = (
            select(Transaction)
            .where(Transaction.payment_id == payment_id)
            .order_by(Transaction.id.desc())
            .limit(1)
        )
        if for_update:
            stmt = stmt.with_for_update()

        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_user_transactions(
        self,
        user_id: int,
        limit: int,
        offset: int = 0,
        transaction_type: TransactionType | None = None,
    ) -> list[Transaction]:
        """
        Get user's entries, newest first.

        Args:
            user_id: User ID
            limit: Max number of results
            offset: Number of results to skip
            transaction_type: Optional type filter

        Returns:
            List of transactions
        """
        stmt = select(Transaction).where(Transaction.user_id == user_id)
        if transaction_type is not None:
            stmt = stmt.where(Transaction.type == transaction_type.value)

        stmt = (
            stmt.order_by(Transaction.created_at.desc(), Transaction.id.desc())
            .offset(offset)
            .limit(limit)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def get_in_window(
        self,
        start: datetime,
        end: datetime,
        transaction_type: TransactionType | None = None,
    ) -> list[Transaction]:
        """
        Get entries created in [start, end), oldest first.

        Args:
            start: Window start (inclusive)
            end: Window end (exclusive)
            transaction_type: Optional type filter

        Returns:
            List of transactions
        """
        stmt = select(Transaction).where(
            Transaction.created_at >= start,
            Transaction.created_at < end,
        )
        if transaction_type is not None:
            stmt = stmt.where(Transaction.type == transaction_type.value)

        stmt = stmt.order_by(Transaction.created_at, Transaction.id)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def claim_uncascaded_profit(
        self, limit: int, after_id: int = 0
    ) -> list[Transaction]:
        """
        Lock a batch of completed profit entries not yet cascaded.

        Rows already locked by another worker are skipped.

        Args:
            limit: Batch size
            after_id: Only entries with a greater ID

        Returns:
            List of profit transactions, oldest first
        """
        stmt = (
            select(Transaction)
            .where(
                Transaction.type == TransactionType.PROFIT.value,
                Transaction.status == TransactionStatus.COMPLETED.value,
                Transaction.cascaded.is_(False),
                Transaction.id > after_id,
            )
            .order_by(Transaction.id)
            .limit(limit)
            .with_for_update(skip_locked=True)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())
