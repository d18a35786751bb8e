"""
Ledger service.

Owns the four balance buckets of every user and the primitives that
mutate them. Every read-modify-write locks the user row first, so two
concurrent debits cannot both pass a balance check on a stale read.

The ledger only flushes: callers commit, and every caller pairs each
successful mutation with exactly one transaction log entry.
"""

from dataclasses import dataclass
from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession

from app.models.enums import BalanceBucket
from app.models.user import User
from app.repositories.user_repository import UserRepository
from app.services.base_service import BaseService
from app.utils.exceptions import (
    InsufficientFundsError,
    InvalidInputError,
    NotFoundError,
)
from app.validators.amounts import parse_amount


@dataclass(frozen=True)
class BalanceSnapshot:
    """Point-in-time view of a user's buckets."""

    main: Decimal
    profit: Decimal
    referral: Decimal
    bonus: Decimal

    @classmethod
    def from_user(cls, user: User) -> "BalanceSnapshot":
        """Build snapshot from a loaded user."""
        return cls(
            main=user.get_balance(BalanceBucket.MAIN),
            profit=user.get_balance(BalanceBucket.PROFIT),
            referral=user.get_balance(BalanceBucket.REFERRAL),
            bonus=user.get_balance(BalanceBucket.BONUS),
        )

    def get(self, bucket: BalanceBucket) -> Decimal:
        """Read one bucket."""
        return getattr(self, bucket.value)


class LedgerService(BaseService):
    """Atomic debit/credit primitives over user balance buckets."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize ledger service."""
        super().__init__(session)
        self.user_repo = UserRepository(session)

    async def _lock_user(self, user_id: int) -> User:
        user = await self.user_repo.get_for_update(user_id)
        if not user:
            raise NotFoundError(f"User {user_id} not found")
        return user

    async def credit(
        self, user_id: int, bucket: BalanceBucket, amount: Decimal
    ) -> User:
        """
        Increase a bucket.

        Args:
            user_id: User ID
            bucket: Bucket to credit
            amount: Positive amount

        Returns:
            Updated user

        Raises:
            InvalidAmountError: If amount is not positive
            NotFoundError: If user is missing
        """
        amount = parse_amount(amount)
        user = await self._lock_user(user_id)

        user.set_balance(bucket, user.get_balance(bucket) + amount)
        await self.session.flush()

        self.logger.info(
            "Balance credited",
            extra={
                "user_id": user_id,
                "bucket": bucket.value,
                "amount": str(amount),
                "balance": str(user.get_balance(bucket)),
            },
        )
        return user

    async def debit(
        self, user_id: int, bucket: BalanceBucket, amount: Decimal
    ) -> User:
        """
        Decrease a bucket.

        Args:
            user_id: User ID
            bucket: Bucket to debit
            amount: Positive amount

        Returns:
            Updated user

        Raises:
            InvalidAmountError: If amount is not positive
            NotFoundError: If user is missing
            InsufficientFundsError: If amount exceeds the bucket
        """
        amount = parse_amount(amount)
        user = await self._lock_user(user_id)

        available = user.get_balance(bucket)
        if amount > available:
            raise InsufficientFundsError(bucket.value, available, amount)

        user.set_balance(bucket, available - amount)
        await self.session.flush()

        self.logger.info(
            "Balance debited",
            extra={
                "user_id": user_id,
                "bucket": bucket.value,
                "amount": str(amount),
                "balance": str(user.get_balance(bucket)),
            },
        )
        return user

    async def transfer(
        self,
        user_id: int,
        from_bucket: BalanceBucket,
        to_bucket: BalanceBucket,
        amount: Decimal,
    ) -> User:
        """
        Move value between two buckets of one user.

        The balance check happens before either bucket changes, so a
        failed debit leaves both untouched.

        Args:
            user_id: User ID
            from_bucket: Source bucket
            to_bucket: Destination bucket
            amount: Positive amount

        Returns:
            Updated user

        Raises:
            InvalidInputError: If both buckets are the same
            InsufficientFundsError: If amount exceeds the source bucket
        """
        if from_bucket == to_bucket:
            raise InvalidInputError("Source and destination buckets must differ")

        amount = parse_amount(amount)
        user = await self._lock_user(user_id)

        available = user.get_balance(from_bucket)
        if amount > available:
            raise InsufficientFundsError(from_bucket.value, available, amount)

        user.set_balance(from_bucket, available - amount)
        user.set_balance(to_bucket, user.get_balance(to_bucket) + amount)
        await self.session.flush()

        self.logger.info(
            "Balance transferred",
            extra={
                "user_id": user_id,
                "from_bucket": from_bucket.value,
                "to_bucket": to_bucket.value,
                "amount": str(amount),
            },
        )
        return user

    async def get_balances(self, user_id: int) -> BalanceSnapshot:
        """
        Read all buckets of a user.

        Args:
            user_id: User ID

        Returns:
            Balance snapshot

        Raises:
            NotFoundError: If user is missing
        """
        user = await self.user_repo.get_by_id(user_id)
        if not user:
            raise NotFoundError(f"User {user_id} not found")
        await self.session.refresh(user)
        return BalanceSnapshot.from_user(user)
