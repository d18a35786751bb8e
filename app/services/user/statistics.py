"""
User balance functionality.

Handles balance snapshots and the direct referral list of a user.
"""

from sqlalchemy.ext.asyncio import AsyncSession

from app.repositories.referral_repository import ReferralRepository
from app.services.ledger_service import BalanceSnapshot, LedgerService
from app.utils.exceptions import NotFoundError


class UserStatisticsMixin:
    """
    Mixin for user balance information.

    Expects the attributes set up by UserServiceCore.
    """

    def __init__(self, session: AsyncSession) -> None:
        """Initialize user statistics mixin."""
        self.session = session
        self.ledger = LedgerService(session)
        self.referral_repo = ReferralRepository(session)

    async def get_balances(self, user_id: int) -> BalanceSnapshot:
        """
        Get all balance buckets of a user.

        Args:
            user_id: User ID

        Returns:
            BalanceSnapshot

        Raises:
            NotFoundError: If missing
        """
        return await self.ledger.get_balances(user_id)

    async def get_referral_ids(self, user_id: int) -> list[int]:
        """
        Get IDs of directly referred users in join order.

        Args:
            user_id: User ID

        Returns:
            List of user IDs

        Raises:
            NotFoundError: If missing
        """
        if not await self.user_repo.exists(id=user_id):
            raise NotFoundError(f"User {user_id} not found")
        return await self.referral_repo.get_referral_ids(user_id)
