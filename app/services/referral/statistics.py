"""
Referral statistics module.

Aggregates over the direct referrals and the downline of a user.
"""

from dataclasses import dataclass
from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession

from app.repositories.referral_repository import ReferralRepository
from app.repositories.user_repository import UserRepository
from app.services.referral.config import REFERRAL_DEPTH
from app.utils.exceptions import NotFoundError


@dataclass(frozen=True)
class ReferralStats:
    """
    Referral statistics of a user.

    ``total_invested`` is the sum of main and profit balances of direct
    referrals, a proxy for their deposits rather than a cumulative total.
    """

    total_referrals: int
    total_profit: Decimal
    total_invested: Decimal


class ReferralStatisticsManager:
    """Manages referral statistics."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize statistics manager."""
        self.session = session
        self.referral_repo = ReferralRepository(session)
        self.user_repo = UserRepository(session)

    async def get_stats(self, user_id: int) -> ReferralStats:
        """
        Get referral statistics for user.

        Args:
            user_id: User ID

        Returns:
            ReferralStats

        Raises:
            NotFoundError: If user is missing
        """
        if not await self.user_repo.exists(id=user_id):
            raise NotFoundError(f"User {user_id} not found")

        links = await self.referral_repo.get_by_referrer(
            user_id, with_users=True
        )

        total_profit = sum(
            (link.profit_earned for link in links), Decimal("0")
        )
        total_invested = sum(
            (
                link.referred_user.main_balance
                + link.referred_user.profit_balance
                for link in links
            ),
            Decimal("0"),
        )

        return ReferralStats(
            total_referrals=len(links),
            total_profit=total_profit,
            total_invested=total_invested,
        )

    async def get_level_counts(
        self, user_id: int, depth: int = REFERRAL_DEPTH
    ) -> dict[int, int]:
        """
        Count the downline of a user per level.

        Args:
            user_id: User ID
            depth: Number of levels

        Returns:
            Dict mapping level to count {1: count1, 2: count2, 3: count3}

        Raises:
            NotFoundError: If user is missing
        """
        if not await self.user_repo.exists(id=user_id):
            raise NotFoundError(f"User {user_id} not found")

        level_counts = {level: 0 for level in range(1, depth + 1)}
        frontier = [user_id]
        seen = {user_id}

        for level in range(1, depth + 1):
            referred = await self.referral_repo.get_referred_ids_for(frontier)
            frontier = [uid for uid in referred if uid not in seen]
            if not frontier:
                break
            seen.update(frontier)
            level_counts[level] = len(frontier)

        return level_counts
