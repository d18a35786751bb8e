"""
Referral query module.

Read models for a node of the referral tree.
"""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession

from app.repositories.referral_repository import ReferralRepository
from app.repositories.user_repository import UserRepository
from app.utils.exceptions import NotFoundError


@dataclass(frozen=True)
class ReferralNode:
    """Direct referral enriched with the referred user's public profile."""

    user_id: int
    username: str
    email: str
    first_name: str
    last_name: str
    invite_code: str
    main_balance: Decimal
    profit_balance: Decimal
    profit_earned: Decimal
    joined_at: datetime

    @property
    def full_name(self) -> str:
        """First and last name joined for display."""
        return f"{self.first_name} {self.last_name}".strip()


class ReferralQueryManager:
    """Handles referral queries."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize query manager."""
        self.session = session
        self.referral_repo = ReferralRepository(session)
        self.user_repo = UserRepository(session)

    async def _require_user(self, user_id: int) -> None:
        if not await self.user_repo.exists(id=user_id):
            raise NotFoundError(f"User {user_id} not found")

    async def get_direct_referrals(self, user_id: int) -> list[ReferralNode]:
        """
        Get direct referrals of a user in join order.

        Args:
            user_id: Referrer user ID

        Returns:
            List of referral nodes

        Raises:
            NotFoundError: If user is missing
        """
        await self._require_user(user_id)
        links = await self.referral_repo.get_by_referrer(
            user_id, with_users=True
        )

        return [
            ReferralNode(
                user_id=link.referred_user.id,
                username=link.referred_user.username,
                email=link.referred_user.email,
                first_name=link.referred_user.first_name,
                last_name=link.referred_user.last_name,
                invite_code=link.referred_user.invite_code,
                main_balance=link.referred_user.main_balance,
                profit_balance=link.referred_user.profit_balance,
                profit_earned=link.profit_earned,
                joined_at=link.joined_at,
            )
            for link in links
        ]

    async def get_referral_ids(self, user_id: int) -> list[int]:
        """
        Get IDs of directly referred users in join order.

        Args:
            user_id: Referrer user ID

        Returns:
            List of user IDs

        Raises:
            NotFoundError: If user is missing
        """
        await self._require_user(user_id)
        return await self.referral_repo.get_referral_ids(user_id)
