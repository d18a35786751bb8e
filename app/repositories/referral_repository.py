"""
Referral repository.

Data access layer for ReferralLink model.
"""

from decimal import Decimal

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.models.referral import ReferralLink
from app.repositories.base import BaseRepository


class ReferralRepository(BaseRepository[ReferralLink]):
    """Referral link repository with specific queries."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize referral repository."""
        super().__init__(ReferralLink, session)

    async def get_by_referrer(
        self, referrer_id: int, with_users: bool = False
    ) -> list[ReferralLink]:
        """
        Get direct referral links of a referrer in join order.

        Args:
            referrer_id: Referrer user ID
            with_users: Eager-load referred users

        Returns:
            List of referral links
        """
        stmt = (
            select(ReferralLink)
            .where(ReferralLink.referrer_id == referrer_id)
            .order_by(ReferralLink.joined_at, ReferralLink.id)
        )
        if with_users:
            stmt = stmt.options(selectinload(ReferralLink.referred_user))

        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def get_referral_ids(self, referrer_id: int) -> list[int]:
        """
        Get IDs of directly referred users in join order.

        Args:
            referrer_id: Referrer user ID

        Returns:
            List of user IDs
        """
        stmt = (
            select(ReferralLink.referred_user_id)
            .where(ReferralLink.referrer_id == referrer_id)
            .order_by(ReferralLink.joined_at, ReferralLink.id)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def get_referred_ids_for(
        self, referrer_ids: list[int]
    ) -> list[int]:
        """
        Get IDs of users directly referred by any of the given referrers.

        Args:
            referrer_ids: Referrer user IDs

        Returns:
            List of user IDs
        """
        if not referrer_ids:
            return []

        stmt = select(ReferralLink.referred_user_id).where(
            ReferralLink.referrer_id.in_(referrer_ids)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def add_profit_earned(
        self, referrer_id: int, referred_user_id: int, amount: Decimal
    ) -> bool:
        """
        Atomically increase profit earned on a link.

        Args:
            referrer_id: Referrer user ID
            referred_user_id: Referred user ID
            amount: Amount to add

        Returns:
            True if a link was updated
        """
        stmt = (
            update(ReferralLink)
            .where(
                ReferralLink.referrer_id == referrer_id,
                ReferralLink.referred_user_id == referred_user_id,
            )
            .values(profit_earned=ReferralLink.profit_earned + amount)
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        return result.rowcount > 0
