"""
Referral service.

Manages the referral tree: registration under an invite code, upline and
downline queries, statistics and the daily profit cascade.
"""

from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession

from app.models.user import User
from app.repositories.user_repository import UserRepository
from app.services.base_service import (
    BaseService,
    log_operation,
    transaction,
)
from app.services.referral import (
    REFERRAL_DEPTH,
    CascadeResult,
    ReferralChainManager,
    ReferralNode,
    ReferralProfitCascade,
    ReferralQueryManager,
    ReferralStatisticsManager,
    ReferralStats,
)
from app.utils.exceptions import InvalidCodeError, NotFoundError


@dataclass(frozen=True)
class ReferralRegistration:
    """Outcome of a referral registration."""

    user_id: int
    referrer_id: int | None
    linked: bool
    already_linked: bool
    message: str


class ReferralService(BaseService):
    """Referral service for managing the referral tree and payouts."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize referral service."""
        super().__init__(session)
        self.user_repo = UserRepository(session)
        self.chain_manager = ReferralChainManager(session)
        self.query_manager = ReferralQueryManager(session)
        self.statistics = ReferralStatisticsManager(session)

    @transaction
    async def register_referral(
        self, invite_code: str, new_user_id: int
    ) -> ReferralRegistration:
        """
        Link a user under the owner of an invite code.

        A user is linked to exactly one upline, once. Calling again for an
        already linked user is a successful no-op.

        Args:
            invite_code: Referrer's invite code
            new_user_id: User being linked

        Returns:
            ReferralRegistration

        Raises:
            NotFoundError: If the user is missing
            InvalidCodeError: If the code resolves to no user, to the user
                itself or to a member of its downline
        """
        new_user = await self.user_repo.get_for_update(new_user_id)
        if not new_user:
            raise NotFoundError(f"User {new_user_id} not found")

        if new_user.referred_by_code:
            referrer = await self.user_repo.get_by_invite_code(
                new_user.referred_by_code
            )
            self.logger.info(
                "Referral already linked",
                extra={
                    "user_id": new_user_id,
                    "referred_by_code": new_user.referred_by_code,
                },
            )
            return ReferralRegistration(
                user_id=new_user_id,
                referrer_id=referrer.id if referrer else None,
                linked=False,
                already_linked=True,
                message="User is already linked to a referrer",
            )

        referrer = await self.user_repo.get_by_invite_code(invite_code)
        if not referrer:
            raise InvalidCodeError("Invalid invite code")

        await self.chain_manager.create_link(new_user, referrer)

        return ReferralRegistration(
            user_id=new_user_id,
            referrer_id=referrer.id,
            linked=True,
            already_linked=False,
            message="Referral registered successfully",
        )

    async def get_direct_referrals(self, user_id: int) -> list[ReferralNode]:
        """
        Get direct referrals with profile fields and profit earned.

        Args:
            user_id: Referrer user ID

        Returns:
            List of referral nodes in join order
        """
        return await self.query_manager.get_direct_referrals(user_id)

    async def get_referral_node_details(
        self, user_id: int
    ) -> list[ReferralNode]:
        """
        Get direct referrals of any node of the tree.

        Args:
            user_id: Node user ID

        Returns:
            List of referral nodes in join order
        """
        return await self.query_manager.get_direct_referrals(user_id)

    async def get_referral_ids(self, user_id: int) -> list[int]:
        """
        Get IDs of directly referred users in join order.

        Args:
            user_id: Referrer user ID

        Returns:
            List of user IDs
        """
        return await self.query_manager.get_referral_ids(user_id)

    async def get_stats(self, user_id: int) -> ReferralStats:
        """
        Get referral statistics.

        Args:
            user_id: User ID

        Returns:
            ReferralStats
        """
        return await self.statistics.get_stats(user_id)

    async def get_level_counts(self, user_id: int) -> dict[int, int]:
        """
        Count the downline per level.

        Args:
            user_id: User ID

        Returns:
            Dict mapping level (1-3) to count
        """
        return await self.statistics.get_level_counts(user_id)

    async def get_upline(
        self, user_id: int, depth: int = REFERRAL_DEPTH
    ) -> list[User]:
        """
        Get upline users, nearest first.

        Args:
            user_id: User ID
            depth: Maximum levels

        Returns:
            List of users
        """
        return await self.chain_manager.get_upline(user_id, depth)

    @log_operation
    async def calculate_referral_profits(self) -> CascadeResult:
        """
        Run the referral profit cascade.

        Returns:
            CascadeResult
        """
        cascade = ReferralProfitCascade(self.session)
        return await cascade.run()
