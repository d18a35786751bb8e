"""
Referral chain management module.

Handles upline traversal and creation of referral links.
"""

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.referral import ReferralLink
from app.models.user import User
from app.repositories.referral_repository import ReferralRepository
from app.repositories.user_repository import UserRepository
from app.services.referral.config import REFERRAL_DEPTH
from app.utils.exceptions import InvalidCodeError, NotFoundError


class ReferralChainManager:
    """Manages referral chain operations."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize chain manager."""
        self.session = session
        self.referral_repo = ReferralRepository(session)
        self.user_repo = UserRepository(session)

    async def get_upline(
        self, user_id: int, depth: int | None = REFERRAL_DEPTH
    ) -> list[User]:
        """
        Get the upline of a user, nearest referrer first.

        Traverses ``referred_by_code`` and stops at the first code that
        resolves to no user, without skipping to a farther ancestor.

        Args:
            user_id: User ID
            depth: Maximum levels to walk (None for the whole chain)

        Returns:
            List of users from direct referrer upward

        Raises:
            NotFoundError: If user is missing
        """
        user = await self.user_repo.get_by_id(user_id)
        if not user:
            raise NotFoundError(f"User {user_id} not found")

        chain: list[User] = []
        visited = {user.id}
        code = user.referred_by_code

        while code and (depth is None or len(chain) < depth):
            referrer = await self.user_repo.get_by_invite_code(code)
            if referrer is None:
                logger.warning(
                    "Broken referral chain",
                    extra={
                        "user_id": user_id,
                        "level": len(chain) + 1,
                        "missing_code": code,
                    },
                )
                break
            if referrer.id in visited:
                logger.warning(
                    "Referral cycle detected",
                    extra={"user_id": user_id, "repeated_id": referrer.id},
                )
                break

            chain.append(referrer)
            visited.add(referrer.id)
            code = referrer.referred_by_code

        logger.debug(
            "Referral chain retrieved",
            extra={
                "user_id": user_id,
                "depth": depth,
                "chain_length": len(chain),
            },
        )
        return chain

    async def create_link(
        self, new_user: User, referrer: User
    ) -> ReferralLink:
        """
        Link a new user under a referrer.

        Rejects self-referral and any link that would make the new user
        an ancestor of itself.

        Args:
            new_user: Locked user being linked
            referrer: Referrer resolved from the invite code

        Returns:
            Created referral link

        Raises:
            InvalidCodeError: On self-referral or a referral cycle
        """
        if new_user.id == referrer.id:
            raise InvalidCodeError("A user cannot refer themselves")

        ancestors = await self.get_upline(referrer.id, depth=None)
        ancestor_ids = [referrer.id] + [a.id for a in ancestors]
        if new_user.id in ancestor_ids:
            logger.warning(
                "Referral loop detected",
                extra={
                    "new_user_id": new_user.id,
                    "referrer_id": referrer.id,
                    "chain_ids": ancestor_ids,
                },
            )
            raise InvalidCodeError("Referral would create a cycle")

        new_user.referred_by_code = referrer.invite_code
        await self.session.flush()

        link = await self.referral_repo.create(
            referrer_id=referrer.id,
            referred_user_id=new_user.id,
        )

        logger.info(
            "Referral link created",
            extra={
                "new_user_id": new_user.id,
                "referrer_id": referrer.id,
                "invite_code": referrer.invite_code,
            },
        )
        return link
