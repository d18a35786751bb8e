"""
User registration functionality.

Creates platform accounts on behalf of the identity provider and assigns
each a unique invite code.
"""

import secrets

from sqlalchemy.ext.asyncio import AsyncSession

from app.config.constants import INVITE_CODE_MAX_ATTEMPTS, INVITE_CODE_RANDOM_BYTES
from app.config.settings import settings
from app.models.user import User
from app.repositories.user_repository import UserRepository
from app.services.base_service import transaction
from app.services.referral.chain_manager import ReferralChainManager
from app.utils.exceptions import ConflictError, InternalError, InvalidCodeError


def generate_invite_code(prefix: str | None = None) -> str:
    """
    Generate a random invite code like ``VX-1A2B3C``.

    Args:
        prefix: Code prefix (defaults to settings)

    Returns:
        Invite code
    """
    prefix = prefix or settings.invite_code_prefix
    return f"{prefix}-{secrets.token_hex(INVITE_CODE_RANDOM_BYTES).upper()}"


class UserRegistrationMixin:
    """
    Mixin for user registration functionality.

    Expects the attributes set up by UserServiceCore.
    """

    def __init__(self, session: AsyncSession) -> None:
        """Initialize user registration mixin."""
        self.session = session
        self.user_repo = UserRepository(session)
        self.chain_manager = ReferralChainManager(session)

    @transaction
    async def create_user(
        self,
        email: str,
        username: str,
        first_name: str = "",
        last_name: str = "",
        referral_code: str | None = None,
    ) -> User:
        """
        Create a user with zero balances and a unique invite code.

        Args:
            email: Email address (stored lower-case)
            username: Unique username
            first_name: First name
            last_name: Last name
            referral_code: Optional invite code of the referrer

        Returns:
            Created user

        Raises:
            ConflictError: If email or username is taken
            InvalidCodeError: If referral_code resolves to no user
        """
        email = email.strip().lower()
        username = username.strip()

        if await self.user_repo.get_by_email(email):
            raise ConflictError("Email already in use")
        if await self.user_repo.get_by_username(username):
            raise ConflictError("Username already in use")

        referrer = None
        if referral_code:
            referrer = await self.user_repo.get_by_invite_code(referral_code)
            if not referrer:
                raise InvalidCodeError("Invalid invite code")

        invite_code = await self._generate_unique_invite_code()

        user = await self.user_repo.create(
            email=email,
            username=username,
            first_name=first_name,
            last_name=last_name,
            invite_code=invite_code,
        )

        if referrer:
            await self.chain_manager.create_link(user, referrer)

        self.logger.info(
            "User created",
            extra={
                "user_id": user.id,
                "invite_code": invite_code,
                "referrer_id": referrer.id if referrer else None,
            },
        )
        return user

    async def _generate_unique_invite_code(self) -> str:
        for _ in range(INVITE_CODE_MAX_ATTEMPTS):
            code = generate_invite_code()
            if not await self.user_repo.exists(invite_code=code):
                return code
        raise InternalError("Could not generate a unique invite code")
