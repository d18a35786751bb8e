"""
Core user service functionality.

Handles basic user retrieval operations.
"""

from sqlalchemy.ext.asyncio import AsyncSession

from app.models.user import User
from app.repositories.user_repository import UserRepository
from app.services.base_service import BaseService
from app.utils.exceptions import NotFoundError


class UserServiceCore(BaseService):
    """
    Core user service.

    Provides basic user retrieval methods.
    """

    def __init__(self, session: AsyncSession) -> None:
        """
        Initialize user service core.

        Args:
            session: Database session
        """
        super().__init__(session)
        self.user_repo = UserRepository(session)

    async def get_by_id(self, user_id: int) -> User | None:
        """
        Get user by ID.

        Args:
            user_id: User ID

        Returns:
            User or None
        """
        return await self.user_repo.get_by_id(user_id)

    async def get_user(self, user_id: int) -> User:
        """
        Get user by ID or raise.

        Args:
            user_id: User ID

        Returns:
            User

        Raises:
            NotFoundError: If missing
        """
        user = await self.user_repo.get_by_id(user_id)
        if not user:
            raise NotFoundError(f"User {user_id} not found")
        return user

    async def get_by_invite_code(self, invite_code: str) -> User | None:
        """
        Get user by invite code.

        Args:
            invite_code: Invite code

        Returns:
            User or None
        """
        return await self.user_repo.get_by_invite_code(invite_code)

    async def get_by_email(self, email: str) -> User | None:
        """
        Get user by email.

        Args:
            email: Email address

        Returns:
            User or None
        """
        return await self.user_repo.get_by_email(email)
