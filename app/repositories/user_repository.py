"""
User repository.

Data access layer for User model.
"""

from sqlalchemy.ext.asyncio import AsyncSession

from app.models.user import User
from app.repositories.base import BaseRepository


class UserRepository(BaseRepository[User]):
    """User repository with specific queries."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize user repository."""
        super().__init__(User, session)

    async def get_for_update(self, user_id: int) -> User | None:
        """
        Get user with its row locked for a balance read-modify-write.

        Args:
            user_id: User ID

        Returns:
            Locked user or None
        """
        return await self.get_by_id(user_id, for_update=True)

    async def get_by_invite_code(
        self, invite_code: str
    ) -> User | None:
        """
        Get user by invite code.

        Args:
            invite_code: Invite code (case-insensitive)

        Returns:
            User or None
        """
        if not invite_code:
            return None
        return await self.get_by(invite_code=invite_code.strip().upper())

    async def get_by_email(self, email: str) -> User | None:
        """
        Get user by email (stored lower-case).

        Args:
            email: Email address

        Returns:
            User or None
        """
        return await self.get_by(email=email.strip().lower())

    async def get_by_username(self, username: str) -> User | None:
        """
        Get user by username.

        Args:
            username: Username

        Returns:
            User or None
        """
        return await self.get_by(username=username.strip())
