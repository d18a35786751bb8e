"""
User service module.

Provides user management functionality including registration and
balance queries.

Structure:
- core.py: Core user retrieval
- registration.py: User creation with invite codes and optional referrer
- statistics.py: Balance snapshots and direct referral IDs

Usage:
    from app.services.user import UserService

    user_service = UserService(session)
    user = await user_service.create_user("ann@example.com", "ann")
    balances = await user_service.get_balances(user.id)
"""

from sqlalchemy.ext.asyncio import AsyncSession

from app.services.user.core import UserServiceCore
from app.services.user.registration import (
    UserRegistrationMixin,
    generate_invite_code,
)
from app.services.user.statistics import UserStatisticsMixin


class UserService(
    UserServiceCore,
    UserRegistrationMixin,
    UserStatisticsMixin,
):
    """
    Combined user service.

    Inherits from all user service mixins to provide complete functionality.
    """

    def __init__(self, session: AsyncSession) -> None:
        """
        Initialize user service with all mixins.

        Args:
            session: Database session
        """
        # Initialize all parent classes
        UserServiceCore.__init__(self, session)
        UserRegistrationMixin.__init__(self, session)
        UserStatisticsMixin.__init__(self, session)


__all__ = ["UserService", "generate_invite_code"]
