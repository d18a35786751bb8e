"""
Investment repository.

Data access layer for Investment model.
"""

from datetime import date

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.models.enums import InvestmentStatus
from app.models.investment import Investment
from app.repositories.base import BaseRepository


class InvestmentRepository(BaseRepository[Investment]):
    """Investment repository with specific queries."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize investment repository."""
        super().__init__(Investment, session)

    async def get_active_for_user(
        self, user_id: int, for_update: bool = False
    ) -> Investment | None:
        """
        Get the user's active investment.

        Args:
            user_id: User ID
            for_update: Lock the row

        Returns:
            Active investment or None
        """
        stmt = (
            select(Investment)
            .options(selectinload(Investment.package))
            .where(
                Investment.user_id == user_id,
                Investment.status == InvestmentStatus.ACTIVE.value,
            )
        )
        if for_update:
            stmt = stmt.with_for_update()

        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_with_package(
        self, investment_id: int, for_update: bool = False
    ) -> Investment | None:
        """
        Get investment by ID with its package loaded.

        Args:
            investment_id: Investment ID
            for_update: Lock the row

        Returns:
            Investment or None
        """
        stmt = (
            select(Investment)
            .options(selectinload(Investment.package))
            .where(Investment.id == investment_id)
        )
        if for_update:
            stmt = stmt.with_for_update()

        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_by_user(self, user_id: int) -> list[Investment]:
        """
        Get all investments of a user, newest first.

        Args:
            user_id: User ID

        Returns:
            List of investments with packages loaded
        """
        stmt = (
            select(Investment)
            .options(selectinload(Investment.package))
            .where(Investment.user_id == user_id)
            .order_by(Investment.created_at.desc(), Investment.id.desc())
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def get_due_for_accrual(
        self, accrual_date: date
    ) -> list[Investment]:
        """
        Get active investments not yet accrued for a date.

        Rows are locked to prevent concurrent accrual.

        Args:
            accrual_date: Day being accrued

        Returns:
            List of investments with packages loaded
        """
        stmt = (
            select(Investment)
            .options(selectinload(Investment.package))
            .where(
                Investment.status == InvestmentStatus.ACTIVE.value,
                or_(
                    Investment.last_accrued_on.is_(None),
                    Investment.last_accrued_on < accrual_date,
                ),
            )
            .order_by(Investment.id)
            .with_for_update(skip_locked=True)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())
