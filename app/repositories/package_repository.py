"""
Package repository.

Data access layer for Package model.
"""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.package import Package
from app.repositories.base import BaseRepository


class PackageRepository(BaseRepository[Package]):
    """Package repository with specific queries."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize package repository."""
        super().__init__(Package, session)

    async def get_all_ordered(self) -> list[Package]:
        """
        Get all packages sorted ascending by minimum deposit.

        Returns:
            List of packages
        """
        stmt = select(Package).order_by(Package.min_deposit, Package.id)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())
