"""
Package catalog.

Tiered rate table: deposit range to daily interest rate. The catalog is
validated when it is loaded, so lookups never have to resolve overlaps.
"""

from collections.abc import Sequence
from decimal import Decimal
from sqlalchemy.ext.asyncio import AsyncSession

from app.config.packages import DEFAULT_PACKAGES, MAX_RANGE_GAP, PackageConfig
from app.models.package import Package
from app.repositories.package_repository import PackageRepository
from app.services.base_service import BaseService
from app.utils.exceptions import InvalidCatalogError, NoMatchingPackageError

PackageLike = Package | PackageConfig


def validate_catalog(packages: Sequence[PackageLike]) -> list[PackageLike]:
    """
    Validate and sort a package table.

    Args:
        packages: Packages in any order

    Returns:
        Packages sorted ascending by min_deposit

    Raises:
        InvalidCatalogError: On inverted, overlapping or gapped ranges, or
            on a rate that drops as deposits grow
    """
    ordered = sorted(packages, key=lambda p: p.min_deposit)

    for package in ordered:
        if package.min_deposit < 0:
            raise InvalidCatalogError(
                f"Package {package.name}: negative minimum deposit"
            )
        if package.min_deposit > package.max_deposit:
            raise InvalidCatalogError(
                f"Package {package.name}: min_deposit {package.min_deposit} "
                f"exceeds max_deposit {package.max_deposit}"
            )
        if package.daily_rate < 0:
            raise InvalidCatalogError(
                f"Package {package.name}: negative daily rate"
            )

    for prev, current in zip(ordered, ordered[1:]):
        if current.min_deposit <= prev.max_deposit:
            raise InvalidCatalogError(
                f"Packages {prev.name} and {current.name} overlap"
            )
        if current.min_deposit - prev.max_deposit > MAX_RANGE_GAP:
            raise InvalidCatalogError(
                f"Gap between packages {prev.name} and {current.name}"
            )
        if current.daily_rate < prev.daily_rate:
            raise InvalidCatalogError(
                f"Package {current.name} pays less than {prev.name}"
            )

    return ordered


class PackageCatalog:
    """Validated, ascending package table."""

    def __init__(self, packages: Sequence[PackageLike]) -> None:
        """
        Build catalog.

        Args:
            packages: Packages in any order

        Raises:
            InvalidCatalogError: If the table is malformed
        """
        self.packages = validate_catalog(packages)

    def __len__(self) -> int:
        return len(self.packages)

    @property
    def top(self) -> PackageLike | None:
        """Open-ended top tier."""
        return self.packages[-1] if self.packages else None

    def find_package_for(self, amount: Decimal) -> PackageLike:
        """
        Find the package for a total amount.

        Returns the package with the greatest min_deposit not above the
        amount: the containing package, or the top tier above the last
        max_deposit.

        Args:
            amount: Total investment amount

        Returns:
            Matching package

        Raises:
            NoMatchingPackageError: If the catalog is empty or the amount
                is below the lowest min_deposit
        """
        if not self.packages:
            raise NoMatchingPackageError("No investment packages configured")

        lowest = self.packages[0]
        if amount < lowest.min_deposit:
            raise NoMatchingPackageError(
                f"Amount {amount} is below the minimum deposit "
                f"{lowest.min_deposit}"
            )

        for package in reversed(self.packages):
            if package.min_deposit <= amount:
                return package

        # Unreachable: amount >= lowest.min_deposit
        raise NoMatchingPackageError(f"No package for amount {amount}")


class PackageCatalogService(BaseService):
    """Loads the catalog from the packages table."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize package catalog service."""
        super().__init__(session)
        self.package_repo = PackageRepository(session)
        self._catalog: PackageCatalog | None = None

    async def load(self, refresh: bool = False) -> PackageCatalog:
        """
        Load and validate the catalog (cached per service instance).

        Args:
            refresh: Reload even if cached

        Returns:
            Validated catalog

        Raises:
            InvalidCatalogError: If the stored table is malformed
        """
        if self._catalog is None or refresh:
            packages = await self.package_repo.get_all_ordered()
            self._catalog = PackageCatalog(packages)
            self.logger.debug(
                "Package catalog loaded",
                extra={"packages": len(packages)},
            )
        return self._catalog

    async def find_package_for(self, amount: Decimal) -> Package:
        """
        Find the stored package for a total amount.

        Args:
            amount: Total investment amount

        Returns:
            Matching package
        """
        catalog = await self.load()
        return catalog.find_package_for(amount)

    async def seed_defaults(
        self, packages: Sequence[PackageConfig] = DEFAULT_PACKAGES
    ) -> int:
        """
        Insert the default package table when none is stored.

        Args:
            packages: Package definitions

        Returns:
            Number of packages inserted
        """
        if await self.package_repo.count() > 0:
            return 0

        for config in validate_catalog(packages):
            await self.package_repo.create(
                name=config.name,
                min_deposit=config.min_deposit,
                max_deposit=config.max_deposit,
                daily_rate=config.daily_rate,
            )

        self._catalog = None
        self.logger.info(
            "Default packages seeded", extra={"count": len(packages)}
        )
        return len(packages)
