"""
Tests for the package catalog.

Covers:
- Catalog validation (inverted, overlapping, gapped, decreasing rates)
- Package lookup by total amount, including the top tier
"""

from decimal import Decimal

import pytest

from app.config.packages import DEFAULT_PACKAGES, PackageConfig
from app.services.package_catalog import PackageCatalog, validate_catalog
from app.utils.exceptions import InvalidCatalogError, NoMatchingPackageError


def _pkg(name: str, low: str, high: str, rate: str) -> PackageConfig:
    return PackageConfig(name, Decimal(low), Decimal(high), Decimal(rate))


@pytest.fixture
def packages():
    """Catalog used by the lookup tests, deliberately unsorted."""
    return [
        _pkg("P2", "1000", "4999", "1.5"),
        _pkg("P1", "10", "999", "1"),
        _pkg("P3", "5000", "20000", "2"),
    ]


class TestValidateCatalog:
    """Test catalog validation."""

    def test_default_catalog_is_valid(self):
        """The shipped default table passes validation."""
        ordered = validate_catalog(DEFAULT_PACKAGES)

        assert [p.name for p in ordered] == [
            "Starter", "Silver", "Gold", "Platinum"
        ]

    def test_sorts_by_min_deposit(self, packages):
        """Packages come back ascending."""
        ordered = validate_catalog(packages)

        assert [p.name for p in ordered] == ["P1", "P2", "P3"]

    def test_empty_catalog_is_valid(self):
        """An empty table validates to an empty list."""
        assert validate_catalog([]) == []

    def test_rejects_inverted_range(self):
        """min_deposit above max_deposit is rejected."""
        with pytest.raises(InvalidCatalogError, match="exceeds"):
            validate_catalog([_pkg("Bad", "100", "50", "1")])

    def test_rejects_overlap(self):
        """Overlapping ranges are rejected."""
        with pytest.raises(InvalidCatalogError, match="overlap"):
            validate_catalog([
                _pkg("A", "0", "1000", "1"),
                _pkg("B", "1000", "2000", "1.5"),
            ])

    def test_rejects_gap(self):
        """A hole between ranges is rejected."""
        with pytest.raises(InvalidCatalogError, match="Gap"):
            validate_catalog([
                _pkg("A", "0", "999", "1"),
                _pkg("B", "1500", "2000", "1.5"),
            ])

    def test_rejects_decreasing_rate(self):
        """A larger package may not pay less."""
        with pytest.raises(InvalidCatalogError, match="pays less"):
            validate_catalog([
                _pkg("A", "0", "999", "2"),
                _pkg("B", "1000", "2000", "1"),
            ])

    def test_rejects_negative_values(self):
        """Negative minimums and rates are rejected."""
        with pytest.raises(InvalidCatalogError):
            validate_catalog([_pkg("A", "-1", "999", "1")])
        with pytest.raises(InvalidCatalogError):
            validate_catalog([_pkg("A", "0", "999", "-1")])


class TestFindPackageFor:
    """Test package lookup."""

    @pytest.mark.parametrize(
        "amount, expected",
        [
            ("10", "P1"),
            ("500", "P1"),
            ("999", "P1"),
            ("999.5", "P1"),
            ("1000", "P2"),
            ("4999", "P2"),
            ("5000", "P3"),
            ("20000", "P3"),
        ],
    )
    def test_contained_amounts(self, packages, amount, expected):
        """Amounts inside a range map to that package."""
        catalog = PackageCatalog(packages)

        assert catalog.find_package_for(Decimal(amount)).name == expected

    def test_amount_above_top_tier(self, packages):
        """Amounts above the last max_deposit map to the top tier."""
        catalog = PackageCatalog(packages)

        assert catalog.find_package_for(Decimal("1000000")).name == "P3"
        assert catalog.top.name == "P3"

    def test_amount_below_lowest_minimum(self, packages):
        """Amounts below the lowest minimum have no package."""
        catalog = PackageCatalog(packages)

        with pytest.raises(NoMatchingPackageError, match="below the minimum"):
            catalog.find_package_for(Decimal("9.99"))

    def test_empty_catalog(self):
        """An empty catalog matches nothing."""
        catalog = PackageCatalog([])

        assert len(catalog) == 0
        assert catalog.top is None
        with pytest.raises(NoMatchingPackageError):
            catalog.find_package_for(Decimal("100"))
