"""
Default investment package table.

Single source of truth for the packages seeded into the database.
Ranges are inclusive, ascending and contiguous; the last package is the
open-ended top tier.
"""

from decimal import Decimal
from typing import NamedTuple


class PackageConfig(NamedTuple):
    """Investment package definition."""

    name: str
    min_deposit: Decimal  # Inclusive lower bound
    max_deposit: Decimal  # Inclusive upper bound (open for the top tier)
    daily_rate: Decimal  # Percent per day, e.g. 1.5 = 1.5%


DEFAULT_PACKAGES: tuple[PackageConfig, ...] = (
    PackageConfig(
        name="Starter",
        min_deposit=Decimal("10"),
        max_deposit=Decimal("999"),
        daily_rate=Decimal("1.0"),
    ),
    PackageConfig(
        name="Silver",
        min_deposit=Decimal("1000"),
        max_deposit=Decimal("4999"),
        daily_rate=Decimal("1.5"),
    ),
    PackageConfig(
        name="Gold",
        min_deposit=Decimal("5000"),
        max_deposit=Decimal("19999"),
        daily_rate=Decimal("2.0"),
    ),
    PackageConfig(
        name="Platinum",
        min_deposit=Decimal("20000"),
        max_deposit=Decimal("100000"),
        daily_rate=Decimal("2.5"),
    ),
)

# Largest allowed distance between one package's max and the next one's min
MAX_RANGE_GAP = Decimal("1")
