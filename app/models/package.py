"""
Package model.

Static tiered rate table: deposit range to daily interest rate.
"""

from datetime import UTC, datetime
from decimal import Decimal

from sqlalchemy import CheckConstraint, DateTime, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import Base


class Package(Base):
    """Investment package with an inclusive deposit range."""

    __tablename__ = "packages"
    __table_args__ = (
        CheckConstraint(
            'min_deposit >= 0', name='check_package_min_non_negative'
        ),
        CheckConstraint(
            'max_deposit >= min_deposit', name='check_package_range_order'
        ),
        CheckConstraint(
            'daily_rate >= 0', name='check_package_rate_non_negative'
        ),
    )

    id: Mapped[int] = mapped_column(primary_key=True)

    name: Mapped[str] = mapped_column(
        String(50), unique=True, nullable=False
    )

    # Deposit corridor (inclusive)
    min_deposit: Mapped[Decimal] = mapped_column(
        Numeric(18, 8), index=True, nullable=False
    )
    max_deposit: Mapped[Decimal] = mapped_column(
        Numeric(18, 8), nullable=False
    )

    # Percent per day
    daily_rate: Mapped[Decimal] = mapped_column(
        Numeric(10, 4), nullable=False
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        nullable=False,
    )

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<Package(id={self.id}, name={self.name}, "
            f"min_deposit={self.min_deposit}, "
            f"max_deposit={self.max_deposit}, "
            f"daily_rate={self.daily_rate})>"
        )
