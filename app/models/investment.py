"""
Investment model.

A user's principal placed in a package, earning a daily rate.
At most one investment per user may be active.
"""

from datetime import UTC, date, datetime
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import (
    DECIMAL,
    CheckConstraint,
    Date,
    DateTime,
    ForeignKey,
    Index,
    String,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.base import Base
from app.models.enums import InvestmentStatus

if TYPE_CHECKING:
    from app.models.package import Package
    from app.models.user import User


class Investment(Base):
    """Investment model - one active principal per user."""

    __tablename__ = "investments"
    __table_args__ = (
        CheckConstraint(
            'amount > 0', name='check_investment_amount_positive'
        ),
        CheckConstraint(
            'total_profit >= 0',
            name='check_investment_total_profit_non_negative'
        ),
        CheckConstraint(
            "status IN ('active', 'canceled')",
            name='check_investment_status'
        ),
        # One active investment per user
        Index(
            'uq_investment_active_user',
            'user_id',
            unique=True,
            postgresql_where=text("status = 'active'"),
            sqlite_where=text("status = 'active'"),
        ),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)

    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="RESTRICT"),
        nullable=False,
        index=True
    )
    package_id: Mapped[int] = mapped_column(
        ForeignKey("packages.id", ondelete="RESTRICT"),
        nullable=False,
        index=True
    )

    # Cumulative principal
    amount: Mapped[Decimal] = mapped_column(
        DECIMAL(18, 8), nullable=False
    )
    # Snapshot of the assigned package rate (percent per day)
    daily_rate: Mapped[Decimal] = mapped_column(
        DECIMAL(10, 4), nullable=False
    )
    # Cumulative accrued profit
    total_profit: Mapped[Decimal] = mapped_column(
        DECIMAL(18, 8), nullable=False, default=Decimal("0")
    )

    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=InvestmentStatus.ACTIVE.value,
        index=True,
    )

    # Date of the last daily accrual (guards against double ticks)
    last_accrued_on: Mapped[date | None] = mapped_column(
        Date, nullable=True
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(UTC), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        onupdate=lambda: datetime.now(UTC),
        nullable=False
    )
    canceled_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    # Relationships
    user: Mapped["User"] = relationship(
        "User",
        back_populates="investments",
    )
    package: Mapped["Package"] = relationship("Package")

    @property
    def is_active(self) -> bool:
        """Check if investment is still earning."""
        return self.status == InvestmentStatus.ACTIVE.value

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<Investment(id={self.id}, user_id={self.user_id}, "
            f"package_id={self.package_id}, amount={self.amount}, "
            f"status={self.status})>"
        )
