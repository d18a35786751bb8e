"""
User model.

Represents a platform account with its four balance buckets and its
position in the referral tree.
"""

from datetime import UTC, datetime
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import (
    DECIMAL,
    Boolean,
    CheckConstraint,
    DateTime,
    Integer,
    String,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.base import Base
from app.models.enums import BalanceBucket

if TYPE_CHECKING:
    from app.models.investment import Investment
    from app.models.transaction import Transaction


class User(Base):
    """User model - platform accounts."""

    __tablename__ = "users"
    __table_args__ = (
        CheckConstraint(
            'main_balance >= 0', name='check_user_main_balance_non_negative'
        ),
        CheckConstraint(
            'profit_balance >= 0',
            name='check_user_profit_balance_non_negative'
        ),
        CheckConstraint(
            'referral_profit >= 0',
            name='check_user_referral_profit_non_negative'
        ),
        CheckConstraint(
            'bonus_balance >= 0',
            name='check_user_bonus_balance_non_negative'
        ),
    )

    # Primary key
    id: Mapped[int] = mapped_column(
        Integer, primary_key=True, autoincrement=True
    )

    # Public profile (owned by the identity provider)
    email: Mapped[str] = mapped_column(
        String(255), unique=True, index=True, nullable=False
    )
    username: Mapped[str] = mapped_column(
        String(255), unique=True, index=True, nullable=False
    )
    first_name: Mapped[str] = mapped_column(
        String(255), nullable=False, default=""
    )
    last_name: Mapped[str] = mapped_column(
        String(255), nullable=False, default=""
    )

    # Referral
    invite_code: Mapped[str] = mapped_column(
        String(20), unique=True, index=True, nullable=False
    )
    referred_by_code: Mapped[str | None] = mapped_column(
        String(20), nullable=True, index=True
    )

    # Balances
    main_balance: Mapped[Decimal] = mapped_column(
        DECIMAL(18, 8), default=Decimal("0"), nullable=False
    )
    profit_balance: Mapped[Decimal] = mapped_column(
        DECIMAL(18, 8), default=Decimal("0"), nullable=False
    )
    referral_profit: Mapped[Decimal] = mapped_column(
        DECIMAL(18, 8), default=Decimal("0"), nullable=False
    )
    bonus_balance: Mapped[Decimal] = mapped_column(
        DECIMAL(18, 8), default=Decimal("0"), nullable=False
    )

    is_active: Mapped[bool] = mapped_column(
        Boolean, default=True, nullable=False
    )

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(UTC), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        onupdate=lambda: datetime.now(UTC),
        nullable=False
    )

    # Relationships
    investments: Mapped[list["Investment"]] = relationship(
        "Investment",
        back_populates="user",
    )
    transactions: Mapped[list["Transaction"]] = relationship(
        "Transaction",
        back_populates="user",
        foreign_keys="Transaction.user_id",
    )

    @property
    def full_name(self) -> str:
        """First and last name joined for display."""
        return f"{self.first_name} {self.last_name}".strip()

    def get_balance(self, bucket: BalanceBucket) -> Decimal:
        """
        Read a balance bucket.

        Args:
            bucket: Bucket to read

        Returns:
            Current bucket value
        """
        return getattr(self, bucket.column) or Decimal("0")

    def set_balance(self, bucket: BalanceBucket, value: Decimal) -> None:
        """
        Overwrite a balance bucket.

        Only the ledger service should call this.

        Args:
            bucket: Bucket to write
            value: New value (must be non-negative)
        """
        if value < 0:
            raise ValueError(f"{bucket.value} balance cannot be negative")
        setattr(self, bucket.column, value)

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<User(id={self.id}, username={self.username}, "
            f"invite_code={self.invite_code})>"
        )
