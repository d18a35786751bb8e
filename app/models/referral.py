"""
Referral link model.

Represents the direct referrer to referred-user relationship.
"""

from datetime import UTC, datetime
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import (
    DECIMAL,
    CheckConstraint,
    DateTime,
    ForeignKey,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.base import Base

if TYPE_CHECKING:
    from app.models.user import User


class ReferralLink(Base):
    """Referral link - created once at registration, never deleted."""

    __tablename__ = "referral_links"
    __table_args__ = (
        UniqueConstraint(
            'referrer_id', 'referred_user_id', name='uq_referral_link_pair'
        ),
        CheckConstraint(
            'referrer_id <> referred_user_id', name='check_referral_not_self'
        ),
        CheckConstraint(
            'profit_earned >= 0', name='check_referral_profit_non_negative'
        ),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)

    # Referrer (who invited)
    referrer_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    # Referred user (who was invited); one upline per user
    referred_user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )

    # Referral profit paid to the referrer through this link
    profit_earned: Mapped[Decimal] = mapped_column(
        DECIMAL(18, 8), nullable=False, default=Decimal("0")
    )

    joined_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        nullable=False
    )

    # Relationships
    referrer: Mapped["User"] = relationship(
        "User",
        foreign_keys=[referrer_id],
    )
    referred_user: Mapped["User"] = relationship(
        "User",
        foreign_keys=[referred_user_id],
    )

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<ReferralLink(id={self.id}, referrer_id={self.referrer_id}, "
            f"referred_user_id={self.referred_user_id})>"
        )
