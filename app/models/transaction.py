"""
Transaction model.

Append-only audit record of every balance-affecting event. Pending
entries may be updated in place by gateway callbacks.
"""

from datetime import UTC, datetime
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import (
    DECIMAL,
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.base import Base
from app.models.enums import TransactionStatus

if TYPE_CHECKING:
    from app.models.user import User


class Transaction(Base):
    """Transaction log entry."""

    __tablename__ = "transactions"
    __table_args__ = (
        CheckConstraint(
            'amount >= 0', name='check_transaction_amount_non_negative'
        ),
        CheckConstraint(
            "status IN ('pending', 'completed', 'failed')",
            name='check_transaction_status'
        ),
        Index('idx_transaction_type_created', 'type', 'created_at'),
        Index('idx_transaction_type_cascaded', 'type', 'cascaded'),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)

    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="RESTRICT"),
        nullable=False,
        index=True
    )

    type: Mapped[str] = mapped_column(String(30), nullable=False)
    amount: Mapped[Decimal] = mapped_column(
        DECIMAL(18, 8), nullable=False
    )
    currency: Mapped[str] = mapped_column(
        String(10), nullable=False, default="USD"
    )
    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=TransactionStatus.PENDING.value,
        index=True,
    )
    note: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Gateway correlation
    payment_id: Mapped[str | None] = mapped_column(
        String(100), nullable=True, index=True
    )
    tx_hash: Mapped[str | None] = mapped_column(
        String(255), nullable=True
    )
    status_url: Mapped[str | None] = mapped_column(
        String(500), nullable=True
    )

    # Caller-supplied idempotency key
    request_id: Mapped[str | None] = mapped_column(
        String(100), nullable=True, unique=True
    )

    # Referral cascade bookkeeping
    cascaded: Mapped[bool] = mapped_column(
        Boolean, default=False, nullable=False
    )
    source_user_id: Mapped[int | None] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    source_transaction_id: Mapped[int | None] = mapped_column(
        ForeignKey("transactions.id", ondelete="SET NULL"), nullable=True
    )
    referral_level: Mapped[int | None] = mapped_column(
        Integer, nullable=True
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        nullable=False,
        index=True,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        onupdate=lambda: datetime.now(UTC),
        nullable=False
    )

    # Relationships
    user: Mapped["User"] = relationship(
        "User",
        back_populates="transactions",
        foreign_keys=[user_id],
    )

    @property
    def is_pending(self) -> bool:
        """Check if entry can still be updated in place."""
        return self.status == TransactionStatus.PENDING.value

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<Transaction(id={self.id}, user_id={self.user_id}, "
            f"type={self.type}, amount={self.amount}, status={self.status})>"
        )
