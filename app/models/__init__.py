"""
Database models.

Exports all SQLAlchemy models for easy imports.
"""

from app.models.base import Base
from app.models.enums import (
    BalanceBucket,
    InvestmentStatus,
    TransactionStatus,
    TransactionType,
)
from app.models.investment import Investment
from app.models.package import Package
from app.models.referral import ReferralLink
from app.models.transaction import Transaction
from app.models.user import User

__all__ = [
    # Base
    "Base",
    # Enums
    "BalanceBucket",
    "InvestmentStatus",
    "TransactionStatus",
    "TransactionType",
    # Models
    "User",
    "Package",
    "Investment",
    "ReferralLink",
    "Transaction",
]
