"""
Enumerations shared by models and services.
"""

from enum import Enum


class TransactionType(str, Enum):
    """Transaction log entry types."""

    DEPOSIT = "deposit"
    WITHDRAW = "withdraw"
    INVESTMENT = "investment"
    INVESTMENT_UPGRADE = "investment-upgrade"
    INVESTMENT_ERROR = "investment-error"
    PROFIT = "profit"
    REFERRAL_PROFIT = "referral-profit"
    REFUND = "refund"
    BONUS = "bonus"
    TRANSFER = "transfer"


class TransactionStatus(str, Enum):
    """Transaction log entry statuses."""

    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"


class InvestmentStatus(str, Enum):
    """Investment lifecycle states."""

    ACTIVE = "active"
    CANCELED = "canceled"


class BalanceBucket(str, Enum):
    """User balance buckets."""

    MAIN = "main"
    PROFIT = "profit"
    REFERRAL = "referral"
    BONUS = "bonus"

    @property
    def column(self) -> str:
        """User attribute holding this bucket."""
        return _BUCKET_COLUMNS[self]


_BUCKET_COLUMNS = {
    BalanceBucket.MAIN: "main_balance",
    BalanceBucket.PROFIT: "profit_balance",
    BalanceBucket.REFERRAL: "referral_profit",
    BalanceBucket.BONUS: "bonus_balance",
}
