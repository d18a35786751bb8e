"""
Referral system configuration.

Contains constants and configuration for the referral system.
"""

from decimal import Decimal

from app.validators.amounts import quantize_money

# 3-level cascade of daily profit: 15% / 10% / 5%
REFERRAL_DEPTH = 3
REFERRAL_RATES = {
    1: Decimal("0.15"),  # 15% for level 1 (direct referrer)
    2: Decimal("0.10"),  # 10% for level 2
    3: Decimal("0.05"),  # 5% for level 3
}


def referral_share(profit: Decimal, level: int) -> Decimal:
    """
    Compute the share of a profit paid to an upline level.

    Args:
        profit: Originating profit amount
        level: Upline level (1-3)

    Returns:
        Share rounded to stored precision, zero beyond the cascade depth
    """
    rate = REFERRAL_RATES.get(level)
    if rate is None:
        return Decimal("0")
    return quantize_money(profit * rate)
