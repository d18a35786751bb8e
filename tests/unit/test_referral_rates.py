"""
Tests for referral share calculation.

Rates: level 1 = 15%, level 2 = 10%, level 3 = 5%, nothing deeper.
"""

from decimal import Decimal

import pytest

from app.services.referral.config import (
    REFERRAL_DEPTH,
    REFERRAL_RATES,
    referral_share,
)


class TestReferralShare:
    """Test referral_share."""

    def test_rates_table(self):
        """Three levels with decreasing rates."""
        assert REFERRAL_DEPTH == 3
        assert REFERRAL_RATES == {
            1: Decimal("0.15"),
            2: Decimal("0.10"),
            3: Decimal("0.05"),
        }

    @pytest.mark.parametrize(
        "level, expected",
        [(1, Decimal("0.75")), (2, Decimal("0.5")), (3, Decimal("0.25"))],
    )
    def test_shares_of_five(self, level, expected):
        """A profit of 5 pays 0.75 / 0.5 / 0.25 up the chain."""
        assert referral_share(Decimal("5"), level) == expected

    @pytest.mark.parametrize("level", [0, 4, 10])
    def test_outside_cascade_depth(self, level):
        """Levels outside 1-3 get nothing."""
        assert referral_share(Decimal("100"), level) == Decimal("0")

    def test_tiny_profit_rounds_to_stored_precision(self):
        """Shares are rounded half-up to 8 places."""
        share = referral_share(Decimal("0.00000003"), 1)

        assert share == Decimal("0.00000000")
