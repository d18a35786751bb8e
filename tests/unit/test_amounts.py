"""
Tests for monetary amount parsing.

Covers:
- Accepted input types (Decimal, int, numeric string)
- Rejected input (float, zero, negative, malformed, too precise)
- Range checks
- Rounding helpers
"""

from decimal import Decimal

import pytest

from app.utils.exceptions import InvalidAmountError, InvalidInputError
from app.validators.amounts import (
    parse_amount,
    percent_of,
    quantize_money,
    validate_amount,
)


class TestValidateAmount:
    """Test validate_amount."""

    @pytest.mark.parametrize(
        "raw, expected",
        [
            (Decimal("100.50"), Decimal("100.50")),
            (500, Decimal("500")),
            ("  25.125 ", Decimal("25.125")),
            ("0.00000001", Decimal("0.00000001")),
        ],
    )
    def test_accepts_valid_amounts(self, raw, expected):
        """Valid amounts are parsed to Decimal."""
        is_valid, value, error = validate_amount(raw)

        assert is_valid is True
        assert value == expected
        assert error is None

    def test_rejects_float(self):
        """Floats are rejected outright."""
        is_valid, value, error = validate_amount(10.5)

        assert is_valid is False
        assert value is None
        assert "float" in error

    @pytest.mark.parametrize("raw", [0, "0", Decimal("-1"), "-0.01"])
    def test_rejects_non_positive(self, raw):
        """Zero and negative amounts are rejected."""
        is_valid, _, error = validate_amount(raw)

        assert is_valid is False
        assert error == "Amount must be greater than 0"

    @pytest.mark.parametrize("raw", ["abc", "", "   ", None, True])
    def test_rejects_malformed(self, raw):
        """Empty, non-numeric and boolean input is rejected."""
        is_valid, value, _ = validate_amount(raw)

        assert is_valid is False
        assert value is None

    @pytest.mark.parametrize("raw", ["NaN", "Infinity"])
    def test_rejects_non_finite(self, raw):
        """NaN and infinity are rejected."""
        is_valid, _, error = validate_amount(raw)

        assert is_valid is False
        assert error == "Amount must be a finite number"

    def test_rejects_too_many_decimal_places(self):
        """More than 8 fractional digits is rejected."""
        is_valid, _, error = validate_amount("1.000000001")

        assert is_valid is False
        assert "decimal places" in error

    def test_range_bounds_are_inclusive(self):
        """min_val and max_val are inclusive."""
        assert validate_amount("10", min_val=Decimal("10"))[0] is True
        assert validate_amount("20", max_val=Decimal("20"))[0] is True
        assert validate_amount("9.99", min_val=Decimal("10"))[0] is False
        assert validate_amount("20.01", max_val=Decimal("20"))[0] is False


class TestParseAmount:
    """Test parse_amount."""

    def test_returns_decimal(self):
        """Valid input returns the parsed Decimal."""
        assert parse_amount("42") == Decimal("42")

    def test_raises_invalid_amount(self):
        """Invalid input raises InvalidAmountError."""
        with pytest.raises(InvalidAmountError) as exc_info:
            parse_amount("-5")

        assert exc_info.value.code == "invalid_input"
        assert isinstance(exc_info.value, InvalidInputError)


class TestRounding:
    """Test rounding helpers."""

    def test_quantize_rounds_half_up(self):
        """Values are rounded half-up to 8 places."""
        assert quantize_money(Decimal("0.000000005")) == Decimal("0.00000001")
        assert quantize_money(Decimal("0.000000004")) == Decimal("0")

    @pytest.mark.parametrize(
        "amount, percent, expected",
        [
            (Decimal("500"), Decimal("1"), Decimal("5")),
            (Decimal("1500"), Decimal("1.5"), Decimal("22.5")),
            (Decimal("100"), Decimal("10"), Decimal("10")),
            (Decimal("0.01"), Decimal("1"), Decimal("0.0001")),
        ],
    )
    def test_percent_of(self, amount, percent, expected):
        """Percentages are computed at stored precision."""
        assert percent_of(amount, percent) == expected
