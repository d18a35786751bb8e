"""
Formatters utility.

Utility functions for formatting data in log notes and messages.
"""

from decimal import Decimal

def format_decimal(value: Decimal) -> str:
    """
    Format a decimal without trailing zeros or exponent.

    Args:
        value: Decimal value

    Returns:
        Plain string like "1.5" or "1000"

    Examples:
        >>> format_decimal(Decimal("1.5000"))
        '1.5'
        >>> format_decimal(Decimal("10.00"))
        '10'
    """
    normalized = value.normalize()
    if normalized == normalized.to_integral():
        return format(normalized.quantize(Decimal("1")), "f")
    return format(normalized, "f")

