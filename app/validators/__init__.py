"""
Validators package.

Provides common validation functions for user input.
"""

from app.validators.amounts import (
    parse_amount,
    percent_of,
    quantize_money,
    validate_amount,
)


__all__ = [
    "validate_amount",
    "parse_amount",
    "quantize_money",
    "percent_of",
]
