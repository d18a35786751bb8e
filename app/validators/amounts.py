"""
Amount validators.

Single canonical parser for monetary amounts. Amounts are always
``Decimal``; floats are rejected to avoid rounding drift across
repeated daily accruals.
"""

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from app.config.constants import MONEY_DECIMAL_PLACES, MONEY_QUANT
from app.utils.exceptions import InvalidAmountError


def validate_amount(
    amount: object,
    min_val: Decimal | None = None,
    max_val: Decimal | None = None,
) -> tuple[bool, Decimal | None, str | None]:
    """
    Validate a positive monetary amount.

    Args:
        amount: Decimal, int or numeric string
        min_val: Minimum allowed value (inclusive, optional)
        max_val: Maximum allowed value (inclusive, optional)

    Returns:
        Tuple of (is_valid, parsed_value, error_message)

    Examples:
        >>> validate_amount("100.50")
        (True, Decimal('100.50'), None)
        >>> validate_amount(0)
        (False, None, 'Amount must be greater than 0')
    """
    # bool is an int subclass
    if isinstance(amount, bool) or amount is None:
        return False, None, "Amount is empty"

    if isinstance(amount, float):
        return False, None, "Amount must be a Decimal, int or string, not float"

    if isinstance(amount, Decimal):
        value = amount
    elif isinstance(amount, int):
        value = Decimal(amount)
    elif isinstance(amount, str):
        text = amount.strip()
        if not text:
            return False, None, "Amount is empty"
        try:
            value = Decimal(text)
        except InvalidOperation:
            return False, None, "Invalid amount format"
    else:
        return False, None, f"Unsupported amount type: {type(amount).__name__}"

    if not value.is_finite():
        return False, None, "Amount must be a finite number"

    if value <= 0:
        return False, None, "Amount must be greater than 0"

    if value.as_tuple().exponent < -MONEY_DECIMAL_PLACES:
        return (
            False,
            None,
            f"Amount has too many decimal places (maximum {MONEY_DECIMAL_PLACES})",
        )

    if min_val is not None and value < min_val:
        return False, None, f"Amount must be >= {min_val}"

    if max_val is not None and value > max_val:
        return False, None, f"Amount must be <= {max_val}"

    return True, value, None


def parse_amount(
    amount: object,
    min_val: Decimal | None = None,
    max_val: Decimal | None = None,
) -> Decimal:
    """
    Parse a positive monetary amount or raise.

    Args:
        amount: Decimal, int or numeric string
        min_val: Minimum allowed value (inclusive, optional)
        max_val: Maximum allowed value (inclusive, optional)

    Returns:
        Parsed amount

    Raises:
        InvalidAmountError: If the amount is malformed or out of range
    """
    is_valid, value, error = validate_amount(amount, min_val, max_val)
    if not is_valid or value is None:
        raise InvalidAmountError(error or "Invalid amount")
    return value


def quantize_money(value: Decimal) -> Decimal:
    """
    Round a derived amount to stored precision.

    Args:
        value: Raw computed amount

    Returns:
        Amount rounded half-up to 8 fractional digits
    """
    return value.quantize(MONEY_QUANT, rounding=ROUND_HALF_UP)


def percent_of(amount: Decimal, percent: Decimal) -> Decimal:
    """
    Compute ``percent`` percent of ``amount`` at stored precision.

    Args:
        amount: Base amount
        percent: Percentage, e.g. Decimal("1.5") for 1.5%

    Returns:
        Rounded share
    """
    return quantize_money(amount * percent / Decimal("100"))
