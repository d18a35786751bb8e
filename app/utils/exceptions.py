"""
Exception handling utilities.

Defines the categorized exception types raised by the ledger core.
Each exception carries a stable ``code`` that outer layers translate
into transport-level responses.
"""

from decimal import Decimal


class LedgerError(Exception):
    """Base class for all ledger core errors."""

    code = "internal"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class NotFoundError(LedgerError):
    """Raised when an entity is missing."""

    code = "not_found"


class InvalidInputError(LedgerError):
    """Raised for malformed input."""

    code = "invalid_input"


class InvalidAmountError(InvalidInputError):
    """Raised for malformed or non-positive amounts."""


class NoMatchingPackageError(InvalidInputError):
    """Raised when no package covers an amount."""


class InvalidCodeError(InvalidInputError):
    """Raised when an invite code resolves to no user."""


class InvalidCatalogError(InvalidInputError):
    """Raised when a package catalog is malformed."""


class InsufficientFundsError(LedgerError):
    """Raised when a debit exceeds the bucket balance."""

    code = "insufficient_funds"

    def __init__(
        self,
        bucket: str,
        available: Decimal,
        requested: Decimal,
    ) -> None:
        super().__init__(
            f"Insufficient {bucket} balance: "
            f"available {available}, requested {requested}"
        )
        self.bucket = bucket
        self.available = available
        self.requested = requested


class ConflictError(LedgerError):
    """Raised on duplicates and state conflicts."""

    code = "conflict"


class AlreadyClosedError(ConflictError):
    """Raised when acting on a canceled investment."""


class UpstreamFailureError(LedgerError):
    """Raised when the payment gateway fails or times out."""

    code = "upstream_failure"


class InternalError(LedgerError):
    """Raised on unexpected internal failures."""

    code = "internal"


# Exception categories based on handling strategy

# Must log with traceback
MUST_LOG = (
    UpstreamFailureError,
    InternalError,
)


def must_log(exc: Exception) -> bool:
    """
    Check if exception must be logged with traceback.

    Args:
        exc: Exception to check

    Returns:
        True for upstream, internal and non-ledger errors
    """
    return isinstance(exc, MUST_LOG) or not isinstance(exc, LedgerError)
