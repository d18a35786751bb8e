"""
Application constants.

Centralized constants for the ledger core.
"""

from decimal import Decimal

# ========================================================================
# MONEY
# ========================================================================

# Fractional digits stored for every amount (matches DECIMAL(18, 8))
MONEY_DECIMAL_PLACES = 8
MONEY_QUANT = Decimal("0.00000001")

# ========================================================================
# DAILY CYCLE
# ========================================================================

# Redis lock guarding accrual + cascade against concurrent workers
DAILY_CYCLE_LOCK_KEY = "ledger:daily_cycle"
DAILY_CYCLE_BLOCKING_TIMEOUT = 5.0  # Time to wait for lock acquisition

# Profit entries claimed per cascade batch
CASCADE_BATCH_SIZE = 500

# ========================================================================
# INVITE CODES
# ========================================================================

INVITE_CODE_RANDOM_BYTES = 3  # 6 hex characters after the prefix
INVITE_CODE_MAX_ATTEMPTS = 10

# ========================================================================
# TRANSACTION LOG
# ========================================================================

DEFAULT_PAGE_SIZE = 50
MAX_PAGE_SIZE = 500
