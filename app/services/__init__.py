"""
Services.

Business logic layer.
"""

# Base Service Infrastructure
from app.services.base_service import (
    BaseService,
    ServiceResult,
    log_operation,
    transaction,
)

# Ledger Core
from app.services.bonus_service import BonusResult, BonusService
from app.services.deposit_service import DepositPayment, DepositService
from app.services.investment import (
    AccrualResult,
    InvestmentResult,
    InvestmentService,
)
from app.services.ledger_service import BalanceSnapshot, LedgerService
from app.services.package_catalog import (
    PackageCatalog,
    PackageCatalogService,
)
from app.services.payment_gateway import GatewayPayment, PaymentGatewayClient
from app.services.referral import CascadeResult, ReferralProfitCascade
from app.services.referral_service import (
    ReferralRegistration,
    ReferralService,
)
from app.services.transaction_service import TransactionLogService
from app.services.transfer_service import (
    BalanceTransferService,
    TransferResult,
)
from app.services.user import UserService
from app.services.withdrawal_service import (
    WithdrawalResult,
    WithdrawalService,
)


__all__ = [
    # Base
    "BaseService",
    "ServiceResult",
    "log_operation",
    "transaction",
    # Ledger
    "LedgerService",
    "BalanceSnapshot",
    "TransactionLogService",
    # Packages and investments
    "PackageCatalog",
    "PackageCatalogService",
    "InvestmentService",
    "InvestmentResult",
    "AccrualResult",
    # Referrals
    "ReferralService",
    "ReferralRegistration",
    "ReferralProfitCascade",
    "CascadeResult",
    # Money movement
    "DepositService",
    "DepositPayment",
    "PaymentGatewayClient",
    "GatewayPayment",
    "WithdrawalService",
    "WithdrawalResult",
    "BalanceTransferService",
    "TransferResult",
    "BonusService",
    "BonusResult",
    # Users
    "UserService",
]
