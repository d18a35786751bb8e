"""
Referral services package.

Contains modular services for the referral tree:
- config: Configuration constants (REFERRAL_DEPTH, REFERRAL_RATES)
- chain_manager: Upline traversal and link creation
- query_manager: Direct referral queries
- statistics: Referral statistics and downline counts
- profit_cascade: Scheduled payout of upline profit shares
"""

from app.services.referral.chain_manager import ReferralChainManager
from app.services.referral.config import (
    REFERRAL_DEPTH,
    REFERRAL_RATES,
    referral_share,
)
from app.services.referral.profit_cascade import (
    CascadePayout,
    CascadeResult,
    ReferralProfitCascade,
)
from app.services.referral.query_manager import (
    ReferralNode,
    ReferralQueryManager,
)
from app.services.referral.statistics import (
    ReferralStatisticsManager,
    ReferralStats,
)


__all__ = [
    # Configuration
    "REFERRAL_DEPTH",
    "REFERRAL_RATES",
    "referral_share",
    # Managers
    "ReferralChainManager",
    "ReferralQueryManager",
    "ReferralStatisticsManager",
    # Cascade
    "ReferralProfitCascade",
    "CascadePayout",
    "CascadeResult",
    # Read models
    "ReferralNode",
    "ReferralStats",
]
