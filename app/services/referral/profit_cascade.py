"""
Referral profit cascade.

Replays logged ``profit`` entries up the referral tree. Each entry is
claimed once: its payouts and its ``cascaded`` marker are written in the
same savepoint, so re-running the cascade never pays an entry twice.
"""

from dataclasses import dataclass, field
from decimal import Decimal

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from app.config.constants import CASCADE_BATCH_SIZE
from app.models.enums import BalanceBucket, TransactionType
from app.models.transaction import Transaction
from app.repositories.referral_repository import ReferralRepository
from app.repositories.transaction_repository import TransactionRepository
from app.services.ledger_service import LedgerService
from app.services.referral.chain_manager import ReferralChainManager
from app.services.referral.config import (
    REFERRAL_DEPTH,
    REFERRAL_RATES,
    referral_share,
)
from app.services.transaction_service import TransactionLogService
from app.utils.formatters import format_decimal


@dataclass
class CascadePayout:
    """One referral payout."""

    referrer_id: int
    level: int
    amount: Decimal


@dataclass
class CascadeResult:
    """Result of a cascade run."""

    entries_processed: int = 0
    entries_failed: int = 0
    payouts_count: int = 0
    total_paid: Decimal = Decimal("0")
    failed_entry_ids: list[int] = field(default_factory=list)


class ReferralProfitCascade:
    """Pays upline shares of daily profit."""

    def __init__(
        self, session: AsyncSession, batch_size: int = CASCADE_BATCH_SIZE
    ) -> None:
        """
        Initialize referral profit cascade.

        Args:
            session: Async database session
            batch_size: Profit entries claimed per batch
        """
        self.session = session
        self.batch_size = batch_size
        self.transaction_repo = TransactionRepository(session)
        self.referral_repo = ReferralRepository(session)
        self.chain_manager = ReferralChainManager(session)
        self.ledger = LedgerService(session)
        self.tx_log = TransactionLogService(session)

    async def run(self) -> CascadeResult:
        """
        Cascade every completed profit entry not yet cascaded.

        A failing entry rolls back only its own savepoint, is logged, and
        stays unclaimed for the next run. Each batch is committed.

        Returns:
            CascadeResult with counters
        """
        result = CascadeResult()
        after_id = 0

        while True:
            batch = await self.transaction_repo.claim_uncascaded_profit(
                self.batch_size, after_id=after_id
            )
            if not batch:
                break

            for entry in batch:
                entry_id, source_user_id = entry.id, entry.user_id
                after_id = entry_id
                try:
                    async with self.session.begin_nested():
                        payouts = await self._cascade_entry(entry)
                except Exception as e:
                    result.entries_failed += 1
                    result.failed_entry_ids.append(entry_id)
                    logger.opt(exception=True).error(
                        "Referral cascade failed for profit entry",
                        extra={
                            "transaction_id": entry_id,
                            "user_id": source_user_id,
                            "error": str(e),
                        },
                    )
                    continue

                result.entries_processed += 1
                result.payouts_count += len(payouts)
                result.total_paid += sum(
                    (p.amount for p in payouts), Decimal("0")
                )

            await self.session.commit()

        logger.info(
            "Referral cascade completed",
            extra={
                "entries_processed": result.entries_processed,
                "entries_failed": result.entries_failed,
                "payouts": result.payouts_count,
                "total_paid": str(result.total_paid),
            },
        )
        return result

    async def _cascade_entry(self, entry: Transaction) -> list[CascadePayout]:
        """
        Pay the upline of one profit entry and mark it cascaded.

        Args:
            entry: Claimed profit entry

        Returns:
            Payouts made
        """
        profit = entry.amount
        source_user_id = entry.user_id
        upline = await self.chain_manager.get_upline(
            source_user_id, REFERRAL_DEPTH
        )

        payouts: list[CascadePayout] = []
        child_id = source_user_id

        for level, referrer in enumerate(upline, start=1):
            share = referral_share(profit, level)
            if share > 0:
                await self.ledger.credit(
                    referrer.id, BalanceBucket.REFERRAL, share
                )
                await self.tx_log.record(
                    referrer.id,
                    TransactionType.REFERRAL_PROFIT,
                    share,
                    note=(
                        f"Level {level} referral profit: "
                        f"{format_decimal(REFERRAL_RATES[level] * 100)}% of "
                        f"{format_decimal(profit)} earned by user {source_user_id}"
                    ),
                    source_user_id=source_user_id,
                    source_transaction_id=entry.id,
                    referral_level=level,
                )

                updated = await self.referral_repo.add_profit_earned(
                    referrer.id, child_id, share
                )
                if not updated:
                    logger.warning(
                        "Referral link missing for payout",
                        extra={
                            "referrer_id": referrer.id,
                            "referred_user_id": child_id,
                            "level": level,
                        },
                    )

                payouts.append(
                    CascadePayout(
                        referrer_id=referrer.id, level=level, amount=share
                    )
                )
                logger.info(
                    "Referral profit paid",
                    extra={
                        "referrer_id": referrer.id,
                        "source_user_id": source_user_id,
                        "level": level,
                        "amount": str(share),
                        "profit_transaction_id": entry.id,
                    },
                )

            child_id = referrer.id

        entry.cascaded = True
        await self.session.flush()
        return payouts
