"""
Daily profit accrual.

Pays every active investment its daily rate into the owner's profit
bucket and logs one ``profit`` entry per payment. Those entries are the
only input of the referral profit cascade.
"""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from app.config.settings import settings
from app.models.enums import BalanceBucket, TransactionType
from app.models.investment import Investment
from app.services.base_service import log_operation, transaction
from app.utils.datetime_utils import utc_today
from app.utils.formatters import format_decimal
from app.validators.amounts import percent_of


@dataclass
class AccrualResult:
    """Result of a daily accrual run."""

    accrual_date: date
    investments_processed: int = 0
    investments_failed: int = 0
    total_profit: Decimal = Decimal("0")
    skipped: bool = False


class InvestmentAccrualMixin:
    """
    Mixin for daily profit accrual.

    Expects the attributes set up by InvestmentServiceCore.
    """

    @log_operation
    @transaction
    async def accrue_daily_profit(
        self, accrual_date: date | None = None
    ) -> AccrualResult:
        """
        Accrue one day of profit on every active investment.

        Investments already accrued for ``accrual_date`` are skipped, so a
        repeated tick on the same day pays nothing. Each investment is
        accrued in its own savepoint; a failure is logged and the
        investment stays due.

        Args:
            accrual_date: Day being accrued (defaults to today, UTC)

        Returns:
            AccrualResult with counters
        """
        accrual_date = accrual_date or utc_today()
        result = AccrualResult(accrual_date=accrual_date)

        if settings.emergency_stop_roi:
            self.logger.warning(
                "Daily profit accrual skipped: emergency stop is active",
                extra={"accrual_date": accrual_date.isoformat()},
            )
            result.skipped = True
            return result

        investments = await self.investment_repo.get_due_for_accrual(
            accrual_date
        )

        for investment in investments:
            investment_id, user_id = investment.id, investment.user_id
            try:
                async with self.session.begin_nested():
                    profit = await self._accrue_one(investment, accrual_date)
            except Exception as e:
                result.investments_failed += 1
                self.logger.opt(exception=True).error(
                    "Failed to accrue investment",
                    extra={
                        "investment_id": investment_id,
                        "user_id": user_id,
                        "error": str(e),
                    },
                )
                continue

            result.investments_processed += 1
            result.total_profit += profit

        self.logger.info(
            "Daily profit accrued",
            extra={
                "accrual_date": accrual_date.isoformat(),
                "processed": result.investments_processed,
                "failed": result.investments_failed,
                "total_profit": str(result.total_profit),
            },
        )
        return result

    async def _accrue_one(
        self, investment: Investment, accrual_date: date
    ) -> Decimal:
        profit = percent_of(investment.amount, investment.daily_rate)
        investment.last_accrued_on = accrual_date

        if profit <= 0:
            await self.session.flush()
            return Decimal("0")

        investment.total_profit = investment.total_profit + profit
        await self.ledger.credit(
            investment.user_id, BalanceBucket.PROFIT, profit
        )
        await self.tx_log.record(
            investment.user_id,
            TransactionType.PROFIT,
            profit,
            note=(
                f"Daily profit ({format_decimal(investment.daily_rate)}% of "
                f"{format_decimal(investment.amount)}) "
                f"for {investment.package.name}"
            ),
        )
        return profit
