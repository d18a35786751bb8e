"""
Daily cycle tasks.

Queued manual triggers for the daily profit accrual and the referral
profit cascade.
"""

import asyncio
from datetime import date

import dramatiq
from loguru import logger

from app.tasks.daily_cycle import run_daily_cycle, run_referral_cascade_exclusive
from app.utils.distributed_lock import LockNotAcquiredError
from jobs.utils.database import task_session_maker


@dramatiq.actor(max_retries=3, time_limit=3_600_000)  # 1 hour, matches lock timeout
def process_daily_cycle(accrual_date: str | None = None) -> None:
    """
    Run accrual followed by the referral cascade.

    Args:
        accrual_date: ISO date to accrue (optional, defaults to today)
    """
    day = date.fromisoformat(accrual_date) if accrual_date else None
    logger.info(
        "Daily cycle requested",
        extra={"accrual_date": accrual_date},
    )

    try:
        result = asyncio.run(
            run_daily_cycle(day, session_maker=task_session_maker)
        )
    except LockNotAcquiredError:
        logger.warning("Daily cycle already running, request dropped")
        return

    logger.info(
        f"Daily cycle complete: "
        f"{result.accrual.investments_processed} investments accrued, "
        f"{result.cascade.payouts_count} referral payouts"
    )


@dramatiq.actor(max_retries=3, time_limit=3_600_000)
def process_referral_cascade() -> None:
    """Run the referral profit cascade on its own."""
    logger.info("Referral cascade requested")

    try:
        result = asyncio.run(
            run_referral_cascade_exclusive(session_maker=task_session_maker)
        )
    except LockNotAcquiredError:
        logger.warning("Daily cycle running, cascade request dropped")
        return

    logger.info(
        f"Referral cascade complete: {result.entries_processed} entries, "
        f"{result.total_paid} paid"
    )
