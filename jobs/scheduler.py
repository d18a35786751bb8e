"""
Daily scheduler.

Runs the daily cycle (profit accrual, then referral cascade) on a cron
trigger and serves the health endpoints.

Usage:
    python -m jobs.scheduler
"""

import asyncio
import signal

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger
from loguru import logger

from app.config.logging import setup_logging
from app.config.settings import settings
from app.tasks.daily_cycle import run_daily_cycle
from app.utils.distributed_lock import LockNotAcquiredError
from jobs.health import (
    record_cycle_outcome,
    set_scheduler,
    start_health_server,
    stop_health_server,
)

DAILY_CYCLE_JOB_ID = "daily_cycle"


async def daily_cycle_job() -> None:
    """Run the daily cycle and record its outcome for health checks."""
    try:
        result = await run_daily_cycle()
    except LockNotAcquiredError:
        logger.warning("Daily cycle skipped: another worker holds the lock")
        record_cycle_outcome(False, {"error": "lock_not_acquired"})
        return
    except Exception as e:
        logger.exception(f"Daily cycle failed: {e}")
        record_cycle_outcome(False, {"error": str(e)})
        return

    record_cycle_outcome(
        True,
        {
            "accrual_date": result.accrual.accrual_date.isoformat(),
            "accrual_skipped": result.accrual.skipped,
            "investments_processed": result.accrual.investments_processed,
            "investments_failed": result.accrual.investments_failed,
            "total_profit": str(result.accrual.total_profit),
            "cascade_entries": result.cascade.entries_processed,
            "cascade_failed": result.cascade.entries_failed,
            "referral_paid": str(result.cascade.total_paid),
        },
    )


def create_scheduler() -> AsyncIOScheduler:
    """
    Create the scheduler with the daily cycle job.

    Returns:
        Configured (not started) scheduler
    """
    scheduler = AsyncIOScheduler(timezone="UTC")
    scheduler.add_job(
        daily_cycle_job,
        CronTrigger(
            hour=settings.daily_cycle_hour,
            minute=settings.daily_cycle_minute,
            timezone="UTC",
        ),
        id=DAILY_CYCLE_JOB_ID,
        name="Daily profit accrual and referral cascade",
        max_instances=1,
        coalesce=True,
        replace_existing=True,
    )
    return scheduler


async def main() -> None:
    """Start scheduler and health server, run until signalled."""
    setup_logging(settings.log_level)

    scheduler = create_scheduler()
    scheduler.start()
    set_scheduler(scheduler)

    runner, _ = await start_health_server(port=settings.health_check_port)

    stop_event = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, stop_event.set)

    logger.info(
        f"Scheduler started, daily cycle at "
        f"{settings.daily_cycle_hour:02d}:{settings.daily_cycle_minute:02d} UTC"
    )
    await stop_event.wait()

    logger.info("Shutting down scheduler...")
    scheduler.shutdown(wait=False)
    await stop_health_server(runner)


if __name__ == "__main__":
    asyncio.run(main())
