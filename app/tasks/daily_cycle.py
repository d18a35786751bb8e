"""
Daily cycle task.

Runs the daily profit accrual and, once it has committed, the referral
profit cascade. Both steps run under one Redis lock so two workers never
overlap on the same day.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass
from datetime import date

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.config.constants import DAILY_CYCLE_LOCK_KEY
from app.config.database import async_session_maker
from app.config.settings import settings
from app.services.investment import AccrualResult, InvestmentService
from app.services.referral import CascadeResult
from app.services.referral_service import ReferralService
from app.utils.distributed_lock import DistributedLock
from app.utils.redis_utils import get_redis_client


@dataclass
class DailyCycleResult:
    """Outcome of a full daily cycle."""

    accrual: AccrualResult
    cascade: CascadeResult


@asynccontextmanager
async def _daily_cycle_lock() -> AsyncIterator[None]:
    """Hold the daily cycle lock for the duration of the block."""
    redis_client = get_redis_client()
    lock = DistributedLock(redis_client)
    try:
        async with lock.lock(
            DAILY_CYCLE_LOCK_KEY, timeout=settings.daily_cycle_lock_timeout
        ):
            yield
    finally:
        await redis_client.aclose()


async def run_daily_profit_accrual(
    accrual_date: date | None = None,
    session_maker: async_sessionmaker[AsyncSession] = async_session_maker,
) -> AccrualResult:
    """
    Accrue one day of profit on all active investments.

    Args:
        accrual_date: Day being accrued (defaults to today, UTC)
        session_maker: Session factory

    Returns:
        Committed AccrualResult
    """
    async with session_maker() as session:
        investment_service = InvestmentService(session)
        return await investment_service.accrue_daily_profit(accrual_date)


async def run_referral_cascade(
    session_maker: async_sessionmaker[AsyncSession] = async_session_maker,
) -> CascadeResult:
    """
    Pay upline shares of every profit entry not yet cascaded.

    Args:
        session_maker: Session factory

    Returns:
        CascadeResult
    """
    async with session_maker() as session:
        referral_service = ReferralService(session)
        return await referral_service.calculate_referral_profits()


async def run_daily_cycle(
    accrual_date: date | None = None,
    session_maker: async_sessionmaker[AsyncSession] = async_session_maker,
) -> DailyCycleResult:
    """
    Run accrual then cascade under the daily cycle lock.

    The cascade starts only after the accrual session has committed.

    Args:
        accrual_date: Day being accrued (defaults to today, UTC)
        session_maker: Session factory

    Returns:
        DailyCycleResult

    Raises:
        LockNotAcquiredError: If another worker is running the cycle
    """
    logger.info("Starting daily cycle")

    async with _daily_cycle_lock():
        accrual = await run_daily_profit_accrual(accrual_date, session_maker)
        cascade = await run_referral_cascade(session_maker)

    logger.info(
        "Daily cycle completed",
        extra={
            "accrual_date": accrual.accrual_date.isoformat(),
            "investments_processed": accrual.investments_processed,
            "total_profit": str(accrual.total_profit),
            "cascade_entries": cascade.entries_processed,
            "cascade_failed": cascade.entries_failed,
            "referral_paid": str(cascade.total_paid),
        },
    )
    return DailyCycleResult(accrual=accrual, cascade=cascade)


async def run_referral_cascade_exclusive(
    session_maker: async_sessionmaker[AsyncSession] = async_session_maker,
) -> CascadeResult:
    """
    Run the referral cascade alone under the daily cycle lock.

    Args:
        session_maker: Session factory

    Returns:
        CascadeResult

    Raises:
        LockNotAcquiredError: If the daily cycle is running
    """
    async with _daily_cycle_lock():
        return await run_referral_cascade(session_maker)
