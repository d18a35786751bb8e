"""
Distributed lock.

Redis-backed lock that keeps scheduled jobs from overlapping across
worker processes.
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import redis.asyncio as redis
from loguru import logger
from redis.exceptions import LockError

from app.config.constants import DAILY_CYCLE_BLOCKING_TIMEOUT


class LockNotAcquiredError(RuntimeError):
    """Raised when another worker holds the lock."""


class DistributedLock:
    """
    Wrapper around ``redis.asyncio`` locks.

    Example:
        lock = DistributedLock(redis_client)
        async with lock.lock("ledger:daily_cycle", timeout=3600):
            ...
    """

    def __init__(self, redis_client: redis.Redis) -> None:
        """
        Initialize lock helper.

        Args:
            redis_client: Redis client
        """
        self.redis_client = redis_client

    @asynccontextmanager
    async def lock(
        self,
        key: str,
        timeout: float,
        blocking_timeout: float = DAILY_CYCLE_BLOCKING_TIMEOUT,
    ) -> AsyncIterator[None]:
        """
        Hold a lock for the duration of the block.

        Args:
            key: Lock key
            timeout: Seconds after which the lock expires
            blocking_timeout: Seconds to wait for acquisition

        Raises:
            LockNotAcquiredError: If the lock is held elsewhere
        """
        redis_lock = self.redis_client.lock(
            key, timeout=timeout, blocking_timeout=blocking_timeout
        )
        acquired = await redis_lock.acquire()
        if not acquired:
            raise LockNotAcquiredError(f"Lock {key} is held by another worker")

        logger.debug("Lock acquired", extra={"key": key})
        try:
            yield
        finally:
            try:
                await redis_lock.release()
                logger.debug("Lock released", extra={"key": key})
            except LockError:
                logger.warning(
                    "Lock expired before release", extra={"key": key}
                )
