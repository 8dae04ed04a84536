"""Scheduled eviction of idle rate-limit keys."""

from __future__ import annotations

import asyncio

from apscheduler.schedulers.asyncio import AsyncIOScheduler

from sliding_log.guard import KeyedRateLimiter
from sliding_log.utils.logging import get_logger

logger = get_logger(__name__)

JOB_ID = "evict_idle_keys"


class EvictionService:
    """Periodic sweep of keys whose events have all left the window."""

    def __init__(
        self,
        guard: KeyedRateLimiter,
        scheduler: AsyncIOScheduler,
        interval_seconds: int = 300,
    ):
        self.guard = guard
        self.scheduler = scheduler
        self.interval_seconds = interval_seconds

    def start(self) -> None:
        """Register the eviction job with the scheduler."""
        self.scheduler.add_job(
            self._evict_idle_keys,
            trigger="interval",
            seconds=self.interval_seconds,
            id=JOB_ID,
            replace_existing=True,
        )
        logger.info(
            "eviction_job_started", job=JOB_ID, interval_seconds=self.interval_seconds
        )

    def stop(self) -> None:
        if self.scheduler.get_job(JOB_ID) is not None:
            self.scheduler.remove_job(JOB_ID)

    async def _evict_idle_keys(self) -> int:
        # Worker thread: the sweep holds the guard's table lock for every key
        try:
            evicted = await asyncio.to_thread(self.guard.evict_expired)
        except Exception as exc:
            logger.error("evict_idle_keys_failed", error=str(exc))
            return 0
        logger.info("evict_idle_keys_success", evicted=evicted, remaining=len(self.guard))
        return evicted
