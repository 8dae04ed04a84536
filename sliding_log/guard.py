"""Thread-safe, clock-driven front end for the sliding-log limiter."""

from __future__ import annotations

import threading
from typing import Callable, Dict, Generic, Hashable, Optional, TypeVar

from sliding_log.clock import Timestamp, system_millis
from sliding_log.limiter import Admitted, SlidingLogLimiter
from sliding_log.utils.logging import get_logger

K = TypeVar("K", bound=Hashable)

logger = get_logger(__name__)


class KeyedRateLimiter(Generic[K]):
    """Serialize evaluations per key and supply timestamps from a clock.

    Each key gets its own lock so unrelated keys never wait on each other.
    The lock table is guarded by a single lock that is only held for
    lookups and eviction.
    """

    def __init__(
        self,
        limiter: SlidingLogLimiter[K],
        clock: Callable[[], int] = system_millis,
    ) -> None:
        self.limiter = limiter
        self._clock = clock
        self._table_lock = threading.Lock()
        self._key_locks: Dict[K, threading.Lock] = {}

    @property
    def capacity(self) -> int:
        return self.limiter.capacity

    @property
    def window_millis(self) -> int:
        return self.limiter.window_millis

    def _acquire(self, key: K) -> threading.Lock:
        # Eviction may replace a key's lock between lookup and acquire, so
        # re-check that the lock we hold is still the registered one.
        while True:
            with self._table_lock:
                lock = self._key_locks.setdefault(key, threading.Lock())
            lock.acquire()
            with self._table_lock:
                if self._key_locks.get(key) is lock:
                    return lock
            lock.release()

    def allow(self, key: K, now: Optional[Timestamp] = None) -> bool:
        """Record an event for ``key`` and return whether it was admitted."""
        timestamp = self._clock() if now is None else now
        lock = self._acquire(key)
        try:
            decision = self.limiter.trigger(timestamp, key)
        finally:
            lock.release()

        if isinstance(decision, Admitted):
            return True
        logger.debug(
            "rate_limit_rejected",
            key=str(key),
            capacity=self.limiter.capacity,
            window_millis=self.limiter.window_millis,
        )
        return False

    def evict_expired(self, now: Optional[Timestamp] = None) -> int:
        """Forget keys with no events inside the window; return how many.

        Keys currently being evaluated are skipped and picked up next time.
        """
        timestamp = self._clock() if now is None else now
        evicted = 0
        with self._table_lock:
            for key in self.limiter.keys():
                lock = self._key_locks.get(key)
                if lock is not None and not lock.acquire(blocking=False):
                    continue
                try:
                    if self.limiter.prune(key, timestamp):
                        evicted += 1
                        self._key_locks.pop(key, None)
                finally:
                    if lock is not None:
                        lock.release()

            # Locks for keys that were only ever rejected
            for key, lock in list(self._key_locks.items()):
                if key in self.limiter or not lock.acquire(blocking=False):
                    continue
                del self._key_locks[key]
                lock.release()
        return evicted

    def __len__(self) -> int:
        return len(self.limiter)


__all__ = ["KeyedRateLimiter"]
