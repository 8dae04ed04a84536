"""Sliding-log rate limiting keyed by arbitrary identifiers."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import timedelta
from typing import Callable, Dict, Generic, Hashable, List, Tuple, TypeVar, Union

from sliding_log.clock import Timestamp, timestamp_millis
from sliding_log.durations import to_millis
from sliding_log.errors import InvalidConfiguration

K = TypeVar("K", bound=Hashable)
R = TypeVar("R")


@dataclass(frozen=True)
class Admitted:
    """The event was recorded; ``limiter`` holds the updated state."""

    limiter: "SlidingLogLimiter"
    admitted: bool = field(default=True, init=False)

    def __bool__(self) -> bool:
        return True


@dataclass(frozen=True)
class Rejected:
    """The event exceeded capacity and left no trace."""

    admitted: bool = field(default=False, init=False)

    def __bool__(self) -> bool:
        return False


Decision = Union[Admitted, Rejected]


class SlidingLogLimiter(Generic[K]):
    """Keep exact event timestamps per key and count them over a trailing window.

    Time only advances through the ``now`` values passed to :meth:`trigger`;
    the limiter never reads a clock.

    Not thread-safe: callers must ensure at most one evaluation per key is in
    flight at a time (see :class:`sliding_log.guard.KeyedRateLimiter`).
    """

    def __init__(self, capacity: int, window: Union[timedelta, int]) -> None:
        if isinstance(capacity, bool) or not isinstance(capacity, int):
            raise InvalidConfiguration(f"capacity must be an integer, got {capacity!r}")
        if capacity < 0:
            raise InvalidConfiguration(f"capacity must be >= 0, got {capacity}")

        if isinstance(window, timedelta):
            window_millis = to_millis(window)
        elif isinstance(window, int) and not isinstance(window, bool):
            window_millis = window
        else:
            raise InvalidConfiguration(
                f"window must be a timedelta or int milliseconds, got {window!r}"
            )
        if window_millis <= 0:
            raise InvalidConfiguration(
                f"window must be at least 1 millisecond, got {window!r}"
            )

        self._capacity = capacity
        self._window_millis = window_millis
        self._logs: Dict[K, List[int]] = {}

    @classmethod
    def create(
        cls, capacity: int, window: Union[timedelta, int]
    ) -> "SlidingLogLimiter[K]":
        return cls(capacity, window)

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def window_millis(self) -> int:
        return self._window_millis

    def trigger(self, now: Timestamp, key: K) -> Decision:
        """Evaluate one event for ``key`` at ``now`` (epoch milliseconds).

        The new timestamp is appended to the key's log and entries at or
        before ``now - window`` are dropped. The event is admitted while the
        resulting log holds no more than ``capacity`` entries; otherwise the
        stored log is left exactly as it was.

        Timestamps need not be monotonic: an earlier ``now`` is simply
        another entry subject to the same filter.
        """
        now = timestamp_millis(now)
        cutoff = now - self._window_millis
        # now > cutoff always holds since the window is positive
        candidate = [ts for ts in self._logs.get(key, ()) if ts > cutoff]
        candidate.append(now)

        if len(candidate) <= self._capacity:
            self._logs[key] = candidate
            return Admitted(self)
        return Rejected()

    def trigger_with(
        self,
        now: Timestamp,
        key: K,
        on_admit: Callable[["SlidingLogLimiter[K]"], R],
        on_reject: Callable[[], R],
    ) -> R:
        """Continuation-style :meth:`trigger`."""
        decision = self.trigger(now, key)
        if isinstance(decision, Admitted):
            return on_admit(decision.limiter)
        return on_reject()

    def log_for(self, key: K) -> Tuple[int, ...]:
        """Stored timestamps for ``key`` as of its last evaluation."""
        return tuple(self._logs.get(key, ()))

    def prune(self, key: K, now: Timestamp) -> bool:
        """Forget ``key`` if none of its timestamps are inside the window.

        Returns True when the key was dropped. Decisions are unaffected: an
        unknown key and a fully expired log are evaluated identically.
        """
        cutoff = timestamp_millis(now) - self._window_millis
        log = self._logs.get(key)
        if log is None or any(ts > cutoff for ts in log):
            return False
        del self._logs[key]
        return True

    def evict_expired(self, now: Timestamp) -> int:
        """Drop every key whose log has fully expired; return how many."""
        return sum(1 for key in list(self._logs) if self.prune(key, now))

    def keys(self) -> List[K]:
        return list(self._logs)

    def __len__(self) -> int:
        return len(self._logs)

    def __contains__(self, key: object) -> bool:
        return key in self._logs

    def __repr__(self) -> str:
        return (
            f"SlidingLogLimiter(capacity={self._capacity}, "
            f"window_millis={self._window_millis}, keys={len(self._logs)})"
        )


__all__ = ["Admitted", "Rejected", "Decision", "SlidingLogLimiter"]
