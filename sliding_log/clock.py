"""Clock plumbing for callers of the limiter.

The limiter itself never reads a clock; these helpers produce the
millisecond timestamps callers pass in.
"""

from __future__ import annotations

import time
from datetime import datetime, timezone
from typing import Union

Timestamp = Union[int, datetime]


def system_millis() -> int:
    """Current wall-clock time in milliseconds since the epoch."""
    return int(time.time() * 1000)


def timestamp_millis(value: Timestamp) -> int:
    """Normalize an int or datetime timestamp to epoch milliseconds.

    Naive datetimes are treated as UTC.
    """
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return int(value.timestamp() * 1000)
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"Timestamp must be int milliseconds or datetime, got {value!r}")
    return value


class ManualClock:
    """Settable clock for tests and simulations."""

    def __init__(self, start: int = 0) -> None:
        self._now = start

    def __call__(self) -> int:
        return self._now

    def advance(self, millis: int) -> int:
        self._now += millis
        return self._now

    def set(self, millis: int) -> None:
        self._now = millis


__all__ = ["Timestamp", "system_millis", "timestamp_millis", "ManualClock"]
