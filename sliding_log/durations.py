"""Duration helpers for readable limiter construction.

Usage:
    SlidingLogLimiter.create(capacity=10, window=minutes(5))
"""

from __future__ import annotations

import re
from datetime import timedelta
from typing import Dict

_DURATION_PATTERN = re.compile(r"^\s*(\d+)\s*(ms|s|m|h|d|w)\s*$", re.IGNORECASE)


def seconds(n: int) -> timedelta:
    return timedelta(seconds=n)


def minutes(n: int) -> timedelta:
    return seconds(n * 60)


def hours(n: int) -> timedelta:
    return minutes(n * 60)


def days(n: int) -> timedelta:
    return hours(n * 24)


def weeks(n: int) -> timedelta:
    return days(n) * 7


def to_millis(duration: timedelta) -> int:
    """Return the duration as whole milliseconds (sub-millisecond parts dropped)."""
    return duration // timedelta(milliseconds=1)


_UNITS: Dict[str, timedelta] = {
    "ms": timedelta(milliseconds=1),
    "s": seconds(1),
    "m": minutes(1),
    "h": hours(1),
    "d": days(1),
    "w": weeks(1),
}


def parse_duration(text: str) -> timedelta:
    """Parse strings such as ``"30s"``, ``"5m"`` or ``"1w"`` into a timedelta.

    Raises:
        ValueError: If the text is not ``<integer><unit>``.
    """
    match = _DURATION_PATTERN.match(text or "")
    if not match:
        raise ValueError(
            f"Invalid duration {text!r}; expected <integer><unit> with unit in "
            "ms, s, m, h, d, w"
        )
    count, unit = match.groups()
    return _UNITS[unit.lower()] * int(count)


__all__ = [
    "seconds",
    "minutes",
    "hours",
    "days",
    "weeks",
    "to_millis",
    "parse_duration",
]
