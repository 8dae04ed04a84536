"""Sliding-log rate limiting keyed by arbitrary identifiers."""

from sliding_log.durations import days, hours, minutes, seconds, weeks
from sliding_log.errors import InvalidConfiguration
from sliding_log.guard import KeyedRateLimiter
from sliding_log.limiter import Admitted, Decision, Rejected, SlidingLogLimiter

__all__ = [
    "SlidingLogLimiter",
    "KeyedRateLimiter",
    "Admitted",
    "Rejected",
    "Decision",
    "InvalidConfiguration",
    "seconds",
    "minutes",
    "hours",
    "days",
    "weeks",
]
