"""Errors raised by the rate limiter."""

from __future__ import annotations


class InvalidConfiguration(ValueError):
    """Raised when a limiter is built with an unusable capacity or window."""
