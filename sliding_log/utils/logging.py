"""Logging configuration utilities."""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Any, Optional, TextIO

import structlog

# Silent unless the host (or configure_logging) installs handlers
logging.getLogger("sliding_log").addHandler(logging.NullHandler())


def configure_logging(
    level: str = "INFO",
    log_file: Optional[Path] = None,
    console: bool = True,
    stream: Optional[TextIO] = None,
) -> None:
    """Configure stdlib logging + structlog for JSON output.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR).
        log_file: Optional path to also write logs to.
        console: Whether to emit logs on the console (stderr by default, so
            CLI results on stdout stay machine-readable).
        stream: Console stream override, mainly for tests.
    """
    log_level = getattr(logging, level.upper(), logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.handlers.clear()

    formatter = logging.Formatter("%(message)s")
    if console:
        console_handler = logging.StreamHandler(stream or sys.stderr)
        console_handler.setLevel(log_level)
        console_handler.setFormatter(formatter)
        root_logger.addHandler(console_handler)

    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, mode="w")
        file_handler.setLevel(log_level)
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)

    # Route structlog through stdlib so both handlers receive every event
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.dev.set_exc_info,
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=False,  # Allow reconfiguration
    )


def get_logger(name: str) -> Any:
    """Return a structlog logger backed by the stdlib logger ``name``.

    Events always end up in stdlib logging, so a host that never calls
    :func:`configure_logging` only sees them through its own handlers.
    """
    return structlog.wrap_logger(logging.getLogger(name))


def bind_context(**kwargs: Any) -> None:
    """Bind contextual information to the current log context."""
    structlog.contextvars.bind_contextvars(**kwargs)
