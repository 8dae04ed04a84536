"""Replay recorded events through a sliding-log limiter.

Each input line holds ``<timestamp_ms> <key>``; blank lines and lines
starting with ``#`` are ignored.

Usage:
    python -m sliding_log.cli events.txt
    python -m sliding_log.cli --capacity 2 --window 5m events.txt
    cat events.txt | python -m sliding_log.cli --output json -
"""

from __future__ import annotations

import argparse
import sys
from dataclasses import dataclass
from typing import Iterable, Iterator, List, Optional, TextIO

from sliding_log.cli_output import CLIOutput, OutputFormat, ReplaySummary
from sliding_log.config import load_settings
from sliding_log.durations import parse_duration
from sliding_log.limiter import Admitted, SlidingLogLimiter
from sliding_log.utils.logging import bind_context, configure_logging, get_logger

logger = get_logger(__name__)

EXIT_OK = 0
EXIT_CONFIG = 1
EXIT_BAD_INPUT = 2


class EventParseError(ValueError):
    def __init__(self, line_no: int, message: str) -> None:
        super().__init__(message)
        self.line_no = line_no


@dataclass(frozen=True)
class Event:
    line_no: int
    timestamp: int
    key: str


def parse_events(lines: Iterable[str]) -> Iterator[Event]:
    """Yield events from ``<timestamp_ms> <key>`` lines."""
    for line_no, raw in enumerate(lines, start=1):
        line = raw.strip()
        if not line or line.startswith("#"):
            continue
        parts = line.split(None, 1)
        if len(parts) != 2:
            raise EventParseError(line_no, f"expected '<timestamp_ms> <key>', got {line!r}")
        stamp, key = parts
        try:
            timestamp = int(stamp)
        except ValueError:
            raise EventParseError(line_no, f"invalid timestamp {stamp!r}") from None
        yield Event(line_no=line_no, timestamp=timestamp, key=key.strip())


def replay(
    limiter: SlidingLogLimiter[str], events: Iterable[Event], output: CLIOutput
) -> ReplaySummary:
    """Feed events to the limiter in order, reporting each decision."""
    summary = ReplaySummary()
    for event in events:
        decision = limiter.trigger(event.timestamp, event.key)
        admitted = isinstance(decision, Admitted)
        if admitted:
            summary.admitted += 1
        else:
            summary.rejected += 1
        output.decision(
            event.line_no,
            event.timestamp,
            event.key,
            admitted,
            len(limiter.log_for(event.key)),
        )
    summary.keys = len(limiter)
    return summary


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Replay timestamped events through a sliding-log rate limiter",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m sliding_log.cli events.txt
  python -m sliding_log.cli --capacity 2 --window 5m events.txt
  python -m sliding_log.cli --output json - < events.txt
        """,
    )
    parser.add_argument(
        "file",
        nargs="?",
        default="-",
        help="Event file, one '<timestamp_ms> <key>' per line (default: stdin)",
    )
    parser.add_argument(
        "-c",
        "--capacity",
        type=int,
        help="Events allowed per key within the window (default: RATE_LIMIT_CAPACITY)",
    )
    parser.add_argument(
        "-w",
        "--window",
        help="Window length such as 30s, 5m, 1h (default: RATE_LIMIT_WINDOW)",
    )
    parser.add_argument(
        "-o",
        "--output",
        choices=["text", "json"],
        default="text",
        help="Output format (default: text)",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Show window occupancy per event and debug logs",
    )
    return parser


def main(
    argv: Optional[List[str]] = None,
    stdin: Optional[TextIO] = None,
    stdout: Optional[TextIO] = None,
    stderr: Optional[TextIO] = None,
) -> int:
    """CLI entrypoint; returns the process exit code."""
    args = build_parser().parse_args(argv)
    output = CLIOutput(
        format=OutputFormat(args.output),
        verbose=args.verbose,
        stream=stdout,
        err_stream=stderr,
    )

    try:
        settings = load_settings()
    except RuntimeError as exc:
        output.error(f"Failed to load settings: {exc}")
        return EXIT_CONFIG

    configure_logging(
        "DEBUG" if args.verbose else settings.log_level, stream=stderr
    )

    try:
        window = (
            parse_duration(args.window) if args.window else settings.rate_limit_window
        )
        capacity = (
            args.capacity if args.capacity is not None else settings.rate_limit_capacity
        )
        limiter: SlidingLogLimiter[str] = SlidingLogLimiter.create(capacity, window)
    except ValueError as exc:
        output.error(str(exc))
        return EXIT_CONFIG

    source = "stdin" if args.file == "-" else args.file
    output.info(
        f"Replaying {source} with capacity={limiter.capacity}, "
        f"window={limiter.window_millis}ms"
    )
    bind_context(source=args.file)
    logger.debug(
        "replay_started",
        capacity=limiter.capacity,
        window_millis=limiter.window_millis,
    )

    try:
        if args.file == "-":
            summary = replay(limiter, parse_events(stdin or sys.stdin), output)
        else:
            with open(args.file, encoding="utf-8") as handle:
                summary = replay(limiter, parse_events(handle), output)
    except EventParseError as exc:
        output.error(str(exc), line_no=exc.line_no)
        return EXIT_BAD_INPUT
    except OSError as exc:
        output.error(f"Cannot read {args.file}: {exc}")
        return EXIT_BAD_INPUT

    output.summary(summary)
    logger.debug(
        "replay_finished",
        admitted=summary.admitted,
        rejected=summary.rejected,
        keys=summary.keys,
    )
    return EXIT_OK


def cli_main() -> None:
    """Console-script wrapper."""
    sys.exit(main())


if __name__ == "__main__":
    cli_main()
