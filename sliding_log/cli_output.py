"""CLI output formatting for terminal display.

Text output is meant for people; JSON output emits one object per line so
decisions can be piped into other tools.
"""

from __future__ import annotations

import json
import sys
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional


class OutputFormat(Enum):
    """Supported output formats."""

    TEXT = "text"
    JSON = "json"


@dataclass
class ReplaySummary:
    """Totals for one replay run."""

    admitted: int = 0
    rejected: int = 0
    keys: int = 0

    @property
    def total(self) -> int:
        return self.admitted + self.rejected


class CLIOutput:
    """Unified output handler for CLI."""

    def __init__(
        self,
        format: OutputFormat = OutputFormat.TEXT,
        verbose: bool = False,
        stream: Any = None,
        err_stream: Any = None,
    ) -> None:
        self.format = format
        self.verbose = verbose
        self.stream = stream or sys.stdout
        self.err_stream = err_stream or sys.stderr

    def decision(
        self, line_no: int, timestamp: int, key: str, admitted: bool, logged: int
    ) -> None:
        """Output the outcome of one event."""
        if self.format == OutputFormat.JSON:
            payload: Dict[str, Any] = {
                "line": line_no,
                "timestamp": timestamp,
                "key": key,
                "decision": "admit" if admitted else "reject",
            }
            if self.verbose:
                payload["logged"] = logged
            print(json.dumps(payload), file=self.stream)
            return

        label = "ADMIT " if admitted else "REJECT"
        text = f"{label} {timestamp} {key}"
        if self.verbose:
            text += f"  (in window: {logged})"
        print(text, file=self.stream)

    def summary(self, summary: ReplaySummary) -> None:
        """Output totals after a replay."""
        if self.format == OutputFormat.JSON:
            print(
                json.dumps(
                    {
                        "summary": {
                            "total": summary.total,
                            "admitted": summary.admitted,
                            "rejected": summary.rejected,
                            "keys": summary.keys,
                        }
                    }
                ),
                file=self.stream,
            )
            return

        print("-" * 40, file=self.stream)
        print(
            f"{summary.total} events: {summary.admitted} admitted, "
            f"{summary.rejected} rejected across {summary.keys} keys",
            file=self.stream,
        )

    def info(self, message: str) -> None:
        """Output an info message."""
        if self.format == OutputFormat.JSON:
            return
        print(message, file=self.err_stream)

    def error(self, message: str, line_no: Optional[int] = None) -> None:
        """Output an error message."""
        if self.format == OutputFormat.JSON:
            payload: Dict[str, Any] = {"error": message}
            if line_no is not None:
                payload["line"] = line_no
            print(json.dumps(payload), file=self.err_stream)
            return

        prefix = f"line {line_no}: " if line_no is not None else ""
        print(f"error: {prefix}{message}", file=self.err_stream)
