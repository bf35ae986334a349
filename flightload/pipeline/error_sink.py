"""Append-only, timestamped failure log."""

from __future__ import annotations

import sys
import threading
from pathlib import Path

from flightload.common.errors import LogSinkError
from flightload.common.fs import ensure_dir
from flightload.common.time_utils import utc_timestamp_iso


def format_entry(message: str, timestamp: str | None = None) -> str:
    # One entry per line, whatever the message holds.
    flat = " ".join(message.splitlines())
    return f"[{timestamp or utc_timestamp_iso()}] {flat}\n"


class ErrorSink:
    """Never raises; write failures are reported on stderr."""

    def __init__(self, path: Path) -> None:
        self.path = path
        self.count = 0
        self._lock = threading.Lock()

    def record(self, message: str) -> None:
        line = format_entry(message)
        with self._lock:
            self.count += 1
            try:
                ensure_dir(self.path.parent)
                with self.path.open("a", encoding="utf-8") as f:
                    f.write(line)
            except OSError as exc:
                err = LogSinkError(f"Failed to write to error log {self.path}: {exc}")
                print(f"{err.error_code}: {err}", file=sys.stderr)
