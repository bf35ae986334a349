"""Run identifier helpers."""

from __future__ import annotations

from datetime import datetime, timezone


def generate_run_id(prefix: str = "load") -> str:
    now = datetime.now(tz=timezone.utc)
    # Sortable by start time; unique enough for one operator at a time.
    return now.strftime(f"{prefix}-%Y%m%dT%H%M%S%fZ")
