"""Lazy positional reader for headerless delimited files."""

from __future__ import annotations

import csv
from pathlib import Path
from typing import Iterator, Sequence

from flightload.common.errors import SourceReadError


def read_records(path: Path, field_names: Sequence[str]) -> Iterator[dict[str, str]]:
    """Yield one raw record per non-blank line, in file order.

    Field names are assigned by position. Short rows map only the values they
    carry; values beyond the schema are ignored. Any failure to open or keep
    reading the file raises ``SourceReadError``; records already yielded
    stay with the caller.
    """
    try:
        f = path.open("r", encoding="utf-8", newline="")
    except OSError as exc:
        raise SourceReadError(f"Cannot open {path}: {exc}") from exc

    with f:
        reader = csv.reader(f)
        while True:
            try:
                row = next(reader)
            except StopIteration:
                return
            except (csv.Error, OSError, UnicodeDecodeError) as exc:
                raise SourceReadError(f"Read failed in {path} near line {reader.line_num}: {exc}") from exc
            if not row:
                continue
            yield dict(zip(field_names, row))
