"""Per-field normalisation of raw flat-file values."""

from __future__ import annotations

import math
import re

from flightload.common.constants import MISSING_VALUE_SENTINEL
from flightload.common.errors import RowProcessingError
from flightload.ingest.entities import EntitySchema


class _Absent:
    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "ABSENT"

    def __bool__(self) -> bool:
        return False


ABSENT = _Absent()

_INTEGER_RE = re.compile(r"^[+-]?[0-9]+$")
_DECIMAL_RE = re.compile(r"^[+-]?([0-9]+(\.[0-9]*)?|\.[0-9]+)([eE][+-]?[0-9]+)?$")
_YES_MARKER = "Y"


def _parse_number(value: str) -> int | float | _Absent:
    # Plain ASCII decimal notation only; no digit separators or word forms.
    if not _DECIMAL_RE.match(value):
        return ABSENT
    try:
        parsed = int(value) if _INTEGER_RE.match(value) else float(value)
    except ValueError:
        return ABSENT
    if isinstance(parsed, float) and not math.isfinite(parsed):
        return ABSENT
    return parsed


def sanitize(
    field_name: str,
    raw_value,
    *,
    numeric_fields: frozenset[str] = frozenset(),
    boolean_fields: frozenset[str] = frozenset(),
):
    # Values that already went through sanitize come back unchanged.
    if isinstance(raw_value, (bool, int, float)):
        return raw_value
    if raw_value is None or raw_value is ABSENT:
        return ABSENT

    value = raw_value.strip()
    if not value or value == MISSING_VALUE_SENTINEL:
        return ABSENT

    if field_name in numeric_fields:
        return _parse_number(value)
    if field_name in boolean_fields:
        # No explicit False: anything but the yes marker is absent.
        return True if value.upper() == _YES_MARKER else ABSENT
    return value


def sanitize_record(raw: dict[str, str], schema: EntitySchema) -> dict:
    record = {}
    for field_name, raw_value in raw.items():
        try:
            value = sanitize(
                field_name,
                raw_value,
                numeric_fields=schema.numeric_fields,
                boolean_fields=schema.boolean_fields,
            )
        except (AttributeError, TypeError, ValueError) as exc:
            raise RowProcessingError(f"Cannot sanitize field {field_name!r}: {exc}") from exc
        if value is not ABSENT:
            record[field_name] = value
    return record
