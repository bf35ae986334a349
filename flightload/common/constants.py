"""Application constants."""

MISSING_VALUE_SENTINEL = "\\N"
ENTITIES = (
    "country",
    "airline",
    "airport",
    "route",
)
WRITER_MODES = ("batched", "per_record")
DEFAULT_BATCH_SIZE = 10
DEFAULT_BATCH_PAUSE_SECONDS = 1.0
DEFAULT_MAX_IN_FLIGHT = 10
EXIT_SUCCESS = 0
JSON_LOG_FIELDS = (
    "timestamp",
    "run_id",
    "stage",
    "entity",
    "event",
    "status",
    "batch",
    "rows_in",
    "rows_out",
    "error_code",
    "message",
)
