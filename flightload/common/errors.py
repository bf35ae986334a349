"""Domain errors and failure typing."""


class PipelineError(Exception):
    """Base class for pipeline failures."""

    error_code = "PIPELINE_ERROR"


class ConfigError(PipelineError):
    """Raised for invalid or missing configuration."""

    error_code = "CONFIG_ERROR"


class SourceReadError(PipelineError):
    """Raised when an input file cannot be opened or read to the end."""

    error_code = "SOURCE_READ_ERROR"


class RowProcessingError(PipelineError):
    """Raised when a single record cannot be sanitized or rewritten."""

    error_code = "ROW_PROCESSING_ERROR"


class StoreWriteError(PipelineError):
    """Raised when a record or batch fails to persist."""

    error_code = "STORE_WRITE_ERROR"

    def __init__(self, message: str, summary: str | None = None) -> None:
        super().__init__(message)
        self.summary = summary


class LogSinkError(PipelineError):
    """Raised when the error log itself cannot be written."""

    error_code = "LOG_SINK_ERROR"
