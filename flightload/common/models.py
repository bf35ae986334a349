"""Settings models shared across the pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from flightload.common.constants import (
    DEFAULT_BATCH_PAUSE_SECONDS,
    DEFAULT_BATCH_SIZE,
    DEFAULT_MAX_IN_FLIGHT,
)


@dataclass(frozen=True)
class WriterConfig:
    mode: str = "batched"
    batch_size: int = DEFAULT_BATCH_SIZE
    batch_pause_seconds: float = DEFAULT_BATCH_PAUSE_SECONDS
    max_in_flight: int = DEFAULT_MAX_IN_FLIGHT


@dataclass(frozen=True)
class StoreSettings:
    endpoint: str
    secret_env: str
    connect_timeout: float = 10.0
    read_timeout: float = 60.0


@dataclass(frozen=True)
class PipelineConfig:
    store: StoreSettings
    data_dir: Path
    error_log: Path
    input_paths: dict[str, Path] = field(default_factory=dict)
    writers: dict[str, WriterConfig] = field(default_factory=dict)
