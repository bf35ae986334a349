"""Submit documents to the store in paced batches or bounded single writes."""

from __future__ import annotations

import json
import logging
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import asdict, dataclass
from typing import Callable

from flightload.common.constants import (
    DEFAULT_BATCH_PAUSE_SECONDS,
    DEFAULT_BATCH_SIZE,
    DEFAULT_MAX_IN_FLIGHT,
    WRITER_MODES,
)
from flightload.common.errors import ConfigError, StoreWriteError
from flightload.common.logging import log_event
from flightload.common.models import WriterConfig
from flightload.pipeline.error_sink import ErrorSink
from flightload.store.base import DocumentStore

ACCUMULATING = "accumulating"
SUBMITTING = "submitting"
DRAINING = "draining"
DONE = "done"


@dataclass
class WriteStats:
    units_submitted: int = 0
    units_failed: int = 0
    documents_written: int = 0
    documents_failed: int = 0

    def to_dict(self) -> dict[str, int]:
        return asdict(self)


def serialize_documents(documents: list[dict]) -> str:
    # References print as the lookup they stand for.
    return json.dumps(documents, ensure_ascii=False, default=str)


def _failure_detail(exc: Exception) -> str:
    if isinstance(exc, StoreWriteError):
        return exc.summary or str(exc)
    return f"unexpected {type(exc).__name__}: {exc}"


class BatchWriter:
    """Accumulate documents and submit each full batch with one ``create_many`` call.

    A batch is atomic: if the call fails, the whole batch is logged to the
    error sink once and dropped, and the writer moves on. Submissions after
    the first are preceded by ``pause_seconds`` of sleep so the store sees at
    most one batch per pause interval.
    """

    def __init__(
        self,
        store: DocumentStore,
        collection: str,
        sink: ErrorSink,
        *,
        batch_size: int = DEFAULT_BATCH_SIZE,
        pause_seconds: float = DEFAULT_BATCH_PAUSE_SECONDS,
        logger: logging.Logger | None = None,
        entity: str | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        if batch_size < 1:
            raise ConfigError("batch_size must be at least 1")
        self.store = store
        self.collection = collection
        self.sink = sink
        self.batch_size = batch_size
        self.pause_seconds = pause_seconds
        self.logger = logger or logging.getLogger(__name__)
        self.entity = entity or collection.lower()
        self.sleep = sleep
        self.stats = WriteStats()
        self.state = ACCUMULATING
        self._batch: list[dict] = []
        self._first_position: int | None = None
        self._last_position = 0

    def add(self, document: dict, position: int) -> None:
        if self.state == DONE:
            raise RuntimeError("writer is closed")
        if not self._batch:
            self._first_position = position
        self._batch.append(document)
        self._last_position = position
        if len(self._batch) >= self.batch_size:
            self._submit()
            self.state = ACCUMULATING

    def close(self) -> WriteStats:
        if self.state == DONE:
            return self.stats
        self.state = DRAINING
        if self._batch:
            self._submit()
        self.state = DONE
        return self.stats

    def _submit(self) -> None:
        if self.stats.units_submitted and self.pause_seconds > 0:
            self.sleep(self.pause_seconds)

        if self.state != DRAINING:
            self.state = SUBMITTING
        batch, self._batch = self._batch, []
        batch_no = self.stats.units_submitted + 1
        self.stats.units_submitted += 1
        try:
            summary = self.store.create_many(self.collection, batch)
        except Exception as exc:
            self.stats.units_failed += 1
            self.stats.documents_failed += len(batch)
            self.sink.record(
                f"Failed to write {self.collection} batch {batch_no} "
                f"(records {self._first_position}-{self._last_position}, {len(batch)} documents): "
                f"{_failure_detail(exc)} - {serialize_documents(batch)}"
            )
            log_event(
                self.logger,
                f"batch {batch_no} failed",
                stage="write",
                entity=self.entity,
                event="UNIT_FAIL",
                status="error",
                batch=batch_no,
                rows_in=len(batch),
                error_code=getattr(exc, "error_code", "UNEXPECTED_ERROR"),
            )
            return

        self.stats.documents_written += len(batch)
        log_event(
            self.logger,
            f"batch {batch_no} inserted",
            stage="write",
            entity=self.entity,
            event="UNIT_OK",
            status="ok",
            batch=batch_no,
            rows_in=len(batch),
            rows_out=summary.count,
        )


class RecordWriter:
    """Submit every document on its own through a bounded worker pool.

    ``add`` blocks once ``max_in_flight`` writes are outstanding; ``close``
    joins every outstanding write. Completion order is not defined.
    """

    def __init__(
        self,
        store: DocumentStore,
        collection: str,
        sink: ErrorSink,
        *,
        max_in_flight: int = DEFAULT_MAX_IN_FLIGHT,
        logger: logging.Logger | None = None,
        entity: str | None = None,
    ) -> None:
        if max_in_flight < 1:
            raise ConfigError("max_in_flight must be at least 1")
        self.store = store
        self.collection = collection
        self.sink = sink
        self.logger = logger or logging.getLogger(__name__)
        self.entity = entity or collection.lower()
        self.stats = WriteStats()
        self.state = ACCUMULATING
        self._pool = ThreadPoolExecutor(max_workers=max_in_flight, thread_name_prefix=f"write-{self.entity}")
        self._slots = threading.BoundedSemaphore(max_in_flight)
        self._lock = threading.Lock()

    def add(self, document: dict, position: int) -> None:
        if self.state == DONE:
            raise RuntimeError("writer is closed")
        self._slots.acquire()
        with self._lock:
            self.stats.units_submitted += 1
        future = self._pool.submit(self._write_one, document, position)
        future.add_done_callback(lambda _future: self._slots.release())

    def close(self) -> WriteStats:
        if self.state != DONE:
            self.state = DRAINING
            self._pool.shutdown(wait=True)
            self.state = DONE
        return self.stats

    def _write_one(self, document: dict, position: int) -> None:
        try:
            self.store.create_one(self.collection, document)
        except Exception as exc:
            with self._lock:
                self.stats.units_failed += 1
                self.stats.documents_failed += 1
            self.sink.record(
                f"Failed to write {self.collection} record {position}: "
                f"{_failure_detail(exc)} - {serialize_documents([document])}"
            )
            log_event(
                self.logger,
                f"record {position} failed",
                stage="write",
                entity=self.entity,
                event="UNIT_FAIL",
                status="error",
                rows_in=1,
                error_code=getattr(exc, "error_code", "UNEXPECTED_ERROR"),
            )
            return
        with self._lock:
            self.stats.documents_written += 1


def build_writer(
    config: WriterConfig,
    store: DocumentStore,
    collection: str,
    sink: ErrorSink,
    *,
    logger: logging.Logger | None = None,
    entity: str | None = None,
    sleep: Callable[[float], None] = time.sleep,
) -> BatchWriter | RecordWriter:
    if config.mode == "batched":
        return BatchWriter(
            store,
            collection,
            sink,
            batch_size=config.batch_size,
            pause_seconds=config.batch_pause_seconds,
            logger=logger,
            entity=entity,
            sleep=sleep,
        )
    if config.mode == "per_record":
        return RecordWriter(
            store,
            collection,
            sink,
            max_in_flight=config.max_in_flight,
            logger=logger,
            entity=entity,
        )
    raise ConfigError(f"Unknown writer mode {config.mode!r}; expected one of {', '.join(WRITER_MODES)}")
