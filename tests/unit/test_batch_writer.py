from __future__ import annotations

import threading
import time
from pathlib import Path

import pytest

from flightload.common.errors import ConfigError
from flightload.common.models import WriterConfig
from flightload.ingest.references import DeferredReference
from flightload.pipeline.batch_writer import DONE, BatchWriter, RecordWriter, build_writer
from flightload.pipeline.error_sink import ErrorSink


def _docs(n: int) -> list[dict]:
    return [{"id": i, "name": f"Airport {i}"} for i in range(1, n + 1)]


def _feed(writer, documents):
    for position, document in enumerate(documents, start=1):
        writer.add(document, position)
    return writer.close()


@pytest.mark.parametrize("n,batch_size,expected_sizes", [
    (0, 10, []),
    (1, 10, [1]),
    (10, 10, [10]),
    (20, 10, [10, 10]),
    (23, 10, [10, 10, 3]),
    (7, 3, [3, 3, 1]),
])
def test_batched_mode_call_count_and_last_batch_size(tmp_path: Path, fake_store_cls, n, batch_size, expected_sizes):
    store = fake_store_cls()
    writer = BatchWriter(store, "Airport", ErrorSink(tmp_path / "errors.log"), batch_size=batch_size, sleep=lambda _s: None)

    stats = _feed(writer, _docs(n))

    assert [len(docs) for _method, _coll, docs in store.calls] == expected_sizes
    assert stats.units_submitted == len(expected_sizes)
    assert stats.documents_written == n
    assert writer.state == DONE


def test_batched_mode_preserves_input_order(tmp_path: Path, fake_store_cls):
    store = fake_store_cls()
    writer = BatchWriter(store, "Airport", ErrorSink(tmp_path / "errors.log"), sleep=lambda _s: None)

    _feed(writer, _docs(25))

    submitted = [doc["id"] for _method, _coll, docs in store.calls for doc in docs]
    assert submitted == list(range(1, 26))
    assert {coll for _method, coll, _docs in store.calls} == {"Airport"}


def test_batched_mode_pauses_between_submissions_only(tmp_path: Path, fake_store_cls):
    pauses: list[float] = []
    writer = BatchWriter(
        fake_store_cls(),
        "Airport",
        ErrorSink(tmp_path / "errors.log"),
        pause_seconds=1.5,
        sleep=pauses.append,
    )

    _feed(writer, _docs(23))

    assert pauses == [1.5, 1.5]


def test_failed_batch_is_logged_once_and_later_batches_still_run(tmp_path: Path, fake_store_cls):
    log_path = tmp_path / "errors.log"
    store = fake_store_cls(fail_calls={2})
    writer = BatchWriter(store, "Airport", ErrorSink(log_path), sleep=lambda _s: None)

    stats = _feed(writer, _docs(23))

    assert [len(docs) for _method, _coll, docs in store.calls] == [10, 10, 3]
    lines = log_path.read_text(encoding="utf-8").splitlines()
    assert len(lines) == 1
    assert "batch 2" in lines[0]
    assert "records 11-20" in lines[0]
    assert "forced failure on call 2" in lines[0]
    assert stats.units_failed == 1
    assert stats.documents_failed == 10
    assert stats.documents_written == 13


def test_unexpected_store_exception_is_isolated(tmp_path: Path):
    class BrokenStore:
        def __init__(self):
            self.calls = 0

        def create_many(self, collection, documents):
            self.calls += 1
            if self.calls == 1:
                raise RuntimeError("socket closed")
            return type("Summary", (), {"count": len(documents)})()

    log_path = tmp_path / "errors.log"
    store = BrokenStore()
    writer = BatchWriter(store, "Airport", ErrorSink(log_path), batch_size=2, sleep=lambda _s: None)

    stats = _feed(writer, _docs(4))

    assert store.calls == 2
    assert "unexpected RuntimeError: socket closed" in log_path.read_text(encoding="utf-8")
    assert stats.units_failed == 1


def test_failure_log_serializes_deferred_references(tmp_path: Path, fake_store_cls):
    log_path = tmp_path / "errors.log"
    writer = BatchWriter(fake_store_cls(fail_calls={1}), "Airline", ErrorSink(log_path), sleep=lambda _s: None)

    _feed(writer, [{"name": "Air Canada", "country": DeferredReference.by_name("Country", "Canada")}])

    assert "Country.byName('Canada').first()" in log_path.read_text(encoding="utf-8")


def test_writer_rejects_adds_after_close(tmp_path: Path, fake_store_cls):
    writer = BatchWriter(fake_store_cls(), "Airport", ErrorSink(tmp_path / "errors.log"))
    writer.close()
    with pytest.raises(RuntimeError):
        writer.add({"id": 1}, 1)


def test_per_record_mode_submits_each_document(tmp_path: Path, fake_store_cls):
    store = fake_store_cls()
    writer = RecordWriter(store, "Country", ErrorSink(tmp_path / "errors.log"), max_in_flight=4)

    stats = _feed(writer, _docs(23))

    assert len(store.calls) == 23
    assert {method for method, _coll, _docs in store.calls} == {"create_one"}
    assert stats.documents_written == 23
    assert writer.state == DONE


def test_per_record_failure_is_isolated(tmp_path: Path, fake_store_cls):
    log_path = tmp_path / "errors.log"
    store = fake_store_cls(fail_if=lambda documents: documents[0]["id"] == 5)
    writer = RecordWriter(store, "Country", ErrorSink(log_path), max_in_flight=3)

    stats = _feed(writer, _docs(10))

    assert len(store.calls) == 10
    lines = log_path.read_text(encoding="utf-8").splitlines()
    assert len(lines) == 1
    assert "record 5" in lines[0]
    assert stats.units_failed == 1
    assert stats.documents_written == 9


def test_per_record_mode_bounds_in_flight_writes(tmp_path: Path):
    class SlowStore:
        def __init__(self):
            self.active = 0
            self.peak = 0
            self.lock = threading.Lock()

        def create_one(self, collection, document):
            with self.lock:
                self.active += 1
                self.peak = max(self.peak, self.active)
            time.sleep(0.01)
            with self.lock:
                self.active -= 1
            return "id"

    store = SlowStore()
    writer = RecordWriter(store, "Route", ErrorSink(tmp_path / "errors.log"), max_in_flight=2)

    _feed(writer, _docs(12))

    assert 1 <= store.peak <= 2


def test_build_writer_selects_mode(tmp_path: Path, fake_store_cls):
    sink = ErrorSink(tmp_path / "errors.log")
    batched = build_writer(WriterConfig(mode="batched", batch_size=5), fake_store_cls(), "Route", sink)
    per_record = build_writer(WriterConfig(mode="per_record"), fake_store_cls(), "Route", sink)

    assert isinstance(batched, BatchWriter) and batched.batch_size == 5
    assert isinstance(per_record, RecordWriter)
    per_record.close()

    with pytest.raises(ConfigError):
        build_writer(WriterConfig(mode="fan_out"), fake_store_cls(), "Route", sink)
