from __future__ import annotations

import threading

import pytest

from flightload.common.errors import StoreWriteError
from flightload.store.base import BatchSummary


class FakeStore:
    """Records every store call; ``fail_if`` forces a failure for matching units."""

    def __init__(self, fail_calls=(), fail_if=None):
        self.calls: list[tuple[str, str, list[dict]]] = []
        self.fail_calls = set(fail_calls)
        self.fail_if = fail_if
        self.lock = threading.Lock()

    def _record(self, method: str, collection: str, documents: list[dict]) -> int:
        with self.lock:
            self.calls.append((method, collection, documents))
            return len(self.calls)

    def _maybe_fail(self, call_no: int, documents: list[dict]) -> None:
        if call_no in self.fail_calls or (self.fail_if is not None and self.fail_if(documents)):
            raise StoreWriteError("forced", summary=f"forced failure on call {call_no}")

    def create_one(self, collection: str, document: dict) -> str:
        call_no = self._record("create_one", collection, [document])
        self._maybe_fail(call_no, [document])
        return f"doc-{call_no}"

    def create_many(self, collection: str, documents) -> BatchSummary:
        documents = list(documents)
        call_no = self._record("create_many", collection, documents)
        self._maybe_fail(call_no, documents)
        return BatchSummary(count=len(documents), ids=[f"doc-{call_no}-{i}" for i in range(len(documents))])


@pytest.fixture
def fake_store_cls():
    return FakeStore
