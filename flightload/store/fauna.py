"""Fauna driver adapter implementing the document store contract."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta
from types import TracebackType
from typing import Any, Sequence

from fauna.client import Client
from fauna.errors import FaunaException, ServiceError
from fauna.query.query_builder import Query

from flightload.common.errors import StoreWriteError
from flightload.store.base import BatchSummary
from flightload.store.queries import create_many_query, create_query

DEFAULT_ENDPOINT = "https://db.fauna.com"


@dataclass(frozen=True)
class TimeoutConfig:
    connect: float = 10.0
    read: float = 60.0


def _service_summary(exc: ServiceError) -> str | None:
    query_info = getattr(exc, "query_info", None)
    summary = getattr(query_info, "summary", None) or getattr(exc, "summary", None)
    if summary:
        return summary
    return getattr(exc, "message", None) or None


class FaunaStore:
    """One driver client per run; pass the same instance to every writer."""

    def __init__(
        self,
        secret: str,
        *,
        endpoint: str = DEFAULT_ENDPOINT,
        timeout: TimeoutConfig | None = None,
        client: Client | None = None,
    ) -> None:
        self.timeout = timeout or TimeoutConfig()
        # Failed writes are never retried, throttled ones included.
        self.client = client or Client(
            secret=secret,
            endpoint=endpoint,
            http_connect_timeout=timedelta(seconds=self.timeout.connect),
            http_read_timeout=timedelta(seconds=self.timeout.read),
            max_attempts=1,
        )

    def close(self) -> None:
        self.client.close()

    def __enter__(self) -> "FaunaStore":
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    def query(self, query: Query) -> Any:
        try:
            return self.client.query(query).data
        except ServiceError as exc:
            raise StoreWriteError(f"Store rejected query: {type(exc).__name__}", summary=_service_summary(exc)) from exc
        except FaunaException as exc:
            raise StoreWriteError(f"Store request failed: {exc}") from exc

    def create_one(self, collection: str, document: dict) -> str:
        return str(self.query(create_query(collection, document)))

    def create_many(self, collection: str, documents: Sequence[dict]) -> BatchSummary:
        ids = self.query(create_many_query(collection, documents)) or []
        return BatchSummary(count=len(ids), ids=[str(ident) for ident in ids])
