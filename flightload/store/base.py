"""Narrow store contract consumed by the writers."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Protocol, Sequence


@dataclass(frozen=True)
class BatchSummary:
    count: int
    ids: list[str] = field(default_factory=list)


class DocumentStore(Protocol):
    def create_one(self, collection: str, document: dict) -> str:
        ...

    def create_many(self, collection: str, documents: Sequence[dict]) -> BatchSummary:
        ...
