"""Compose FQL queries for the store with the driver's template builder."""

from __future__ import annotations

from typing import Sequence

from fauna import fql
from fauna.query.query_builder import Query

from flightload.ingest.references import DeferredReference

# Query text is fixed; collection names and keys travel as typed arguments.
_LOOKUPS = {
    ("byName", True): "Collection(${collection}).byName(${key}).first()",
    ("byName", False): "Collection(${collection}).byName(${key})",
    ("byId", True): "Collection(${collection}).byId(${key}).first()",
    ("byId", False): "Collection(${collection}).byId(${key})",
}


def reference_query(ref: DeferredReference) -> Query:
    try:
        template = _LOOKUPS[(ref.index, ref.first)]
    except KeyError:
        raise ValueError(f"Unsupported lookup {ref.collection}.{ref.index}") from None
    key = ref.key
    if ref.index == "byId":
        # Document ids are strings in the store.
        key = str(int(key)) if isinstance(key, float) and key.is_integer() else str(key)
    return fql(template, collection=ref.collection, key=key)


def to_query_value(value):
    if isinstance(value, DeferredReference):
        return reference_query(value)
    if isinstance(value, dict):
        return {key: to_query_value(item) for key, item in value.items()}
    return value


def create_query(collection: str, document: dict) -> Query:
    return fql(
        "Collection(${collection}).create(${doc}).id",
        collection=collection,
        doc=to_query_value(document),
    )


def create_many_query(collection: str, documents: Sequence[dict]) -> Query:
    return fql(
        "${docs}.map(doc => Collection(${collection}).create(doc).id)",
        collection=collection,
        docs=[to_query_value(doc) for doc in documents],
    )
