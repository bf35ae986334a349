"""Rewrite raw foreign keys into store-resolved lookups."""

from __future__ import annotations

from dataclasses import dataclass

from flightload.common.errors import RowProcessingError
from flightload.ingest.entities import EntitySchema


@dataclass(frozen=True)
class DeferredReference:
    """Lookup of ``collection`` by ``index`` with ``key``, evaluated by the store at write time."""

    collection: str
    index: str
    key: str | int | float
    first: bool = False

    def __post_init__(self) -> None:
        if self.key is None or self.key == "":
            raise ValueError(f"{self.collection}.{self.index} reference needs a key")

    @classmethod
    def by_name(cls, collection: str, name: str) -> "DeferredReference":
        return cls(collection=collection, index="byName", key=name, first=True)

    @classmethod
    def by_id(cls, collection: str, ident: str | int | float) -> "DeferredReference":
        return cls(collection=collection, index="byId", key=ident)

    def __str__(self) -> str:
        lookup = f"{self.collection}.{self.index}({self.key!r})"
        return lookup + ".first()" if self.first else lookup


def _nest_location(document: dict) -> None:
    latitude = document.pop("latitude", None)
    longitude = document.pop("longitude", None)
    if latitude is not None and longitude is not None:
        document["location"] = {"latitude": latitude, "longitude": longitude}


def rewrite(record: dict, schema: EntitySchema) -> dict:
    document = dict(record)

    if schema.country_by_name and "country" in document:
        document["country"] = DeferredReference.by_name("Country", document["country"])

    for ref in schema.id_references:
        code = document.pop(ref.field, None)
        if code is not None:
            document[ref.code_field] = code
        ident = document.pop(ref.id_field, None)
        if ident is not None:
            document[ref.field] = DeferredReference.by_id(ref.collection, ident)

    if schema.nest_location:
        _nest_location(document)

    return document


def build_document(record: dict, schema: EntitySchema) -> dict:
    try:
        return rewrite(record, schema)
    except (TypeError, ValueError) as exc:
        raise RowProcessingError(f"Cannot rewrite {schema.name} record: {exc}") from exc
