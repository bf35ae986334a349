"""Positional schemas for the OpenFlights flat files."""

from __future__ import annotations

from dataclasses import dataclass

from flightload.common.errors import ConfigError


@dataclass(frozen=True)
class IdReference:
    """Route-style foreign key: a code field plus the numeric id it names."""

    field: str
    id_field: str
    collection: str

    @property
    def code_field(self) -> str:
        return f"{self.field}_code"


@dataclass(frozen=True)
class EntitySchema:
    name: str
    collection: str
    fields: tuple[str, ...]
    numeric_fields: frozenset[str] = frozenset()
    boolean_fields: frozenset[str] = frozenset()
    country_by_name: bool = False
    nest_location: bool = False
    id_references: tuple[IdReference, ...] = ()


AIRLINE = EntitySchema(
    name="airline",
    collection="Airline",
    fields=("id", "name", "alias", "iata", "icao", "callsign", "country", "active"),
    numeric_fields=frozenset({"id"}),
    boolean_fields=frozenset({"active"}),
    country_by_name=True,
)

AIRPORT = EntitySchema(
    name="airport",
    collection="Airport",
    fields=(
        "id",
        "name",
        "city",
        "country",
        "iata",
        "icao",
        "latitude",
        "longitude",
        "altitude",
        "timezone",
        "dst",
        "tz_database_timezone",
        "type",
        "source",
    ),
    numeric_fields=frozenset({"id", "latitude", "longitude", "altitude", "timezone"}),
    country_by_name=True,
    nest_location=True,
)

COUNTRY = EntitySchema(
    name="country",
    collection="Country",
    fields=("name", "iso_code", "dafif_code"),
)

ROUTE = EntitySchema(
    name="route",
    collection="Route",
    fields=(
        "airline",
        "airline_id",
        "source_airport",
        "source_airport_id",
        "destination_airport",
        "destination_airport_id",
        "codeshare",
        "stops",
        "equipment",
    ),
    numeric_fields=frozenset({"airline_id", "source_airport_id", "destination_airport_id", "stops"}),
    boolean_fields=frozenset({"codeshare"}),
    id_references=(
        IdReference("airline", "airline_id", "Airline"),
        IdReference("source_airport", "source_airport_id", "Airport"),
        IdReference("destination_airport", "destination_airport_id", "Airport"),
    ),
)

SCHEMAS = {schema.name: schema for schema in (AIRLINE, AIRPORT, COUNTRY, ROUTE)}


def get_schema(entity: str) -> EntitySchema:
    try:
        return SCHEMAS[entity]
    except KeyError:
        raise ConfigError(f"Unknown entity: {entity}") from None
