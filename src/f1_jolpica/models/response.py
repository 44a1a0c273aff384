"""
Response model for one decoded page of the Jolpica API.

A page body looks like::

    {"MRData": {"xmlns": "", "series": "f1", "url": "...",
                "limit": "30", "offset": "0", "total": "75",
                "RaceTable": {"season": "2023", "Races": [...]}}}

Exactly one ``*Table`` key selects the Table variant. Inside a RaceTable, each
race carries at most one inline list (``Results``, ``Laps``, ...) selecting
its Payload variant; a race with no such list is a Schedule.
"""

import json
from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Any, Callable, Generic, TypeVar

from pydantic import Field, ValidationError

from ..exceptions import DecodeError, PayloadDecodeError, UnknownVariantError
from .schemas import (
    Circuit,
    Constructor,
    Driver,
    F1BaseModel,
    Lap,
    PitStop,
    QualifyingResult,
    RaceResult,
    Schedule,
    Season,
    SprintResult,
    Status,
    TimeOfDay,
)

P = TypeVar("P")
Q = TypeVar("Q")


class Pagination(F1BaseModel):
    """The ``limit``/``offset``/``total`` triple describing one page."""

    limit: int = Field(ge=0, description="Maximum records in this page")
    offset: int = Field(ge=0, description="Index of the first record in this page")
    total: int = Field(ge=0, description="Total records across all pages")

    @property
    def is_last_page(self) -> bool:
        return self.offset + self.limit >= self.total

    @property
    def is_single_page(self) -> bool:
        return self.offset == 0 and self.is_last_page

    def next_page(self) -> "Pagination | None":
        """Pagination of the following page, or None if this is the last page."""
        if self.is_last_page:
            return None
        return self.model_copy(update={"offset": self.offset + self.limit})


class ResponseInfo(F1BaseModel):
    """Namespace metadata of a page; compared across pages but never interpreted."""

    xmlns: str = ""
    series: str
    url: str


class TableTag(Enum):
    """Known table variants, by wire key."""

    SEASONS = "SeasonTable"
    DRIVERS = "DriverTable"
    CONSTRUCTORS = "ConstructorTable"
    CIRCUITS = "CircuitTable"
    RACES = "RaceTable"
    STATUS = "StatusTable"


class PayloadTag(Enum):
    """Known race payload variants, by wire key. Schedule has no wire key."""

    QUALIFYING_RESULTS = "QualifyingResults"
    SPRINT_RESULTS = "SprintResults"
    RACE_RESULTS = "Results"
    LAPS = "Laps"
    PIT_STOPS = "PitStops"
    SCHEDULE = "Schedule"


# Race keys that carry a tagged payload
PAYLOAD_WIRE_KEYS: frozenset[str] = frozenset(
    tag.value for tag in PayloadTag if tag is not PayloadTag.SCHEDULE
)


# Name of the record list inside each table object
TABLE_LIST_KEYS: dict[TableTag, str] = {
    TableTag.SEASONS: "Seasons",
    TableTag.DRIVERS: "Drivers",
    TableTag.CONSTRUCTORS: "Constructors",
    TableTag.CIRCUITS: "Circuits",
    TableTag.RACES: "Races",
    TableTag.STATUS: "Status",
}


@dataclass(frozen=True)
class Payload:
    """
    Tagged race payload.

    ``value`` is a tuple of records for every tag except SCHEDULE, where it is
    a single Schedule.
    """

    tag: PayloadTag
    value: Any

    @property
    def is_list(self) -> bool:
        return self.tag is not PayloadTag.SCHEDULE


RACE_IDENTITY_FIELDS: tuple[str, ...] = (
    "season",
    "round",
    "url",
    "race_name",
    "circuit",
    "date",
    "time",
)


class Race(F1BaseModel, Generic[P]):
    """
    A race event with a payload.

    Decoded races carry a Payload; extraction replaces it with the typed
    records the caller asked for, e.g. ``Race[list[RaceResult]]``.
    """

    season: int = Field(description="The calendar year of the season")
    round: int = Field(description="The round number within the season")
    url: str = Field(description="Wikipedia URL for the race")
    race_name: str = Field(alias="raceName", description="Name of the race event")
    circuit: Circuit = Field(alias="Circuit", description="Circuit profile")
    date: date
    time: TimeOfDay | None = Field(None, description="Race start time in UTC")
    payload: P | None = Field(None, description="Session payload attached to this race")

    def identity(self) -> tuple[Any, ...]:
        """Every field except the payload; two races with the same identity are the same event."""
        return tuple(getattr(self, name) for name in RACE_IDENTITY_FIELDS)

    def same_event(self, other: "Race[Any]") -> bool:
        return self.identity() == other.identity()

    def with_payload(self, payload: Q) -> "Race[Q]":
        return self.model_copy(update={"payload": payload})  # type: ignore[return-value]

    def map(self, func: Callable[[P], Q]) -> "Race[Q]":
        """Return a new Race whose payload is ``func(payload)``. Errors from func propagate."""
        return self.with_payload(func(self.payload))  # type: ignore[arg-type]


# Registry: Maps each table/payload tag to the record type it holds.
TABLE_RECORD_TYPES: dict[TableTag, type[F1BaseModel]] = {
    TableTag.SEASONS: Season,
    TableTag.DRIVERS: Driver,
    TableTag.CONSTRUCTORS: Constructor,
    TableTag.CIRCUITS: Circuit,
    TableTag.RACES: Race,
    TableTag.STATUS: Status,
}

PAYLOAD_RECORD_TYPES: dict[PayloadTag, type[F1BaseModel]] = {
    PayloadTag.QUALIFYING_RESULTS: QualifyingResult,
    PayloadTag.SPRINT_RESULTS: SprintResult,
    PayloadTag.RACE_RESULTS: RaceResult,
    PayloadTag.LAPS: Lap,
    PayloadTag.PIT_STOPS: PitStop,
    PayloadTag.SCHEDULE: Schedule,
}


@dataclass(frozen=True)
class Table:
    """Tagged table of records; ``items`` holds records of the tag's type, in API order."""

    tag: TableTag
    items: tuple[Any, ...]

    def record_count(self) -> int:
        """
        Number of records as counted by the API's pagination.

        For races with list payloads the API paginates the payload rows, not
        the races.
        """
        if self.tag is not TableTag.RACES:
            return len(self.items)
        return sum(
            len(race.payload.value) if race.payload.is_list else 1 for race in self.items
        )


@dataclass(frozen=True)
class Response:
    """One decoded page. Never mutated; merging pages builds a new Response."""

    info: ResponseInfo
    pagination: Pagination
    table: Table

    def as_info(self) -> ResponseInfo:
        return self.info


# --- Decoding ---


def decode(body: str | bytes | dict[str, Any]) -> Response:
    """
    Decode one page body into a Response.

    Args:
        body: Raw JSON text, or an already parsed JSON object

    Returns:
        The decoded Response

    Raises:
        DecodeError: If the body is malformed or a record fails validation
        UnknownVariantError: If a table or payload tag is not a known variant
        PayloadDecodeError: If a tagged race payload fails to parse
    """
    if isinstance(body, (str, bytes)):
        try:
            body = json.loads(body)
        except ValueError as e:
            raise DecodeError(f"Invalid JSON body: {e}") from e

    mr_data = body.get("MRData") if isinstance(body, dict) else None
    if not isinstance(mr_data, dict):
        raise DecodeError("Response body has no 'MRData' object")

    try:
        info = ResponseInfo.model_validate(mr_data)
        pagination = Pagination.model_validate(mr_data)
    except ValidationError as e:
        raise DecodeError(f"Invalid response metadata: {e}") from e

    return Response(info=info, pagination=pagination, table=_decode_table(mr_data))


def _decode_table(mr_data: dict[str, Any]) -> Table:
    keys = [key for key in mr_data if key.endswith("Table")]
    if not keys:
        raise DecodeError("Response has no table")
    if len(keys) > 1:
        raise DecodeError(f"Response has several tables: {keys}")

    key = keys[0]
    try:
        tag = TableTag(key)
    except ValueError as e:
        raise UnknownVariantError("table", key) from e

    list_key = TABLE_LIST_KEYS[tag]
    table_body = mr_data[key]
    raw_items = table_body.get(list_key) if isinstance(table_body, dict) else None
    if not isinstance(raw_items, list):
        raise DecodeError(f"'{key}' has no '{list_key}' list")

    if tag is TableTag.RACES:
        return Table(tag=tag, items=tuple(_decode_race(raw) for raw in raw_items))

    record_type = TABLE_RECORD_TYPES[tag]
    try:
        items = tuple(record_type.model_validate(raw) for raw in raw_items)
    except ValidationError as e:
        raise DecodeError(f"Failed to decode '{list_key}' records: {e}") from e
    return Table(tag=tag, items=items)


def _decode_race(raw: Any) -> Race[Payload]:
    if not isinstance(raw, dict):
        raise DecodeError(f"Race entry is not an object: {raw!r}")

    # Known payload keys count whatever their value; unknown keys only when list-valued
    tags = [
        key
        for key, value in raw.items()
        if key in PAYLOAD_WIRE_KEYS or isinstance(value, list)
    ]
    if len(tags) > 1:
        raise DecodeError(f"Race has several payloads: {tags}")

    try:
        race: Race[Payload] = Race.model_validate(raw)
    except ValidationError as e:
        raise DecodeError(f"Failed to decode race: {e}") from e

    if not tags:
        try:
            schedule = Schedule.model_validate(raw)
        except ValidationError as e:
            raise PayloadDecodeError(PayloadTag.SCHEDULE.value, e) from e
        return race.with_payload(Payload(PayloadTag.SCHEDULE, schedule))

    key = tags[0]
    try:
        tag = PayloadTag(key)
    except ValueError as e:
        raise UnknownVariantError("payload", key) from e
    if tag is PayloadTag.SCHEDULE:
        raise UnknownVariantError("payload", key)

    if not isinstance(raw[key], list):
        raise PayloadDecodeError(
            key, TypeError(f"expected a list, got {type(raw[key]).__name__}")
        )

    record_type = PAYLOAD_RECORD_TYPES[tag]
    try:
        records = tuple(record_type.model_validate(item) for item in raw[key])
    except ValidationError as e:
        raise PayloadDecodeError(key, e) from e

    return race.with_payload(Payload(tag, records))
