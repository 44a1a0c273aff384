# src/f1_jolpica/ingestion/resource.py
"""
Request paths for Jolpica API resources.

A path is built from the filters in a fixed order, e.g.
``/2023/4/drivers/alonso/results``. The resource key always goes last, carrying
its own filter value if one was given, e.g. ``/constructors/ferrari/drivers/leclerc``
for drivers filtered by both constructor and driver.
"""

from dataclasses import dataclass, field
from enum import Enum
from urllib.parse import urlencode

from ..config import BASE_URL, DEFAULT_PAGE_LIMIT, MAX_PAGE_LIMIT, RESOURCE_CONFIG


class ResourceKind(Enum):
    SEASONS = "seasons"
    DRIVERS = "drivers"
    CONSTRUCTORS = "constructors"
    CIRCUITS = "circuits"
    RACES = "races"
    QUALIFYING = "qualifying"
    SPRINT = "sprint"
    RESULTS = "results"
    STATUS = "status"
    LAPS = "laps"
    PITSTOPS = "pitstops"

    @property
    def path_key(self) -> str:
        return RESOURCE_CONFIG[self.value]["path_key"]

    @property
    def table(self) -> str:
        """Wire key of the table this resource responds with."""
        return RESOURCE_CONFIG[self.value]["table"]


def _fmt(value: object | None) -> str:
    return "" if value is None else f"/{value}"


@dataclass(frozen=True)
class Filters:
    """Optional filters shared by most resources. ``round`` requires ``season``."""

    season: int | None = None
    round: int | None = None
    driver_id: str | None = None
    constructor_id: str | None = None
    circuit_id: str | None = None
    qualifying_pos: int | None = None
    grid_pos: int | None = None
    sprint_pos: int | None = None
    finish_pos: int | None = None
    fastest_lap_rank: int | None = None
    finishing_status: int | None = None

    def __post_init__(self) -> None:
        if self.round is not None and self.season is None:
            raise ValueError("Filters.round cannot be set without Filters.season")

    def formatted_pairs(self) -> list[tuple[str, str]]:
        return [
            ("", _fmt(self.season)),
            ("", _fmt(self.round)),
            ("/drivers", _fmt(self.driver_id)),
            ("/constructors", _fmt(self.constructor_id)),
            ("/circuits", _fmt(self.circuit_id)),
            ("/qualifying", _fmt(self.qualifying_pos)),
            ("/grid", _fmt(self.grid_pos)),
            ("/sprint", _fmt(self.sprint_pos)),
            ("/results", _fmt(self.finish_pos)),
            ("/fastest", _fmt(self.fastest_lap_rank)),
            ("/status", _fmt(self.finishing_status)),
        ]


@dataclass(frozen=True)
class LapTimeFilters:
    """Lap times are only available per race, so season and round are required."""

    season: int
    round: int
    lap: int | None = None
    driver_id: str | None = None

    def formatted_pairs(self) -> list[tuple[str, str]]:
        return [
            ("", _fmt(self.season)),
            ("", _fmt(self.round)),
            ("/laps", _fmt(self.lap)),
            ("/drivers", _fmt(self.driver_id)),
        ]


@dataclass(frozen=True)
class PitStopFilters:
    """Pit stops are only available per race, so season and round are required."""

    season: int
    round: int
    lap: int | None = None
    driver_id: str | None = None
    pit_stop: int | None = None

    def formatted_pairs(self) -> list[tuple[str, str]]:
        return [
            ("", _fmt(self.season)),
            ("", _fmt(self.round)),
            ("/laps", _fmt(self.lap)),
            ("/drivers", _fmt(self.driver_id)),
            ("/pitstops", _fmt(self.pit_stop)),
        ]


@dataclass(frozen=True)
class Page:
    """One page of a resource, as ``limit``/``offset`` query parameters."""

    limit: int = DEFAULT_PAGE_LIMIT
    offset: int = 0

    def __post_init__(self) -> None:
        if not 0 < self.limit <= MAX_PAGE_LIMIT:
            raise ValueError(
                f"Page limit must be between 1 and {MAX_PAGE_LIMIT}, got {self.limit}"
            )
        if self.offset < 0:
            raise ValueError(f"Page offset must not be negative, got {self.offset}")

    @classmethod
    def with_limit(cls, limit: int) -> "Page":
        return cls(limit=limit)

    @classmethod
    def with_max_limit(cls) -> "Page":
        return cls(limit=MAX_PAGE_LIMIT)

    def next(self) -> "Page":
        return Page(limit=self.limit, offset=self.offset + self.limit)


@dataclass(frozen=True)
class Resource:
    """A resource of the API together with the filters applied to it."""

    kind: ResourceKind
    filters: Filters | LapTimeFilters | PitStopFilters = field(default_factory=Filters)

    def __post_init__(self) -> None:
        expected: type = Filters
        if self.kind is ResourceKind.LAPS:
            expected = LapTimeFilters
        elif self.kind is ResourceKind.PITSTOPS:
            expected = PitStopFilters
        if not isinstance(self.filters, expected):
            raise TypeError(
                f"Resource '{self.kind.value}' requires {expected.__name__}, "
                f"got {type(self.filters).__name__}"
            )

    def to_endpoint(self) -> str:
        """
        Build the request path, without base URL or ``.json`` suffix.

        The resource key is moved to the end, keeping its filter value if set.
        """
        resource_key = self.kind.path_key
        pairs = self.filters.formatted_pairs()

        found = next((i for i, (key, _) in enumerate(pairs) if key == resource_key), None)
        resource = pairs.pop(found) if found is not None else (resource_key, "")
        pairs.append(resource)

        return "".join(key + value for key, value in pairs if value or key == resource_key)

    def to_url(self, base_url: str = BASE_URL, page: Page | None = None) -> str:
        """
        Build the full request URL, optionally for a specific page.

        Args:
            base_url: API base URL, without trailing slash
            page: Page to request; None lets the API apply its default page

        Returns:
            The request URL, e.g. ``.../2023/drivers.json?limit=100&offset=0``
        """
        url = f"{base_url.rstrip('/')}{self.to_endpoint()}.json"
        if page is not None:
            url += "?" + urlencode({"limit": page.limit, "offset": page.offset})
        return url
