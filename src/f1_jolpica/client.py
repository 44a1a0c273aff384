# src/f1_jolpica/client.py
"""
F1 Jolpica Client
Typed access to the Jolpica (Ergast-compatible) F1 API.

Every request goes through the same pipeline:
rate limiter -> retried transport -> decode -> (multi-page merge) -> extraction.
"""

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import TypeVar

from .config import BASE_URL, HTTP_RETRIES, LOCAL_BASE_URL, RETRY_WAIT, USE_LOCAL_API
from .ingestion.aggregator import MultiPageAggregator, MultiPageOption, verify_is_single_page
from .ingestion.fetcher import PageFetcher, Transport
from .ingestion.rate_limiter import RateLimiterOption
from .ingestion.resource import (
    Filters,
    LapTimeFilters,
    Page,
    PitStopFilters,
    Resource,
    ResourceKind,
)
from .models.extraction import (
    driver_laps,
    lap_timings,
    pit_stops,
    race_with_schedule,
    race_with_session_result,
    race_with_session_results,
    races_with_schedule,
    races_with_session_result,
    races_with_session_results,
    single_table_element,
    table_list,
)
from .models.response import Race, Response
from .models.schemas import (
    Circuit,
    Constructor,
    Driver,
    DriverLap,
    PitStop,
    QualifyingResult,
    RaceResult,
    Schedule,
    Season,
    SprintResult,
    Status,
    Timing,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Session result record type for each race-level resource
SESSION_RESOURCES: dict[type, ResourceKind] = {
    QualifyingResult: ResourceKind.QUALIFYING,
    SprintResult: ResourceKind.SPRINT,
    RaceResult: ResourceKind.RESULTS,
}


def _default_base_url() -> str:
    return LOCAL_BASE_URL if USE_LOCAL_API else BASE_URL


def _default_rate_limiter() -> RateLimiterOption:
    return RateLimiterOption.none() if USE_LOCAL_API else RateLimiterOption.internal()


@dataclass(frozen=True)
class ClientConfig:
    """Runtime options of an F1Client; defaults come from the environment."""

    base_url: str = field(default_factory=_default_base_url)
    multi_page: MultiPageOption = field(default_factory=MultiPageOption)
    http_retries: int = HTTP_RETRIES
    retry_wait: float = RETRY_WAIT
    rate_limiter: RateLimiterOption = field(default_factory=_default_rate_limiter)


class F1Client:
    """
    Client for the Jolpica F1 API.

    Features:
    - Shared or owned rate limiting
    - Retries on transport failures only
    - Transparent multi-page aggregation with consistency checks
    - Typed extraction of seasons, drivers, results, laps and pit stops
    """

    def __init__(
        self,
        config: ClientConfig | None = None,
        transport: Transport | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        """
        Args:
            config: Client options; defaults to ClientConfig()
            transport: Optional pre-configured transport (e.g. a mock in tests)
            sleep: Blocking sleep used between retries
        """
        self.config = config or ClientConfig()
        self.rate_limiter = self.config.rate_limiter.resolve()
        self.fetcher = PageFetcher(
            rate_limiter=self.rate_limiter,
            transport=transport,
            base_url=self.config.base_url,
            max_attempts=self.config.http_retries + 1,
            retry_wait=self.config.retry_wait,
            sleep=sleep,
        )
        logger.debug(
            f"🚀 F1Client ready | Base URL: {self.config.base_url} | "
            f"Limiter: {self.config.rate_limiter.mode.value} | "
            f"Multi-page: {self.config.multi_page}"
        )

    @property
    def stats(self) -> dict[str, int | float]:
        return self.fetcher.stats.to_dict()

    # --- Core operations ---

    def fetch_page(self, resource: Resource, page: Page) -> Response:
        """Fetch exactly one page of a resource, as requested."""
        return self.fetcher.fetch_page(resource, page)

    def fetch_single_page(self, resource: Resource) -> Response:
        """
        Fetch a resource that must fit in one page of the maximum size.

        Raises:
            MultiPageError: If the response spans several pages
        """
        return verify_is_single_page(self.fetcher.fetch_page(resource, Page.with_max_limit()))

    def fetch_all_pages(self, resource: Resource, max_pages: int | None = None) -> Response:
        """Fetch every page of a resource and merge them into one Response."""
        option = MultiPageOption.with_max_pages(max_pages)
        return MultiPageAggregator(self.fetcher, option).fetch(resource)

    def get_response(self, resource: Resource) -> Response:
        """Fetch a resource, following pagination as configured."""
        return MultiPageAggregator(self.fetcher, self.config.multi_page).fetch(resource)

    def _get_list(self, kind: ResourceKind, filters: Filters, record_type: type[T]) -> list[T]:
        return table_list(self.get_response(Resource(kind, filters)), record_type)

    def _get_one(self, kind: ResourceKind, filters: Filters, record_type: type[T]) -> T:
        return single_table_element(self.get_response(Resource(kind, filters)), record_type)

    # --- Reference data ---

    def get_seasons(self, filters: Filters | None = None) -> list[Season]:
        return self._get_list(ResourceKind.SEASONS, filters or Filters(), Season)

    def get_season(self, season: int) -> Season:
        return self._get_one(ResourceKind.SEASONS, Filters(season=season), Season)

    def get_drivers(self, filters: Filters | None = None) -> list[Driver]:
        return self._get_list(ResourceKind.DRIVERS, filters or Filters(), Driver)

    def get_driver(self, driver_id: str) -> Driver:
        return self._get_one(ResourceKind.DRIVERS, Filters(driver_id=driver_id), Driver)

    def get_constructors(self, filters: Filters | None = None) -> list[Constructor]:
        return self._get_list(ResourceKind.CONSTRUCTORS, filters or Filters(), Constructor)

    def get_constructor(self, constructor_id: str) -> Constructor:
        filters = Filters(constructor_id=constructor_id)
        return self._get_one(ResourceKind.CONSTRUCTORS, filters, Constructor)

    def get_circuits(self, filters: Filters | None = None) -> list[Circuit]:
        return self._get_list(ResourceKind.CIRCUITS, filters or Filters(), Circuit)

    def get_circuit(self, circuit_id: str) -> Circuit:
        return self._get_one(ResourceKind.CIRCUITS, Filters(circuit_id=circuit_id), Circuit)

    def get_statuses(self, filters: Filters | None = None) -> list[Status]:
        return self._get_list(ResourceKind.STATUS, filters or Filters(), Status)

    # --- Race schedules ---

    def get_race_schedules(self, filters: Filters | None = None) -> list[Race[Schedule]]:
        resource = Resource(ResourceKind.RACES, filters or Filters())
        return races_with_schedule(self.get_response(resource))

    def get_race_schedule(self, season: int, round: int) -> Race[Schedule]:
        resource = Resource(ResourceKind.RACES, Filters(season=season, round=round))
        return race_with_schedule(self.get_response(resource))

    # --- Session results ---

    def _session_response(self, record_type: type, filters: Filters) -> Response:
        kind = SESSION_RESOURCES.get(record_type)
        if kind is None:
            raise ValueError(
                f"❌ No session resource for record type: '{record_type.__name__}'. "
                f"Supported types: {[t.__name__ for t in SESSION_RESOURCES]}"
            )
        return self.get_response(Resource(kind, filters))

    def get_session_results_for_events(
        self, record_type: type[T], filters: Filters | None = None
    ) -> list[Race[list[T]]]:
        """Every matching race with all of its session results, e.g. a season of results."""
        response = self._session_response(record_type, filters or Filters())
        return races_with_session_results(response, record_type)

    def get_session_results_for_event(
        self, record_type: type[T], season: int, round: int
    ) -> Race[list[T]]:
        """One race with all of its session results."""
        response = self._session_response(record_type, Filters(season=season, round=round))
        return race_with_session_results(response, record_type)

    def get_session_result_for_events(
        self, record_type: type[T], filters: Filters
    ) -> list[Race[T]]:
        """Every matching race, each with exactly one result, e.g. one driver's season."""
        response = self._session_response(record_type, filters)
        return races_with_session_result(response, record_type)

    def get_session_result(self, record_type: type[T], filters: Filters) -> Race[T]:
        """One race with exactly one result, e.g. one driver in one race."""
        response = self._session_response(record_type, filters)
        return race_with_session_result(response, record_type)

    def get_race_results(self, season: int, round: int) -> Race[list[RaceResult]]:
        return self.get_session_results_for_event(RaceResult, season, round)

    def get_qualifying_results(self, season: int, round: int) -> Race[list[QualifyingResult]]:
        return self.get_session_results_for_event(QualifyingResult, season, round)

    def get_sprint_results(self, season: int, round: int) -> Race[list[SprintResult]]:
        return self.get_session_results_for_event(SprintResult, season, round)

    # --- Laps and pit stops ---

    def get_driver_laps(self, season: int, round: int, driver_id: str) -> Race[list[DriverLap]]:
        filters = LapTimeFilters(season=season, round=round, driver_id=driver_id)
        return driver_laps(self.get_response(Resource(ResourceKind.LAPS, filters)), driver_id)

    def get_lap_timings(self, season: int, round: int, lap: int) -> list[Timing]:
        filters = LapTimeFilters(season=season, round=round, lap=lap)
        return lap_timings(self.get_response(Resource(ResourceKind.LAPS, filters)))

    def get_pit_stops(self, filters: PitStopFilters) -> list[PitStop]:
        return pit_stops(self.get_response(Resource(ResourceKind.PITSTOPS, filters)))
