import json
from typing import Any
from unittest.mock import MagicMock

import pytest

from f1_jolpica.client import ClientConfig, F1Client
from f1_jolpica.exceptions import (
    ExceededMaxPageCountError,
    MultiPageError,
    NotFoundError,
    TooManyError,
)
from f1_jolpica.ingestion.aggregator import MultiPageOption
from f1_jolpica.ingestion.rate_limiter import NoopRateLimiter, RateLimiter, RateLimiterOption
from f1_jolpica.ingestion.resource import Filters, Page, PitStopFilters, Resource, ResourceKind
from f1_jolpica.models.schemas import Driver, QualifyingResult, RaceResult, Schedule


def called_urls(transport: MagicMock) -> list[str]:
    return [c.args[1] for c in transport.fetch.call_args_list]


@pytest.fixture
def client(mock_transport: MagicMock) -> F1Client:
    config = ClientConfig(base_url="https://api.test.com", rate_limiter=RateLimiterOption.none())
    return F1Client(config, transport=mock_transport, sleep=MagicMock())


def test_client_defaults() -> None:
    config = ClientConfig()
    assert config.http_retries == 2
    assert config.multi_page == MultiPageOption()
    assert isinstance(F1Client(config, transport=MagicMock()).rate_limiter, RateLimiter)


def test_clients_can_share_one_limiter() -> None:
    shared = RateLimiter.per_window(quota=500, window_seconds=3600, burst=4)
    option = RateLimiterOption.external(shared)

    first = F1Client(ClientConfig(rate_limiter=option), transport=MagicMock())
    second = F1Client(ClientConfig(rate_limiter=option), transport=MagicMock())

    assert first.rate_limiter is shared
    assert second.rate_limiter is shared


def test_clients_without_transport_share_one_quota() -> None:
    shared = RateLimiter.per_window(quota=500, window_seconds=3600, burst=4)
    option = RateLimiterOption.external(shared)

    clients = [F1Client(ClientConfig(rate_limiter=option)) for _ in range(2)]
    sessions = [client.fetcher.transport.session for client in clients]

    for session in sessions:
        assert session.get_adapter("https://api.jolpi.ca").limiter is shared.limiter


def test_get_driver(
    client: F1Client, mock_transport: MagicMock, make_body: Any, driver_json: dict[str, Any]
) -> None:
    mock_transport.fetch.return_value = (
        200,
        json.dumps(make_body("DriverTable", "Drivers", [driver_json], limit=100)),
    )

    driver = client.get_driver("alonso")

    assert isinstance(driver, Driver)
    assert driver.code == "ALO"
    assert called_urls(mock_transport) == [
        "https://api.test.com/drivers/alonso.json?limit=100&offset=0"
    ]
    assert client.stats["requests_made"] == 1


def test_get_driver_not_found(client: F1Client, mock_transport: MagicMock, make_body: Any) -> None:
    mock_transport.fetch.return_value = (200, json.dumps(make_body("DriverTable", "Drivers", [])))

    with pytest.raises(NotFoundError):
        client.get_driver("nobody")


def test_get_seasons_follows_pages(
    client: F1Client, mock_transport: MagicMock, seasons_body: Any, reply: Any
) -> None:
    mock_transport.fetch.side_effect = [
        reply(seasons_body([2020, 2021], limit=2, offset=0, total=3)),
        reply(seasons_body([2022], limit=2, offset=2, total=3)),
    ]

    seasons = client.get_seasons(Filters(driver_id="alonso"))

    assert [s.season for s in seasons] == [2020, 2021, 2022]
    assert called_urls(mock_transport)[1] == (
        "https://api.test.com/drivers/alonso/seasons.json?limit=2&offset=2"
    )


def test_multi_page_disabled(
    mock_transport: MagicMock, seasons_body: Any, reply: Any
) -> None:
    config = ClientConfig(
        base_url="https://api.test.com",
        rate_limiter=RateLimiterOption.none(),
        multi_page=MultiPageOption.disabled(),
    )
    client = F1Client(config, transport=mock_transport)
    mock_transport.fetch.return_value = reply(seasons_body([2020, 2021], limit=2, total=3))

    with pytest.raises(MultiPageError):
        client.get_seasons()


def test_fetch_single_page_rejects_multi_page(
    client: F1Client, mock_transport: MagicMock, seasons_body: Any, reply: Any
) -> None:
    mock_transport.fetch.return_value = reply(seasons_body([2020], limit=1, total=2))

    with pytest.raises(MultiPageError):
        client.fetch_single_page(Resource(ResourceKind.SEASONS))


def test_get_race_schedule(
    client: F1Client, mock_transport: MagicMock, make_body: Any, race_json: dict[str, Any]
) -> None:
    race_json["Qualifying"] = {"date": "2023-04-29", "time": "10:00:00Z"}
    mock_transport.fetch.return_value = (
        200,
        json.dumps(make_body("RaceTable", "Races", [race_json])),
    )

    race = client.get_race_schedule(2023, 4)

    assert isinstance(race.payload, Schedule)
    assert race.payload.qualifying is not None
    assert called_urls(mock_transport)[0].startswith("https://api.test.com/2023/4/races.json")


def test_get_race_results(
    client: F1Client,
    mock_transport: MagicMock,
    make_body: Any,
    race_json: dict[str, Any],
    make_race_result: Any,
) -> None:
    race_json["Results"] = [make_race_result(1, "verstappen"), make_race_result(2, "alonso")]
    mock_transport.fetch.return_value = (
        200,
        json.dumps(make_body("RaceTable", "Races", [race_json])),
    )

    race = client.get_race_results(2023, 4)

    assert [r.driver.driver_id for r in race.payload] == ["verstappen", "alonso"]
    assert called_urls(mock_transport)[0].startswith("https://api.test.com/2023/4/results.json")


def test_get_session_result_requires_exactly_one(
    client: F1Client,
    mock_transport: MagicMock,
    make_body: Any,
    race_json: dict[str, Any],
    make_race_result: Any,
) -> None:
    race_json["Results"] = [make_race_result(1, "verstappen"), make_race_result(2, "alonso")]
    mock_transport.fetch.return_value = (
        200,
        json.dumps(make_body("RaceTable", "Races", [race_json])),
    )

    with pytest.raises(TooManyError):
        client.get_session_result(RaceResult, Filters(season=2023, round=4))


def test_get_session_result_for_events(
    client: F1Client,
    mock_transport: MagicMock,
    make_body: Any,
    race_json: dict[str, Any],
    driver_json: dict[str, Any],
    make_race_result: Any,
) -> None:
    qualifying = {
        "number": "14",
        "position": "2",
        "Driver": driver_json,
        "Constructor": make_race_result(1)["Constructor"],
        "Q1": "1:41.269",
        "Q2": "1:40.822",
        "Q3": "",
    }
    races = [
        {**race_json, "QualifyingResults": [qualifying]},
        {**race_json, "round": "5", "QualifyingResults": [qualifying]},
    ]
    mock_transport.fetch.return_value = (
        200,
        json.dumps(make_body("RaceTable", "Races", races, total=2)),
    )

    results = client.get_session_result_for_events(
        QualifyingResult, Filters(season=2023, driver_id="alonso")
    )

    assert [race.round for race in results] == [4, 5]
    assert results[0].payload.q1.is_time_set
    assert not results[0].payload.q3.is_time_set


def test_session_results_unsupported_type(client: F1Client) -> None:
    with pytest.raises(ValueError, match="No session resource for record type: 'Driver'"):
        client.get_session_results_for_events(Driver)


def test_get_driver_laps(
    client: F1Client, mock_transport: MagicMock, make_body: Any, race_json: dict[str, Any]
) -> None:
    race_json["Laps"] = [
        {"number": "1", "Timings": [{"driverId": "alonso", "position": "3", "time": "1:50.135"}]},
        {"number": "2", "Timings": [{"driverId": "alonso", "position": "3", "time": "1:46.002"}]},
    ]
    mock_transport.fetch.return_value = (
        200,
        json.dumps(make_body("RaceTable", "Races", [race_json], total=2)),
    )

    race = client.get_driver_laps(2023, 4, "alonso")

    assert [lap.number for lap in race.payload] == [1, 2]
    assert called_urls(mock_transport)[0].startswith(
        "https://api.test.com/2023/4/drivers/alonso/laps.json"
    )


def test_get_pit_stops(
    client: F1Client, mock_transport: MagicMock, make_body: Any, race_json: dict[str, Any]
) -> None:
    race_json["PitStops"] = [
        {"driverId": "alonso", "lap": "10", "stop": "1", "time": "11:22:05", "duration": "21.3"}
    ]
    mock_transport.fetch.return_value = (
        200,
        json.dumps(make_body("RaceTable", "Races", [race_json])),
    )

    stops = client.get_pit_stops(PitStopFilters(season=2023, round=4, driver_id="alonso"))

    assert [s.lap for s in stops] == [10]


def test_no_limiter_option_never_throttles(client: F1Client) -> None:
    assert isinstance(client.rate_limiter, NoopRateLimiter)


def test_fetch_page_is_not_aggregated(
    client: F1Client, mock_transport: MagicMock, seasons_body: Any, reply: Any
) -> None:
    mock_transport.fetch.return_value = reply(seasons_body([2020], limit=1, total=3))

    response = client.fetch_page(Resource(ResourceKind.SEASONS), Page(limit=1, offset=0))

    assert len(response.table.items) == 1
    assert response.pagination.total == 3
    mock_transport.fetch.assert_called_once()


def test_fetch_all_pages_with_max_pages(
    client: F1Client, mock_transport: MagicMock, seasons_body: Any, reply: Any
) -> None:
    mock_transport.fetch.return_value = reply(seasons_body([2020], limit=1, total=3))

    with pytest.raises(ExceededMaxPageCountError):
        client.fetch_all_pages(Resource(ResourceKind.SEASONS), max_pages=2)

    mock_transport.fetch.side_effect = [
        reply(seasons_body([2020], limit=1, offset=0, total=2)),
        reply(seasons_body([2021], limit=1, offset=1, total=2)),
    ]
    response = client.fetch_all_pages(Resource(ResourceKind.SEASONS), max_pages=2)
    assert [s.season for s in response.table.items] == [2020, 2021]
