import json
from typing import Any, Callable
from unittest.mock import MagicMock

import pytest


@pytest.fixture
def mock_env(monkeypatch):
    """
    Sets up a mock environment for testing.
    Ensures no real API calls are attempted.
    """
    env_vars = {
        "API_BASE_URL": "https://api.test.com",
        "API_PAGE_LIMIT": "10",
        "API_MAX_PAGE_LIMIT": "100",
        "HTTP_RETRIES": "1",
        "RETRY_WAIT": "0",
        "LOCAL_JOLPICA": "",
    }
    for key, value in env_vars.items():
        monkeypatch.setenv(key, value)
    return env_vars


# --- Sample records, as served by the API ---

DRIVER = {
    "driverId": "alonso",
    "permanentNumber": "14",
    "code": "ALO",
    "url": "http://en.wikipedia.org/wiki/Fernando_Alonso",
    "givenName": "Fernando",
    "familyName": "Alonso",
    "dateOfBirth": "1981-07-29",
    "nationality": "Spanish",
}

CONSTRUCTOR = {
    "constructorId": "aston_martin",
    "url": "http://en.wikipedia.org/wiki/Aston_Martin_in_Formula_One",
    "name": "Aston Martin",
    "nationality": "British",
}

CIRCUIT = {
    "circuitId": "baku",
    "url": "http://en.wikipedia.org/wiki/Baku_City_Circuit",
    "circuitName": "Baku City Circuit",
    "Location": {"lat": "40.3725", "long": "49.8533", "locality": "Baku", "country": "Azerbaijan"},
}

RACE = {
    "season": "2023",
    "round": "4",
    "url": "https://en.wikipedia.org/wiki/2023_Azerbaijan_Grand_Prix",
    "raceName": "Azerbaijan Grand Prix",
    "Circuit": CIRCUIT,
    "date": "2023-04-30",
    "time": "11:00:00Z",
}


def _race_result(position: int, driver_id: str = "alonso", time: Any = None) -> dict[str, Any]:
    result = {
        "number": "14",
        "position": str(position),
        "positionText": str(position),
        "points": "12",
        "Driver": {**DRIVER, "driverId": driver_id},
        "Constructor": CONSTRUCTOR,
        "grid": "6",
        "laps": "51",
        "status": "Finished",
        "FastestLap": {
            "rank": "6",
            "lap": "51",
            "Time": {"time": "1:45.011"},
            "AverageSpeed": {"units": "kph", "speed": "205.8"},
        },
    }
    if time is not None:
        result["Time"] = time
    return result


@pytest.fixture
def driver_json() -> dict[str, Any]:
    return dict(DRIVER)


@pytest.fixture
def race_json() -> dict[str, Any]:
    return dict(RACE)


@pytest.fixture
def make_race_result() -> Callable[..., dict[str, Any]]:
    """Returns a builder for RaceResult records."""
    return _race_result


@pytest.fixture
def make_body() -> Callable[..., dict[str, Any]]:
    """
    Returns a builder for MRData page bodies.

    Usage: make_body("DriverTable", "Drivers", [DRIVER], limit=30, offset=0, total=1)
    """

    def _make_body(
        table_key: str,
        list_key: str,
        items: list[Any],
        limit: int = 30,
        offset: int = 0,
        total: int | None = None,
        series: str = "f1",
    ) -> dict[str, Any]:
        return {
            "MRData": {
                "xmlns": "",
                "series": series,
                "url": "https://api.jolpi.ca/ergast/f1/test.json",
                "limit": str(limit),
                "offset": str(offset),
                "total": str(len(items) if total is None else total),
                table_key: {list_key: items},
            }
        }

    return _make_body


@pytest.fixture
def seasons_body(make_body) -> Callable[..., dict[str, Any]]:
    """Returns a builder for SeasonTable pages holding the given years."""

    def _seasons_body(years: list[int], **kwargs: Any) -> dict[str, Any]:
        items = [
            {"season": str(year), "url": f"https://en.wikipedia.org/wiki/{year}_Formula_One"}
            for year in years
        ]
        return make_body("SeasonTable", "Seasons", items, **kwargs)

    return _seasons_body


@pytest.fixture
def mock_transport() -> MagicMock:
    """Returns a transport mock; set ``.fetch.return_value`` or ``.side_effect`` per test."""
    return MagicMock()


def as_reply(body: dict[str, Any]) -> tuple[int, str]:
    return 200, json.dumps(body)


@pytest.fixture
def reply() -> Callable[[dict[str, Any]], tuple[int, str]]:
    """Returns a helper turning a body into a transport reply."""
    return as_reply
