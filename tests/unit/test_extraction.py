from datetime import timedelta
from typing import Any

import pytest

from f1_jolpica.exceptions import (
    NotFoundError,
    TooManyError,
    UnexpectedDataError,
    WrongVariantError,
)
from f1_jolpica.models.extraction import (
    driver_laps,
    extract_payload_one,
    get_payload_tag,
    get_table_tag,
    lap_timings,
    pit_stops,
    race_with_schedule,
    race_with_session_result,
    race_with_session_results,
    races_with_schedule,
    races_with_session_result,
    single_table_element,
    table_list,
    verify_has_one_element,
)
from f1_jolpica.models.response import PayloadTag, Race, Response, TableTag, decode
from f1_jolpica.models.schemas import (
    Driver,
    DriverLap,
    QualifyingResult,
    RaceResult,
    Schedule,
    Season,
)


@pytest.fixture
def results_response(
    make_body: Any, race_json: dict[str, Any], make_race_result: Any
) -> Response:
    race = {**race_json, "Results": [make_race_result(1, "alonso"), make_race_result(2, "leclerc")]}
    return decode(make_body("RaceTable", "Races", [race]))


@pytest.fixture
def laps_response(make_body: Any, race_json: dict[str, Any]) -> Any:
    def _laps_response(timings_per_lap: list[list[tuple[str, str]]]) -> Response:
        laps = [
            {
                "number": str(number),
                "Timings": [
                    {"driverId": driver_id, "position": "1", "time": lap_time}
                    for driver_id, lap_time in timings
                ],
            }
            for number, timings in enumerate(timings_per_lap, start=1)
        ]
        return decode(make_body("RaceTable", "Races", [{**race_json, "Laps": laps}]))

    return _laps_response


def test_verify_has_one_element() -> None:
    assert verify_has_one_element(["a"]) == "a"

    with pytest.raises(NotFoundError):
        verify_has_one_element([])

    with pytest.raises(TooManyError) as excinfo:
        verify_has_one_element(["a", "b", "c"])
    assert excinfo.value.count == 3


def test_tag_lookups() -> None:
    assert get_table_tag(Season) is TableTag.SEASONS
    assert get_table_tag(Race) is TableTag.RACES
    assert get_payload_tag(RaceResult) is PayloadTag.RACE_RESULTS
    assert get_payload_tag(Schedule) is PayloadTag.SCHEDULE


def test_tag_lookup_unregistered_type() -> None:
    with pytest.raises(ValueError, match="No table registered for record type: 'DriverLap'"):
        get_table_tag(DriverLap)
    with pytest.raises(ValueError, match="No payload registered for record type: 'Driver'"):
        get_payload_tag(Driver)


# --- Table level ---


def test_table_list(seasons_body: Any) -> None:
    seasons = table_list(decode(seasons_body([2021, 2022])), Season)
    assert [s.season for s in seasons] == [2021, 2022]


def test_table_list_wrong_variant(seasons_body: Any) -> None:
    with pytest.raises(WrongVariantError) as excinfo:
        table_list(decode(seasons_body([2023])), Driver)
    assert excinfo.value.expected == "DriverTable"
    assert excinfo.value.actual == "SeasonTable"


def test_single_table_element(seasons_body: Any) -> None:
    assert single_table_element(decode(seasons_body([2023])), Season).season == 2023

    with pytest.raises(NotFoundError):
        single_table_element(decode(seasons_body([])), Season)

    with pytest.raises(TooManyError):
        single_table_element(decode(seasons_body([2022, 2023])), Season)


# --- Payload level ---


def test_race_with_session_results(results_response: Response) -> None:
    race = race_with_session_results(results_response, RaceResult)
    assert [r.driver.driver_id for r in race.payload] == ["alonso", "leclerc"]
    assert race.race_name == "Azerbaijan Grand Prix"


def test_race_with_session_results_wrong_payload(results_response: Response) -> None:
    with pytest.raises(WrongVariantError) as excinfo:
        race_with_session_results(results_response, QualifyingResult)
    assert excinfo.value.expected == "QualifyingResults"
    assert excinfo.value.actual == "Results"


def test_race_with_session_result_requires_one(results_response: Response) -> None:
    with pytest.raises(TooManyError):
        race_with_session_result(results_response, RaceResult)

    with pytest.raises(TooManyError):
        races_with_session_result(results_response, RaceResult)


def test_race_with_session_result_single(
    make_body: Any, race_json: dict[str, Any], make_race_result: Any
) -> None:
    race = {**race_json, "Results": [make_race_result(3, "alonso")]}
    response = decode(make_body("RaceTable", "Races", [race]))

    result = race_with_session_result(response, RaceResult)
    assert result.payload.position == 3

    with pytest.raises(NotFoundError):
        empty = decode(make_body("RaceTable", "Races", [{**race_json, "Results": []}]))
        race_with_session_result(empty, RaceResult)


def test_schedules(make_body: Any, race_json: dict[str, Any]) -> None:
    response = decode(make_body("RaceTable", "Races", [race_json]))

    race = race_with_schedule(response)
    assert isinstance(race.payload, Schedule)
    assert races_with_schedule(response)[0] == race


def test_schedule_cannot_be_extracted_as_single_record(
    make_body: Any, race_json: dict[str, Any]
) -> None:
    race = decode(make_body("RaceTable", "Races", [race_json])).table.items[0]
    with pytest.raises(WrongVariantError):
        extract_payload_one(race, Schedule)


def test_schedule_of_results_race_is_wrong_variant(results_response: Response) -> None:
    with pytest.raises(WrongVariantError):
        race_with_schedule(results_response)


# --- Laps and pit stops ---


def test_driver_laps(laps_response: Any) -> None:
    response = laps_response([[("alonso", "1:50.135")], [("alonso", "1:46.002")]])

    race = driver_laps(response, "alonso")
    assert race.payload == [
        DriverLap(number=1, position=1, time=timedelta(minutes=1, seconds=50, milliseconds=135)),
        DriverLap(number=2, position=1, time=timedelta(minutes=1, seconds=46, milliseconds=2)),
    ]


def test_driver_laps_wrong_driver(laps_response: Any) -> None:
    response = laps_response([[("leclerc", "1:50.135")]])
    with pytest.raises(UnexpectedDataError, match="found 'leclerc'"):
        driver_laps(response, "alonso")


def test_driver_laps_several_timings(laps_response: Any) -> None:
    response = laps_response([[("alonso", "1:50.135"), ("leclerc", "1:51.000")]])
    with pytest.raises(UnexpectedDataError, match="found 2"):
        driver_laps(response, "alonso")


def test_lap_timings(laps_response: Any) -> None:
    response = laps_response([[("alonso", "1:50.135"), ("leclerc", "1:51.000")]])
    assert [t.driver_id for t in lap_timings(response)] == ["alonso", "leclerc"]

    with pytest.raises(TooManyError):
        lap_timings(laps_response([[("alonso", "1:50.135")], [("alonso", "1:46.002")]]))


def test_pit_stops(make_body: Any, race_json: dict[str, Any]) -> None:
    stops = [
        {"driverId": "alonso", "lap": "10", "stop": "1", "time": "11:22:05", "duration": "21.3"},
        {"driverId": "alonso", "lap": "31", "stop": "2", "time": "11:58:40", "duration": "20.9"},
    ]
    response = decode(make_body("RaceTable", "Races", [{**race_json, "PitStops": stops}]))
    assert [s.stop for s in pit_stops(response)] == [1, 2]
