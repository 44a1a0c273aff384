"""
Extraction Factory
Maps record types to the table/payload variant that holds them and pulls typed
records out of a decoded Response.

Extraction separates two failure kinds:
- WrongVariantError: the caller asked for a record type the response cannot
  hold (wrong accessor for the request).
- NotFoundError / TooManyError: the response had the right shape but not
  exactly one element where one was expected.
"""

from collections.abc import Sequence
from typing import Any, TypeVar

from ..exceptions import NotFoundError, TooManyError, UnexpectedDataError, WrongVariantError
from .response import (
    PAYLOAD_RECORD_TYPES,
    TABLE_RECORD_TYPES,
    Payload,
    PayloadTag,
    Race,
    Response,
    Table,
    TableTag,
)
from .schemas import DriverLap, Lap, PitStop, Schedule, Timing

T = TypeVar("T")

# Registry: Maps record types to the variant statically associated with them.
TABLE_FACTORY: dict[type[Any], TableTag] = {
    record_type: tag for tag, record_type in TABLE_RECORD_TYPES.items()
}
PAYLOAD_FACTORY: dict[type[Any], PayloadTag] = {
    record_type: tag for tag, record_type in PAYLOAD_RECORD_TYPES.items()
}


def get_table_tag(record_type: type[Any]) -> TableTag:
    """
    Retrieves the table variant that holds a record type.

    Raises:
        ValueError: If the record type is not registered in the factory.
    """
    tag = TABLE_FACTORY.get(record_type)
    if tag is None:
        raise ValueError(
            f"❌ No table registered for record type: '{record_type.__name__}'. "
            f"Supported types: {[t.__name__ for t in TABLE_FACTORY]}"
        )
    return tag


def get_payload_tag(record_type: type[Any]) -> PayloadTag:
    """
    Retrieves the payload variant that holds a record type.

    Raises:
        ValueError: If the record type is not registered in the factory.
    """
    tag = PAYLOAD_FACTORY.get(record_type)
    if tag is None:
        raise ValueError(
            f"❌ No payload registered for record type: '{record_type.__name__}'. "
            f"Supported types: {[t.__name__ for t in PAYLOAD_FACTORY]}"
        )
    return tag


def verify_has_one_element(items: Sequence[T]) -> T:
    """
    Return the only element of a sequence.

    Raises:
        NotFoundError: If the sequence is empty
        TooManyError: If the sequence has two or more elements
    """
    if len(items) == 0:
        raise NotFoundError("Expected exactly one element, found none")
    if len(items) > 1:
        raise TooManyError(len(items))
    return items[0]


# --- Table level ---


def extract(table: Table, record_type: type[T]) -> list[T]:
    """
    Extract every record of a table, which must hold ``record_type``.

    Raises:
        WrongVariantError: If the table holds a different variant
    """
    expected = get_table_tag(record_type)
    if table.tag is not expected:
        raise WrongVariantError(expected.value, table.tag.value)
    return list(table.items)


def extract_one(table: Table, record_type: type[T]) -> T:
    """
    Extract the single record of a table, which must hold ``record_type``.

    Raises:
        WrongVariantError: If the table holds a different variant
        NotFoundError: If the table is empty
        TooManyError: If the table holds several records
    """
    return verify_has_one_element(extract(table, record_type))


# --- Payload level ---


def _payload_of(race: Race[Payload], record_type: type[Any]) -> Payload:
    expected = get_payload_tag(record_type)
    payload = race.payload
    if payload is None or payload.tag is not expected:
        actual = payload.tag.value if payload is not None else "None"
        raise WrongVariantError(expected.value, actual)
    return payload


def extract_payload(race: Race[Payload], record_type: type[T]) -> Race[Any]:
    """
    Turn ``Race[Payload]`` into ``Race[list[T]]``.

    For ``Schedule`` the result is ``Race[Schedule]``, since a race has exactly
    one schedule.

    Raises:
        WrongVariantError: If the race payload holds a different variant
    """
    payload = _payload_of(race, record_type)
    if not payload.is_list:
        return race.with_payload(payload.value)
    return race.with_payload(list(payload.value))


def extract_payload_one(race: Race[Payload], record_type: type[T]) -> Race[T]:
    """
    Turn ``Race[Payload]`` into ``Race[T]``, requiring exactly one payload record.

    Raises:
        WrongVariantError: If the race payload holds a different variant
        NotFoundError: If the payload is empty
        TooManyError: If the payload holds several records
    """
    payload = _payload_of(race, record_type)
    if not payload.is_list:
        raise WrongVariantError(f"list of {record_type.__name__}", payload.tag.value)
    return race.with_payload(verify_has_one_element(payload.value))


# --- Response conveniences ---


def table_list(response: Response, record_type: type[T]) -> list[T]:
    return extract(response.table, record_type)


def single_table_element(response: Response, record_type: type[T]) -> T:
    return extract_one(response.table, record_type)


def races_with_schedule(response: Response) -> list[Race[Schedule]]:
    return [extract_payload(race, Schedule) for race in table_list(response, Race)]


def race_with_schedule(response: Response) -> Race[Schedule]:
    return extract_payload(single_table_element(response, Race), Schedule)


def races_with_session_results(
    response: Response, record_type: type[T]
) -> list[Race[list[T]]]:
    """Every race of the response with all of its session results."""
    return [extract_payload(race, record_type) for race in table_list(response, Race)]


def race_with_session_results(response: Response, record_type: type[T]) -> Race[list[T]]:
    """The only race of the response with all of its session results."""
    return extract_payload(single_table_element(response, Race), record_type)


def races_with_session_result(response: Response, record_type: type[T]) -> list[Race[T]]:
    """Every race of the response, each holding exactly one session result."""
    return [extract_payload_one(race, record_type) for race in table_list(response, Race)]


def race_with_session_result(response: Response, record_type: type[T]) -> Race[T]:
    """The only race of the response, holding exactly one session result."""
    return extract_payload_one(single_table_element(response, Race), record_type)


def driver_lap_from(lap: Lap, driver_id: str) -> DriverLap:
    """
    Flatten a Lap that was requested for a single driver.

    Raises:
        UnexpectedDataError: If the lap does not hold exactly one timing, for that driver
    """
    if len(lap.timings) != 1:
        raise UnexpectedDataError(
            f"Expected one timing for driver '{driver_id}' on lap {lap.number}, "
            f"found {len(lap.timings)}"
        )
    timing = lap.timings[0]
    if timing.driver_id != driver_id:
        raise UnexpectedDataError(
            f"Expected timing for driver '{driver_id}', found '{timing.driver_id}'"
        )
    return DriverLap(number=lap.number, position=timing.position, time=timing.time)


def driver_laps(response: Response, driver_id: str) -> Race[list[DriverLap]]:
    """All laps of one driver in one race, as requested with a driver filter."""
    race = race_with_session_results(response, Lap)
    return race.map(lambda laps: [driver_lap_from(lap, driver_id) for lap in laps])


def lap_timings(response: Response) -> list[Timing]:
    """Every driver's timing for the single lap of a single race."""
    lap: Lap = race_with_session_result(response, Lap).payload  # type: ignore[assignment]
    return list(lap.timings)


def pit_stops(response: Response) -> list[PitStop]:
    """Every pit stop of a single race."""
    return list(race_with_session_results(response, PitStop).payload or [])

