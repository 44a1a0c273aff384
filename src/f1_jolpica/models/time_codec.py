# src/f1_jolpica/models/time_codec.py
"""
Parsers for every time-like string emitted by the Jolpica API.

The API encodes times in several formats depending on the field and on the era
of the data:

- time of day, e.g. race start ``"14:00:00Z"`` or pit stop ``"15:02:11"``
- duration, e.g. lap ``"1:22.327"`` or race total ``"2:05:05.152"``
- delta to the leader, e.g. ``"+2.137"`` or ``"+1:14.240"``

Race times are carried as a pair of raw fields, ``millis`` and ``time``, that
must agree with each other. A handful of historical records are known to be
malformed upstream; those are tolerated explicitly in
``parse_race_time_with_known_bugs`` and nowhere else.
"""

import re
from dataclasses import dataclass
from datetime import time, timedelta

from ..exceptions import TimeParseError

_TIME_OF_DAY = re.compile(r"^(\d{2}):(\d{2}):(\d{2})$")
_DURATION = re.compile(r"^(?:(\d{1,2}):)?(?:([0-5]?\d):)?([0-5]?\d)\.(\d{1,3})$")
_DELTA = re.compile(r"^\+(?:(\d{1,2}):)?(\d{1,3})\.(\d{1,3})$")
_HOURS_MINUTES = re.compile(r"^(\d{1,2}):(\d{1,2})$")

# Tolerance when rebuilding an "H:MM" race time from its millisecond field
BUGGY_TIME_TOLERANCE = timedelta(seconds=60)


def _millis_from_fraction(fraction: str) -> int:
    """Right-pad a 1-3 digit fraction to milliseconds, e.g. '12' -> 120."""
    return int(fraction.ljust(3, "0"))


def parse_time_of_day(value: str) -> time:
    """
    Parse an ``HH:MM:SS`` time of day, with an optional trailing ``Z``.

    Args:
        value: Raw string from the API

    Returns:
        The parsed time of day

    Raises:
        TimeParseError: If the string is not a valid time of day
    """
    raw = value[:-1] if value.endswith("Z") else value
    match = _TIME_OF_DAY.match(raw)
    if not match:
        raise TimeParseError(f"Invalid time of day: '{value}'")

    hours, minutes, seconds = (int(group) for group in match.groups())
    try:
        return time(hours, minutes, seconds)
    except ValueError as e:
        raise TimeParseError(f"Invalid time of day: '{value}' ({e})") from e


def parse_duration(value: str) -> timedelta:
    """
    Parse a ``[[H:]M:]S.fff`` duration, e.g. a lap time or a total race time.

    Args:
        value: Raw string from the API

    Returns:
        The parsed duration

    Raises:
        TimeParseError: If the string is not a valid duration
    """
    match = _DURATION.match(value)
    if not match:
        raise TimeParseError(f"Invalid duration: '{value}'")

    first, second, seconds, fraction = match.groups()
    if second is not None:
        hours, minutes = int(first or 0), int(second)
    else:
        hours, minutes = 0, int(first or 0)

    if minutes >= 60:
        raise TimeParseError(f"Invalid duration: '{value}' (minutes out of range)")

    return timedelta(
        hours=hours,
        minutes=minutes,
        seconds=int(seconds),
        milliseconds=_millis_from_fraction(fraction),
    )


def parse_delta(value: str) -> timedelta:
    """
    Parse a ``+[M:]S.fff`` gap to the leader. The leading ``+`` is mandatory.

    Raises:
        TimeParseError: If the string is not a valid delta
    """
    match = _DELTA.match(value)
    if not match:
        raise TimeParseError(f"Invalid delta: '{value}'")

    minutes, seconds, fraction = match.groups()
    return timedelta(
        minutes=int(minutes or 0),
        seconds=int(seconds),
        milliseconds=_millis_from_fraction(fraction),
    )


def parse_millis(value: str | int) -> timedelta:
    """Parse the integer ``millis`` field that accompanies race times."""
    try:
        millis = int(value)
    except (TypeError, ValueError) as e:
        raise TimeParseError(f"Invalid millis: '{value}'") from e
    if millis < 0:
        raise TimeParseError(f"Invalid millis: '{value}' (negative)")
    return timedelta(milliseconds=millis)


@dataclass(frozen=True)
class QualifyingTime:
    """A qualifying session time; ``duration`` is None when no time was set."""

    duration: timedelta | None = None

    @property
    def is_time_set(self) -> bool:
        return self.duration is not None


NO_TIME_SET = QualifyingTime()


def parse_qualifying_time(value: str) -> QualifyingTime:
    """Parse a Q1/Q2/Q3 field; an empty string means the driver set no time."""
    if value == "":
        return NO_TIME_SET
    return QualifyingTime(parse_duration(value))


@dataclass(frozen=True)
class RaceTime:
    """
    Total elapsed race time and gap to the race leader.

    The leader's RaceTime has a zero delta. Every other driver's delta is
    strictly smaller than their total.
    """

    total: timedelta
    delta: timedelta = timedelta(0)

    @classmethod
    def lead(cls, total: timedelta) -> "RaceTime":
        return cls(total=total)

    @classmethod
    def with_delta(cls, total: timedelta, delta: timedelta) -> "RaceTime":
        if delta >= total:
            raise ValueError(f"Delta {delta} must be less than total {total}")
        return cls(total=total, delta=delta)

    @property
    def is_lead(self) -> bool:
        return self.delta == timedelta(0)


def _check_is_text(value: object) -> None:
    if not isinstance(value, str):
        raise TimeParseError(f"Invalid 'time': {value!r} is not a string")


def parse_race_time(millis: str | int, value: str) -> RaceTime:
    """
    Cross-check the ``millis`` and ``time`` fields of a race result.

    A ``time`` starting with ``+`` is a delta to the leader and the total comes
    from ``millis``. Any other ``time`` is the leader's own total and must match
    ``millis`` exactly.

    Args:
        millis: Total race time in milliseconds
        value: Either the leader's total duration or a ``+`` delta

    Returns:
        The validated RaceTime

    Raises:
        TimeParseError: If either field is invalid or the two disagree
    """
    _check_is_text(value)
    if not value:
        raise TimeParseError(f"Empty 'time' for 'millis: {millis}'")

    total = parse_millis(millis)

    if value.startswith("+"):
        delta = parse_delta(value)
        if not delta:
            raise TimeParseError(f"Delta 'time: {value}' must be positive")
        if delta >= total:
            raise TimeParseError(f"Delta 'time: {value}' must be less than 'millis: {millis}'")
        return RaceTime.with_delta(total, delta)

    if parse_duration(value) != total:
        raise TimeParseError(f"Non-delta 'time: {value}' must match 'millis: {millis}'")
    return RaceTime.lead(total)


def _is_known_rounding_bug(millis: str | int, value: str) -> bool:
    """The one historical result whose ``millis`` is one millisecond short of ``time``."""
    return str(millis) == "8375059" and value == "2:19:35.060"


def parse_race_time_with_known_bugs(millis: str | int, value: str) -> RaceTime | None:
    """
    Parse a race time, tolerating the documented upstream data bugs.

    - ``+-`` prefixed deltas cannot be trusted, so the time is unavailable (None).
    - ``H:MM`` times with no seconds are rebuilt from ``millis`` when the two
      agree to within 60 seconds.
    - One known record off by a single millisecond is accepted as-is.

    Everything else goes through ``parse_race_time`` unchanged.

    Raises:
        TimeParseError: If the time is invalid and matches none of the known bugs
    """
    _check_is_text(value)
    if value.startswith("+-"):
        return None

    match = _HOURS_MINUTES.match(value)
    if match:
        hours, minutes = (int(group) for group in match.groups())
        total = parse_millis(millis)
        if abs(total - timedelta(hours=hours, minutes=minutes)) > BUGGY_TIME_TOLERANCE:
            raise TimeParseError(
                f"Buggy delta 'time: {value}' does not match 'millis: {millis}' to within 60s"
            )
        return RaceTime.lead(total)

    if _is_known_rounding_bug(millis, value):
        return RaceTime.lead(parse_duration(value))

    return parse_race_time(millis, value)
