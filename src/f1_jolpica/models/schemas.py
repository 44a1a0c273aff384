"""
F1 Record Schemas
Defines the Pydantic models that the Jolpica API records are decoded into.
Time-like fields are routed through the time codec so every record carries
validated durations, times of day and race times rather than raw strings.
"""

from dataclasses import dataclass
from datetime import date, time, timedelta
from enum import Enum
from typing import Annotated, Any, Literal

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field

from .time_codec import (
    QualifyingTime,
    RaceTime,
    parse_duration,
    parse_qualifying_time,
    parse_race_time_with_known_bugs,
    parse_time_of_day,
)


class F1BaseModel(BaseModel):
    """
    Base model for all F1 record schemas.
    Configures standard behavioral settings for consistency.
    """

    model_config = ConfigDict(
        populate_by_name=True,  # Allow creating models using Pythonic names (aliases)
        extra="ignore",  # Drop unknown fields found in source JSON (e.g. table filter echoes)
        frozen=True,  # Records are immutable once decoded
        arbitrary_types_allowed=True,  # Time codec value types are plain dataclasses
    )


# --- Wire adapters ---


def _nested_duration(value: Any) -> Any:
    """FastestLap wraps its duration as ``{"time": "1:22.327"}``."""
    if isinstance(value, dict):
        value = value.get("time")
    return parse_duration(value) if isinstance(value, str) else value


def _race_time(value: Any) -> Any:
    if isinstance(value, dict):
        return parse_race_time_with_known_bugs(value.get("millis", ""), value.get("time", ""))
    return value


def _optional_number(value: Any) -> Any:
    # Some historical race results carry the literal string "None" as the car number
    return None if value == "None" else value


Duration = Annotated[
    timedelta, BeforeValidator(lambda v: parse_duration(v) if isinstance(v, str) else v)
]
TimeOfDay = Annotated[
    time, BeforeValidator(lambda v: parse_time_of_day(v) if isinstance(v, str) else v)
]
QualifyingTimeField = Annotated[
    QualifyingTime | None,
    BeforeValidator(lambda v: parse_qualifying_time(v) if isinstance(v, str) else v),
]
RaceTimeField = Annotated[RaceTime | None, BeforeValidator(_race_time)]


# --- Positions ---


class PositionKind(Enum):
    """Classification of a finishing position."""

    FINISHED = "finished"
    RETIRED = "R"
    DISQUALIFIED = "D"
    EXCLUDED = "E"
    WITHDRAWN = "W"
    FAILED_TO_QUALIFY = "F"
    NOT_CLASSIFIED = "N"


@dataclass(frozen=True)
class Position:
    """The ``positionText`` of a result: a classified place or a non-finish reason."""

    kind: PositionKind
    place: int | None = None

    @classmethod
    def finished(cls, place: int) -> "Position":
        return cls(PositionKind.FINISHED, place)

    @classmethod
    def parse(cls, value: str) -> "Position":
        """
        Parse a ``positionText`` value.

        Raises:
            ValueError: If the value is neither a known code nor a place number
        """
        if value.isdigit():
            return cls.finished(int(value))
        try:
            kind = PositionKind(value)
        except ValueError as e:
            raise ValueError(f"Unknown position text: '{value}'") from e
        if kind is PositionKind.FINISHED:
            raise ValueError(f"Unknown position text: '{value}'")
        return cls(kind)


PositionField = Annotated[
    Position, BeforeValidator(lambda v: Position.parse(v) if isinstance(v, str) else v)
]


# --- Reference Entities ---


class Season(F1BaseModel):
    """A championship season."""

    season: int = Field(description="The calendar year of the season (e.g., 2024)")
    url: str = Field(description="Wikipedia URL for the season")


class Location(F1BaseModel):
    """Geographic coordinates and locality for an F1 venue."""

    lat: float = Field(description="Latitude of the circuit")
    long: float = Field(description="Longitude of the circuit")
    locality: str = Field(description="City or town where the circuit is located")
    country: str = Field(description="Country where the circuit is located")


class Circuit(F1BaseModel):
    """A racing circuit."""

    circuit_id: str = Field(alias="circuitId", description="Technical identifier (e.g., 'spa')")
    url: str = Field(description="Wikipedia URL for the circuit")
    circuit_name: str = Field(alias="circuitName", description="Official circuit name")
    location: Location = Field(alias="Location", description="Geographic location details")


class Status(F1BaseModel):
    """A finishing status code and how often it occurs."""

    status_id: int = Field(alias="statusId", description="Unique status identifier")
    count: int = Field(description="Number of occurrences for the requested filters")
    status: str = Field(description="Human-readable status (e.g., 'Finished', 'Engine')")


# --- Actor Entities ---


class Driver(F1BaseModel):
    """A driver profile."""

    driver_id: str = Field(
        alias="driverId", description="Technical identifier (e.g., 'max_verstappen')"
    )
    permanent_number: int | None = Field(
        None, alias="permanentNumber", description="Official racing number"
    )
    code: str | None = Field(None, description="Three-letter shorthand (e.g., 'VER')")
    url: str = Field(description="Wikipedia URL for the driver")
    given_name: str = Field(alias="givenName", description="Driver's first/given name")
    family_name: str = Field(alias="familyName", description="Driver's last/family name")
    date_of_birth: date = Field(alias="dateOfBirth", description="Birth date")
    nationality: str = Field(description="Driver nationality")

    def full_name(self) -> str:
        return f"{self.given_name} {self.family_name}"


class Constructor(F1BaseModel):
    """A constructor (team) profile."""

    constructor_id: str = Field(
        alias="constructorId", description="Technical identifier (e.g., 'red_bull')"
    )
    url: str = Field(description="Wikipedia URL for the constructor")
    name: str = Field(description="Official team name")
    nationality: str = Field(description="Team nationality")


# --- Performance Entities (Shared) ---


class AverageSpeed(F1BaseModel):
    """Average speed achieved on a lap."""

    units: Literal["kph"] = Field(description="Unit of measurement")
    speed: float = Field(description="The actual speed value")


class FastestLap(F1BaseModel):
    """Details regarding a driver's fastest lap during a session."""

    rank: int | None = Field(
        None, description="Ranking relative to other drivers (1 = Fastest overall)"
    )
    lap: int = Field(description="The lap number on which the fastest time was set")
    time: Annotated[timedelta, BeforeValidator(_nested_duration)] = Field(
        alias="Time", description="Lap duration"
    )
    average_speed: AverageSpeed | None = Field(
        None, alias="AverageSpeed", description="Speed details for the lap"
    )


# --- Session Payloads ---


class QualifyingResult(F1BaseModel):
    """One driver's qualifying session result."""

    number: int = Field(description="The car number")
    position: int = Field(description="Qualifying rank (1 = Pole Position)")
    driver: Driver = Field(alias="Driver", description="Driver profile")
    constructor: Constructor = Field(alias="Constructor", description="Constructor profile")
    q1: QualifyingTimeField = Field(None, alias="Q1", description="Best time in Q1")
    q2: QualifyingTimeField = Field(None, alias="Q2", description="Best time in Q2")
    q3: QualifyingTimeField = Field(None, alias="Q3", description="Best time in Q3")


class SprintResult(F1BaseModel):
    """One driver's sprint race result."""

    number: int = Field(description="The car number")
    position: int = Field(description="Final finishing position in the Sprint")
    position_text: PositionField = Field(alias="positionText", description="Classification")
    points: float = Field(description="Points awarded for the Sprint finish")
    driver: Driver = Field(alias="Driver", description="Driver profile")
    constructor: Constructor = Field(alias="Constructor", description="Constructor profile")
    grid: int = Field(description="Starting grid position for the Sprint")
    laps: int = Field(description="Laps completed in the Sprint")
    status: str = Field(description="Finishing status")
    time: RaceTimeField = Field(None, alias="Time", description="Total time and gap to leader")
    fastest_lap: FastestLap | None = Field(None, alias="FastestLap", description="Fastest lap")


class RaceResult(F1BaseModel):
    """One driver's Grand Prix result."""

    number: Annotated[int | None, BeforeValidator(_optional_number)] = Field(
        description="The car number, None for a handful of historical entries"
    )
    position: int = Field(description="Final race finishing position")
    position_text: PositionField = Field(alias="positionText", description="Classification")
    points: float = Field(description="Championship points awarded")
    driver: Driver = Field(alias="Driver", description="Driver profile")
    constructor: Constructor = Field(alias="Constructor", description="Constructor profile")
    grid: int = Field(description="Starting grid position")
    laps: int = Field(description="Total laps completed")
    status: str = Field(description="Finishing status (e.g., 'Finished', '+1 Lap', 'Engine')")
    time: RaceTimeField = Field(None, alias="Time", description="Total time and gap to leader")
    fastest_lap: FastestLap | None = Field(None, alias="FastestLap", description="Fastest lap")


class Timing(F1BaseModel):
    """A single driver's timing during a specific lap."""

    driver_id: str = Field(alias="driverId", description="Identifier of the driver")
    position: int = Field(description="Track position on this lap")
    time: Duration = Field(description="Lap time")


class Lap(F1BaseModel):
    """A full lap's worth of timings."""

    number: int = Field(description="The lap number")
    timings: list[Timing] = Field(alias="Timings", description="Driver timings for this lap")


class PitStop(F1BaseModel):
    """A single pit stop."""

    driver_id: str = Field(alias="driverId", description="Identifier of the driver stopping")
    lap: int = Field(description="The lap number on which the stop occurred")
    stop: int = Field(description="The sequence number for this stop")
    time: TimeOfDay = Field(description="The time of day when the stop occurred")
    duration: Duration = Field(description="The time spent in the pits")


class DateTime(F1BaseModel):
    """Date and optional start time of a session."""

    date: date
    time: TimeOfDay | None = None


class Schedule(F1BaseModel):
    """Session dates of a race weekend; every session is optional."""

    first_practice: DateTime | None = Field(None, alias="FirstPractice")
    second_practice: DateTime | None = Field(None, alias="SecondPractice")
    third_practice: DateTime | None = Field(None, alias="ThirdPractice")
    qualifying: DateTime | None = Field(None, alias="Qualifying")
    sprint: DateTime | None = Field(None, alias="Sprint")
    sprint_shootout: DateTime | None = Field(None, alias="SprintShootout")
    sprint_qualifying: DateTime | None = Field(None, alias="SprintQualifying")


@dataclass(frozen=True)
class DriverLap:
    """One lap of a single driver, flattened from a Lap holding only that driver's timing."""

    number: int
    position: int
    time: timedelta
