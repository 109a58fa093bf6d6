"""Domain models for the bounded reading logs."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union


class ReadingType(str, Enum):
    """Reading shapes accepted by the service."""

    location = "location"
    geiger = "geiger"

    @classmethod
    def resolve(cls, value: Optional[str]) -> Optional["ReadingType"]:
        """Return the matching member, or ``None`` for anything undeclared."""
        if value is None:
            return None
        try:
            return cls(value)
        except ValueError:
            return None


@dataclass(frozen=True, slots=True)
class LocationReading:
    """A GPS fix with optional altitude and speed."""

    user: str
    timestamp: int
    lat: float
    long: float
    alt: Optional[float] = None
    speed: Optional[float] = None

    def __post_init__(self) -> None:
        if self.speed is not None:
            object.__setattr__(self, "speed", round(self.speed, 2))

    @property
    def reading_type(self) -> ReadingType:
        return ReadingType.location


@dataclass(frozen=True, slots=True)
class GeigerReading:
    """A radiation-counter sample."""

    user: str
    timestamp: int
    cpm: int
    gid: Optional[str] = None
    acpm: Optional[int] = None
    usv: Optional[float] = None

    @property
    def reading_type(self) -> ReadingType:
        return ReadingType.geiger


Reading = Union[LocationReading, GeigerReading]


@dataclass(frozen=True, slots=True)
class LogKey:
    """Identifies one bounded history: a reading type and its owner."""

    reading_type: ReadingType
    username: str

    def __str__(self) -> str:
        return f"{self.reading_type.value}/{self.username}"


@dataclass(frozen=True, slots=True)
class ReadingRequest:
    """Sanitized request fields handed to the dispatcher.

    Numeric payload fields are already parsed; ``None`` means the field was
    absent or could not be parsed.
    """

    username: Optional[str] = None
    secret: Optional[str] = None
    token: Optional[str] = None
    type: Optional[str] = None
    count: Optional[int] = None
    lat: Optional[float] = None
    long: Optional[float] = None
    alt: Optional[float] = None
    speed: Optional[float] = None
    gid: Optional[str] = None
    cpm: Optional[int] = None
    acpm: Optional[int] = None
    usv: Optional[float] = None
    submitted_fields: frozenset[str] = frozenset()

    def has_payload_for(self, reading_type: ReadingType) -> bool:
        """Whether any payload field for ``reading_type`` was submitted at all."""
        return bool(self.submitted_fields & PAYLOAD_FIELDS[reading_type])


PAYLOAD_FIELDS: dict[ReadingType, frozenset[str]] = {
    ReadingType.location: frozenset({"lat", "long", "alt", "speed"}),
    ReadingType.geiger: frozenset({"gid", "cpm", "acpm", "usv"}),
}
