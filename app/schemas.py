"""Pydantic schemas for the wire and storage representation of readings."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_serializer

from services.errors import ErrorKind


class LocationRecord(BaseModel):
    """A location reading as devices and the log files see it."""

    model_config = ConfigDict(extra="ignore")

    lat: float
    long: float
    link: Optional[str] = Field(
        default=None, description="Map link for the fix; derived, ignored on input."
    )
    alt: Optional[float] = None
    speed: Optional[float] = Field(
        default=None, description="Speed, rendered with exactly two decimals."
    )
    user: str
    time: int = Field(..., description="Ingestion time in seconds since the epoch.")

    @field_serializer("speed")
    def _format_speed(self, speed: Optional[float]) -> Optional[str]:
        if speed is None:
            return None
        return f"{speed:.2f}"


class GeigerRecord(BaseModel):
    """A geiger counter sample as devices and the log files see it."""

    model_config = ConfigDict(extra="ignore")

    gid: Optional[str] = None
    cpm: int
    acpm: Optional[int] = None
    usv: Optional[float] = None
    user: str
    time: int = Field(..., description="Ingestion time in seconds since the epoch.")


class ErrorResponse(BaseModel):
    """Structured error body returned for rejected requests."""

    err: str
    kind: ErrorKind


class HealthResponse(BaseModel):
    status: str = "ok"
