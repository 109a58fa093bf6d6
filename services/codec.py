"""Conversion between typed readings and their JSON representation."""

from __future__ import annotations

import math
from dataclasses import fields
from typing import Callable, Sequence

from pydantic import TypeAdapter, ValidationError

from app.schemas import GeigerRecord, LocationRecord
from models.readings import GeigerReading, LocationReading, Reading, ReadingType
from services.errors import CodecError

MAP_LINK_TEMPLATE = "https://maps.google.com/?q={lat},{long}"


def _location_to_record(reading: LocationReading) -> LocationRecord:
    return LocationRecord(
        lat=reading.lat,
        long=reading.long,
        link=MAP_LINK_TEMPLATE.format(lat=reading.lat, long=reading.long),
        alt=reading.alt,
        speed=reading.speed,
        user=reading.user,
        time=reading.timestamp,
    )


def _location_from_record(record: LocationRecord) -> LocationReading:
    return LocationReading(
        user=record.user,
        timestamp=record.time,
        lat=record.lat,
        long=record.long,
        alt=record.alt,
        speed=record.speed,
    )


def _geiger_to_record(reading: GeigerReading) -> GeigerRecord:
    return GeigerRecord(
        gid=reading.gid,
        cpm=reading.cpm,
        acpm=reading.acpm,
        usv=reading.usv,
        user=reading.user,
        time=reading.timestamp,
    )


def _geiger_from_record(record: GeigerRecord) -> GeigerReading:
    return GeigerReading(
        user=record.user,
        timestamp=record.time,
        gid=record.gid,
        cpm=record.cpm,
        acpm=record.acpm,
        usv=record.usv,
    )


def _require_finite(reading: Reading) -> None:
    for field in fields(reading):
        value = getattr(reading, field.name)
        if isinstance(value, float) and not math.isfinite(value):
            raise CodecError(f"Cannot encode non-finite {field.name}={value!r}.")


class ReadingCodec:
    """Encodes and decodes newest-first reading sequences of a single type.

    Absent optional fields are omitted from the output. Stored records written
    with numeric strings (``"44.44"``, ``"15"``) decode to numbers.
    """

    def __init__(self, reading_type: ReadingType) -> None:
        self.reading_type = reading_type
        if reading_type is ReadingType.location:
            self._adapter: TypeAdapter = TypeAdapter(list[LocationRecord])
            self._reading_cls: type = LocationReading
            self._to_record: Callable = _location_to_record
            self._from_record: Callable = _location_from_record
        else:
            self._adapter = TypeAdapter(list[GeigerRecord])
            self._reading_cls = GeigerReading
            self._to_record = _geiger_to_record
            self._from_record = _geiger_from_record

    def encode(self, readings: Sequence[Reading]) -> bytes:
        records = []
        for reading in readings:
            if not isinstance(reading, self._reading_cls):
                raise CodecError(
                    f"Cannot encode {type(reading).__name__} as a {self.reading_type.value} reading."
                )
            _require_finite(reading)
            records.append(self._to_record(reading))
        return self._adapter.dump_json(records, exclude_none=True)

    def decode(self, data: bytes | str) -> list[Reading]:
        try:
            records = self._adapter.validate_json(data)
        except ValidationError as exc:
            raise CodecError(
                f"Invalid {self.reading_type.value} reading sequence: {exc.error_count()} error(s)."
            ) from exc
        return [self._from_record(record) for record in records]


_CODECS = {reading_type: ReadingCodec(reading_type) for reading_type in ReadingType}


def codec_for(reading_type: ReadingType) -> ReadingCodec:
    return _CODECS[reading_type]
