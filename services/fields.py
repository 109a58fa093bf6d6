"""Sanitization of raw device fields into a ``ReadingRequest``.

Devices submit form-encoded POST bodies (phones) or query strings (geiger
counters that can only issue GET requests). Field names here are the ones the
devices send, not the names used inside the service.
"""

from __future__ import annotations

import math
import re
from typing import Mapping, Optional

from models.readings import ReadingRequest

_FLOAT_CHARS = re.compile(r"[^0-9+\-.]")
_INT_CHARS = re.compile(r"[^0-9+\-]")
_FLOAT_SHAPE = re.compile(r"[+-]?(?:\d+\.?\d*|\.\d+)")
_INT_SHAPE = re.compile(r"[+-]?\d+")
_TAGS = re.compile(r"<[^>]*>?")
_CONTROL = re.compile(r"[\x00-\x1f\x7f]")

# raw field name -> logical payload fields it carries
_PAYLOAD_SOURCES: dict[str, tuple[str, ...]] = {
    "latlong": ("lat", "long"),
    "altitude": ("alt",),
    "speed": ("speed",),
    "GID": ("gid",),
    "CPM": ("cpm",),
    "ACPM": ("acpm",),
    "uSV": ("usv",),
}


def sanitize_float(raw: Optional[str]) -> Optional[float]:
    """Keep digits, one leading sign and one decimal point, then parse."""
    if raw is None:
        return None
    candidate = _FLOAT_CHARS.sub("", raw)
    if not _FLOAT_SHAPE.fullmatch(candidate):
        return None
    value = float(candidate)
    return value if math.isfinite(value) else None


def sanitize_int(raw: Optional[str]) -> Optional[int]:
    if raw is None:
        return None
    candidate = _INT_CHARS.sub("", raw)
    if not _INT_SHAPE.fullmatch(candidate):
        return None
    try:
        return int(candidate)
    except ValueError:
        return None


def sanitize_string(raw: Optional[str]) -> Optional[str]:
    """Strip markup and control characters; surrounding whitespace goes too."""
    if raw is None:
        return None
    return _CONTROL.sub("", _TAGS.sub("", raw)).strip()


def _split_latlong(raw: Optional[str]) -> tuple[Optional[float], Optional[float]]:
    if raw is None:
        return None, None
    parts = raw.split(",")
    lat = sanitize_float(parts[0])
    long = sanitize_float(parts[1]) if len(parts) > 1 else None
    return lat, long


def parse_request_fields(raw: Mapping[str, str]) -> ReadingRequest:
    """Build a ``ReadingRequest`` from raw device fields."""
    lat, long = _split_latlong(raw.get("latlong"))
    type_value = raw.get("type")

    submitted: set[str] = set()
    for name, logical in _PAYLOAD_SOURCES.items():
        if name in raw:
            submitted.update(logical)

    return ReadingRequest(
        username=sanitize_string(raw.get("user")),
        secret=sanitize_string(raw.get("pass")),
        token=sanitize_string(raw.get("AID")) or None,
        type=type_value.strip() if type_value is not None else None,
        count=sanitize_int(raw.get("count")),
        lat=lat,
        long=long,
        alt=sanitize_float(raw.get("altitude")),
        speed=sanitize_float(raw.get("speed")),
        gid=sanitize_string(raw.get("GID")) or None,
        cpm=sanitize_int(raw.get("CPM")),
        acpm=sanitize_int(raw.get("ACPM")),
        usv=sanitize_float(raw.get("uSV")),
        submitted_fields=frozenset(submitted),
    )
