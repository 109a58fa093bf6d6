from __future__ import annotations

import pytest

from models.readings import ReadingType
from services.fields import parse_request_fields, sanitize_float, sanitize_int, sanitize_string


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("44.44444444", 44.44444444),
        ("-118.11111111", -118.11111111),
        ("+7", 7.0),
        (" 0.04 km/h", 0.04),
        ("12abc.5", 12.5),
        (".5", 0.5),
        ("1.2.3", None),
        ("1-2", None),
        ("--1", None),
        ("abc", None),
        ("9" * 400, None),
        ("-" + "9" * 400 + ".5", None),
        ("", None),
        (None, None),
    ],
)
def test_sanitize_float(raw, expected) -> None:
    assert sanitize_float(raw) == expected


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("15", 15),
        ("1,000", 1000),
        ("-3", -3),
        ("1.5", 15),
        ("x", None),
        (None, None),
        ("1" * 5000, None),
    ],
)
def test_sanitize_int(raw, expected) -> None:
    assert sanitize_int(raw) == expected


def test_sanitize_string_strips_markup_and_control_characters() -> None:
    assert sanitize_string(" <b>user</b>\n") == "user"
    assert sanitize_string("") == ""
    assert sanitize_string(None) is None


def test_parse_location_form() -> None:
    request = parse_request_fields(
        {
            "user": "user",
            "pass": "password",
            "type": "location",
            "count": "25",
            "latlong": "44.44444444,-118.11111111",
            "altitude": "-7.0",
            "speed": "0.04444444",
        }
    )

    assert request.username == "user"
    assert request.secret == "password"
    assert request.type == "location"
    assert request.count == 25
    assert (request.lat, request.long) == (44.44444444, -118.11111111)
    assert request.alt == -7.0
    assert request.speed == 0.04444444
    assert request.has_payload_for(ReadingType.location)
    assert not request.has_payload_for(ReadingType.geiger)


def test_parse_geiger_query() -> None:
    request = parse_request_fields(
        {"AID": "0123456789", "GID": "0034021", "CPM": "15", "ACPM": "14", "uSV": "0.075"}
    )

    assert request.username is None
    assert request.secret is None
    assert request.token == "0123456789"
    assert request.gid == "0034021"
    assert (request.cpm, request.acpm, request.usv) == (15, 14, 0.075)
    assert request.has_payload_for(ReadingType.geiger)


def test_latlong_without_longitude() -> None:
    request = parse_request_fields({"latlong": "44.4"})

    assert request.lat == 44.4
    assert request.long is None
    assert request.has_payload_for(ReadingType.location)


def test_empty_request() -> None:
    request = parse_request_fields({})

    assert request.username is None
    assert request.token is None
    assert request.count is None
    assert request.submitted_fields == frozenset()


def test_oversized_numbers_are_treated_as_absent() -> None:
    request = parse_request_fields(
        {"latlong": "9" * 400 + ",1", "count": "1" * 5000, "CPM": "7" * 5000, "ACPM": "2" * 5000}
    )

    assert request.lat is None
    assert request.long == 1.0
    assert request.count is None
    assert request.cpm is None
    assert request.acpm is None
    assert request.has_payload_for(ReadingType.location)
