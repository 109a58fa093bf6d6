"""Tests for request classification and routing to reading logs."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from datastore.reading_log import ReadingLogStore
from models.readings import GeigerReading, LocationReading, LogKey, ReadingRequest, ReadingType
from services.codec import codec_for
from services.credentials import CredentialStore
from services.dispatcher import DispatchOutcome, Dispatcher
from services.errors import (
    ErrorKind,
    InvalidCredentials,
    MalformedPayload,
    NoCredentials,
    StorageFailure,
    UnknownType,
)
from storage.record_store import RecordStore

USERS = {"user": "password", "geiger": "0123456789"}


class FakeClock:
    def __init__(self, start: int = 1700000000) -> None:
        self.now = start

    def __call__(self) -> float:
        self.now += 1
        return float(self.now)


@pytest.fixture()
def store(tmp_path: Path) -> ReadingLogStore:
    return ReadingLogStore(RecordStore(name="test", root_path=tmp_path), default_max_count=10)


@pytest.fixture()
def dispatcher(store: ReadingLogStore) -> Dispatcher:
    return Dispatcher(
        credentials=CredentialStore(USERS),
        store=store,
        token_user="geiger",
        token_max_count=1000,
        clock=FakeClock(),
    )


def _location_request(lat: float | None, long: float | None, **extra) -> ReadingRequest:
    submitted = {"lat", "long"} | {name for name in ("alt", "speed") if name in extra}
    return ReadingRequest(
        username="user",
        secret="password",
        type="location",
        lat=lat,
        long=long,
        submitted_fields=frozenset(submitted),
        **extra,
    )


def _poll(reading_type: str = "location", count: int | None = None) -> ReadingRequest:
    return ReadingRequest(username="user", secret="password", type=reading_type, count=count)


def test_no_credentials(dispatcher: Dispatcher) -> None:
    with pytest.raises(NoCredentials) as excinfo:
        dispatcher.dispatch(ReadingRequest(type="location"))

    assert excinfo.value.kind is ErrorKind.no_credentials


def test_username_without_secret_is_no_credentials(dispatcher: Dispatcher) -> None:
    with pytest.raises(NoCredentials):
        dispatcher.dispatch(ReadingRequest(username="user", type="location"))


@pytest.mark.parametrize(
    "request_",
    [
        ReadingRequest(username="user", secret="wrong", type="location"),
        ReadingRequest(username="nobody", secret="password", type="location"),
        ReadingRequest(username="", secret="", type="location"),
        ReadingRequest(token="not-the-token"),
    ],
)
def test_invalid_credentials(dispatcher: Dispatcher, request_: ReadingRequest) -> None:
    with pytest.raises(InvalidCredentials):
        dispatcher.dispatch(request_)


def test_credentials_are_checked_before_type(dispatcher: Dispatcher) -> None:
    with pytest.raises(InvalidCredentials):
        dispatcher.dispatch(ReadingRequest(username="user", secret="wrong", type="weather"))


@pytest.mark.parametrize("type_", ["weather", "Location", "", None])
def test_unknown_type(dispatcher: Dispatcher, type_) -> None:
    with pytest.raises(UnknownType):
        dispatcher.dispatch(ReadingRequest(username="user", secret="password", type=type_))


def test_location_scenario(dispatcher: Dispatcher) -> None:
    first = dispatcher.dispatch(_location_request(44.44, -118.11, speed=0.04))

    assert first.outcome is DispatchOutcome.write
    assert first.key == LogKey(ReadingType.location, "user")
    assert len(first.readings) == 1
    encoded = json.loads(codec_for(ReadingType.location).encode(first.readings))
    assert encoded[0]["speed"] == "0.04"

    dispatcher.dispatch(_location_request(45.0, -119.0))
    polled = dispatcher.dispatch(_poll())

    assert polled.outcome is DispatchOutcome.read
    assert [(r.lat, r.long) for r in polled.readings] == [(45.0, -119.0), (44.44, -118.11)]

    for index in range(9):
        dispatcher.dispatch(_location_request(10.0 + index, 20.0))

    polled = dispatcher.dispatch(_poll())
    assert len(polled.readings) == 10
    assert polled.readings[0].lat == 18.0
    assert all(r.lat != 44.44 for r in polled.readings)


def test_write_returns_post_push_sequence_with_timestamps(dispatcher: Dispatcher) -> None:
    dispatcher.dispatch(_location_request(1.0, 2.0))
    result = dispatcher.dispatch(_location_request(3.0, 4.0, alt=-7.0))

    assert [r.lat for r in result.readings] == [3.0, 1.0]
    assert result.readings[0].timestamp > result.readings[1].timestamp
    assert result.readings[0] == LocationReading(
        user="user", timestamp=result.readings[0].timestamp, lat=3.0, long=4.0, alt=-7.0
    )


def test_count_caps_read_without_mutating(dispatcher: Dispatcher, store: ReadingLogStore) -> None:
    for index in range(6):
        dispatcher.dispatch(_location_request(1.0 + index, 2.0))

    assert len(dispatcher.dispatch(_poll(count=3)).readings) == 3
    assert len(dispatcher.dispatch(_poll(count=50)).readings) == 6
    assert len(store.log(LogKey(ReadingType.location, "user")).read(100)) == 6


def test_write_count_sets_truncation_for_that_write(dispatcher: Dispatcher) -> None:
    for index in range(15):
        result = dispatcher.dispatch(
            ReadingRequest(
                username="user",
                secret="password",
                type="location",
                count=20,
                lat=1.0 + index,
                long=2.0,
            )
        )

    assert len(result.readings) == 15
    assert len(dispatcher.dispatch(_poll()).readings) == 10
    assert len(dispatcher.dispatch(_poll(count=20)).readings) == 15


@pytest.mark.parametrize("count", [0, -5])
def test_non_positive_count_uses_default(dispatcher: Dispatcher, count: int) -> None:
    result = dispatcher.dispatch(_poll(count=count))

    assert result.max_count == 10


def test_geiger_token_path(dispatcher: Dispatcher, store: ReadingLogStore) -> None:
    result = dispatcher.dispatch(
        ReadingRequest(token="0123456789", cpm=15, gid="0034021", submitted_fields=frozenset({"cpm", "gid"}))
    )

    assert result.outcome is DispatchOutcome.write
    assert result.key == LogKey(ReadingType.geiger, "geiger")
    assert result.max_count == 1000
    assert result.readings == [
        GeigerReading(user="geiger", timestamp=result.readings[0].timestamp, cpm=15, gid="0034021")
    ]

    polled = dispatcher.dispatch(ReadingRequest(token="0123456789"))
    assert polled.outcome is DispatchOutcome.read
    assert polled.max_count == 1000
    assert len(polled.readings) == 1
    assert store.log(LogKey(ReadingType.location, "geiger")).read() == []


def test_token_path_keeps_many_readings(dispatcher: Dispatcher) -> None:
    for cpm in range(1, 26):
        dispatcher.dispatch(ReadingRequest(token="0123456789", cpm=cpm))

    polled = dispatcher.dispatch(ReadingRequest(token="0123456789"))

    assert len(polled.readings) == 25
    assert polled.readings[0].cpm == 25


def test_token_ignored_when_credentials_supplied(dispatcher: Dispatcher) -> None:
    result = dispatcher.dispatch(
        ReadingRequest(username="user", secret="password", type="location", token="0123456789")
    )

    assert result.key == LogKey(ReadingType.location, "user")


def test_geiger_with_credentials(dispatcher: Dispatcher) -> None:
    result = dispatcher.dispatch(
        ReadingRequest(username="user", secret="password", type="geiger", cpm=22, usv=0.1)
    )

    assert result.key == LogKey(ReadingType.geiger, "user")
    assert result.max_count == 10
    assert result.readings[0].usv == 0.1


@pytest.mark.parametrize(
    ("lat", "long"),
    [(44.4, None), (None, -118.1), (0.0, -118.1), (44.4, 0.0)],
)
def test_invalid_location_payload_degrades_to_read(dispatcher: Dispatcher, lat, long) -> None:
    dispatcher.dispatch(_location_request(1.0, 2.0))

    result = dispatcher.dispatch(_location_request(lat, long))

    assert result.outcome is DispatchOutcome.malformed
    assert len(result.readings) == 1


def test_zero_cpm_is_not_stored(dispatcher: Dispatcher) -> None:
    result = dispatcher.dispatch(
        ReadingRequest(token="0123456789", cpm=0, submitted_fields=frozenset({"cpm"}))
    )

    assert result.outcome is DispatchOutcome.malformed
    assert result.readings == []


def test_malformed_payload_can_be_rejected(store: ReadingLogStore) -> None:
    strict = Dispatcher(
        credentials=CredentialStore(USERS), store=store, reject_malformed=True, clock=FakeClock()
    )

    with pytest.raises(MalformedPayload):
        strict.dispatch(_location_request(44.4, None))

    assert strict.dispatch(_poll()).outcome is DispatchOutcome.read


def test_storage_failure_propagates(dispatcher: Dispatcher, store: ReadingLogStore, monkeypatch) -> None:
    def broken_put(key: str, data: bytes) -> None:
        raise OSError("disk full")

    monkeypatch.setattr(store.records, "put_record", broken_put)

    with pytest.raises(StorageFailure):
        dispatcher.dispatch(_location_request(1.0, 2.0))
