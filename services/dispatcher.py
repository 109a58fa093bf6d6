"""Request classification: credential gate, type resolution, write or read."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from enum import Enum
from functools import lru_cache
from typing import Callable, NoReturn, Optional

from datastore.reading_log import ReadingLogStore, build_default_store
from models.readings import (
    GeigerReading,
    LocationReading,
    LogKey,
    Reading,
    ReadingRequest,
    ReadingType,
)
from services.credentials import CredentialStore, build_default_credentials
from services.errors import (
    InvalidCredentials,
    MalformedPayload,
    NoCredentials,
    ReadingLogError,
    UnknownType,
)
from settings import get_settings

logger = logging.getLogger(__name__)


class DispatchOutcome(str, Enum):
    """How a successfully authenticated request was handled."""

    write = "write"
    read = "read"
    # Payload fields were submitted but did not form a valid reading.
    malformed = "malformed"


@dataclass(frozen=True)
class DispatchResult:
    outcome: DispatchOutcome
    key: LogKey
    max_count: int
    readings: list[Reading]


class Dispatcher:
    """Routes one sanitized request to the matching reading log.

    A request carrying a valid reading for its type is a write; anything else
    is a history poll. Requests without a username and secret may instead
    carry a device token, which authenticates as ``token_user`` and always
    targets the geiger log with ``token_max_count`` entries.
    """

    def __init__(
        self,
        credentials: CredentialStore,
        store: ReadingLogStore,
        token_user: str = "geiger",
        token_max_count: int = 1000,
        reject_malformed: bool = False,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.credentials = credentials
        self.store = store
        self.token_user = token_user
        self.token_max_count = token_max_count
        self.reject_malformed = reject_malformed
        self._clock = clock

    def dispatch(self, request: ReadingRequest) -> DispatchResult:
        username, reading_type, max_count = self._authenticate(request)
        key = LogKey(reading_type=reading_type, username=username)
        log = self.store.log(key, max_count=max_count)

        reading = self.extract_reading(request, reading_type, username)
        if reading is not None:
            readings = log.push(reading)
            return DispatchResult(DispatchOutcome.write, key, log.max_count, readings)

        outcome = DispatchOutcome.read
        if request.has_payload_for(reading_type):
            logger.warning(
                "Submitted payload did not form a valid reading",
                extra={
                    "reading_type": reading_type.value,
                    "username": username,
                    "outcome": DispatchOutcome.malformed.value,
                },
            )
            if self.reject_malformed:
                raise MalformedPayload()
            outcome = DispatchOutcome.malformed

        readings = log.read(log.max_count)
        return DispatchResult(outcome, key, log.max_count, readings)

    def extract_reading(
        self,
        request: ReadingRequest,
        reading_type: ReadingType,
        username: str,
    ) -> Optional[Reading]:
        """Build a reading when the request satisfies the type's validity rule."""
        timestamp = int(self._clock())
        if reading_type is ReadingType.location:
            if not request.lat or not request.long:
                return None
            return LocationReading(
                user=username,
                timestamp=timestamp,
                lat=request.lat,
                long=request.long,
                alt=request.alt,
                speed=request.speed,
            )

        if not request.cpm:
            return None
        return GeigerReading(
            user=username,
            timestamp=timestamp,
            cpm=request.cpm,
            gid=request.gid,
            acpm=request.acpm,
            usv=request.usv,
        )

    def _authenticate(self, request: ReadingRequest) -> tuple[str, ReadingType, Optional[int]]:
        has_pair = request.username is not None and request.secret is not None
        if not has_pair and not request.token:
            self._reject(NoCredentials(), request.username)

        if not request.username and not request.secret and request.token:
            if not self.credentials.verify(self.token_user, request.token):
                self._reject(InvalidCredentials(), self.token_user)
            return self.token_user, ReadingType.geiger, self.token_max_count

        username = request.username or ""
        if not self.credentials.verify(username, request.secret):
            self._reject(InvalidCredentials(), username)

        reading_type = ReadingType.resolve(request.type)
        if reading_type is None:
            self._reject(UnknownType(), username)

        max_count = request.count if request.count and request.count > 0 else None
        return username, reading_type, max_count

    @staticmethod
    def _reject(error: ReadingLogError, username: Optional[str]) -> NoReturn:
        logger.warning(
            "Request rejected",
            extra={"username": username or None, "error_kind": error.kind.value},
        )
        raise error


@lru_cache
def build_default_dispatcher() -> Dispatcher:
    """Factory that wires the dispatcher from settings."""
    settings = get_settings()
    return Dispatcher(
        credentials=build_default_credentials(),
        store=build_default_store(),
        token_user=settings.token_user,
        token_max_count=settings.token_max_count,
        reject_malformed=settings.reject_malformed,
    )
