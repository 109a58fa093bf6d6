"""Error taxonomy surfaced to callers as structured responses."""

from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    no_credentials = "NoCredentials"
    invalid_credentials = "InvalidCredentials"
    unknown_type = "UnknownType"
    malformed_payload = "MalformedPayload"
    storage_failure = "StorageFailure"


class ReadingLogError(Exception):
    """Base class for failures reported back to the submitter."""

    kind: ErrorKind
    default_message: str = "request failed"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.default_message)
        self.message = message or self.default_message


class NoCredentials(ReadingLogError):
    kind = ErrorKind.no_credentials
    default_message = "no credentials"


class InvalidCredentials(ReadingLogError):
    kind = ErrorKind.invalid_credentials
    default_message = "invalid credentials"


class UnknownType(ReadingLogError):
    kind = ErrorKind.unknown_type
    default_message = "unknown type defined"


class MalformedPayload(ReadingLogError):
    kind = ErrorKind.malformed_payload
    default_message = "reading payload is incomplete or unparseable"


class StorageFailure(ReadingLogError):
    """Raised when a log record cannot be loaded or persisted."""

    kind = ErrorKind.storage_failure
    default_message = "reading log storage failed"


class CodecError(ValueError):
    """Raised when stored or submitted bytes are not a valid reading sequence."""
