from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from types import MappingProxyType
from typing import Mapping, Optional


_ROOT_PATH_ENV = "READING_LOG_ROOT_PATH"
_DEFAULT_MAX_COUNT_ENV = "READING_LOG_DEFAULT_MAX_COUNT"
_TOKEN_MAX_COUNT_ENV = "READING_LOG_TOKEN_MAX_COUNT"
_TOKEN_USER_ENV = "READING_LOG_TOKEN_USER"
_CREDENTIALS_ENV = "READING_LOG_CREDENTIALS"
_REJECT_MALFORMED_ENV = "READING_LOG_REJECT_MALFORMED"
_LOG_LEVEL_ENV = "LOG_LEVEL"

DEFAULT_CREDENTIALS = "user:password,geiger:0123456789"


@dataclass(frozen=True)
class Settings:
    root_path: Optional[str]
    default_max_count: int
    token_max_count: int
    token_user: str
    credentials: Mapping[str, str]
    reject_malformed: bool
    log_level: str


def _read_str_env(name: str, default: str) -> str:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    return candidate or default


def _read_optional_env(name: str, default: Optional[str]) -> Optional[str]:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    return candidate or None


def _read_positive_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    try:
        parsed = int(candidate)
    except ValueError:
        return default
    return parsed if parsed > 0 else default


def _read_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip().lower()
    if candidate in {"1", "true", "yes", "on"}:
        return True
    if candidate in {"0", "false", "no", "off"}:
        return False
    return default


def _read_log_level(default: str) -> str:
    value = os.getenv(_LOG_LEVEL_ENV)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    return candidate.upper()


def parse_credentials(raw: str) -> Mapping[str, str]:
    """Parse ``name:secret`` pairs separated by commas.

    Entries without a separator, or with an empty name or secret, are skipped.
    Secrets may themselves contain ``:``; only the first one splits.
    """
    table: dict[str, str] = {}
    for entry in raw.split(","):
        name, sep, secret = entry.strip().partition(":")
        if not sep or not name or not secret:
            continue
        table[name] = secret
    return MappingProxyType(table)


@lru_cache
def get_settings() -> Settings:
    return Settings(
        root_path=_read_optional_env(_ROOT_PATH_ENV, "./tmp/readings"),
        default_max_count=_read_positive_int(_DEFAULT_MAX_COUNT_ENV, 10),
        token_max_count=_read_positive_int(_TOKEN_MAX_COUNT_ENV, 1000),
        token_user=_read_str_env(_TOKEN_USER_ENV, "geiger"),
        credentials=parse_credentials(_read_str_env(_CREDENTIALS_ENV, DEFAULT_CREDENTIALS)),
        reject_malformed=_read_bool(_REJECT_MALFORMED_ENV, False),
        log_level=_read_log_level("INFO"),
    )
