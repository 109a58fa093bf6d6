"""Static credential table used to gate reading submissions and polls."""

from __future__ import annotations

from functools import lru_cache
from types import MappingProxyType
from typing import Mapping, Optional

from settings import get_settings


class CredentialStore:
    """Answers whether a username/secret pair matches the configured table.

    Secrets are stored and compared as plain text with an exact match. Swap in
    a hashing implementation of ``verify`` to harden this without touching the
    dispatcher.
    """

    def __init__(self, users: Mapping[str, str]) -> None:
        self._users = MappingProxyType(dict(users))

    def __contains__(self, username: object) -> bool:
        return username in self._users

    def __len__(self) -> int:
        return len(self._users)

    def verify(self, username: Optional[str], secret: Optional[str]) -> bool:
        if not username or not secret:
            return False
        expected = self._users.get(username)
        if expected is None:
            return False
        return expected == secret


@lru_cache
def build_default_credentials() -> CredentialStore:
    return CredentialStore(get_settings().credentials)
