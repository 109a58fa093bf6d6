from __future__ import annotations

import logging
from functools import lru_cache
from threading import Lock
from typing import Dict, Optional

from models.readings import LogKey, Reading
from services.codec import codec_for
from services.errors import CodecError, StorageFailure
from settings import get_settings
from storage.record_store import RecordStore, build_default_record_store

logger = logging.getLogger(__name__)


class ReadingLog:
    """Bounded, newest-first history of readings for one (type, user) key.

    ``push`` holds the key's lock for the whole load, prepend, truncate and
    persist cycle. ``read`` takes no lock; the record store only ever swaps
    whole records in, so a read sees a complete sequence.
    """

    def __init__(
        self,
        key: LogKey,
        records: RecordStore,
        lock: Lock,
        max_count: int,
    ) -> None:
        if max_count < 1:
            raise ValueError("max_count must be a positive integer.")
        self.key = key
        self.max_count = max_count
        self._records = records
        self._lock = lock
        self._codec = codec_for(key.reading_type)

    @property
    def record_key(self) -> str:
        return f"{self.key.reading_type.value}/{self.key.username}.json"

    def push(self, reading: Reading) -> list[Reading]:
        """Prepend ``reading``, drop entries past ``max_count`` and persist.

        Returns the full sequence as stored. Nothing is acknowledged unless
        the new record was written.
        """
        if reading.reading_type is not self.key.reading_type:
            raise ValueError(
                f"Cannot push a {reading.reading_type.value} reading to log {self.key}."
            )

        with self._lock:
            current = self._load()
            updated = [reading, *current][: self.max_count]
            try:
                self._records.put_record(self.record_key, self._codec.encode(updated))
            except OSError as exc:
                logger.error(
                    "Failed to persist reading log",
                    extra=self._log_extra(error_kind=StorageFailure.kind.value),
                )
                raise StorageFailure(f"Could not write reading log {self.key}.") from exc

        logger.info(
            "Reading stored",
            extra=self._log_extra(entry_count=len(updated), max_count=self.max_count),
        )
        return updated

    def read(self, limit: Optional[int] = None) -> list[Reading]:
        """Return up to ``limit`` newest entries (defaults to ``max_count``)."""
        count = self.max_count if limit is None else limit
        if count < 1:
            return []
        return self._load()[:count]

    def _load(self) -> list[Reading]:
        try:
            raw = self._records.get_record(self.record_key)
        except KeyError:
            return []
        except OSError as exc:
            logger.error(
                "Failed to load reading log",
                extra=self._log_extra(error_kind=StorageFailure.kind.value),
            )
            raise StorageFailure(f"Could not read reading log {self.key}.") from exc

        try:
            return self._codec.decode(raw)
        except CodecError as exc:
            logger.error(
                "Stored reading log is corrupt",
                extra=self._log_extra(error_kind=StorageFailure.kind.value),
            )
            raise StorageFailure(f"Reading log {self.key} is unreadable.") from exc

    def _log_extra(self, **extra: object) -> dict[str, object]:
        return {
            "reading_type": self.key.reading_type.value,
            "username": self.key.username,
            **extra,
        }


class ReadingLogStore:
    """Hands out ``ReadingLog`` views that share one lock per key.

    Different keys never contend for the same lock.
    """

    def __init__(self, records: RecordStore, default_max_count: int = 10) -> None:
        if default_max_count < 1:
            raise ValueError("default_max_count must be a positive integer.")
        self.records = records
        self.default_max_count = default_max_count
        self._locks: Dict[LogKey, Lock] = {}
        self._locks_lock = Lock()

    def log(self, key: LogKey, max_count: Optional[int] = None) -> ReadingLog:
        return ReadingLog(
            key=key,
            records=self.records,
            lock=self.lock_for(key),
            max_count=max_count or self.default_max_count,
        )

    def lock_for(self, key: LogKey) -> Lock:
        with self._locks_lock:
            lock = self._locks.get(key)
            if lock is None:
                lock = Lock()
                self._locks[key] = lock
            return lock


@lru_cache
def build_default_store(default_max_count: Optional[int] = None) -> ReadingLogStore:
    settings = get_settings()
    max_count = default_max_count or settings.default_max_count
    return ReadingLogStore(
        records=build_default_record_store(),
        default_max_count=max_count,
    )
