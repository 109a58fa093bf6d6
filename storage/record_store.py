from __future__ import annotations

import logging
import os
import tempfile
from functools import lru_cache
from pathlib import Path
from threading import Lock
from typing import Dict, Optional

from settings import get_settings

logger = logging.getLogger(__name__)


class RecordStore:
    """Whole-record blob store keyed by relative paths.

    Every ``put_record`` replaces the record atomically: the bytes go to a
    temporary sibling which is fsynced and then renamed over the target, so a
    concurrent ``get_record`` sees either the previous record or the new one.
    Without a root path records are held in memory.
    """

    def __init__(self, name: str, root_path: Optional[Path] = None) -> None:
        self.name = name
        self.root_path = root_path
        self._records: Dict[str, bytes] = {}
        self._lock = Lock()
        if root_path:
            root_path.mkdir(parents=True, exist_ok=True)

    def put_record(self, key: str, data: bytes) -> None:
        if not self.root_path:
            with self._lock:
                self._records[key] = data
            return

        path = self._path_for(key)
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{path.name}.", suffix=".tmp", dir=path.parent
        )
        tmp_path = Path(tmp_name)
        try:
            with os.fdopen(fd, "wb") as handle:
                handle.write(data)
                handle.flush()
                os.fsync(handle.fileno())
            os.replace(tmp_path, path)
        except BaseException:
            tmp_path.unlink(missing_ok=True)
            raise
        logger.debug("Record replaced", extra={"path": str(path)})

    def get_record(self, key: str) -> bytes:
        if not self.root_path:
            with self._lock:
                data = self._records.get(key)
            if data is None:
                raise KeyError(f"Record {key!r} not found in store {self.name!r}.")
            return data

        path = self._path_for(key)
        try:
            return path.read_bytes()
        except FileNotFoundError as exc:
            raise KeyError(f"Record {key!r} not found in store {self.name!r}.") from exc

    def _path_for(self, key: str) -> Path:
        assert self.root_path is not None
        path = (self.root_path / key).resolve()
        root = self.root_path.resolve()
        if root != path and root not in path.parents:
            raise ValueError(f"Record key {key!r} escapes store root {self.root_path}.")
        return path


@lru_cache
def build_default_record_store(
    name: str = "readings",
    root_path: Optional[str] = None,
) -> RecordStore:
    settings = get_settings()
    store_root = settings.root_path if root_path is None else root_path
    path = Path(store_root) if store_root else None
    return RecordStore(name=name, root_path=path)
