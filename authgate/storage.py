from __future__ import annotations

import asyncio
import json
import logging
import os
import tempfile
import threading
from pathlib import Path
from typing import Dict, Optional, Protocol

logger = logging.getLogger("authgate.storage")


class StorageError(Exception):
    pass


class StorageUnavailable(StorageError):
    """Persisted state could not be read or decoded."""


class StorageWriteError(StorageError):
    """Persisted state could not be serialized or written."""


class KeyValueStorage(Protocol):
    async def get_item(self, key: str) -> Optional[str]: ...

    async def set_item(self, key: str, value: str) -> None: ...


class InMemoryKeyValueStorage:
    """Process-local storage. Cleared on restart."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._lock = threading.Lock()
        self._items: Dict[str, str] = dict(initial or {})

    async def get_item(self, key: str) -> Optional[str]:
        with self._lock:
            return self._items.get(key)

    async def set_item(self, key: str, value: str) -> None:
        with self._lock:
            self._items[key] = value


class FileKeyValueStorage:
    """Durable key/value storage backed by a single JSON file.

    The file holds one JSON object mapping keys to string values. Every write
    rewrites the whole file through a temp file in the same directory followed
    by ``os.replace``, so a failed write leaves the previous file intact.

    Blocking file I/O runs on a worker thread; the lock serializes
    read-modify-write cycles within the process.
    """

    def __init__(self, path: str | os.PathLike[str]):
        self._path = Path(path)
        self._lock = threading.Lock()

    @property
    def path(self) -> Path:
        return self._path

    async def get_item(self, key: str) -> Optional[str]:
        return await asyncio.to_thread(self._get_sync, key)

    async def set_item(self, key: str, value: str) -> None:
        await asyncio.to_thread(self._set_sync, key, value)

    def _get_sync(self, key: str) -> Optional[str]:
        with self._lock:
            return self._read_all().get(key)

    def _set_sync(self, key: str, value: str) -> None:
        with self._lock:
            try:
                items = self._read_all()
            except StorageUnavailable as e:
                raise StorageWriteError(f"Refusing to overwrite unreadable storage at {self._path}") from e
            items[key] = value
            self._write_all(items)

    def _read_all(self) -> Dict[str, str]:
        if not self._path.exists():
            return {}
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.warning("Storage file %s could not be read (%s)", self._path, type(e).__name__)
            raise StorageUnavailable(f"Could not read {self._path}") from e
        if not isinstance(data, dict) or not all(isinstance(v, str) for v in data.values()):
            raise StorageUnavailable(f"Unexpected storage layout in {self._path}")
        return data

    def _write_all(self, items: Dict[str, str]) -> None:
        tmp_name: Optional[str] = None
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            with tempfile.NamedTemporaryFile(
                "w",
                encoding="utf-8",
                dir=self._path.parent,
                prefix=f".{self._path.name}.",
                suffix=".tmp",
                delete=False,
            ) as f:
                tmp_name = f.name
                json.dump(items, f)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_name, self._path)
            tmp_name = None
        except (OSError, TypeError, ValueError) as e:
            logger.warning("Storage write to %s failed (%s)", self._path, type(e).__name__)
            raise StorageWriteError(f"Could not write {self._path}") from e
        finally:
            if tmp_name is not None and os.path.exists(tmp_name):
                os.unlink(tmp_name)
