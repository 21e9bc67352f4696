from __future__ import annotations

import logging
from typing import List, Optional, Tuple

from pydantic import TypeAdapter, ValidationError

from authgate.models import UserRecord
from authgate.storage import KeyValueStorage, StorageUnavailable, StorageWriteError

logger = logging.getLogger("authgate.user_store")

USERS_KEY = "users"

_REGISTRY = TypeAdapter(List[UserRecord])


class CredentialStore:
    """Registered users persisted as one JSON array under a single storage key.

    This is pure CRUD over the serialized list: it does not check username
    uniqueness (the auth flow does) and exposes no update or delete. It is NOT
    suitable for real production auth; passwords are stored as entered.
    """

    def __init__(self, storage: KeyValueStorage, *, key: str = USERS_KEY):
        self._storage = storage
        self._key = key
        self._snapshot: Tuple[UserRecord, ...] = ()

    @property
    def key(self) -> str:
        return self._key

    def snapshot(self) -> Tuple[UserRecord, ...]:
        """Last registry successfully read or written. No I/O."""
        return self._snapshot

    async def list(self) -> List[UserRecord]:
        raw: Optional[str] = await self._storage.get_item(self._key)
        if raw is None:
            records: List[UserRecord] = []
        else:
            try:
                records = _REGISTRY.validate_json(raw)
            except ValidationError as e:
                logger.warning("Stored registry under %r failed validation (%d errors)", self._key, e.error_count())
                raise StorageUnavailable(f"Stored registry under {self._key!r} is not valid") from e
        self._snapshot = tuple(records)
        return list(records)

    async def append(self, record: UserRecord) -> None:
        try:
            current = await self.list()
        except StorageUnavailable as e:
            raise StorageWriteError("Cannot append to a registry that could not be read") from e

        updated = [*current, record]
        try:
            payload = _REGISTRY.dump_json(updated).decode("utf-8")
        except ValueError as e:
            raise StorageWriteError("Could not serialize registry") from e

        await self._storage.set_item(self._key, payload)
        self._snapshot = tuple(updated)
        logger.info("Stored user record (%d total)", len(updated))
