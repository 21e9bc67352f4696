from __future__ import annotations

import json

import pytest
from pydantic import ValidationError

from authgate.models import UserRecord
from authgate.storage import InMemoryKeyValueStorage, StorageUnavailable, StorageWriteError
from authgate.user_store import CredentialStore


class _FailingWrites(InMemoryKeyValueStorage):
    async def set_item(self, key: str, value: str) -> None:
        raise StorageWriteError("read-only")


def _record(username: str, password: str = "secret1") -> UserRecord:
    return UserRecord.for_registration(username=username, password=password)


def test_user_record_derives_lowercase_email():
    assert _record("Alice").email == "alice@app.com"


def test_user_record_rejects_mismatched_email():
    with pytest.raises(ValidationError):
        UserRecord(username="bob", password="secret1", email="someone@else.com")


@pytest.mark.asyncio
async def test_list_empty_store():
    store = CredentialStore(InMemoryKeyValueStorage())
    assert await store.list() == []


@pytest.mark.asyncio
async def test_append_preserves_insertion_order_and_layout():
    storage = InMemoryKeyValueStorage()
    store = CredentialStore(storage)

    await store.append(_record("zed"))
    await store.append(_record("Amy"))

    assert [r.username for r in await store.list()] == ["zed", "Amy"]
    raw = json.loads(await storage.get_item("users"))
    assert raw == [
        {"username": "zed", "password": "secret1", "email": "zed@app.com"},
        {"username": "Amy", "password": "secret1", "email": "amy@app.com"},
    ]


@pytest.mark.asyncio
async def test_custom_key_is_used():
    storage = InMemoryKeyValueStorage()
    store = CredentialStore(storage, key="accounts")
    await store.append(_record("x"))
    assert await storage.get_item("accounts") is not None
    assert await storage.get_item("users") is None


@pytest.mark.asyncio
async def test_invalid_payload_is_unavailable():
    store = CredentialStore(InMemoryKeyValueStorage({"users": '[{"username": "a"}]'}))
    with pytest.raises(StorageUnavailable):
        await store.list()


@pytest.mark.asyncio
async def test_append_to_unreadable_registry_does_not_overwrite():
    storage = InMemoryKeyValueStorage({"users": "garbage"})
    store = CredentialStore(storage)

    with pytest.raises(StorageWriteError):
        await store.append(_record("new"))
    assert await storage.get_item("users") == "garbage"


@pytest.mark.asyncio
async def test_failed_write_leaves_snapshot_unchanged():
    existing = json.dumps([_record("dave").model_dump()])
    store = CredentialStore(_FailingWrites({"users": existing}))
    await store.list()

    with pytest.raises(StorageWriteError):
        await store.append(_record("carol"))
    assert [r.username for r in store.snapshot()] == ["dave"]
