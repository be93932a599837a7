"""JSON record helpers shared by the repositories.

Plain reads degrade to "no data" and only log. Reads that feed a write-back
and existence checks raise instead, so a transient failure can never be
mistaken for an empty namespace and overwrite or purge stored data. Writes
raise ``StorageWriteError`` so callers never report success for data that
was not persisted.
"""

from __future__ import annotations

import asyncio
import json
import weakref
from typing import Callable, TypeVar

from loguru import logger
from pydantic import BaseModel, TypeAdapter, ValidationError

from mentor_match.application.exceptions import StorageReadError, StorageWriteError
from mentor_match.domain.protocols import IKeyValueStore

T = TypeVar("T", bound=BaseModel)


class NamespaceLocks:
    """Registry of ``asyncio.Lock`` objects, one per storage key.

    Read-modify-write cycles on the same key are serialized through the
    key's lock; different keys never block each other.  Entries are weak:
    a lock disappears once no coroutine holds or awaits it.
    """

    def __init__(self) -> None:
        self._locks: weakref.WeakValueDictionary[str, asyncio.Lock] = weakref.WeakValueDictionary()

    def lock(self, key: str) -> asyncio.Lock:
        lock = self._locks.get(key)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[key] = lock
        return lock

    def __len__(self) -> int:
        return len(self._locks)


async def read_records(store: IKeyValueStore, key: str, model: type[T]) -> list[T]:
    """Load a JSON list of *model* records, or ``[]`` if absent or unreadable."""
    try:
        raw = await store.get(key)
    except Exception as exc:
        logger.warning("Read failed for {} | {}: {}", key, type(exc).__name__, exc)
        return []
    if raw is None:
        return []
    try:
        return TypeAdapter(list[model]).validate_json(raw)
    except (ValidationError, ValueError) as exc:
        logger.warning("Discarding corrupt record at {} | {}", key, exc)
        return []


async def read_records_for_update(store: IKeyValueStore, key: str, model: type[T]) -> list[T]:
    """Load a JSON list that is about to be rewritten.

    Only a missing key counts as empty.

    Raises:
        StorageWriteError: If the read fails or the stored value is corrupt;
            the pending write is aborted and the stored value kept.
    """
    try:
        raw = await store.get(key)
    except Exception as exc:
        raise StorageWriteError(f"Aborted update of {key}, read failed: {exc}") from exc
    if raw is None:
        return []
    try:
        return TypeAdapter(list[model]).validate_json(raw)
    except (ValidationError, ValueError) as exc:
        raise StorageWriteError(f"Aborted update of {key}, stored value is corrupt") from exc


async def key_exists(store: IKeyValueStore, key: str) -> bool:
    """Whether *key* holds a value.

    Raises:
        StorageReadError: If the store cannot answer.
    """
    try:
        return await store.get(key) is not None
    except Exception as exc:
        raise StorageReadError(f"Existence check failed for {key}: {exc}") from exc


async def write_records(store: IKeyValueStore, key: str, records: list[BaseModel]) -> None:
    """Overwrite *key* with the JSON list of *records*."""
    payload = json.dumps([r.model_dump(mode="json", by_alias=True) for r in records])
    try:
        await store.set(key, payload)
    except Exception as exc:
        raise StorageWriteError(f"Failed to write {key}: {exc}") from exc


async def remove_keys(store: IKeyValueStore, keys: list[str]) -> None:
    if not keys:
        return
    try:
        await store.remove_many(keys)
    except Exception as exc:
        raise StorageWriteError(f"Failed to remove {len(keys)} key(s): {exc}") from exc


async def remove_where(store: IKeyValueStore, selected: Callable[[str], bool]) -> list[str]:
    """Remove every stored key for which *selected* is true, in one batch.

    Returns the removed keys.
    """
    try:
        all_keys = await store.list_keys()
    except Exception as exc:
        raise StorageWriteError(f"Failed to list keys for cleanup: {exc}") from exc
    doomed = [k for k in all_keys if selected(k)]
    await remove_keys(store, doomed)
    return doomed
