"""Persistence of the signed-in account between client restarts."""

from __future__ import annotations

from loguru import logger
from pydantic import ValidationError

from mentor_match.application.exceptions import StorageWriteError
from mentor_match.domain.models import StoredAuth, User
from mentor_match.domain.namespace import AUTH_RECORD_KEY
from mentor_match.domain.protocols import IKeyValueStore


class AuthRecordRepository:
    """Stores the user profile and bearer token of the last sign-in.

    An unreadable record means "signed out"; writes and removals raise
    ``StorageWriteError``.
    """

    def __init__(self, store: IKeyValueStore, key: str = AUTH_RECORD_KEY) -> None:
        self.store = store
        self.key = key

    async def load(self) -> StoredAuth | None:
        try:
            raw = await self.store.get(self.key)
        except Exception as exc:
            logger.warning("Auth record read failed | {}: {}", type(exc).__name__, exc)
            return None
        if raw is None:
            return None
        try:
            return StoredAuth.model_validate_json(raw)
        except (ValidationError, ValueError) as exc:
            logger.warning("Discarding corrupt auth record | {}", exc)
            return None

    async def save(self, user: User, token: str) -> None:
        payload = StoredAuth(user=user, token=token).model_dump_json(by_alias=True)
        try:
            await self.store.set(self.key, payload)
        except Exception as exc:
            raise StorageWriteError(f"Failed to save auth record: {exc}") from exc

    async def clear(self) -> None:
        try:
            await self.store.remove(self.key)
        except Exception as exc:
            raise StorageWriteError(f"Failed to remove auth record: {exc}") from exc
