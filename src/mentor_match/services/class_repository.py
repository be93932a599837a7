"""Class suggestions generated during onboarding, kept per user for the dashboard."""

from __future__ import annotations

from loguru import logger

from mentor_match.domain import namespace
from mentor_match.domain.models import ClassSuggestion
from mentor_match.domain.protocols import IKeyValueStore
from mentor_match.services.records import (
    NamespaceLocks,
    read_records,
    remove_where,
    write_records,
)


class ClassSuggestionRepository:
    """Whole-list storage of a user's suggested classes (replaced, never merged)."""

    def __init__(self, store: IKeyValueStore, locks: NamespaceLocks | None = None) -> None:
        self.store = store
        self.locks = locks or NamespaceLocks()

    async def load_classes(self, user_id: str | None) -> list[ClassSuggestion]:
        return await read_records(self.store, namespace.class_list_key(user_id), ClassSuggestion)

    async def save_classes(self, user_id: str | None, classes: list[ClassSuggestion]) -> None:
        key = namespace.class_list_key(user_id)
        async with self.locks.lock(key):
            await write_records(self.store, key, classes)
        logger.debug("Saved class suggestions | key={} classes={}", key, len(classes))

    async def clear_all(self, user_id: str | None) -> list[str]:
        key = namespace.class_list_key(user_id)
        async with self.locks.lock(key):
            return await remove_where(self.store, lambda k: k == key)
