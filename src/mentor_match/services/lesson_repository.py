"""Scheduled-lesson persistence: one append-only list per user."""

from __future__ import annotations

from loguru import logger

from mentor_match.domain import namespace
from mentor_match.domain.models import ScheduledLesson
from mentor_match.domain.protocols import IKeyValueStore
from mentor_match.services.records import (
    NamespaceLocks,
    key_exists,
    read_records,
    read_records_for_update,
    remove_where,
    write_records,
)


class LessonRepository:
    def __init__(self, store: IKeyValueStore, locks: NamespaceLocks | None = None) -> None:
        self.store = store
        self.locks = locks or NamespaceLocks()

    async def load_lessons(self, user_id: str | None) -> list[ScheduledLesson]:
        return await read_records(self.store, namespace.lesson_list_key(user_id), ScheduledLesson)

    async def append_lesson(
        self, user_id: str | None, lesson: ScheduledLesson
    ) -> list[ScheduledLesson]:
        """Append *lesson* and return the updated list.

        The read-append-write cycle holds the list's lock, so concurrent
        appends for the same user are applied one after the other.

        Raises:
            StorageWriteError: If the list cannot be read back or written;
                the stored list is left as it was.
        """
        key = namespace.lesson_list_key(user_id)
        async with self.locks.lock(key):
            lessons = await read_records_for_update(self.store, key, ScheduledLesson)
            lessons.append(lesson)
            await write_records(self.store, key, lessons)
        logger.info(
            "Saved lesson | user={} lesson={} total={}",
            namespace.normalize_user_id(user_id),
            lesson.id,
            len(lessons),
        )
        return lessons

    async def has_data(self, user_id: str | None) -> bool:
        return await key_exists(self.store, namespace.lesson_list_key(user_id))

    async def clear_all(self, user_id: str | None) -> list[str]:
        key = namespace.lesson_list_key(user_id)
        async with self.locks.lock(key):
            return await remove_where(self.store, lambda k: k == key)
