"""Chat transcript and chat-session index persistence.

Transcripts are stored wholesale under one key per ``(user, mentor, skill)``;
each user also has a session index with one summary per mentor pair, upserted
every time a transcript is saved.
"""

from __future__ import annotations

from loguru import logger

from mentor_match.domain import namespace
from mentor_match.domain.models import (
    NO_MESSAGES_SENTINEL,
    ChatSessionSummary,
    Message,
    utcnow,
)
from mentor_match.domain.namespace import DataKind
from mentor_match.domain.protocols import IKeyValueStore
from mentor_match.services.records import (
    NamespaceLocks,
    key_exists,
    read_records,
    read_records_for_update,
    remove_where,
    write_records,
)

DEFAULT_MENTOR_NAME = "Mentor"
DEFAULT_MENTOR_SKILL = "Skill"


class SessionRepository:
    """Reads and writes transcripts and session summaries for any user."""

    def __init__(self, store: IKeyValueStore, locks: NamespaceLocks | None = None) -> None:
        self.store = store
        self.locks = locks or NamespaceLocks()

    # ------------------------------------------------------------------
    # Transcripts
    # ------------------------------------------------------------------

    async def load_transcript(
        self, user_id: str | None, mentor_name: str, mentor_skill: str
    ) -> list[Message]:
        """Return the stored transcript, or ``[]`` if absent or corrupt."""
        key = namespace.transcript_key(user_id, mentor_name, mentor_skill)
        return await read_records(self.store, key, Message)

    async def save_transcript(
        self,
        user_id: str | None,
        mentor_name: str,
        mentor_skill: str,
        transcript: list[Message],
    ) -> None:
        """Overwrite the transcript, then upsert its session summary.

        Raises:
            StorageWriteError: If either write fails, or the session index
                cannot be read back for the upsert.  A failed transcript
                write leaves the session index untouched.
        """
        key = namespace.transcript_key(user_id, mentor_name, mentor_skill)
        async with self.locks.lock(key):
            await write_records(self.store, key, transcript)
            await self._upsert_summary(user_id, mentor_name, mentor_skill, transcript)
        logger.debug("Saved transcript | key={} messages={}", key, len(transcript))

    # ------------------------------------------------------------------
    # Session index
    # ------------------------------------------------------------------

    async def load_session_index(self, user_id: str | None) -> list[ChatSessionSummary]:
        """Return summaries of conversations that contain at least one message."""
        summaries = await read_records(
            self.store, namespace.session_index_key(user_id), ChatSessionSummary
        )
        return [s for s in summaries if s.last_message and s.last_message != NO_MESSAGES_SENTINEL]

    async def has_data(self, user_id: str | None) -> bool:
        """Whether a session index exists; raises ``StorageReadError`` if unknown."""
        return await key_exists(self.store, namespace.session_index_key(user_id))

    async def _upsert_summary(
        self,
        user_id: str | None,
        mentor_name: str,
        mentor_skill: str,
        transcript: list[Message],
    ) -> None:
        index_key = namespace.session_index_key(user_id)
        name = mentor_name or DEFAULT_MENTOR_NAME
        skill = mentor_skill or DEFAULT_MENTOR_SKILL
        summary = ChatSessionSummary(
            id=f"{name}_{skill}",
            mentor_name=name,
            mentor_skill=skill,
            last_message=transcript[-1].text if transcript else NO_MESSAGES_SENTINEL,
            timestamp=utcnow(),
            unread_count=0,
        )

        async with self.locks.lock(index_key):
            sessions = await read_records_for_update(self.store, index_key, ChatSessionSummary)
            for i, existing in enumerate(sessions):
                if existing.mentor_name == name and existing.mentor_skill == skill:
                    sessions[i] = summary
                    break
            else:
                sessions.append(summary)
            await write_records(self.store, index_key, sessions)

    # ------------------------------------------------------------------
    # Cleanup
    # ------------------------------------------------------------------

    async def clear_all(self, user_id: str | None) -> list[str]:
        """Remove every transcript and the session index of *user_id*.

        Returns the removed keys.  Other users' keys are never selected.
        """
        transcript_prefix = namespace.kind_prefix(DataKind.TRANSCRIPT, user_id)
        index_key = namespace.session_index_key(user_id)

        async with self.locks.lock(index_key):
            doomed = await remove_where(
                self.store, lambda k: k.startswith(transcript_prefix) or k == index_key
            )

        if doomed:
            logger.info(
                "Cleared chat data | user={} keys={}",
                namespace.normalize_user_id(user_id),
                len(doomed),
            )
        return doomed
