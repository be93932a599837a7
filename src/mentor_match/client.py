"""Composition root for the client-side layer.

``build_client()`` wires the local store, repositories, session context,
profile client and content generator into a ``MentorMatchClient``.
Call ``await client.account.restore()`` at startup to resume the last
signed-in account.
"""

from __future__ import annotations

from dataclasses import dataclass

import httpx
from loguru import logger

from mentor_match.agent import create_content_agent
from mentor_match.application.session_context import SessionContext
from mentor_match.config import Settings, get_settings
from mentor_match.domain.protocols import IContentGenerator, IKeyValueStore
from mentor_match.services.content_generator import (
    FallbackContentGenerator,
    RemoteContentGenerator,
    TemplateContentGenerator,
)
from mentor_match.services.auth_record import AuthRecordRepository
from mentor_match.services.class_repository import ClassSuggestionRepository
from mentor_match.services.kv_store import InMemoryKeyValueStore, SQLiteKeyValueStore
from mentor_match.services.lesson_repository import LessonRepository
from mentor_match.services.profile_client import ProfileClient
from mentor_match.services.records import NamespaceLocks
from mentor_match.services.session_repository import SessionRepository
from mentor_match.use_cases.account import AccountSession
from mentor_match.telemetry import instrument_http_client
from mentor_match.use_cases.chat import MentorChatUseCase


@dataclass
class MentorMatchClient:
    context: SessionContext
    store: IKeyValueStore
    profile_client: ProfileClient
    account: AccountSession
    chat: MentorChatUseCase

    async def aclose(self) -> None:
        await self.profile_client.aclose()
        if isinstance(self.store, SQLiteKeyValueStore):
            self.store.close()


def create_store(settings: Settings) -> IKeyValueStore:
    if settings.kv_backend == "memory":
        return InMemoryKeyValueStore()
    store = SQLiteKeyValueStore(db_path=settings.kv_db_path)
    store.connect()
    return store


def create_generator(settings: Settings) -> IContentGenerator:
    """Remote generation with template fallback, or templates only."""
    template = TemplateContentGenerator()
    if not settings.remote_generation_active:
        logger.info("Remote content generation disabled; using templates only")
        return template
    remote = RemoteContentGenerator(create_content_agent(settings))
    return FallbackContentGenerator(primary=remote, fallback=template)


def build_client(
    settings: Settings | None = None,
    *,
    store: IKeyValueStore | None = None,
    http_client: httpx.AsyncClient | None = None,
    generator: IContentGenerator | None = None,
) -> MentorMatchClient:
    """Create a fully wired client.

    Args:
        settings: Optional Settings override (defaults to get_settings()).
        store: Optional pre-built key-value store.
        http_client: Optional ``httpx.AsyncClient`` for the profile client.
        generator: Optional content generator.
    """
    s = settings or get_settings()
    s.validate_runtime()

    store = store or create_store(s)
    generator = generator or create_generator(s)
    context = SessionContext()
    locks = NamespaceLocks()
    sessions = SessionRepository(store, locks)
    lessons = LessonRepository(store, locks)
    classes = ClassSuggestionRepository(store, locks)
    profile_client = ProfileClient(
        base_url=s.profile_service_url,
        context=context,
        timeout_seconds=s.profile_timeout_seconds,
        client=http_client,
    )
    instrument_http_client(profile_client.http, s)

    return MentorMatchClient(
        context=context,
        store=store,
        profile_client=profile_client,
        account=AccountSession(
            context,
            profile_client,
            sessions,
            lessons,
            generator,
            classes=classes,
            auth_records=AuthRecordRepository(store),
        ),
        chat=MentorChatUseCase(
            context, sessions, lessons, generator, strict_identity=s.strict_identity
        ),
    )
