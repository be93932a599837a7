"""Tests for MentorChatUseCase."""

from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from mentor_match.application.exceptions import (
    EmptyMessageError,
    SignedOutError,
    StorageWriteError,
)
from mentor_match.application.session_context import SessionContext
from mentor_match.domain import namespace
from mentor_match.services.content_generator import TemplateContentGenerator
from mentor_match.services.lesson_repository import LessonRepository
from mentor_match.services.session_repository import SessionRepository
from mentor_match.use_cases.chat import MentorChatUseCase


@pytest.fixture()
def chat(signed_in_context, sessions, lessons) -> MentorChatUseCase:
    return MentorChatUseCase(signed_in_context, sessions, lessons, TemplateContentGenerator())


class TestSendMessage:
    async def test_turn_saves_user_message_and_reply(self, chat: MentorChatUseCase, sessions):
        transcript = await chat.send_message("Alice", "Cooking", "  hi  ")

        assert [(m.sender, m.text) for m in transcript][0] == ("user", "hi")
        assert transcript[1].sender == "mentor"
        assert "Cooking" in transcript[1].text
        assert await sessions.load_transcript("u1", "Alice", "Cooking") == transcript

    async def test_session_index_tracks_latest_reply(self, chat: MentorChatUseCase):
        transcript = await chat.send_message("Alice", "Cooking", "hi")
        [summary] = await chat.list_sessions()
        assert summary.last_message == transcript[-1].text
        assert summary.unread_count == 0

    async def test_blank_message_rejected(self, chat: MentorChatUseCase, sessions):
        with pytest.raises(EmptyMessageError):
            await chat.send_message("Alice", "Cooking", "   ")
        assert await sessions.has_data("u1") is False

    async def test_reply_uses_learner_profile(self, signed_in_context, sessions, lessons):
        generator = MagicMock()
        generator.generate_mentor_response = AsyncMock(return_value="Try searing at high heat.")
        chat = MentorChatUseCase(signed_in_context, sessions, lessons, generator)

        await chat.send_message("Alice", "Cooking", "How do I sear?")

        user_message, skill, learner = generator.generate_mentor_response.await_args.args
        assert (user_message, skill) == ("How do I sear?", "Cooking")
        assert learner.name == "Alice"
        assert learner.level == "Intermediate"

    async def test_write_failure_surfaces(self, signed_in_context, flaky_store, lessons):
        flaky_store.fail_writes.add(namespace.transcript_key("u1", "Alice", "Cooking"))
        chat = MentorChatUseCase(
            signed_in_context, SessionRepository(flaky_store), lessons, TemplateContentGenerator()
        )
        with pytest.raises(StorageWriteError):
            await chat.send_message("Alice", "Cooking", "hi")

    async def test_open_chat_returns_saved_transcript(self, chat: MentorChatUseCase):
        assert await chat.open_chat("Alice", "Cooking") == []
        transcript = await chat.send_message("Alice", "Cooking", "hi")
        assert await chat.open_chat("Alice", "Cooking") == transcript


class TestScheduleLesson:
    async def test_lesson_persisted_with_confirmation(self, chat: MentorChatUseCase):
        lesson = await chat.schedule_lesson("Alice", "Cooking", "2024-05-02", "10:00 AM")

        assert lesson.title == "Cooking Lesson with Alice"
        assert lesson.duration == "1 hour"
        assert lesson.status == "scheduled"
        assert await chat.list_lessons() == [lesson]

        [confirmation] = await chat.open_chat("Alice", "Cooking")
        assert confirmation.sender == "mentor"
        assert confirmation.text == (
            "Great! I've scheduled your Cooking lesson for 2024-05-02 at 10:00 AM. "
            "I'll send you a confirmation email shortly."
        )

    async def test_two_lessons_in_order(self, chat: MentorChatUseCase):
        first = await chat.schedule_lesson("Alice", "Cooking", "2024-05-02", "10:00 AM")
        second = await chat.schedule_lesson("Bob", "Painting", "2024-05-03", "2:00 PM")
        assert await chat.list_lessons() == [first, second]

    async def test_racing_bookings_keep_both(self, signed_in_context, yielding_store):
        chat = MentorChatUseCase(
            signed_in_context,
            SessionRepository(yielding_store),
            LessonRepository(yielding_store),
            TemplateContentGenerator(),
        )

        first, second = await asyncio.gather(
            chat.schedule_lesson("Alice", "Cooking", "2024-05-02", "10:00 AM"),
            chat.schedule_lesson("Alice", "Cooking", "2024-05-03", "11:00 AM"),
        )

        stored = await chat.list_lessons()
        assert {l.id for l in stored} == {first.id, second.id}
        assert len(await chat.open_chat("Alice", "Cooking")) == 2

    @pytest.mark.parametrize("date,time", [("", "10:00 AM"), ("2024-05-02", "")])
    async def test_missing_date_or_time_rejected(self, chat: MentorChatUseCase, date, time):
        with pytest.raises(ValueError):
            await chat.schedule_lesson("Alice", "Cooking", date, time)
        assert await chat.list_lessons() == []

    async def test_lesson_write_failure_surfaces(self, signed_in_context, flaky_store, sessions):
        flaky_store.fail_writes.add(namespace.lesson_list_key("u1"))
        chat = MentorChatUseCase(
            signed_in_context, sessions, LessonRepository(flaky_store), TemplateContentGenerator()
        )
        with pytest.raises(StorageWriteError):
            await chat.schedule_lesson("Alice", "Cooking", "2024-05-02", "10:00 AM")


class TestIdentity:
    async def test_strict_identity_rejects_signed_out(self, sessions, lessons):
        chat = MentorChatUseCase(SessionContext(), sessions, lessons, TemplateContentGenerator())
        with pytest.raises(SignedOutError):
            await chat.send_message("Alice", "Cooking", "hi")
        with pytest.raises(SignedOutError):
            await chat.list_lessons()

    async def test_lenient_identity_uses_anonymous_namespace(self, sessions, lessons):
        chat = MentorChatUseCase(
            SessionContext(), sessions, lessons, TemplateContentGenerator(), strict_identity=False
        )
        await chat.send_message("Alice", "Cooking", "hi")

        assert len(await sessions.load_session_index(None)) == 1
        assert await sessions.load_session_index("u1") == []

    async def test_users_do_not_see_each_other(self, sessions, lessons, alice):
        ctx = SessionContext()
        chat = MentorChatUseCase(ctx, sessions, lessons, TemplateContentGenerator())
        ctx.sign_in(alice, "token-u1")
        await chat.send_message("Alice", "Cooking", "hi")
        await chat.schedule_lesson("Alice", "Cooking", "2024-05-02", "10:00 AM")

        ctx.sign_in(alice.model_copy(update={"id": "u10"}), "token-u10")

        assert await chat.list_sessions() == []
        assert await chat.list_lessons() == []
        assert await chat.open_chat("Alice", "Cooking") == []
