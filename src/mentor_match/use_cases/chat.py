"""Mentor chat use case: local, simulated conversations with mentors.

Every turn is persisted wholesale through the session repository; mentor
replies come from the content generator, which never fails thanks to its
template fallback.  Nothing here depends on a UI or transport.
"""

from __future__ import annotations

from loguru import logger

from mentor_match.application.exceptions import EmptyMessageError
from mentor_match.application.session_context import SessionContext
from mentor_match.domain.models import (
    ChatSessionSummary,
    LearnerProfile,
    Message,
    ScheduledLesson,
)
from mentor_match.domain.protocols import IContentGenerator
from mentor_match.services.lesson_repository import LessonRepository
from mentor_match.services.session_repository import (
    DEFAULT_MENTOR_NAME,
    DEFAULT_MENTOR_SKILL,
    SessionRepository,
)


class MentorChatUseCase:
    """Chat, lesson booking and listings for the signed-in user.

    With ``strict_identity`` (the default) every operation raises
    ``SignedOutError`` when nobody is signed in.  Without it the anonymous
    namespace is used and a warning is logged.
    """

    def __init__(
        self,
        context: SessionContext,
        sessions: SessionRepository,
        lessons: LessonRepository,
        generator: IContentGenerator,
        strict_identity: bool = True,
    ) -> None:
        self.context = context
        self.sessions = sessions
        self.lessons = lessons
        self.generator = generator
        self.strict_identity = strict_identity

    def _user_id(self) -> str:
        if self.strict_identity:
            return self.context.require_user_id()
        if not self.context.is_signed_in:
            logger.warning("User data accessed while signed out; using anonymous namespace")
        return self.context.current_user_id()

    def _learner(self) -> LearnerProfile:
        user = self.context.user
        if user is None:
            return LearnerProfile(name="there")
        return LearnerProfile.from_user(user)

    # ------------------------------------------------------------------
    # Chat
    # ------------------------------------------------------------------

    async def open_chat(self, mentor_name: str, mentor_skill: str) -> list[Message]:
        return await self.sessions.load_transcript(self._user_id(), mentor_name, mentor_skill)

    async def send_message(self, mentor_name: str, mentor_skill: str, text: str) -> list[Message]:
        """Append the learner's message and the mentor's reply.

        Returns:
            The full transcript after both messages were saved.

        Raises:
            EmptyMessageError: If *text* is blank.
            StorageWriteError: If persisting either message fails.
        """
        if not text.strip():
            raise EmptyMessageError("message must not be empty")
        user_id = self._user_id()

        transcript = await self.sessions.load_transcript(user_id, mentor_name, mentor_skill)
        transcript.append(Message(text=text.strip(), sender="user", is_read=True))
        await self.sessions.save_transcript(user_id, mentor_name, mentor_skill, transcript)

        reply = await self.generator.generate_mentor_response(
            text.strip(), mentor_skill or DEFAULT_MENTOR_SKILL, self._learner()
        )
        transcript.append(Message(text=reply, sender="mentor", is_read=True))
        await self.sessions.save_transcript(user_id, mentor_name, mentor_skill, transcript)

        logger.info(
            "Chat turn | user={} mentor={} skill={} messages={}",
            user_id,
            mentor_name,
            mentor_skill,
            len(transcript),
        )
        return transcript

    # ------------------------------------------------------------------
    # Lessons
    # ------------------------------------------------------------------

    async def schedule_lesson(
        self, mentor_name: str, mentor_skill: str, date: str, time: str
    ) -> ScheduledLesson:
        """Book a lesson and post the mentor's confirmation in the chat.

        Returns only after the lesson has been persisted, so callers may
        show a success state on return.
        """
        if not date or not time:
            raise ValueError("date and time are required to schedule a lesson")
        user_id = self._user_id()
        name = mentor_name or DEFAULT_MENTOR_NAME
        skill = mentor_skill or DEFAULT_MENTOR_SKILL

        transcript = await self.sessions.load_transcript(user_id, mentor_name, mentor_skill)
        transcript.append(
            Message(
                text=(
                    f"Great! I've scheduled your {skill} lesson for {date} at {time}. "
                    "I'll send you a confirmation email shortly."
                ),
                sender="mentor",
                is_read=True,
            )
        )
        await self.sessions.save_transcript(user_id, mentor_name, mentor_skill, transcript)

        lesson = ScheduledLesson(
            title=f"{skill} Lesson with {name}",
            mentor_name=name,
            mentor_skill=skill,
            date=date,
            time=time,
        )
        await self.lessons.append_lesson(user_id, lesson)
        return lesson

    # ------------------------------------------------------------------
    # Listings
    # ------------------------------------------------------------------

    async def list_sessions(self) -> list[ChatSessionSummary]:
        return await self.sessions.load_session_index(self._user_id())

    async def list_lessons(self) -> list[ScheduledLesson]:
        return await self.lessons.load_lessons(self._user_id())
