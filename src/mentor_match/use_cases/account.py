"""Account session: reconciles local data with sign-in state.

This module owns the sign-in state machine::

    SIGNED_OUT -> AUTHENTICATING -> SIGNED_IN -> SIGNED_OUT

Signing in runs first-time-user detection and saves the account record so
the next start can resume with ``restore()``. Signing out purges the user's
local chats, session index, lessons, class suggestions and the account
record *before* the identity is dropped. Profile refreshes only touch cached
profile fields.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from loguru import logger

from mentor_match.application.exceptions import SignedOutError, StorageReadError
from mentor_match.application.session_context import SessionContext
from mentor_match.domain.models import (
    AuthResult,
    ClassSuggestion,
    LearnerProfile,
    PersonalizedContent,
    ProfileDetails,
    User,
)
from mentor_match.domain.protocols import IContentGenerator, IProfileClient
from mentor_match.services.auth_record import AuthRecordRepository
from mentor_match.services.class_repository import ClassSuggestionRepository
from mentor_match.services.lesson_repository import LessonRepository
from mentor_match.services.session_repository import SessionRepository


class AuthState(str, Enum):
    SIGNED_OUT = "signed_out"
    AUTHENTICATING = "authenticating"
    SIGNED_IN = "signed_in"


class AccountSession:
    """Sign-in lifecycle for one client session.

    Parameters
    ----------
    context:
        The session's identity record; updated on every transition.
    profile_client:
        Remote account service.
    sessions, lessons:
        Local repositories whose namespaces follow the signed-in user.
    generator:
        Content generator used for first-time users and onboarding.
    classes:
        Class suggestions saved during onboarding. Defaults to a repository
        on the sessions' store.
    auth_records:
        Account record used by ``restore()``. Defaults to one on the
        sessions' store.
    """

    def __init__(
        self,
        context: SessionContext,
        profile_client: IProfileClient,
        sessions: SessionRepository,
        lessons: LessonRepository,
        generator: IContentGenerator,
        *,
        classes: ClassSuggestionRepository | None = None,
        auth_records: AuthRecordRepository | None = None,
    ) -> None:
        self.context = context
        self.profile_client = profile_client
        self.sessions = sessions
        self.lessons = lessons
        self.generator = generator
        self.classes = classes or ClassSuggestionRepository(sessions.store, sessions.locks)
        self.auth_records = auth_records or AuthRecordRepository(sessions.store)
        self.state = AuthState.SIGNED_IN if context.is_signed_in else AuthState.SIGNED_OUT
        self.is_new_user = False
        self.personalized_content: PersonalizedContent | None = None

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def current_user_id(self) -> str:
        return self.context.current_user_id()

    @property
    def user(self) -> User | None:
        return self.context.user

    async def suggested_classes(self) -> list[ClassSuggestion]:
        """Class suggestions saved when the profile was completed."""
        user_id = self._require_signed_in()
        return await self.classes.load_classes(user_id)

    # ------------------------------------------------------------------
    # Sign in / out
    # ------------------------------------------------------------------

    async def login(self, email: str, password: str) -> User:
        """Authenticate an existing account.

        Raises:
            ProfileServiceError: On any account service failure; the session
                is left signed out.
            StorageWriteError: If local reconciliation or the account record
                cannot be written; the session is left signed out.
        """
        return await self._authenticate(self.profile_client.login(email, password), "login")

    async def register(self, name: str, email: str, password: str) -> User:
        """Create an account and sign in to it."""
        return await self._authenticate(
            self.profile_client.register(name, email, password), "register"
        )

    async def restore(self) -> User | None:
        """Resume the account saved by the last sign-in, if any.

        Called once at startup. The stored token is reused as is; the account
        service rejects it on the next request if it has expired.
        """
        if self.context.is_signed_in:
            return self.context.user
        record = await self.auth_records.load()
        if record is None:
            return None

        self.state = AuthState.AUTHENTICATING
        self.context.sign_in(record.user, record.token)
        await self._finish_sign_in(save_record=False)
        logger.info("Session restored | user={}", record.user.id)
        return record.user

    async def _authenticate(self, call, action: str) -> User:
        self.state = AuthState.AUTHENTICATING
        try:
            result: AuthResult = await call
        except Exception:
            self.state = AuthState.SIGNED_OUT
            raise

        self.context.sign_in(result.user, result.token)
        await self._finish_sign_in(save_record=True)
        logger.info("{} succeeded | user={}", action, result.user.id)
        return result.user

    async def _finish_sign_in(self, *, save_record: bool) -> None:
        """Reconcile local data, then enter SIGNED_IN.

        Any failure rolls the session back to SIGNED_OUT before re-raising.
        """
        try:
            await self._reconcile_first_time_user()
            if save_record:
                user = self.context.user
                assert user is not None and self.context.token is not None
                await self.auth_records.save(user, self.context.token)
        except Exception:
            self.context.sign_out()
            self.state = AuthState.SIGNED_OUT
            self.is_new_user = False
            self.personalized_content = None
            raise
        self.state = AuthState.SIGNED_IN

    async def _reconcile_first_time_user(self) -> None:
        """Reset local data and generate content when nothing is stored yet.

        Presence of a session index or lesson list is the only signal; a
        returning user who never chatted or booked looks brand new. When the
        store cannot answer, the user is treated as returning and nothing is
        removed.
        """
        user = self.context.user
        assert user is not None
        try:
            has_sessions = await self.sessions.has_data(user.id)
            has_lessons = await self.lessons.has_data(user.id)
        except StorageReadError as exc:
            logger.warning("Skipping first-time check | user={} error={}", user.id, exc)
            self.is_new_user = False
            return

        self.is_new_user = not (has_sessions or has_lessons)
        if not self.is_new_user:
            return

        logger.info("First-time user detected | user={}", user.id)
        await self.sessions.clear_all(user.id)
        await self.lessons.clear_all(user.id)
        await self.classes.clear_all(user.id)
        self.personalized_content = await self.generator.generate_personalized_content(
            LearnerProfile.from_user(user)
        )

    async def logout(self) -> None:
        """Purge the user's local data and account record, then drop the identity.

        Raises:
            StorageWriteError: If the purge fails; the user stays signed in
                so the logout can be retried.
        """
        if not self.context.is_signed_in:
            logger.debug("logout while already signed out")
            self.state = AuthState.SIGNED_OUT
            return

        user_id = self.context.require_user_id()
        removed = await self.sessions.clear_all(user_id)
        removed += await self.lessons.clear_all(user_id)
        removed += await self.classes.clear_all(user_id)
        await self.auth_records.clear()
        self.context.sign_out()
        self.state = AuthState.SIGNED_OUT
        self.is_new_user = False
        self.personalized_content = None
        logger.info("Logged out | user={} cleared_keys={}", user_id, len(removed))

    # ------------------------------------------------------------------
    # Profile
    # ------------------------------------------------------------------

    async def refresh_profile(self) -> User:
        """Re-read the profile from the account service."""
        user_id = self._require_signed_in()
        user = await self.profile_client.get_profile(user_id)
        await self._replace_user(user)
        return user

    async def update_profile(self, **fields: Any) -> User:
        """Write profile fields (camelCase or snake_case) to the account service."""
        user_id = self._require_signed_in()
        user = await self.profile_client.update_profile(user_id, fields)
        await self._replace_user(user)
        return user

    async def complete_profile(self, details: ProfileDetails) -> User:
        """Store onboarding details together with freshly generated content.

        The generated class suggestions are saved locally once the account
        service has accepted the profile.
        """
        user_id = self._require_signed_in()
        assert self.context.user is not None
        profile = LearnerProfile(name=self.context.user.name, **details.model_dump())
        content = await self.generator.generate_personalized_content(profile)
        classes = await self.generator.generate_skill_based_classes(profile)

        fields = details.to_json_dict()
        fields["personalizedContent"] = content.to_json_dict()
        user = await self.profile_client.update_profile(user_id, fields)
        await self._replace_user(user)
        await self.classes.save_classes(user_id, classes)
        self.personalized_content = content
        logger.info(
            "Profile completed | user={} skills={} classes={}",
            user_id,
            len(details.skills),
            len(classes),
        )
        return user

    async def _replace_user(self, user: User) -> None:
        self.context.update_user(user)
        if self.context.token is not None:
            await self.auth_records.save(user, self.context.token)

    def _require_signed_in(self) -> str:
        if self.state is not AuthState.SIGNED_IN:
            raise SignedOutError(f"Profile access requires a signed-in user (state={self.state.value})")
        return self.context.require_user_id()
