"""Domain service interfaces (ports).

These protocols define the contracts that infrastructure implementations
must satisfy.  Repositories and use cases depend on these abstractions,
not on concrete classes.
"""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable

from mentor_match.domain.models import (
    AuthResult,
    ClassSuggestion,
    LearnerProfile,
    PersonalizedContent,
    User,
)

# ---------------------------------------------------------------------------
# Local storage
# ---------------------------------------------------------------------------


@runtime_checkable
class IKeyValueStore(Protocol):
    """Async, process-local, string-keyed and string-valued durable store.

    Implementations: InMemoryKeyValueStore, SQLiteKeyValueStore.
    """

    async def get(self, key: str) -> str | None: ...

    async def set(self, key: str, value: str) -> None: ...

    async def remove(self, key: str) -> None: ...

    async def remove_many(self, keys: list[str]) -> None: ...

    async def list_keys(self) -> list[str]: ...


# ---------------------------------------------------------------------------
# Account service
# ---------------------------------------------------------------------------


@runtime_checkable
class IProfileClient(Protocol):
    """Interface for the remote account service.

    Implementations: ProfileClient (httpx).
    """

    async def register(self, name: str, email: str, password: str) -> AuthResult: ...

    async def login(self, email: str, password: str) -> AuthResult: ...

    async def get_profile(self, user_id: str) -> User: ...

    async def update_profile(self, user_id: str, fields: dict[str, Any]) -> User: ...


# ---------------------------------------------------------------------------
# Content generation
# ---------------------------------------------------------------------------


@runtime_checkable
class IContentGenerator(Protocol):
    """Interface for personalized text content.

    Implementations: RemoteContentGenerator (pydantic-ai agent),
    TemplateContentGenerator (deterministic), FallbackContentGenerator.
    """

    async def generate_personalized_content(self, profile: LearnerProfile) -> PersonalizedContent: ...

    async def generate_mentor_response(
        self, user_message: str, mentor_skill: str, learner: LearnerProfile
    ) -> str: ...

    async def generate_skill_based_classes(self, profile: LearnerProfile) -> list[ClassSuggestion]: ...
