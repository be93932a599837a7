"""Shared fixtures for mentor_match tests."""

from __future__ import annotations

import asyncio

import pytest

from mentor_match.application.session_context import SessionContext
from mentor_match.domain.models import User
from mentor_match.services.kv_store import InMemoryKeyValueStore
from mentor_match.services.lesson_repository import LessonRepository
from mentor_match.services.records import NamespaceLocks
from mentor_match.services.session_repository import SessionRepository


def pytest_configure(config):
    """Set pytest-asyncio mode to auto so async test functions work without markers."""
    config.option.asyncio_mode = "auto"


# ---------------------------------------------------------------------------
# Store doubles
# ---------------------------------------------------------------------------


class YieldingStore(InMemoryKeyValueStore):
    """In-memory store that suspends on every call, like real storage I/O."""

    async def get(self, key: str) -> str | None:
        await asyncio.sleep(0)
        value = await super().get(key)
        await asyncio.sleep(0)
        return value

    async def set(self, key: str, value: str) -> None:
        await asyncio.sleep(0)
        await super().set(key, value)


class FlakyStore(InMemoryKeyValueStore):
    """In-memory store whose reads or writes can be made to fail per key."""

    def __init__(self) -> None:
        super().__init__()
        self.fail_reads: set[str] = set()
        self.fail_writes: set[str] = set()
        self.fail_list_keys = False
        self.fail_remove = False
        self.writes: list[str] = []

    async def get(self, key: str) -> str | None:
        if key in self.fail_reads:
            raise OSError(f"read failed: {key}")
        return await super().get(key)

    async def set(self, key: str, value: str) -> None:
        if key in self.fail_writes:
            raise OSError(f"write failed: {key}")
        self.writes.append(key)
        await super().set(key, value)

    async def remove_many(self, keys: list[str]) -> None:
        if self.fail_remove:
            raise OSError("remove failed")
        await super().remove_many(keys)

    async def list_keys(self) -> list[str]:
        if self.fail_list_keys:
            raise OSError("list failed")
        return await super().list_keys()


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def store() -> InMemoryKeyValueStore:
    return InMemoryKeyValueStore()


@pytest.fixture()
def flaky_store() -> FlakyStore:
    return FlakyStore()


@pytest.fixture()
def locks() -> NamespaceLocks:
    return NamespaceLocks()


@pytest.fixture()
def sessions(store: InMemoryKeyValueStore, locks: NamespaceLocks) -> SessionRepository:
    return SessionRepository(store, locks)


@pytest.fixture()
def lessons(store: InMemoryKeyValueStore, locks: NamespaceLocks) -> LessonRepository:
    return LessonRepository(store, locks)


@pytest.fixture()
def alice() -> User:
    return User(
        id="u1",
        name="Alice",
        email="alice@example.com",
        skills=["Cooking", "Painting"],
        level="Intermediate",
        goals="Career change",
    )


@pytest.fixture()
def signed_in_context(alice: User) -> SessionContext:
    ctx = SessionContext()
    ctx.sign_in(alice, "token-u1")
    return ctx


@pytest.fixture()
def yielding_store() -> YieldingStore:
    return YieldingStore()
