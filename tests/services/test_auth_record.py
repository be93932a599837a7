"""Tests for AuthRecordRepository."""

from __future__ import annotations

import json

import pytest

from mentor_match.application.exceptions import StorageWriteError
from mentor_match.domain.models import User
from mentor_match.domain.namespace import AUTH_RECORD_KEY
from mentor_match.services.auth_record import AuthRecordRepository


class TestAuthRecord:
    async def test_missing_record(self, store):
        assert await AuthRecordRepository(store).load() is None

    async def test_save_and_load(self, store, alice: User):
        records = AuthRecordRepository(store)
        await records.save(alice, "token-u1")

        record = await records.load()

        assert record.user == alice
        assert record.token == "token-u1"
        assert json.loads(await store.get(AUTH_RECORD_KEY))["token"] == "token-u1"

    async def test_unreadable_record_is_signed_out(self, flaky_store, alice: User):
        records = AuthRecordRepository(flaky_store)
        await records.save(alice, "token-u1")
        flaky_store.fail_reads.add(AUTH_RECORD_KEY)
        assert await records.load() is None

    async def test_corrupt_record_is_signed_out(self, store):
        await store.set(AUTH_RECORD_KEY, '{"user": {}}')
        assert await AuthRecordRepository(store).load() is None

    async def test_clear(self, store, alice: User):
        records = AuthRecordRepository(store)
        await records.save(alice, "token-u1")
        await records.clear()
        assert await store.get(AUTH_RECORD_KEY) is None
        await records.clear()

    async def test_save_failure_surfaces(self, flaky_store, alice: User):
        flaky_store.fail_writes.add(AUTH_RECORD_KEY)
        with pytest.raises(StorageWriteError):
            await AuthRecordRepository(flaky_store).save(alice, "token-u1")
