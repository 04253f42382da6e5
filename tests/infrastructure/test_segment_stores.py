"""Tests for the segment store implementations."""

import json

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from domain.segment_store import SegmentStoreError
from domain.voice_models import ContextSegment, SegmentType
from infrastructure.in_memory_segment_store import InMemorySegmentStore
from infrastructure.redis_segment_store import RedisSegmentStore


def _segments():
    return [
        ContextSegment(index=1, type=SegmentType.SYMPTOM_COURSE, source_text="Danach Übelkeit", confidence=0.5),
        ContextSegment(
            index=0,
            type=SegmentType.MEDICATION_EVENT,
            source_text="Sumatriptan 50 mg genommen",
            confidence=0.65,
            medication_name="Sumatriptan",
            medication_dose="50 mg",
        ),
    ]


class FakeRedis:
    """Minimal async stand-in for the list and hash commands the store uses."""

    def __init__(self, fail: bool = False):
        self.lists = {}
        self.hashes = {}
        self.fail = fail
        self.closed = False

    def _check(self):
        if self.fail:
            raise RedisConnectionError("connection refused")

    async def delete(self, key):
        self._check()
        self.lists.pop(key, None)

    async def rpush(self, key, *values):
        self._check()
        self.lists.setdefault(key, []).extend(values)

    async def lrange(self, key, start, end):
        self._check()
        return list(self.lists.get(key, []))

    async def hset(self, key, mapping):
        self._check()
        self.hashes.setdefault(key, {}).update(mapping)

    async def aclose(self):
        self.closed = True


# ========================================
# In-memory store
# ========================================

class TestInMemorySegmentStore:
    """Test the in-process store."""

    @pytest.mark.asyncio
    async def test_replace_and_read_in_index_order(self):
        store = InMemorySegmentStore()
        await store.replace_segments("note-1", _segments())
        segments = await store.get_segments("note-1")
        assert [s.index for s in segments] == [0, 1]

    @pytest.mark.asyncio
    async def test_replace_drops_previous_rows(self):
        store = InMemorySegmentStore()
        await store.replace_segments("note-1", _segments())
        await store.replace_segments("note-1", _segments()[:1])
        assert len(await store.get_segments("note-1")) == 1

    @pytest.mark.asyncio
    async def test_unknown_note_is_empty(self):
        assert await InMemorySegmentStore().get_segments("missing") == []

    @pytest.mark.asyncio
    async def test_mark_processed(self):
        store = InMemorySegmentStore()
        await store.mark_processed("note-1", "v1.0.0")
        assert store.processed_version("note-1") == "v1.0.0"
        assert store.processed_version("other") is None

    @pytest.mark.asyncio
    async def test_empty_id_rejected(self):
        with pytest.raises(SegmentStoreError):
            await InMemorySegmentStore().replace_segments("", _segments())


# ========================================
# Redis store
# ========================================

class TestRedisSegmentStore:
    """Test the Redis store against a fake client."""

    @pytest.mark.asyncio
    async def test_rows_stored_as_json(self):
        client = FakeRedis()
        store = RedisSegmentStore(client=client)
        await store.replace_segments("note-1", _segments())

        rows = client.lists["voice_segments:note-1"]
        assert len(rows) == 2
        assert json.loads(rows[0])["source_text"] == "Danach Übelkeit"

    @pytest.mark.asyncio
    async def test_round_trip_sorted(self):
        store = RedisSegmentStore(client=FakeRedis())
        await store.replace_segments("note-1", _segments())
        segments = await store.get_segments("note-1")
        assert [s.index for s in segments] == [0, 1]
        assert segments[0].medication_dose == "50 mg"

    @pytest.mark.asyncio
    async def test_replace_with_no_segments_clears(self):
        client = FakeRedis()
        store = RedisSegmentStore(client=client)
        await store.replace_segments("note-1", _segments())
        await store.replace_segments("note-1", [])
        assert await store.get_segments("note-1") == []

    @pytest.mark.asyncio
    async def test_mark_processed_writes_hash(self):
        client = FakeRedis()
        store = RedisSegmentStore(client=client)
        await store.mark_processed("note-1", "v1.0.0")
        marker = client.hashes["voice_note:note-1"]
        assert marker["nlp_status"] == "processed"
        assert marker["nlp_version"] == "v1.0.0"
        assert "nlp_processed_at" in marker

    @pytest.mark.asyncio
    async def test_redis_errors_become_store_errors(self):
        store = RedisSegmentStore(client=FakeRedis(fail=True))
        with pytest.raises(SegmentStoreError):
            await store.replace_segments("note-1", _segments())
        with pytest.raises(SegmentStoreError):
            await store.get_segments("note-1")
        with pytest.raises(SegmentStoreError):
            await store.mark_processed("note-1", "v1.0.0")

    @pytest.mark.asyncio
    async def test_close(self):
        client = FakeRedis()
        await RedisSegmentStore(client=client).close()
        assert client.closed
