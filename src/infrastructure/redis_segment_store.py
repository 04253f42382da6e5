"""
Redis segment store.

Each voice note keeps its segment rows as a JSON list under
``voice_segments:{id}`` and its processing marker as a hash under
``voice_note:{id}``.
"""

import json
import logging
from datetime import datetime
from typing import List, Optional, Sequence

import redis.asyncio as aioredis
from redis.exceptions import RedisError

from domain.segment_store import SegmentStore, SegmentStoreError
from domain.voice_models import ContextSegment

logger = logging.getLogger(__name__)


class RedisSegmentStore(SegmentStore):
    """Segment store backed by Redis lists."""

    def __init__(
        self,
        host: str = "localhost",
        port: int = 6379,
        db: int = 0,
        client: Optional[aioredis.Redis] = None,
    ):
        """
        Initialize the Redis segment store.

        Args:
            host: Redis server host
            port: Redis server port
            db: Redis database number
            client: Pre-built client (takes precedence over host/port/db)
        """
        self.redis = client or aioredis.Redis(host=host, port=port, db=db, decode_responses=True)
        logger.info(f"Redis segment store initialized: {host}:{port}/{db}")

    @staticmethod
    def _segments_key(voice_note_id: str) -> str:
        return f"voice_segments:{voice_note_id}"

    @staticmethod
    def _note_key(voice_note_id: str) -> str:
        return f"voice_note:{voice_note_id}"

    async def replace_segments(self, voice_note_id: str, segments: Sequence[ContextSegment]) -> None:
        key = self._segments_key(voice_note_id)
        rows = [json.dumps(segment.to_dict(), ensure_ascii=False) for segment in segments]
        try:
            await self.redis.delete(key)
            if rows:
                await self.redis.rpush(key, *rows)
        except RedisError as e:
            logger.error(f"Error storing segments for voice note {voice_note_id}: {e}")
            raise SegmentStoreError(f"Failed to store segments for {voice_note_id}") from e
        logger.debug(f"Stored {len(rows)} segments for voice note {voice_note_id}")

    async def get_segments(self, voice_note_id: str) -> List[ContextSegment]:
        try:
            rows = await self.redis.lrange(self._segments_key(voice_note_id), 0, -1)
        except RedisError as e:
            logger.error(f"Error reading segments for voice note {voice_note_id}: {e}")
            raise SegmentStoreError(f"Failed to read segments for {voice_note_id}") from e
        segments = [ContextSegment.from_dict(json.loads(row)) for row in rows]
        return sorted(segments, key=lambda s: s.index)

    async def mark_processed(self, voice_note_id: str, nlp_version: str) -> None:
        try:
            await self.redis.hset(
                self._note_key(voice_note_id),
                mapping={
                    "nlp_status": "processed",
                    "nlp_version": nlp_version,
                    "nlp_processed_at": datetime.now().isoformat(timespec="seconds"),
                },
            )
        except RedisError as e:
            logger.error(f"Error marking voice note {voice_note_id} processed: {e}")
            raise SegmentStoreError(f"Failed to mark {voice_note_id} processed") from e

    async def close(self) -> None:
        """Close Redis connection."""
        await self.redis.aclose()
        logger.info("Redis segment store closed")
