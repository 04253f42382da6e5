"""
In-process segment store.

Default store for the API and the tests. Data lives as long as the process.
"""

import logging
from datetime import datetime
from typing import Dict, List, Sequence, Tuple

from domain.segment_store import SegmentStore, SegmentStoreError
from domain.voice_models import ContextSegment

logger = logging.getLogger(__name__)


class InMemorySegmentStore(SegmentStore):
    """Keeps segment rows and processing markers in dictionaries."""

    def __init__(self):
        self._segments: Dict[str, List[ContextSegment]] = {}
        self._processed: Dict[str, Tuple[str, datetime]] = {}

    async def replace_segments(self, voice_note_id: str, segments: Sequence[ContextSegment]) -> None:
        if not voice_note_id:
            raise SegmentStoreError("voice_note_id is required")
        self._segments.pop(voice_note_id, None)
        self._segments[voice_note_id] = sorted(segments, key=lambda s: s.index)
        logger.debug(f"Stored {len(segments)} segments for voice note {voice_note_id}")

    async def get_segments(self, voice_note_id: str) -> List[ContextSegment]:
        return list(self._segments.get(voice_note_id, []))

    async def mark_processed(self, voice_note_id: str, nlp_version: str) -> None:
        if not voice_note_id:
            raise SegmentStoreError("voice_note_id is required")
        self._processed[voice_note_id] = (nlp_version, datetime.now())

    def processed_version(self, voice_note_id: str):
        """NLP version the note was last processed with, or None."""
        entry = self._processed.get(voice_note_id)
        return entry[0] if entry else None
