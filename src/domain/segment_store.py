from abc import ABC, abstractmethod
from typing import List, Sequence

from domain.voice_models import ContextSegment


class SegmentStoreError(Exception):
    """Raised by a segment store when persisting or reading segments fails."""


class SegmentStore(ABC):
    """
    Persistence port for context segments of a voice note.

    Segments of a note are always written as a whole: a re-run of the
    segmenter replaces every previous row for that note.
    """

    @abstractmethod
    async def replace_segments(self, voice_note_id: str, segments: Sequence[ContextSegment]) -> None:
        """
        Delete the note's existing segments, then insert the new ones.

        Raises:
            SegmentStoreError: If the delete or the insert fails
        """
        pass

    @abstractmethod
    async def get_segments(self, voice_note_id: str) -> List[ContextSegment]:
        """Segments of a note in index order; empty if none were stored."""
        pass

    @abstractmethod
    async def mark_processed(self, voice_note_id: str, nlp_version: str) -> None:
        """Record that the note was segmented with the given rule-set version."""
        pass
