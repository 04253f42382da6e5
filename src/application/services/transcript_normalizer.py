"""
Transcript Normalizer - canonicalize raw speech-to-text output.

Lowercases, repairs common recognizer artifacts (contractions, unit
abbreviations, misheard drug names, "7/10" pain notation), folds umlauts to
ASCII digraphs and collapses whitespace. Running the normalizer on its own
output is a no-op.
"""

import logging
import re
from typing import List, Optional, Tuple

from domain.german_lexicon import GERMAN, NormalizerLexicon
from domain.voice_models import NormalizedTranscript

logger = logging.getLogger(__name__)

_WHITESPACE = re.compile(r"\s+")

# Rescans of the correction table; one pass can expose a new match ("7/10/10").
MAX_CORRECTION_PASSES = 10


class TranscriptNormalizer:
    """
    Normalize German transcripts.

    The ASR correction table is applied in order; each entry only matches raw
    recognizer artifacts, never their corrected form.
    """

    def __init__(self, lexicon: Optional[NormalizerLexicon] = None):
        self.lexicon = lexicon or GERMAN.normalizer
        self._replacements: List[Tuple[re.Pattern, str]] = [
            (re.compile(pattern), replacement)
            for pattern, replacement in self.lexicon.asr_replacements
        ]

    def fold_umlauts(self, text: str) -> str:
        """Lowercase and replace ä/ö/ü/ß with ae/oe/ue/ss."""
        folded = (text or "").lower()
        for umlaut, digraph in self.lexicon.umlaut_folds:
            folded = folded.replace(umlaut, digraph)
        return folded

    def apply_asr_corrections(self, text: str) -> str:
        corrected = text
        for _ in range(MAX_CORRECTION_PASSES):
            previous = corrected
            for pattern, replacement in self._replacements:
                corrected = pattern.sub(replacement, corrected)
            if corrected == previous:
                break
        return corrected

    def normalize(self, text: Optional[str]) -> NormalizedTranscript:
        """
        Normalize a transcript.

        Args:
            text: Raw transcript, may be empty or None

        Returns:
            NormalizedTranscript; empty input yields empty fields
        """
        if not text or not text.strip():
            return NormalizedTranscript(original="", normalized="", tokens=())

        lowered = text.strip().lower()
        corrected = self.apply_asr_corrections(lowered)
        folded = self.fold_umlauts(corrected)
        normalized = _WHITESPACE.sub(" ", folded).strip()

        if normalized != lowered:
            logger.debug(f"Normalized transcript: '{text[:60]}' -> '{normalized[:60]}'")

        return NormalizedTranscript(
            original=text,
            normalized=normalized,
            tokens=tuple(normalized.split()),
        )


_default_normalizer: Optional[TranscriptNormalizer] = None


def _get_default_normalizer() -> TranscriptNormalizer:
    global _default_normalizer
    if _default_normalizer is None:
        _default_normalizer = TranscriptNormalizer()
    return _default_normalizer


def normalize_transcript(text: Optional[str]) -> NormalizedTranscript:
    """Convenience function to normalize a transcript with the German rules."""
    return _get_default_normalizer().normalize(text)


def normalize_umlauts(text: Optional[str]) -> str:
    """Convenience function: lowercase and fold umlauts."""
    return _get_default_normalizer().fold_umlauts(text or "")
