"""
Voice Entry Parser - one transcript in, one diary draft out.

Runs the entity extractors (time, pain, medications with tablet fractions),
decides whether the utterance opens a new diary entry or only adds context,
and cleans the free-text note of everything that was extracted. Every field
is filled; what could not be found is listed in ``missing`` and the review
sheet decides what to show.

Never raises for data-quality reasons. When in doubt the utterance is kept
as a context entry so nothing the user said is lost.
"""

import logging
import re
from datetime import datetime
from typing import Iterable, List, Optional, Tuple

from application.services.entity_extractors import EntityExtractor
from application.services.medication_matcher import MedicationMatcher, split_strength, tokenize
from application.services.transcript_normalizer import TranscriptNormalizer
from domain.german_lexicon import GERMAN, GermanLexicon
from domain.rule_table import compile_patterns, matches_any
from domain.voice_models import (
    Confidence,
    EntryType,
    ParsedMedication,
    ParsedPainIntensity,
    ParsedTime,
    TimeKind,
    UserMedication,
    VoiceParseResult,
    coerce_user_meds,
)

logger = logging.getLogger(__name__)

_WHITESPACE = re.compile(r"\s+")
_EDGE_NOISE = re.compile(r"^[\s,.\-:;]+|[\s,.\-:;]+$")

# Classification weights
MEDICATION_WEIGHT = 0.35
PAIN_WEIGHT = 0.30
EXPLICIT_TIME_WEIGHT = 0.15
NEW_ENTRY_TRIGGER_WEIGHT = 0.20
CONTEXT_TRIGGER_WEIGHT = 0.40
NOTHING_EXTRACTED_WEIGHT = 0.30
CONFIDENCE_CAP = 0.95
REVIEW_THRESHOLD = 0.65

# Dose lookup window around a medication mention, in tokens
DOSE_WINDOW_BEFORE = 4
DOSE_WINDOW_AFTER = 5


def format_dose_quarters(quarters: int) -> str:
    """4 -> '1 Tablette', 2 -> '½ Tablette'."""
    labels = {
        1: "¼ Tablette",
        2: "½ Tablette",
        3: "¾ Tablette",
        4: "1 Tablette",
        6: "1½ Tabletten",
        8: "2 Tabletten",
    }
    if quarters in labels:
        return labels[quarters]
    amount = f"{quarters / 4:g}"
    return f"{amount} Tablette{'n' if quarters > 4 else ''}"


def format_time_display(time: ParsedTime) -> str:
    if time.display_text:
        return time.display_text
    if time.is_now:
        return "jetzt"
    return f"{time.date} {time.time}"


class VoiceEntryParser:
    """Parse a diary dictation into a VoiceParseResult."""

    def __init__(self, lexicon: Optional[GermanLexicon] = None):
        self.lexicon = lexicon or GERMAN
        el = self.lexicon.entity
        self.normalizer = TranscriptNormalizer(self.lexicon.normalizer)
        self.entities = EntityExtractor(self.lexicon)

        self._context_triggers = compile_patterns(el.context_entry_triggers)
        self._new_entry_triggers = compile_patterns(el.new_entry_triggers)
        self._note_fillers = compile_patterns(el.note_fillers)
        self._dose_patterns = compile_patterns([rule.pattern for rule in el.dose_rules])
        self._dose_amount = re.compile(self.lexicon.intent.dose_amount, re.IGNORECASE)
        self._time_patterns = [
            re.compile(p.pattern, re.IGNORECASE) for p in self.entities.time_patterns()
        ]

    # ========================================
    # Components
    # ========================================

    def parse_medications(self, text: str, user_meds: Tuple[UserMedication, ...]) -> List[ParsedMedication]:
        """
        User medications mentioned in the text, each with the tablet fraction
        said near it. Without a user match, falls back to a dosage-anchored
        name ("Ibuprofen 400 mg") that is flagged for review.
        """
        matcher = MedicationMatcher(user_meds, self.lexicon.medication)
        tokens = tokenize(text)
        medications: List[ParsedMedication] = []

        for mention in matcher.find_mentions(text):
            start = max(0, mention.start_index - DOSE_WINDOW_BEFORE)
            end = min(len(tokens), mention.end_index + DOSE_WINDOW_AFTER)
            window = " ".join(tokens[start:end])
            quarters, dose_text = self.entities.extract_dose_quarters(window)
            medications.append(ParsedMedication(
                name=mention.match.canonical,
                matched_user_med=True,
                medication_id=mention.match.medication_id,
                dose_quarters=quarters,
                dose_text=dose_text,
                dose_mg=self.entities.extract_dose_mg(window),
                confidence=mention.match.confidence,
                needs_review=mention.match.is_uncertain,
            ))

        if medications:
            return medications

        extracted = self.entities.extract_medication(text)
        if extracted and self.entities.is_known_medication(extracted.name):
            quarters, dose_text = self.entities.extract_dose_quarters(text)
            medications.append(ParsedMedication(
                name=extracted.name.capitalize(),
                matched_user_med=False,
                dose_quarters=quarters,
                dose_text=dose_text,
                dose_mg=extracted.dose_mg,
                confidence=0.6,
                needs_review=True,
            ))
        return medications

    def classify(
        self,
        normalized: str,
        pain: ParsedPainIntensity,
        medications: List[ParsedMedication],
        time: ParsedTime,
    ) -> Tuple[EntryType, float, bool]:
        """
        Decide between a new diary entry and a context note.

        Returns:
            (entry type, confidence, whether the UI should offer a type toggle)
        """
        has_context_trigger = matches_any(self._context_triggers, normalized)
        has_new_entry_trigger = matches_any(self._new_entry_triggers, normalized)
        has_medications = bool(medications)
        has_pain = pain.value is not None
        has_explicit_time = not time.is_now and time.kind != TimeKind.NONE

        new_entry_score = 0.0
        context_score = 0.0
        if has_medications:
            new_entry_score += MEDICATION_WEIGHT
        if has_pain:
            new_entry_score += PAIN_WEIGHT
        if has_explicit_time and (has_medications or has_pain):
            new_entry_score += EXPLICIT_TIME_WEIGHT
        if has_new_entry_trigger:
            new_entry_score += NEW_ENTRY_TRIGGER_WEIGHT

        if has_context_trigger and not has_medications and not has_pain:
            context_score += CONTEXT_TRIGGER_WEIGHT
        if not has_medications and not has_pain and not has_new_entry_trigger:
            context_score += NOTHING_EXTRACTED_WEIGHT

        total = new_entry_score + context_score
        new_entry_share = new_entry_score / total if total > 0 else 0.5

        if new_entry_score > context_score and (has_medications or has_pain or has_new_entry_trigger):
            return (
                EntryType.NEW_ENTRY,
                round(min(CONFIDENCE_CAP, new_entry_share), 4),
                new_entry_share < 0.75,
            )

        return (
            EntryType.CONTEXT_ENTRY,
            round(min(CONFIDENCE_CAP, 1 - new_entry_share), 4),
            new_entry_share > 0.35,
        )

    def clean_note(self, text: str, medications: List[ParsedMedication]) -> str:
        """Remove time, pain, medication and dose phrases from the raw text."""
        cleaned = text
        for pattern in self._time_patterns:
            cleaned = pattern.sub("", cleaned)
        cleaned = self._dose_amount.sub("", cleaned)
        for pattern in self._note_fillers:
            cleaned = pattern.sub("", cleaned)
        for med in medications:
            for name in (med.name, split_strength(med.name)[0]):
                cleaned = re.sub(r"\b" + re.escape(name) + r"\b", "", cleaned, flags=re.IGNORECASE)
        for pattern in self._dose_patterns:
            cleaned = pattern.sub("", cleaned)
        cleaned = _WHITESPACE.sub(" ", cleaned).strip()
        return _EDGE_NOISE.sub("", cleaned)

    # ========================================
    # Entry point
    # ========================================

    def parse(
        self,
        transcript: Optional[str],
        user_meds: Optional[Iterable] = None,
        now: Optional[datetime] = None,
    ) -> VoiceParseResult:
        """
        Parse a dictated diary entry.

        Args:
            transcript: Raw transcript
            user_meds: The user's medications (names, ``{name, id}`` mappings or UserMedication)
            now: Reference time (defaults to the current local time)

        Returns:
            VoiceParseResult; short or empty transcripts become an empty context entry
        """
        now = now or datetime.now()
        raw = transcript or ""

        if len(raw.strip()) < 2:
            return VoiceParseResult(
                entry_type=EntryType.CONTEXT_ENTRY,
                confidence=0.0,
                raw_text=raw,
                time=ParsedTime.at(now, kind=TimeKind.NONE, confidence=Confidence.HIGH, is_now=True),
                note=raw,
            )

        text = raw.strip()
        normalized = self.normalizer.normalize(text).normalized
        meds = coerce_user_meds(user_meds)

        time = self.entities.extract_time(normalized, now=now)
        pain = self.entities.extract_pain_level(normalized)
        medications = self.parse_medications(normalized, meds)

        entry_type, confidence, can_toggle = self.classify(normalized, pain, medications, time)
        note = self.clean_note(text, medications) if entry_type == EntryType.NEW_ENTRY else text

        missing = []
        if pain.value is None:
            missing.append("pain")
        if not medications:
            missing.append("medications")

        needs_review = (
            any(med.needs_review for med in medications)
            or pain.needs_review
            or confidence < REVIEW_THRESHOLD
        )

        logger.debug(
            f"Parsed voice entry as {entry_type.value} ({confidence:.2f}), "
            f"pain={pain.value}, meds={[m.name for m in medications]}"
        )
        return VoiceParseResult(
            entry_type=entry_type,
            confidence=confidence,
            raw_text=raw,
            time=time,
            pain_intensity=pain,
            medications=tuple(medications),
            note=note,
            missing=tuple(missing),
            needs_review=needs_review,
            type_can_be_toggled=can_toggle,
        )


_default_parser: Optional[VoiceEntryParser] = None


def parse_voice_entry(
    transcript: Optional[str],
    user_meds: Optional[Iterable] = None,
    now: Optional[datetime] = None,
) -> VoiceParseResult:
    """Convenience function using the German lexicon."""
    global _default_parser
    if _default_parser is None:
        _default_parser = VoiceEntryParser()
    return _default_parser.parse(transcript, user_meds, now=now)
