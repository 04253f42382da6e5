"""
Context Segmenter - split a free-form context note into typed clauses.

A context note ("Sumatriptan 50 mg genommen. Danach Übelkeit. Schlecht
geschlafen.") is split into sentences, and each sentence is classified as a
medication event, symptom course, lifestyle factor, trigger or time pattern.
Alongside the type, each segment carries the structured details found in the
clause (medication + dose + role, effect rating, factor type/value, time
reference) and a short normalized summary.

Classification is rule-based and deterministic. There is no model behind it;
the version string below identifies the rule set that produced a segment row.
"""

import logging
import re
from typing import Iterable, List, Optional, Tuple

from application.services.medication_matcher import MedicationMatcher
from application.services.transcript_normalizer import TranscriptNormalizer
from domain.german_lexicon import GERMAN, GermanLexicon
from domain.rule_table import RuleTable
from domain.voice_models import ContextSegment, SegmentType, coerce_user_meds

logger = logging.getLogger(__name__)

NLP_VERSION = "v1.0.0"

# Confidence bonuses per extracted detail
BASE_CONFIDENCE = 0.5
MEDICATION_BONUS = 0.15
EFFECT_BONUS = 0.1
FACTOR_VALUE_BONUS = 0.1
TIME_REFERENCE_BONUS = 0.05
UNKNOWN_PENALTY = 0.2


def _spaced(label: str) -> str:
    return label.replace("_", " ")


class ContextSegmenter:
    """
    Decompose context notes into ContextSegments.

    Example:
        segmenter = ContextSegmenter()
        segments = segmenter.segment("Ibuprofen genommen, aber hat nicht geholfen")
    """

    def __init__(self, lexicon: Optional[GermanLexicon] = None, nlp_version: str = NLP_VERSION):
        self.lexicon = lexicon or GERMAN
        self.nlp_version = nlp_version
        sl = self.lexicon.segment
        self.normalizer = TranscriptNormalizer(self.lexicon.normalizer)

        self._sentence_split = re.compile(sl.sentence_split)
        self._conjunction_split = re.compile(sl.conjunction_split, re.IGNORECASE)
        self._types = RuleTable((patterns, SegmentType(name)) for name, patterns in sl.segment_types)
        self._effects = RuleTable((pattern, name) for name, pattern in sl.effect_ratings)
        self._factor_types = RuleTable((pattern, name) for name, pattern in sl.factor_types)
        self._factor_values = {
            factor: RuleTable((pattern, value) for pattern, value in values)
            for factor, values in sl.factor_values
        }
        self._roles = RuleTable((pattern, name) for name, pattern in sl.medication_roles)
        self._time_references = RuleTable((pattern, name) for name, pattern in sl.time_references)
        self._timing_relations = RuleTable((pattern, name) for name, pattern in sl.timing_relations)
        self._dose = re.compile(sl.dose, re.IGNORECASE)

    # ========================================
    # Splitting
    # ========================================

    def split_clauses(self, text: str) -> List[str]:
        """
        Sentences first; a single long sentence is split at ", und/aber/weil/...".

        Returns the whole text as one clause when nothing long enough survives.
        """
        text = (text or "").strip()
        if not text:
            return []

        min_length = self.lexicon.segment.min_clause_length
        clauses = [c.strip() for c in self._sentence_split.split(text)]
        clauses = [c for c in clauses if len(c) > min_length]

        if len(clauses) <= 1 and self._conjunction_split.search(text):
            parts = [p.strip() for p in self._conjunction_split.split(text)]
            parts = [p.strip(" .!?") for p in parts]
            parts = [p for p in parts if len(p) > min_length]
            if len(parts) > 1:
                clauses = parts

        return clauses or [text]

    # ========================================
    # Per-clause extraction
    # ========================================

    def classify(self, clause: str) -> SegmentType:
        normalized = self.normalizer.normalize(clause).normalized
        return self._types.first_match(normalized, default=SegmentType.UNKNOWN)

    def _medication(self, clause: str, normalized: str, matcher: MedicationMatcher) -> Tuple[Optional[str], Optional[str]]:
        name = None
        med = matcher.find_in_text(clause)
        if med is not None:
            name = med.name
        else:
            name = matcher.find_canonical_synonym(normalized)

        dose_match = self._dose.search(clause) or self._dose.search(normalized)
        dose = dose_match.group(0).strip() if dose_match else None
        return name, dose

    def _factor(self, normalized: str) -> Tuple[Optional[str], Optional[str]]:
        factor_type = self._factor_types.first_match(normalized)
        if factor_type is None:
            return None, None
        values = self._factor_values.get(factor_type)
        return factor_type, values.first_match(normalized) if values else None

    def _summary(
        self,
        medication_name: Optional[str],
        medication_dose: Optional[str],
        effect_rating: Optional[str],
        factor_type: Optional[str],
        factor_value: Optional[str],
        time_reference: Optional[str],
    ) -> Optional[str]:
        parts: List[str] = []
        if medication_name:
            med = medication_name
            if medication_dose:
                med += f" {medication_dose}"
            if effect_rating:
                med += f" ({_spaced(effect_rating)})"
            parts.append(med)
        if factor_type and factor_value:
            parts.append(f"{factor_type}: {_spaced(factor_value)}")
        if time_reference:
            parts.append(f"[{_spaced(time_reference)}]")
        return " ".join(parts) if parts else None

    def analyze_clause(self, index: int, clause: str, matcher: MedicationMatcher) -> ContextSegment:
        normalized = self.normalizer.normalize(clause).normalized
        segment_type = self._types.first_match(normalized, default=SegmentType.UNKNOWN)

        medication_name, medication_dose = self._medication(clause, normalized, matcher)
        medication_role = self._roles.first_match(normalized)
        effect_rating = self._effects.first_match(normalized)
        factor_type, factor_value = self._factor(normalized)
        time_reference = self._time_references.first_match(normalized)
        timing_relation = self._timing_relations.first_match(normalized)

        confidence = BASE_CONFIDENCE
        if medication_name:
            confidence += MEDICATION_BONUS
        if effect_rating:
            confidence += EFFECT_BONUS
        if factor_value:
            confidence += FACTOR_VALUE_BONUS
        if time_reference:
            confidence += TIME_REFERENCE_BONUS
        if segment_type == SegmentType.UNKNOWN:
            confidence -= UNKNOWN_PENALTY
        confidence = round(max(0.1, min(1.0, confidence)), 2)

        return ContextSegment(
            index=index,
            type=segment_type,
            source_text=clause,
            confidence=confidence,
            normalized_summary=self._summary(
                medication_name, medication_dose, effect_rating,
                factor_type, factor_value, time_reference,
            ),
            medication_name=medication_name,
            medication_dose=medication_dose,
            medication_role=medication_role,
            effect_rating=effect_rating,
            timing_relation=timing_relation,
            time_reference=time_reference,
            factor_type=factor_type,
            factor_value=factor_value,
        )

    def segment(self, text: Optional[str], user_meds: Optional[Iterable] = None) -> List[ContextSegment]:
        """
        Segment a context note.

        Args:
            text: Raw note text
            user_meds: The user's medications (names, ``{name}`` mappings or UserMedication)

        Returns:
            Segments in transcript order with indices 0..n-1; empty for blank text
        """
        clauses = self.split_clauses(text or "")
        if not clauses:
            return []

        matcher = MedicationMatcher(coerce_user_meds(user_meds), self.lexicon.medication)
        segments = [self.analyze_clause(i, clause, matcher) for i, clause in enumerate(clauses)]
        logger.debug(
            f"Segmented note into {len(segments)} segments: "
            f"{[s.type.value for s in segments]}"
        )
        return segments


_default_segmenter: Optional[ContextSegmenter] = None


def segment_transcript(text: Optional[str], user_meds: Optional[Iterable] = None) -> List[ContextSegment]:
    """Convenience function using the German lexicon."""
    global _default_segmenter
    if _default_segmenter is None:
        _default_segmenter = ContextSegmenter()
    return _default_segmenter.segment(text, user_meds)
