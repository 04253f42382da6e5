"""
Intent Scorer - classify what a spoken diary utterance asks for.

Feature-based scoring instead of an if/else chain: every fired feature adds
a fixed weight to one or more intents, then the highest score wins. Ties are
broken by an explicit priority order so the result never depends on dict
iteration order.

The scorer never raises; an utterance nobody understands still produces a
``note`` or ``unknown`` verdict that the UI can offer as a manual fallback.
"""

import logging
from dataclasses import dataclass, fields
from typing import Dict, Iterable, List, Optional, Tuple

from application.services.entity_extractors import EntityExtractor
from application.services.medication_matcher import matches_med_name, normalize_for_match
from application.services.transcript_normalizer import TranscriptNormalizer
from application.services.voice_features import VoiceFeatureExtractor
from domain.german_lexicon import GERMAN, GermanLexicon
from domain.voice_models import (
    SCORED_INTENTS,
    IntentType,
    ScoringResult,
    UserMedication,
    coerce_user_meds,
)

logger = logging.getLogger(__name__)

# Highest priority first; decides between intents with identical scores
TIE_BREAK_ORDER: Tuple[IntentType, ...] = (
    IntentType.ADD_MEDICATION,
    IntentType.MEDICATION_UPDATE,
    IntentType.MEDICATION_EFFECT,
    IntentType.REMINDER,
    IntentType.PAIN_ENTRY,
    IntentType.ANALYTICS_QUERY,
    IntentType.NAVIGATION,
    IntentType.NOTE,
)


@dataclass(frozen=True)
class ScoringWeights:
    """Weight added per fired feature, plus the verdict thresholds."""
    note_base: float = 0.3
    add_verb: float = 0.5
    explicit_new_med: float = 0.35
    dosage_add: float = 0.25
    dosage_pain: float = 0.1
    dosage_with_add_verb: float = 0.15
    known_med_alias: float = 0.2
    user_med_pain: float = 0.15
    user_med_update: float = 0.1
    pain_keywords: float = 0.45
    pain_context_dominant: float = 0.2
    pain_dominance_threshold: int = 1  # pain mentions must exceed this
    pain_level: float = 0.2
    analytics_keywords: float = 0.5
    question: float = 0.3
    time_range: float = 0.25
    update_pattern: float = 0.6
    effect_pattern: float = 0.5
    intake_verb: float = 0.25
    reminder_pattern: float = 0.5
    navigation_pattern: float = 0.5
    min_winning_score: float = 0.3
    confidence_cap: float = 0.95
    note_fallback_confidence: float = 0.6
    unknown_confidence: float = 0.2
    note_min_length: int = 10

    def __post_init__(self):
        """Validate confidence settings against the ScoringResult range."""
        for name in ("confidence_cap", "note_fallback_confidence", "unknown_confidence"):
            value = getattr(self, name)
            if not 0.0 <= value <= 0.95:
                raise ValueError(f"{name} must be between 0.0 and 0.95, got {value}")

    @classmethod
    def from_overrides(cls, overrides: Optional[Dict[str, float]] = None) -> "ScoringWeights":
        """Defaults with selected weights replaced; unknown keys are rejected."""
        overrides = overrides or {}
        known = {f.name for f in fields(cls)}
        unknown = set(overrides) - known
        if unknown:
            raise ValueError(f"Unknown scoring weights: {sorted(unknown)}")
        return cls(**overrides)


class IntentScorer:
    """
    Score a transcript against every diary intent.

    Example:
        scorer = IntentScorer()
        result = scorer.score("Füge Paracetamol 500 mg hinzu")
        result.intent  # IntentType.ADD_MEDICATION
    """

    def __init__(
        self,
        lexicon: Optional[GermanLexicon] = None,
        weights: Optional[ScoringWeights] = None,
    ):
        self.lexicon = lexicon or GERMAN
        self.weights = weights or ScoringWeights()
        self.normalizer = TranscriptNormalizer(self.lexicon.normalizer)
        self.features = VoiceFeatureExtractor(self.lexicon.intent)
        self.entities = EntityExtractor(self.lexicon)

    def _mentions_user_med(self, tokens: Iterable[str], user_meds: Tuple[UserMedication, ...]) -> bool:
        names = [normalize_for_match(med.name) for med in user_meds]
        for token in tokens:
            if len(token) < 4:
                continue
            for med, name in zip(user_meds, names):
                if matches_med_name(med.name, token) or (len(name) >= 4 and name[:4] in token):
                    return True
        return False

    def score(self, transcript: Optional[str], user_meds: Optional[Iterable] = None) -> ScoringResult:
        """
        Score a transcript.

        Args:
            transcript: Raw transcript text
            user_meds: The user's medications, as names, ``{name}`` mappings or UserMedication

        Returns:
            ScoringResult with the winning intent, a confidence in [0, 0.95],
            every intent's score and the fired feature identifiers
        """
        w = self.weights
        f = self.features
        meds = coerce_user_meds(user_meds)
        transcript = transcript or ""
        nt = self.normalizer.normalize(transcript)
        text = nt.normalized

        scores: Dict[IntentType, float] = {intent: 0.0 for intent in SCORED_INTENTS}
        scores[IntentType.NOTE] = w.note_base
        fired: List[str] = []

        def fire(feature: str, *boosts: Tuple[IntentType, float]) -> None:
            for intent, weight in boosts:
                scores[intent] += weight
            if feature not in fired:
                fired.append(feature)

        add_verb = f.has_add_medication_verb(text)
        if add_verb:
            fire("has_add_verb", (IntentType.ADD_MEDICATION, w.add_verb))

        if f.has_explicit_new_medication(text):
            fire("explicit_new_med", (IntentType.ADD_MEDICATION, w.explicit_new_med))

        if f.has_dosage_pattern(text):
            fire(
                "has_dosage_pattern",
                (IntentType.ADD_MEDICATION, w.dosage_add),
                (IntentType.PAIN_ENTRY, w.dosage_pain),
            )
            if add_verb:
                fire("dosage_with_add_verb", (IntentType.ADD_MEDICATION, w.dosage_with_add_verb))

        if self.entities.is_known_medication(self.entities.extract_med_name_near_dosage(text)):
            fire("known_med_alias", (IntentType.ADD_MEDICATION, w.known_med_alias))

        if meds and self._mentions_user_med(nt.tokens, meds):
            fire(
                "user_med_match",
                (IntentType.PAIN_ENTRY, w.user_med_pain),
                (IntentType.MEDICATION_UPDATE, w.user_med_update),
            )

        if f.has_pain_keywords(text):
            fire("has_pain_keywords", (IntentType.PAIN_ENTRY, w.pain_keywords))
            # Intake narration ("Sumatriptan genommen, Kopfschmerz Stärke 7") is not a create command
            if (
                add_verb
                and f.count_pain_mentions(text) > w.pain_dominance_threshold
                and not f.has_add_construction(text)
            ):
                fire("pain_context_dominant", (IntentType.PAIN_ENTRY, w.pain_context_dominant))

        if f.has_pain_level(text):
            fire("has_pain_level", (IntentType.PAIN_ENTRY, w.pain_level))

        if f.has_analytics_keywords(text):
            fire("has_analytics_keywords", (IntentType.ANALYTICS_QUERY, w.analytics_keywords))

        if f.is_question(transcript, text):
            fire("is_question", (IntentType.ANALYTICS_QUERY, w.question))

        if f.has_time_range(text):
            fire("has_time_range", (IntentType.ANALYTICS_QUERY, w.time_range))

        if f.has_update_pattern(text):
            fire("has_update_pattern", (IntentType.MEDICATION_UPDATE, w.update_pattern))

        if f.has_effect_pattern(text):
            fire("has_effect_pattern", (IntentType.MEDICATION_EFFECT, w.effect_pattern))

        if f.has_intake_verb(text):
            fire("has_intake_verb", (IntentType.PAIN_ENTRY, w.intake_verb))

        if f.has_reminder_pattern(text):
            fire("has_reminder_pattern", (IntentType.REMINDER, w.reminder_pattern))

        if f.has_navigation_pattern(text):
            fire("has_nav_pattern", (IntentType.NAVIGATION, w.navigation_pattern))

        scores = {intent: round(score, 6) for intent, score in scores.items()}
        winner, best = self._pick_winner(scores)

        if best < w.min_winning_score:
            if len(transcript.strip()) > w.note_min_length:
                verdict = (IntentType.NOTE, w.note_fallback_confidence)
            else:
                verdict = (IntentType.UNKNOWN, w.unknown_confidence)
        else:
            verdict = (winner, min(w.confidence_cap, max(0.0, best)))

        logger.debug(f"Scored intent {verdict[0].value} ({verdict[1]:.2f}) features={fired}")
        return ScoringResult(
            intent=verdict[0],
            confidence=verdict[1],
            scores=scores,
            features=tuple(fired),
        )

    @staticmethod
    def _pick_winner(scores: Dict[IntentType, float]) -> Tuple[IntentType, float]:
        winner = IntentType.UNKNOWN
        best = 0.0
        for intent in TIE_BREAK_ORDER:
            if scores[intent] > best:
                winner, best = intent, scores[intent]
        return winner, best


def get_top_intents(scores: Dict[IntentType, float], n: int = 3) -> List[Tuple[IntentType, float]]:
    """Top ``n`` intents with a positive score, best first (ties in priority order)."""
    ranked = [
        (intent, scores.get(intent, 0.0))
        for intent in TIE_BREAK_ORDER
        if scores.get(intent, 0.0) > 0
    ]
    ranked.sort(key=lambda item: item[1], reverse=True)
    return ranked[:n]


_default_scorer: Optional[IntentScorer] = None


def score_intents(transcript: Optional[str], user_meds: Optional[Iterable] = None) -> ScoringResult:
    """Convenience function using the German lexicon and default weights."""
    global _default_scorer
    if _default_scorer is None:
        _default_scorer = IntentScorer()
    return _default_scorer.score(transcript, user_meds)
