"""
Feature extractors over normalized transcripts.

Pure predicates; they take normalized text (see transcript_normalizer),
never raise and have no side effects. The intent scorer combines them into
per-intent scores.
"""

import re
from typing import Optional

from domain.german_lexicon import GERMAN, IntentLexicon
from domain.rule_table import compile_patterns, matches_any


class VoiceFeatureExtractor:
    """Compiled feature predicates for one lexicon."""

    def __init__(self, lexicon: Optional[IntentLexicon] = None):
        self.lexicon = lexicon = lexicon or GERMAN.intent
        self._add_verbs = compile_patterns(lexicon.add_verbs)
        self._explicit_new_med = compile_patterns(lexicon.explicit_new_medication)
        self._add_construction = re.compile(lexicon.add_construction)
        self._pain_keywords = compile_patterns(lexicon.pain_keywords)
        self._pain_mention = re.compile(lexicon.pain_mention)
        self._analytics = compile_patterns(lexicon.analytics_keywords)
        self._question_start = re.compile(lexicon.question_start)
        self._time_range = compile_patterns(lexicon.time_range)
        self._dosage = re.compile(lexicon.dosage)
        self._pain_level = re.compile(lexicon.pain_level)
        self._update = compile_patterns(lexicon.update_patterns)
        self._effect = compile_patterns(lexicon.effect_patterns)
        self._intake = re.compile(lexicon.intake_verbs)
        self._reminder = compile_patterns(lexicon.reminder_patterns)
        self._navigation = compile_patterns(lexicon.navigation_patterns)

    def has_add_medication_verb(self, normalized: str) -> bool:
        return matches_any(self._add_verbs, normalized or "")

    def has_explicit_new_medication(self, normalized: str) -> bool:
        return matches_any(self._explicit_new_med, normalized or "")

    def has_add_construction(self, normalized: str) -> bool:
        """Explicit "fuege X hinzu" / "fuege X an" command."""
        return bool(self._add_construction.search(normalized or ""))

    def has_pain_keywords(self, normalized: str) -> bool:
        return matches_any(self._pain_keywords, normalized or "")

    def count_pain_mentions(self, normalized: str) -> int:
        return len(self._pain_mention.findall(normalized or ""))

    def has_analytics_keywords(self, normalized: str) -> bool:
        return matches_any(self._analytics, normalized or "")

    def is_question(self, original: str, normalized: str) -> bool:
        """Question mark in the raw text or a W-question opener."""
        return "?" in (original or "") or bool(self._question_start.search(normalized or ""))

    def has_time_range(self, normalized: str) -> bool:
        return matches_any(self._time_range, normalized or "")

    def has_dosage_pattern(self, normalized: str) -> bool:
        return bool(self._dosage.search(normalized or ""))

    def has_pain_level(self, normalized: str) -> bool:
        """A 0-10 number together with pain vocabulary."""
        return bool(self._pain_level.search(normalized or "")) and self.has_pain_keywords(normalized)

    def has_update_pattern(self, normalized: str) -> bool:
        return matches_any(self._update, normalized or "")

    def has_effect_pattern(self, normalized: str) -> bool:
        return matches_any(self._effect, normalized or "")

    def has_intake_verb(self, normalized: str) -> bool:
        return bool(self._intake.search(normalized or ""))

    def has_reminder_pattern(self, normalized: str) -> bool:
        return matches_any(self._reminder, normalized or "")

    def has_navigation_pattern(self, normalized: str) -> bool:
        return matches_any(self._navigation, normalized or "")


_default_features = VoiceFeatureExtractor()


def has_add_medication_verb(normalized: str) -> bool:
    return _default_features.has_add_medication_verb(normalized)


def has_pain_keywords(normalized: str) -> bool:
    return _default_features.has_pain_keywords(normalized)


def has_analytics_keywords(normalized: str) -> bool:
    return _default_features.has_analytics_keywords(normalized)


def has_dosage_pattern(normalized: str) -> bool:
    return _default_features.has_dosage_pattern(normalized)


def has_reminder_pattern(normalized: str) -> bool:
    return _default_features.has_reminder_pattern(normalized)
