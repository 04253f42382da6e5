"""
Entity extractors for German diary transcripts.

Each extractor is independent and returns a nullable or default value
instead of failing, so a transcript with a pain level but no medication
still yields a usable partial result:

- medication name + dose, anchored on a dosage ("Ibuprofen 400 mg")
- pain level on the 0-10 scale (digits, number words, intensity words)
- occurrence time (relative offsets, day phrases, clock times, "jetzt"),
  which always returns a value and falls back to now
- tablet fractions ("halbe Tablette" -> 2 quarters)
"""

import logging
import re
from datetime import datetime, timedelta
from typing import List, Optional, Tuple

from application.services.transcript_normalizer import TranscriptNormalizer
from domain.german_lexicon import GERMAN, GermanLexicon
from domain.voice_models import (
    Confidence,
    ExtractedMedication,
    ParsedPainIntensity,
    ParsedTime,
    TimeKind,
)

logger = logging.getLogger(__name__)

_TWO_DIGITS = re.compile(r"^\d{1,2}$")
_EDGE_PUNCTUATION = re.compile(r"^\W+|\W+$")
_STANDALONE_LEVEL = re.compile(r"\b(10|[0-9])\b")

# Multipliers to milligram
_UNIT_TO_MG = {
    "mg": 1.0,
    "milligramm": 1.0,
    "g": 1000.0,
    "mcg": 0.001,
    "mikrogramm": 0.001,
}


class EntityExtractor:
    """
    Extract structured entities from German transcripts.

    Input may be raw or already normalized; normalization is idempotent and
    is applied first.
    """

    def __init__(self, lexicon: Optional[GermanLexicon] = None):
        self.lexicon = lexicon = lexicon or GERMAN
        self.normalizer = TranscriptNormalizer(lexicon.normalizer)

        intent = lexicon.intent
        self._name_before_dose = re.compile(intent.med_name_before_dose)
        self._name_after_dose = re.compile(intent.med_name_after_dose)
        self._dose_amount = re.compile(intent.dose_amount)
        self._known_aliases = intent.known_med_aliases
        self._skip_words = lexicon.medication.skip_words

        entity = lexicon.entity
        self._number_words = re.compile(
            r"\b(" + "|".join(word for word, _ in entity.number_words) + r")\b"
        )
        self._number_values = dict(entity.number_words)
        self._pain_scale = [re.compile(p) for p in entity.pain_scale]
        self._pain_context = re.compile(entity.pain_context)
        self._pain_sanitizers = [(re.compile(p), r) for p, r in entity.pain_sanitizers]
        self._intensity_words = [(re.compile(p), v) for p, v in entity.intensity_words]
        self._relative_times = [(re.compile(rule.pattern), rule) for rule in entity.relative_times]
        self._day_phrases = [(re.compile(rule.pattern), rule) for rule in entity.day_phrases]
        self._clock_times = [(re.compile(rule.pattern), rule) for rule in entity.clock_times]
        self._now_words = re.compile(entity.now_words)
        self._dose_rules = [(re.compile(rule.pattern), rule) for rule in entity.dose_rules]

    def _normalized(self, text: Optional[str]) -> str:
        return self.normalizer.normalize(text).normalized

    def replace_number_words(self, text: str) -> str:
        """'vor zwei stunden' -> 'vor 2 stunden'. Articles (ein/eine) are left alone."""
        return self._number_words.sub(lambda m: str(self._number_values[m.group(1)]), text)

    # ========================================
    # Medication + dose
    # ========================================

    def extract_med_name_near_dosage(self, text: Optional[str]) -> Optional[str]:
        """
        Candidate medication name next to a dosage.

        Prefers one or two words before the dose, else the word after it.
        Returns None when there is no dosage anchor.
        """
        normalized = self._normalized(text)
        if not normalized:
            return None
        match = self._name_before_dose.search(normalized)
        if match:
            return match.group(1)
        match = self._name_after_dose.search(normalized)
        if match:
            return match.group(1)
        return None

    def extract_dose_mg(self, text: Optional[str]) -> Optional[float]:
        normalized = self._normalized(text)
        match = self._dose_amount.search(normalized)
        if not match:
            return None
        factor = _UNIT_TO_MG.get(match.group(2))
        if factor is None:
            return None
        value = float(match.group(1).replace(",", ".")) * factor
        return value if value > 0 else None

    def extract_medication(self, text: Optional[str]) -> Optional[ExtractedMedication]:
        """Dosage-anchored medication; the name is trimmed to the drug word where possible."""
        candidate = self.extract_med_name_near_dosage(text)
        if not candidate:
            return None

        words = candidate.split()
        name = candidate
        known = [w for w in words if w in self._known_aliases]
        if known:
            name = known[0]
        elif len(words) == 2 and words[0] in self._skip_words:
            name = words[1]

        return ExtractedMedication(name=name, dose_mg=self.extract_dose_mg(text))

    def is_known_medication(self, name: Optional[str]) -> bool:
        """True if the candidate or one of its words is a well-known drug alias."""
        if not name:
            return False
        lower = name.lower()
        return lower in self._known_aliases or any(w in self._known_aliases for w in lower.split())

    # ========================================
    # Pain level
    # ========================================

    def _sanitize_for_pain(self, text: str) -> str:
        sanitized = text
        for pattern, replacement in self._pain_sanitizers:
            sanitized = pattern.sub(replacement, sanitized)
        return sanitized

    def _is_pain_trigger(self, token: str) -> bool:
        token = _EDGE_PUNCTUATION.sub("", token)
        if not token:
            return False
        for trigger in self.lexicon.entity.pain_triggers:
            if token == trigger or trigger in token:
                return True
            # Misheard long compounds ("schmerzlautsaerke") share the first six letters
            if (
                len(token) >= 6
                and len(trigger) >= 6
                and abs(len(token) - len(trigger)) <= 2
                and token[:6] == trigger[:6]
            ):
                return True
        return False

    def _numeric_pain(self, sanitized: str, has_context: bool) -> Optional[ParsedPainIntensity]:
        for pattern in self._pain_scale:
            match = pattern.search(sanitized)
            if match:
                level = int(match.group(1))
                if 0 <= level <= 10:
                    return ParsedPainIntensity(value=level, confidence=0.95, evidence=match.group(0))

        tokens = sanitized.split()
        for i, token in enumerate(tokens):
            if not self._is_pain_trigger(token):
                continue
            for j in range(max(0, i - 2), min(len(tokens), i + 5)):
                if j == i:
                    continue
                candidate = _EDGE_PUNCTUATION.sub("", tokens[j])
                if _TWO_DIGITS.match(candidate) and 0 <= int(candidate) <= 10:
                    return ParsedPainIntensity(
                        value=int(candidate),
                        confidence=0.85,
                        evidence=f"{token} ... {tokens[j]}",
                    )

        if has_context:
            match = _STANDALONE_LEVEL.search(sanitized)
            if match:
                return ParsedPainIntensity(
                    value=int(match.group(1)),
                    confidence=0.55,
                    evidence=f"pain context + {match.group(0)}",
                    needs_review=True,
                )
        return None

    def extract_pain_level(self, text: Optional[str]) -> ParsedPainIntensity:
        """
        Map spoken pain intensity to the 0-10 scale.

        Tries digits first ("7 von 10", "Stärke 7", a bare digit next to pain
        words), then German number words, then intensity words
        (sehr stark 9, stark 7, mittel 5, leicht 3). Doses, clock times and
        durations are masked out before any digit is considered.

        Returns:
            ParsedPainIntensity with value None when nothing matched
        """
        normalized = self._normalized(text)
        if not normalized:
            return ParsedPainIntensity()

        has_context = bool(self._pain_context.search(normalized))

        result = self._numeric_pain(self._sanitize_for_pain(normalized), has_context)
        if result:
            return result

        worded = self._sanitize_for_pain(self.replace_number_words(normalized))
        result = self._numeric_pain(worded, has_context)
        if result:
            return result

        if has_context:
            for pattern, value in self._intensity_words:
                match = pattern.search(normalized)
                if match:
                    return ParsedPainIntensity(
                        value=value,
                        confidence=0.6,
                        evidence=match.group(0),
                        needs_review=True,
                    )

        return ParsedPainIntensity()

    # ========================================
    # Time
    # ========================================

    def _clock(self, text: str) -> Optional[Tuple[int, int]]:
        for pattern, rule in self._clock_times:
            match = pattern.search(text)
            if not match:
                continue
            hours = int(match.group(1)) + rule.hour_shift
            if rule.minutes is not None:
                minutes = rule.minutes
            else:
                minutes = int(match.group(2)) if match.lastindex and match.lastindex >= 2 and match.group(2) else 0
            return max(0, min(23, hours % 24)), max(0, min(59, minutes))
        return None

    def extract_time(self, text: Optional[str], now: Optional[datetime] = None) -> ParsedTime:
        """
        Occurrence time of an entry.

        Args:
            text: Transcript
            now: Reference time (defaults to the current local time)

        Returns:
            ParsedTime; kind NONE with the reference time when nothing matched
        """
        now = now or datetime.now()
        normalized = self.replace_number_words(self._normalized(text))

        for pattern, rule in self._relative_times:
            match = pattern.search(normalized)
            if match:
                if rule.fixed is not None:
                    minutes = rule.fixed
                    display = rule.display
                else:
                    amount = int(match.group(1))
                    minutes = amount * (rule.per_unit or 1)
                    display = rule.display.format(n=amount)
                    if amount == 1 and display.endswith("n"):
                        display = display[:-1]
                return ParsedTime.at(
                    now - timedelta(minutes=minutes),
                    kind=TimeKind.RELATIVE,
                    confidence=Confidence.HIGH,
                    relative_minutes=minutes,
                    display_text=display,
                )

        clock = self._clock(normalized)

        for pattern, rule in self._day_phrases:
            if pattern.search(normalized):
                target = now - timedelta(days=rule.days_ago)
                confidence = Confidence.LOW
                if clock:
                    target = target.replace(hour=clock[0], minute=clock[1], second=0, microsecond=0)
                    confidence = Confidence.HIGH
                elif rule.default_hour is not None:
                    target = target.replace(hour=rule.default_hour, minute=0, second=0, microsecond=0)
                    confidence = Confidence.MEDIUM
                return ParsedTime.at(
                    target,
                    kind=TimeKind.ABSOLUTE,
                    confidence=confidence,
                    display_text=rule.display,
                )

        if clock:
            target = now.replace(hour=clock[0], minute=clock[1], second=0, microsecond=0)
            return ParsedTime.at(
                target,
                kind=TimeKind.ABSOLUTE,
                confidence=Confidence.HIGH,
                display_text=f"um {target.strftime('%H:%M')} Uhr",
            )

        if self._now_words.search(normalized):
            return ParsedTime.at(
                now,
                kind=TimeKind.ABSOLUTE,
                confidence=Confidence.HIGH,
                is_now=True,
                relative_minutes=0,
                display_text="jetzt",
            )

        return ParsedTime.at(now, kind=TimeKind.NONE, confidence=Confidence.HIGH, is_now=True)

    # ========================================
    # Tablet fractions
    # ========================================

    def extract_dose_quarters(self, text: Optional[str]) -> Tuple[int, Optional[str]]:
        """'halbe Tablette' -> (2, 'halbe Tablette'); one tablet when nothing is said."""
        normalized = self._normalized(text)
        for pattern, rule in self._dose_rules:
            if pattern.search(normalized):
                return rule.quarters, rule.text
        return self.lexicon.entity.default_dose_quarters, None

    def time_patterns(self) -> List[re.Pattern]:
        """Every time pattern, for callers that strip time phrases from notes."""
        return (
            [p for p, _ in self._relative_times]
            + [p for p, _ in self._day_phrases]
            + [p for p, _ in self._clock_times]
        )


_default_extractor: Optional[EntityExtractor] = None


def get_entity_extractor() -> EntityExtractor:
    global _default_extractor
    if _default_extractor is None:
        _default_extractor = EntityExtractor()
    return _default_extractor


def extract_med_name_near_dosage(text: Optional[str]) -> Optional[str]:
    return get_entity_extractor().extract_med_name_near_dosage(text)


def extract_medication(text: Optional[str]) -> Optional[ExtractedMedication]:
    return get_entity_extractor().extract_medication(text)


def extract_pain_level(text: Optional[str]) -> ParsedPainIntensity:
    return get_entity_extractor().extract_pain_level(text)


def extract_time(text: Optional[str], now: Optional[datetime] = None) -> ParsedTime:
    return get_entity_extractor().extract_time(text, now=now)
