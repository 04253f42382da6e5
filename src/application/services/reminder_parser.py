"""
German reminder parser.

Turns requests like "Erinnere mich übermorgen um 8 an Ibuprofen" into a
reminder draft: type (medication or appointment), title, medications, date,
time, time-of-day bucket, repeat cadence and free-text notes, plus a
confidence triple telling the UI which fields came from a default.
"""

import logging
import re
from datetime import datetime, timedelta
from typing import Iterable, List, Optional, Tuple

from application.services.entity_extractors import EntityExtractor
from application.services.medication_matcher import MedicationMatcher
from application.services.transcript_normalizer import TranscriptNormalizer
from domain.german_lexicon import GERMAN, GermanLexicon
from domain.rule_table import RuleTable, compile_patterns, matches_any
from domain.voice_models import (
    Confidence,
    ParsedReminderEntry,
    ReminderConfidence,
    ReminderType,
    RepeatRule,
    TimeOfDay,
    UserMedication,
    coerce_user_meds,
)

logger = logging.getLogger(__name__)

_WHITESPACE = re.compile(r"\s+")
_EDGE_PUNCTUATION = re.compile(r"^[\s,.;:!?-]+|[\s,.;:!?-]+$")


def time_of_day_for_hour(hour: int) -> TimeOfDay:
    if 5 <= hour < 11:
        return TimeOfDay.MORNING
    if 11 <= hour < 14:
        return TimeOfDay.NOON
    if 14 <= hour < 21:
        return TimeOfDay.EVENING
    return TimeOfDay.NIGHT


class ReminderParser:
    """Parse spoken German reminder requests."""

    def __init__(self, lexicon: Optional[GermanLexicon] = None):
        self.lexicon = lexicon or GERMAN
        rl = self.lexicon.reminder
        self.normalizer = TranscriptNormalizer(self.lexicon.normalizer)
        self.entities = EntityExtractor(self.lexicon)

        self._triggers = compile_patterns(rl.triggers)
        self._medication_patterns = compile_patterns(rl.medication_patterns)
        self._appointment_patterns = compile_patterns(rl.appointment_patterns)
        self._time_of_day = RuleTable(
            (pattern, (TimeOfDay(name), default)) for name, pattern, default in rl.time_of_day
        )
        self._explicit_time = compile_patterns(rl.explicit_time)
        self._relative_dates = RuleTable((pattern, days) for pattern, days in rl.relative_dates)
        self._repeats = RuleTable((pattern, RepeatRule(name)) for name, pattern in rl.repeats)
        self._strip_triggers = re.compile(rl.strip_triggers, re.IGNORECASE)
        self._strip_times = compile_patterns(rl.strip_times)
        self._strip_fillers = re.compile(rl.strip_fillers, re.IGNORECASE)

    def is_reminder_trigger(self, text: Optional[str]) -> bool:
        return matches_any(self._triggers, self.normalizer.normalize(text).normalized)

    def _find_medications(self, text: str, user_meds: Tuple[UserMedication, ...]) -> List[str]:
        found: List[str] = []
        for med in user_meds:
            pattern = re.compile(r"\b" + re.escape(med.name) + r"\b", re.IGNORECASE)
            if pattern.search(text) and med.name.lower() not in (m.lower() for m in found):
                found.append(med.name)
        if found or not user_meds:
            return found

        # Misheard names ("Ibu profen") resolved through the fuzzy matcher
        for mention in MedicationMatcher(user_meds, self.lexicon.medication).find_mentions(text):
            if not mention.match.is_uncertain and mention.match.canonical not in found:
                found.append(mention.match.canonical)
        return found

    def _parse_time(self, normalized: str, today: datetime) -> Tuple[str, str, Optional[TimeOfDay], Confidence]:
        date = today
        clock = self.lexicon.reminder.default_time
        time_of_day: Optional[TimeOfDay] = None
        confidence = Confidence.LOW

        worded = self.entities.replace_number_words(normalized)
        explicit = None
        for pattern in self._explicit_time:
            match = pattern.search(worded)
            if match:
                hours = int(match.group(1))
                minutes = int(match.group(2)) if match.lastindex and match.lastindex >= 2 and match.group(2) else 0
                if 0 <= hours <= 23 and 0 <= minutes <= 59:
                    explicit = (hours, minutes)
                    break

        if explicit:
            clock = f"{explicit[0]:02d}:{explicit[1]:02d}"
            time_of_day = time_of_day_for_hour(explicit[0])
            confidence = Confidence.HIGH
        else:
            bucket = self._time_of_day.first_match(normalized)
            if bucket:
                time_of_day, clock = bucket
                confidence = Confidence.HIGH

        hit = self._relative_dates.first_match_with(normalized)
        if hit:
            days, match = hit
            if days is None:
                days = int(match.group(1))
            date = today + timedelta(days=days)
            if confidence == Confidence.LOW:
                confidence = Confidence.MEDIUM

        return date.strftime("%Y-%m-%d"), clock, time_of_day, confidence

    def _strip(self, text: str) -> str:
        stripped = self._strip_triggers.sub(" ", text)
        for pattern in self._strip_times:
            stripped = pattern.sub(" ", stripped)
        stripped = self._strip_fillers.sub(" ", stripped)
        stripped = _WHITESPACE.sub(" ", stripped)
        return _EDGE_PUNCTUATION.sub("", stripped)

    def _title(self, text: str, reminder_type: Optional[ReminderType], medications: List[str]) -> str:
        rl = self.lexicon.reminder
        if reminder_type == ReminderType.MEDICATION and medications:
            return ", ".join(medications)
        if reminder_type == ReminderType.APPOINTMENT:
            title = self._strip(text)
            if len(title) > 3:
                return (title[0].upper() + title[1:])[: rl.title_max_length]
            return rl.appointment_title
        return rl.generic_title

    def parse(
        self,
        text: Optional[str],
        user_meds: Optional[Iterable] = None,
        now: Optional[datetime] = None,
    ) -> ParsedReminderEntry:
        """
        Parse a reminder request.

        Args:
            text: Raw transcript
            user_meds: The user's medications (names, ``{name}`` mappings or UserMedication)
            now: Reference time for relative dates (defaults to the current local time)

        Returns:
            ParsedReminderEntry; date defaults to today and time to 08:00
        """
        text = (text or "").strip()
        meds = coerce_user_meds(user_meds)
        today = now or datetime.now()
        normalized = self.normalizer.normalize(text).normalized

        medications = self._find_medications(text, meds)

        if medications or matches_any(self._medication_patterns, normalized):
            reminder_type: Optional[ReminderType] = ReminderType.MEDICATION
        elif matches_any(self._appointment_patterns, normalized):
            reminder_type = ReminderType.APPOINTMENT
        else:
            reminder_type = None

        date, clock, time_of_day, time_confidence = self._parse_time(normalized, today)
        repeat = self._repeats.first_match(normalized, default=RepeatRule.NONE)

        if medications:
            med_confidence = Confidence.HIGH
        elif reminder_type == ReminderType.MEDICATION:
            med_confidence = Confidence.LOW
        else:
            # Nothing to find for appointments
            med_confidence = Confidence.HIGH

        entry = ParsedReminderEntry(
            type=reminder_type,
            title=self._title(text, reminder_type, medications),
            medications=medications,
            date=date,
            time=clock,
            time_of_day=time_of_day,
            repeat=repeat,
            notes=self._strip(text),
            confidence=ReminderConfidence(
                type=Confidence.HIGH if reminder_type else Confidence.LOW,
                time=time_confidence,
                medications=med_confidence,
            ),
        )
        logger.debug(f"Parsed reminder: type={entry.type} date={entry.date} time={entry.time}")
        return entry


_default_parser: Optional[ReminderParser] = None


def _get_default_parser() -> ReminderParser:
    global _default_parser
    if _default_parser is None:
        _default_parser = ReminderParser()
    return _default_parser


def is_reminder_trigger(text: Optional[str]) -> bool:
    return _get_default_parser().is_reminder_trigger(text)


def parse_german_reminder_entry(
    text: Optional[str],
    user_meds: Optional[Iterable] = None,
    now: Optional[datetime] = None,
) -> ParsedReminderEntry:
    """Convenience function using the German lexicon."""
    return _get_default_parser().parse(text, user_meds, now=now)
