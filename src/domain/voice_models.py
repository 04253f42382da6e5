"""
Domain models for the voice diary pipeline.

Defines the value objects produced when a German transcript is normalized,
classified, decomposed into context segments and merged into a review sheet.
All models are created per call; only ReviewState and UserEditedFlags outlive
a single request and they are owned by the caller.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple


class IntentType(str, Enum):
    """Intent of a spoken diary utterance."""
    ADD_MEDICATION = "add_medication"
    PAIN_ENTRY = "pain_entry"
    MEDICATION_UPDATE = "medication_update"
    MEDICATION_EFFECT = "medication_effect"
    REMINDER = "reminder"
    ANALYTICS_QUERY = "analytics_query"
    NOTE = "note"
    NAVIGATION = "navigation"
    UNKNOWN = "unknown"


# Every intent that carries a score. UNKNOWN is only ever a verdict.
SCORED_INTENTS: Tuple[IntentType, ...] = (
    IntentType.ADD_MEDICATION,
    IntentType.PAIN_ENTRY,
    IntentType.MEDICATION_UPDATE,
    IntentType.MEDICATION_EFFECT,
    IntentType.REMINDER,
    IntentType.ANALYTICS_QUERY,
    IntentType.NOTE,
    IntentType.NAVIGATION,
)


class SegmentType(str, Enum):
    """Semantic type of one clause of a context note."""
    MEDICATION_EVENT = "medication_event"
    SYMPTOM_COURSE = "symptom_course"
    LIFESTYLE_FACTOR = "lifestyle_factor"
    TRIGGER = "trigger"
    TIME_PATTERN = "time_pattern"
    UNKNOWN = "unknown"


class EntryType(str, Enum):
    """Whether an utterance opens a diary entry or only adds context."""
    NEW_ENTRY = "new_entry"
    CONTEXT_ENTRY = "context_entry"


class Confidence(str, Enum):
    """Coarse confidence label used where a pattern either fired or a default was used."""
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class TimeKind(str, Enum):
    ABSOLUTE = "absolute"
    RELATIVE = "relative"
    NONE = "none"


class ReminderType(str, Enum):
    MEDICATION = "medication"
    APPOINTMENT = "appointment"


class TimeOfDay(str, Enum):
    MORNING = "morning"
    NOON = "noon"
    EVENING = "evening"
    NIGHT = "night"


class RepeatRule(str, Enum):
    NONE = "none"
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"


@dataclass(frozen=True)
class UserMedication:
    """A medication from the caller's own medication table."""
    name: str
    id: Optional[str] = None

    @classmethod
    def coerce(cls, value: Any) -> Optional["UserMedication"]:
        """Accept a plain name, a mapping with a ``name`` key, or an instance."""
        if isinstance(value, UserMedication):
            return value
        if isinstance(value, str):
            return cls(name=value) if value.strip() else None
        if isinstance(value, dict):
            name = value.get("name")
            if not name or not str(name).strip():
                return None
            med_id = value.get("id")
            return cls(name=str(name), id=str(med_id) if med_id is not None else None)
        return None


def coerce_user_meds(values: Optional[Any]) -> Tuple[UserMedication, ...]:
    """Turn a loosely typed medication list into UserMedication tuples, skipping junk."""
    if not values:
        return ()
    meds = []
    for value in values:
        med = UserMedication.coerce(value)
        if med is not None:
            meds.append(med)
    return tuple(meds)


@dataclass(frozen=True)
class NormalizedTranscript:
    """
    A transcript after ASR correction and canonicalization.

    ``normalized`` is lowercase, umlaut-folded and whitespace-collapsed.
    ``tokens`` is ``normalized`` split on whitespace.
    """
    original: str
    normalized: str
    tokens: Tuple[str, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "original": self.original,
            "normalized": self.normalized,
            "tokens": list(self.tokens),
        }


@dataclass(frozen=True)
class ScoringResult:
    """
    Result of intent scoring.

    ``scores`` holds every scored intent (zero when nothing supported it).
    ``features`` lists fired feature identifiers in firing order.
    """
    intent: IntentType
    confidence: float
    scores: Dict[IntentType, float]
    features: Tuple[str, ...] = ()

    def __post_init__(self):
        """Validate confidence score."""
        if not 0.0 <= self.confidence <= 0.95:
            raise ValueError(f"Confidence must be between 0.0 and 0.95, got {self.confidence}")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "intent": self.intent.value,
            "confidence": self.confidence,
            "scores": {intent.value: score for intent, score in self.scores.items()},
            "features": list(self.features),
        }


@dataclass(frozen=True)
class ExtractedMedication:
    """Medication name found next to a dosage."""
    name: str
    dose_mg: Optional[float] = None
    medication_id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "dose_mg": self.dose_mg, "medication_id": self.medication_id}


@dataclass(frozen=True)
class ContextSegment:
    """One classified clause of a context note, in transcript order."""
    index: int
    type: SegmentType
    source_text: str
    confidence: float
    normalized_summary: Optional[str] = None
    medication_name: Optional[str] = None
    medication_dose: Optional[str] = None
    medication_role: Optional[str] = None
    effect_rating: Optional[str] = None
    timing_relation: Optional[str] = None
    time_reference: Optional[str] = None
    factor_type: Optional[str] = None
    factor_value: Optional[str] = None

    def __post_init__(self):
        if self.index < 0:
            raise ValueError(f"Segment index must be non-negative, got {self.index}")
        if not 0.0 <= self.confidence <= 1.0:
            raise ValueError(f"Confidence must be between 0.0 and 1.0, got {self.confidence}")

    @property
    def is_ambiguous(self) -> bool:
        return self.type == SegmentType.UNKNOWN

    def to_dict(self) -> Dict[str, Any]:
        """Row shape used by the segment table and the HTTP response."""
        return {
            "segment_index": self.index,
            "segment_type": self.type.value,
            "source_text": self.source_text,
            "normalized_summary": self.normalized_summary,
            "medication_name": self.medication_name,
            "medication_dose": self.medication_dose,
            "medication_role": self.medication_role,
            "effect_rating": self.effect_rating,
            "timing_relation": self.timing_relation,
            "time_reference": self.time_reference,
            "factor_type": self.factor_type,
            "factor_value": self.factor_value,
            "confidence": self.confidence,
            "is_ambiguous": self.is_ambiguous,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ContextSegment":
        """Rebuild a segment from its row shape (``is_ambiguous`` is derived)."""
        return cls(
            index=int(data["segment_index"]),
            type=SegmentType(data["segment_type"]),
            source_text=data["source_text"],
            confidence=float(data["confidence"]),
            normalized_summary=data.get("normalized_summary"),
            medication_name=data.get("medication_name"),
            medication_dose=data.get("medication_dose"),
            medication_role=data.get("medication_role"),
            effect_rating=data.get("effect_rating"),
            timing_relation=data.get("timing_relation"),
            time_reference=data.get("time_reference"),
            factor_type=data.get("factor_type"),
            factor_value=data.get("factor_value"),
        )


# ========================================
# Voice entry parse result
# ========================================

@dataclass(frozen=True)
class ParsedTime:
    """Occurrence time of a diary entry. Always present; falls back to now."""
    kind: TimeKind
    iso: str
    date: str
    time: str
    is_now: bool
    confidence: Confidence
    relative_minutes: Optional[int] = None
    display_text: Optional[str] = None

    @classmethod
    def at(
        cls,
        moment: datetime,
        kind: TimeKind,
        confidence: Confidence,
        is_now: bool = False,
        relative_minutes: Optional[int] = None,
        display_text: Optional[str] = None,
    ) -> "ParsedTime":
        return cls(
            kind=kind,
            iso=moment.isoformat(timespec="seconds"),
            date=moment.strftime("%Y-%m-%d"),
            time=moment.strftime("%H:%M"),
            is_now=is_now,
            confidence=confidence,
            relative_minutes=relative_minutes,
            display_text=display_text,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind.value,
            "iso": self.iso,
            "relative_minutes": self.relative_minutes,
            "date": self.date,
            "time": self.time,
            "is_now": self.is_now,
            "confidence": self.confidence.value,
            "display_text": self.display_text,
        }


@dataclass(frozen=True)
class ParsedPainIntensity:
    """Numeric pain rating (NRS 0-10) or None when nothing was said about it."""
    value: Optional[int] = None
    confidence: float = 0.0
    evidence: str = ""
    needs_review: bool = False

    def __post_init__(self):
        if self.value is not None and not 0 <= self.value <= 10:
            raise ValueError(f"Pain level must be between 0 and 10, got {self.value}")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "value": self.value,
            "confidence": self.confidence,
            "evidence": self.evidence,
            "needs_review": self.needs_review,
        }


@dataclass(frozen=True)
class ParsedMedication:
    """A medication intake mentioned in a diary utterance."""
    name: str
    matched_user_med: bool
    dose_quarters: int = 4  # 1 = quarter tablet, 4 = one tablet
    medication_id: Optional[str] = None
    dose_text: Optional[str] = None
    dose_mg: Optional[float] = None
    confidence: float = 0.0
    needs_review: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "matched_user_med": self.matched_user_med,
            "medication_id": self.medication_id,
            "dose_quarters": self.dose_quarters,
            "dose_text": self.dose_text,
            "dose_mg": self.dose_mg,
            "confidence": self.confidence,
            "needs_review": self.needs_review,
        }


@dataclass(frozen=True)
class VoiceParseResult:
    """
    Unified parse of one diary utterance.

    This is the "new parse result" the merge engine folds into a review sheet.
    ``missing`` names the fields that could not be extracted.
    """
    entry_type: EntryType
    confidence: float
    raw_text: str
    time: ParsedTime
    pain_intensity: ParsedPainIntensity = field(default_factory=ParsedPainIntensity)
    medications: Tuple[ParsedMedication, ...] = ()
    note: str = ""
    missing: Tuple[str, ...] = ()
    needs_review: bool = False
    type_can_be_toggled: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "entry_type": self.entry_type.value,
            "confidence": self.confidence,
            "raw_text": self.raw_text,
            "time": self.time.to_dict(),
            "pain_intensity": self.pain_intensity.to_dict(),
            "medications": [med.to_dict() for med in self.medications],
            "note": self.note,
            "missing": list(self.missing),
            "needs_review": self.needs_review,
            "type_can_be_toggled": self.type_can_be_toggled,
        }


# ========================================
# Review sheet state
# ========================================

@dataclass(frozen=True)
class MedicationSelection:
    """Dose picked for one medication on the review sheet."""
    dose_quarters: int = 4
    medication_id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {"dose_quarters": self.dose_quarters, "medication_id": self.medication_id}


@dataclass(frozen=True)
class ReviewState:
    """Structured state of a review sheet between two dictation appends."""
    pain_level: Optional[int] = None
    selected_medications: Dict[str, MedicationSelection] = field(default_factory=dict)
    notes_text: str = ""

    def __post_init__(self):
        if self.pain_level is not None and not 0 <= self.pain_level <= 10:
            raise ValueError(f"Pain level must be between 0 and 10, got {self.pain_level}")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "pain_level": self.pain_level,
            "selected_medications": {
                name: selection.to_dict()
                for name, selection in self.selected_medications.items()
            },
            "notes_text": self.notes_text,
        }


@dataclass(frozen=True)
class UserEditedFlags:
    """Fields a human changed by hand since the last automated write."""
    pain: bool = False
    meds: bool = False
    notes: bool = False


@dataclass(frozen=True)
class MergeResult:
    state: ReviewState
    pain_default_used: bool

    def to_dict(self) -> Dict[str, Any]:
        return {"state": self.state.to_dict(), "pain_default_used": self.pain_default_used}


# ========================================
# Reminder
# ========================================

@dataclass(frozen=True)
class ReminderConfidence:
    type: Confidence
    time: Confidence
    medications: Confidence

    def to_dict(self) -> Dict[str, str]:
        return {
            "type": self.type.value,
            "time": self.time.value,
            "medications": self.medications.value,
        }


@dataclass(frozen=True)
class ParsedReminderEntry:
    """Reminder draft extracted from a spoken request."""
    type: Optional[ReminderType]
    title: str
    medications: List[str]
    date: str  # YYYY-MM-DD
    time: str  # HH:MM
    time_of_day: Optional[TimeOfDay]
    repeat: RepeatRule
    notes: str
    confidence: ReminderConfidence

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type.value if self.type else None,
            "title": self.title,
            "medications": list(self.medications),
            "date": self.date,
            "time": self.time,
            "time_of_day": self.time_of_day.value if self.time_of_day else None,
            "repeat": self.repeat.value,
            "notes": self.notes,
            "confidence": self.confidence.to_dict(),
        }
