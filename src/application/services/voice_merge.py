"""
Voice Merge - fold a follow-up dictation into an open review sheet.

A user may dictate several times while the review sheet is open. Each new
parse is merged into the sheet so that manual edits always win over
recognition: a pain level the user set by hand is never overwritten, hand-
edited medication selections only gain new names, and hand-edited notes are
appended to instead of replaced.
"""

import logging
from typing import Any, Dict, Mapping, Optional, Union

from domain.voice_models import (
    MedicationSelection,
    MergeResult,
    ReviewState,
    UserEditedFlags,
    VoiceParseResult,
)

logger = logging.getLogger(__name__)

NOTE_SEPARATOR = "\n\n"

ParseLike = Union[VoiceParseResult, Mapping[str, Any]]
StateLike = Union[ReviewState, Mapping[str, Any], None]
FlagsLike = Union[UserEditedFlags, Mapping[str, Any], None]


def _pick(data: Mapping[str, Any], *keys: str, default: Any = None) -> Any:
    """First present key; payloads arrive in camelCase or snake_case."""
    for key in keys:
        if key in data and data[key] is not None:
            return data[key]
    return default


def _selection(value: Any) -> MedicationSelection:
    if isinstance(value, MedicationSelection):
        return value
    if isinstance(value, Mapping):
        return MedicationSelection(
            dose_quarters=int(_pick(value, "dose_quarters", "doseQuarters", default=4)),
            medication_id=_pick(value, "medication_id", "medicationId"),
        )
    return MedicationSelection()


def coerce_review_state(state: StateLike) -> ReviewState:
    if isinstance(state, ReviewState):
        return state
    if not state:
        return ReviewState()
    selected = _pick(state, "selected_medications", "selectedMedications", default={})
    if not isinstance(selected, Mapping):
        raise TypeError(f"selected medications must map names to selections, got {type(selected).__name__}")
    return ReviewState(
        pain_level=_pick(state, "pain_level", "painLevel"),
        selected_medications={name: _selection(value) for name, value in selected.items()},
        notes_text=_pick(state, "notes_text", "notesText", default="") or "",
    )


def coerce_edited_flags(flags: FlagsLike) -> UserEditedFlags:
    if isinstance(flags, UserEditedFlags):
        return flags
    if not flags:
        return UserEditedFlags()
    return UserEditedFlags(
        pain=bool(flags.get("pain", False)),
        meds=bool(flags.get("meds", False)),
        notes=bool(flags.get("notes", False)),
    )


def _parse_parts(new_parse: ParseLike):
    """(pain value, {name: selection}, note) from a parse result or its mapping form."""
    if isinstance(new_parse, VoiceParseResult):
        medications = {
            med.name: MedicationSelection(
                dose_quarters=med.dose_quarters,
                medication_id=med.medication_id,
            )
            for med in new_parse.medications
        }
        return new_parse.pain_intensity.value, medications, new_parse.note or ""

    new_parse = new_parse or {}
    pain = _pick(new_parse, "pain_intensity", "painIntensity", default={})
    pain_value = pain.get("value") if isinstance(pain, Mapping) else None
    medications: Dict[str, MedicationSelection] = {}
    for med in _pick(new_parse, "medications", default=[]):
        name = med.get("name") if isinstance(med, Mapping) else None
        if name:
            medications[name] = _selection(med)
    return pain_value, medications, _pick(new_parse, "note", default="") or ""


def merge_voice_append(
    previous_state: StateLike,
    new_parse: ParseLike,
    user_edited: FlagsLike = None,
) -> MergeResult:
    """
    Merge a new dictation into the review sheet state.

    Args:
        previous_state: Current sheet state (ReviewState or its mapping form)
        new_parse: VoiceParseResult or a mapping shaped like its ``to_dict()``
        user_edited: Which fields the user changed by hand

    Returns:
        MergeResult with a new state; the inputs are left untouched.
        ``pain_default_used`` is True when the merged state has no pain level.
    """
    previous = coerce_review_state(previous_state)
    edited = coerce_edited_flags(user_edited)
    pain_value, new_meds, new_note = _parse_parts(new_parse)

    pain_level = previous.pain_level
    if pain_value is not None and not edited.pain:
        pain_level = int(pain_value)

    selected = dict(previous.selected_medications)
    if edited.meds:
        for name, selection in new_meds.items():
            if name not in selected:
                selected[name] = selection
    else:
        selected.update(new_meds)

    if edited.notes:
        notes = previous.notes_text
        if new_note.strip():
            notes = f"{notes}{NOTE_SEPARATOR}{new_note}" if notes else new_note
    else:
        notes = new_note

    state = ReviewState(pain_level=pain_level, selected_medications=selected, notes_text=notes)
    logger.debug(
        f"Merged voice append: pain={state.pain_level}, "
        f"meds={list(state.selected_medications)}, edited={edited}"
    )
    return MergeResult(state=state, pain_default_used=state.pain_level is None)
