"""Unit tests for VoiceEntryParser."""

from datetime import datetime

import pytest
from application.services.voice_entry_parser import (
    VoiceEntryParser,
    format_dose_quarters,
    format_time_display,
    parse_voice_entry,
)
from domain.voice_models import EntryType, TimeKind

NOW = datetime(2026, 3, 10, 14, 30)


@pytest.fixture
def parser():
    return VoiceEntryParser()


class TestNewEntries:
    """Test utterances that open a diary entry."""

    def test_full_entry(self, parser):
        result = parser.parse(
            "Vor 2 Stunden Sumatriptan genommen, Schmerzstärke 7",
            [{"name": "Sumatriptan 50 mg", "id": "med-1"}],
            now=NOW,
        )
        assert result.entry_type == EntryType.NEW_ENTRY
        assert result.confidence == 0.95
        assert not result.type_can_be_toggled
        assert result.time.kind == TimeKind.RELATIVE
        assert result.time.time == "12:30"
        assert result.pain_intensity.value == 7

        assert len(result.medications) == 1
        med = result.medications[0]
        assert med.name == "Sumatriptan 50 mg"
        assert med.medication_id == "med-1"
        assert med.matched_user_med
        assert med.dose_quarters == 4

        assert result.note == ""
        assert result.missing == ()
        assert not result.needs_review

    def test_tablet_fraction_near_mention(self, parser):
        result = parser.parse("eine halbe Sumatriptan genommen", ["Sumatriptan"], now=NOW)
        assert result.entry_type == EntryType.NEW_ENTRY
        med = result.medications[0]
        assert med.dose_quarters == 2
        assert med.dose_text == "halbe Tablette"
        assert result.missing == ("pain",)

    def test_dosage_fallback_without_user_meds(self, parser):
        result = parser.parse("Ibuprofen 400 mg genommen", now=NOW)
        assert result.entry_type == EntryType.NEW_ENTRY
        med = result.medications[0]
        assert med.name == "Ibuprofen"
        assert not med.matched_user_med
        assert med.dose_mg == 400.0
        assert med.confidence == 0.6
        assert result.needs_review
        assert result.note == ""

    def test_note_keeps_unextracted_words(self, parser):
        result = parser.parse("Kopfschmerzen 6 von 10 nach dem Joggen", now=NOW)
        assert result.entry_type == EntryType.NEW_ENTRY
        assert result.pain_intensity.value == 6
        assert "Joggen" in result.note
        assert "6 von 10" not in result.note


class TestContextEntries:
    """Test utterances that only add context."""

    def test_lifestyle_context(self, parser):
        result = parser.parse("Heute viel Stress im Büro und schlecht geschlafen", now=NOW)
        assert result.entry_type == EntryType.CONTEXT_ENTRY
        assert result.confidence == 0.95
        assert result.note == "Heute viel Stress im Büro und schlecht geschlafen"
        assert result.missing == ("pain", "medications")
        assert result.time.kind == TimeKind.NONE

    def test_short_transcript(self, parser):
        result = parser.parse("a", now=NOW)
        assert result.entry_type == EntryType.CONTEXT_ENTRY
        assert result.confidence == 0.0
        assert result.note == "a"
        assert result.time.is_now

    def test_empty_transcript(self):
        result = parse_voice_entry(None, now=NOW)
        assert result.entry_type == EntryType.CONTEXT_ENTRY
        assert result.raw_text == ""


class TestClassification:
    """Test the new-entry vs context decision in isolation."""

    def test_pain_word_alone_opens_entry(self, parser):
        result = parser.parse("Kopfschmerzen", now=NOW)
        assert result.entry_type == EntryType.NEW_ENTRY
        assert result.pain_intensity.value is None

    def test_negated_medication_not_counted(self, parser):
        result = parser.parse("Heute kein Ibuprofen genommen, nur Stress", ["Ibuprofen"], now=NOW)
        assert result.medications == ()


class TestFormatting:
    """Test display helpers."""

    @pytest.mark.parametrize("quarters,label", [
        (1, "¼ Tablette"),
        (2, "½ Tablette"),
        (4, "1 Tablette"),
        (6, "1½ Tabletten"),
        (8, "2 Tabletten"),
        (12, "3 Tabletten"),
    ])
    def test_dose_quarters(self, quarters, label):
        assert format_dose_quarters(quarters) == label

    def test_time_display(self, parser):
        assert format_time_display(parser.entities.extract_time("vor 2 Stunden", now=NOW)) == "vor 2 Stunden"
        assert format_time_display(parser.entities.extract_time("", now=NOW)) == "jetzt"

    def test_to_dict_shape(self, parser):
        data = parser.parse("Ibuprofen 400 mg genommen", now=NOW).to_dict()
        assert data["entry_type"] == "new_entry"
        assert data["medications"][0]["dose_mg"] == 400.0
        assert data["missing"] == ["pain"]
