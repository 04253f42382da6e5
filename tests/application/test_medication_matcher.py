"""Unit tests for medication name comparison and transcript scanning."""

import pytest
from application.services.medication_matcher import (
    MedicationMatcher,
    levenshtein_distance,
    matches_med_name,
    normalize_med_name,
    split_strength,
    tokenize,
)
from domain.voice_models import UserMedication


@pytest.fixture
def matcher():
    """Matcher over a small medication list."""
    return MedicationMatcher([
        UserMedication(name="Sumatriptan 50 mg", id="m1"),
        UserMedication(name="Ibuprofen 400 mg", id="m2"),
    ])


class TestNameComparison:
    """Test normalize_med_name / matches_med_name."""

    def test_normalize_strips_dose_and_trademark(self):
        assert normalize_med_name("Ibuprofen 400 mg®") == "ibuprofen"
        assert normalize_med_name("Ibuprofen 400mg") == "ibuprofen"
        assert normalize_med_name(None) == ""

    def test_typo_within_tolerance(self):
        assert matches_med_name("Sumatriptan", "somatriptan")

    def test_dose_suffix_ignored(self):
        assert matches_med_name("Ibuprofen 400mg", "Ibuprofen")

    def test_containment_direction(self):
        # A spoken short form inside the stored name matches
        assert matches_med_name("Ibuprofen", "Ibu")
        # The stored name must be at least 4 characters to match inside a longer term
        assert not matches_med_name("Ibu", "Ibuprofen")

    def test_trademark_symbol(self):
        assert matches_med_name("Aspirin®", "aspirin")

    def test_empty_never_matches(self):
        assert not matches_med_name("", "x")
        assert not matches_med_name("Ibuprofen", None)

    def test_levenshtein(self):
        assert levenshtein_distance("kitten", "sitting") == 3
        assert levenshtein_distance("", "abc") == 3
        assert levenshtein_distance("same", "same") == 0


class TestHelpers:
    """Test tokenization and strength splitting."""

    def test_tokenize(self):
        assert tokenize("Ich habe, Übelkeit!") == ["ich", "habe", "uebelkeit"]

    def test_split_strength(self):
        assert split_strength("Sumatriptan 50 mg") == ("Sumatriptan", "50 mg")
        assert split_strength("Ibuprofen") == ("Ibuprofen", None)


class TestFindMentions:
    """Test transcript scanning."""

    def test_exact_mention(self, matcher):
        mentions = matcher.find_mentions("ich habe ibuprofen genommen")
        assert len(mentions) == 1
        assert mentions[0].match.canonical == "Ibuprofen 400 mg"
        assert mentions[0].match.medication_id == "m2"
        assert mentions[0].match.match_type == "exact"
        assert mentions[0].start_index == 2

    def test_split_name(self, matcher):
        mentions = matcher.find_mentions("ich habe suma triptan genommen")
        assert len(mentions) == 1
        assert mentions[0].match.canonical == "Sumatriptan 50 mg"

    def test_negated_mention_ignored(self, matcher):
        assert matcher.find_mentions("kein ibuprofen genommen") == []
        assert matcher.find_mentions("ich habe heute keine ibuprofen genommen") == []

    def test_each_medication_reported_once(self, matcher):
        mentions = matcher.find_mentions("ibuprofen und dann nochmal ibuprofen")
        assert [m.match.canonical for m in mentions] == ["Ibuprofen 400 mg"]

    def test_two_medications_in_order(self, matcher):
        mentions = matcher.find_mentions("sumatriptan und ibuprofen genommen")
        assert [m.match.medication_id for m in mentions] == ["m1", "m2"]

    def test_empty_list_or_text(self, matcher):
        assert MedicationMatcher([]).find_mentions("ibuprofen") == []
        assert matcher.find_mentions("") == []

    def test_unrelated_words_do_not_match(self, matcher):
        assert matcher.find_mentions("schlecht geschlafen und viel stress") == []


class TestLookups:
    """Test whole-text and phrase lookups."""

    def test_find_in_text_by_primary_word(self, matcher):
        med = matcher.find_in_text("Sumatriptan hat gut geholfen")
        assert med.id == "m1"

    def test_find_in_text_none(self, matcher):
        assert matcher.find_in_text("Danach Übelkeit") is None

    def test_find_user_medication(self, matcher):
        assert matcher.find_user_medication("ibuprofen").id == "m2"
        assert matcher.find_user_medication("aspirin") is None

    def test_canonical_synonym(self):
        matcher = MedicationMatcher()
        assert matcher.find_canonical_synonym("zwei ibu genommen") == "Ibuprofen"
        assert matcher.find_canonical_synonym("sumatriptan 50 mg") == "Sumatriptan"
        assert matcher.find_canonical_synonym("danach uebelkeit") is None
