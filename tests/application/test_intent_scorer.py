"""Unit tests for feature extraction and intent scoring."""

import pytest
from application.services.intent_scorer import (
    TIE_BREAK_ORDER,
    IntentScorer,
    ScoringWeights,
    get_top_intents,
    score_intents,
)
from application.services.voice_features import VoiceFeatureExtractor
from domain.voice_models import SCORED_INTENTS, IntentType


@pytest.fixture
def scorer():
    """Create an IntentScorer with default weights."""
    return IntentScorer()


@pytest.fixture
def features():
    return VoiceFeatureExtractor()


# ========================================
# Feature predicates
# ========================================

class TestFeatures:
    """Test the individual feature predicates on normalized text."""

    def test_add_verb(self, features):
        assert features.has_add_medication_verb("fuege ibuprofen hinzu")
        assert features.has_add_medication_verb("neues medikament anlegen")
        assert not features.has_add_medication_verb("ibuprofen genommen")

    def test_add_construction(self, features):
        assert features.has_add_construction("fuege ibuprofen hinzu")
        assert not features.has_add_construction("speichere kopfschmerz")

    def test_pain_level_needs_pain_words(self, features):
        assert features.has_pain_level("kopfschmerzen 7")
        assert not features.has_pain_level("7 tabletten")

    def test_count_pain_mentions(self, features):
        assert features.count_pain_mentions("kopfschmerz migraene") == 3
        assert features.count_pain_mentions("") == 0

    def test_question(self, features):
        assert features.is_question("Wie oft?", "wie oft?")
        assert features.is_question("wann war das", "wann war das")
        assert not features.is_question("Kopfschmerzen", "kopfschmerzen")

    def test_time_range(self, features):
        assert features.has_time_range("in den letzten 7 tagen")
        assert features.has_time_range("letzten monat")

    def test_predicates_tolerate_empty_input(self, features):
        assert not features.has_pain_keywords("")
        assert not features.has_dosage_pattern(None)
        assert not features.has_reminder_pattern("")


# ========================================
# Scoring
# ========================================

class TestIntentScoring:
    """Test end-to-end intent verdicts."""

    def test_add_medication(self, scorer):
        result = scorer.score("Füge Paracetamol 500 mg hinzu")
        assert result.intent == IntentType.ADD_MEDICATION
        assert result.confidence == 0.95
        assert result.scores[IntentType.ADD_MEDICATION] == pytest.approx(1.1)
        for feature in ("has_add_verb", "has_dosage_pattern", "dosage_with_add_verb", "known_med_alias"):
            assert feature in result.features

    def test_pain_entry(self, scorer):
        result = scorer.score("Starke Kopfschmerzen Migräne Attacke Stärke 8")
        assert result.intent == IntentType.PAIN_ENTRY
        assert result.confidence == pytest.approx(0.65)

    def test_analytics_question(self, scorer):
        result = scorer.score("Wie viele Einträge hatte ich in den letzten 7 Tagen?")
        assert result.intent == IntentType.ANALYTICS_QUERY
        assert result.confidence == 0.95
        assert "is_question" in result.features
        assert "has_time_range" in result.features

    def test_reminder(self, scorer):
        result = scorer.score("Erinnere mich morgen um 8 an meine Tabletten")
        assert result.intent == IntentType.REMINDER

    def test_medication_update(self, scorer):
        result = scorer.score("Ich habe Topiramat abgesetzt")
        assert result.intent == IntentType.MEDICATION_UPDATE
        assert result.confidence == pytest.approx(0.6)

    def test_medication_effect(self, scorer):
        result = scorer.score("Sumatriptan hat gut geholfen")
        assert result.intent == IntentType.MEDICATION_EFFECT

    def test_navigation(self, scorer):
        result = scorer.score("Öffne das Tagebuch")
        assert result.intent == IntentType.NAVIGATION

    def test_intake_narration_is_pain_entry(self, scorer):
        """Taking a known medication is logged as pain, not created as a new medication."""
        result = scorer.score("Sumatriptan genommen, Kopfschmerz Stärke 7", ["Sumatriptan"])
        assert result.intent == IntentType.PAIN_ENTRY
        assert "user_med_match" in result.features

    def test_pain_context_dominates_save_command(self, scorer):
        result = scorer.score("Speichere: Kopfschmerz Migräne, Sumatriptan genommen")
        assert "pain_context_dominant" in result.features
        assert result.intent == IntentType.PAIN_ENTRY
        assert result.scores[IntentType.PAIN_ENTRY] > result.scores[IntentType.ADD_MEDICATION]

    def test_every_intent_scored(self, scorer):
        result = scorer.score("Kopfschmerzen")
        assert set(result.scores) == set(SCORED_INTENTS)
        assert result.scores[IntentType.NOTE] == pytest.approx(0.3)

    def test_user_meds_as_mappings(self, scorer):
        result = scorer.score("Topiramat abgesetzt", [{"name": "Topiramat 25 mg", "id": "m1"}])
        assert "user_med_match" in result.features
        assert result.scores[IntentType.MEDICATION_UPDATE] == pytest.approx(0.7)

    def test_convenience_function(self):
        assert score_intents("Öffne die Einstellungen").intent == IntentType.NAVIGATION


class TestFallbackVerdicts:
    """Test note and unknown verdicts when nothing reaches the winning threshold."""

    def test_short_filler_is_note_with_default_weights(self, scorer):
        result = scorer.score("ok")
        assert result.intent == IntentType.NOTE
        assert result.confidence == pytest.approx(0.3)

    def test_unknown_for_short_text(self):
        scorer = IntentScorer(weights=ScoringWeights(note_base=0.0))
        result = scorer.score("ok")
        assert result.intent == IntentType.UNKNOWN
        assert result.confidence == pytest.approx(0.2)

    def test_note_for_long_text(self):
        scorer = IntentScorer(weights=ScoringWeights(note_base=0.0))
        result = scorer.score("Das war heute ein langer Tag")
        assert result.intent == IntentType.NOTE
        assert result.confidence == pytest.approx(0.6)

    def test_empty_transcript(self, scorer):
        result = scorer.score(None)
        assert result.intent == IntentType.NOTE
        assert result.features == ()


class TestTieBreakAndRanking:
    """Test deterministic winner selection."""

    def test_tie_goes_to_higher_priority(self):
        scores = {intent: 0.0 for intent in SCORED_INTENTS}
        scores[IntentType.PAIN_ENTRY] = 0.5
        scores[IntentType.ADD_MEDICATION] = 0.5
        winner, best = IntentScorer._pick_winner(scores)
        assert winner == IntentType.ADD_MEDICATION
        assert best == 0.5

    def test_tie_break_order_covers_every_scored_intent(self):
        assert set(TIE_BREAK_ORDER) == set(SCORED_INTENTS)

    def test_top_intents(self, scorer):
        result = scorer.score("Füge Paracetamol 500 mg hinzu")
        top = get_top_intents(result.scores)
        assert [intent for intent, _ in top] == [
            IntentType.ADD_MEDICATION,
            IntentType.NOTE,
            IntentType.PAIN_ENTRY,
        ]

    def test_top_intents_skips_zero_scores(self):
        scores = {intent: 0.0 for intent in SCORED_INTENTS}
        scores[IntentType.NOTE] = 0.3
        assert get_top_intents(scores, n=5) == [(IntentType.NOTE, 0.3)]


class TestScoringWeights:
    """Test weight overrides."""

    def test_overrides_replace_defaults(self):
        weights = ScoringWeights.from_overrides({"pain_keywords": 0.6})
        assert weights.pain_keywords == 0.6
        assert weights.add_verb == 0.5

    def test_unknown_override_rejected(self):
        with pytest.raises(ValueError, match="Unknown scoring weights"):
            ScoringWeights.from_overrides({"not_a_weight": 1.0})

    @pytest.mark.parametrize("name", ["confidence_cap", "note_fallback_confidence", "unknown_confidence"])
    def test_confidence_above_result_range_rejected(self, name):
        with pytest.raises(ValueError, match=name):
            ScoringWeights.from_overrides({name: 0.99})

    def test_lower_confidence_cap_still_scores(self):
        scorer = IntentScorer(weights=ScoringWeights.from_overrides({"confidence_cap": 0.5}))
        assert scorer.score("Füge Paracetamol 500 mg hinzu").confidence == 0.5
