"""Tests for service wiring from configuration."""

from datetime import datetime

import pytest

from composition_root import (
    bootstrap_segment_store,
    bootstrap_voice_services,
    build_lexicon,
    create_scoring_weights,
)
from config.voice_config import VoiceNlpConfig
from infrastructure.in_memory_segment_store import InMemorySegmentStore
from infrastructure.redis_segment_store import RedisSegmentStore


class TestBootstrap:
    """Test building the service bundle."""

    def test_services_share_config_version(self):
        services = bootstrap_voice_services(VoiceNlpConfig(nlp_version="v1.2.3"))
        assert services.segmenter.nlp_version == "v1.2.3"
        assert services.config.nlp_version == "v1.2.3"

    def test_scoring_overrides_applied(self):
        config = VoiceNlpConfig(scoring={"pain_keywords": 0.9})
        services = bootstrap_voice_services(config)
        assert services.scorer.weights.pain_keywords == 0.9
        assert create_scoring_weights(config).pain_keywords == 0.9

    def test_unknown_scoring_weight_rejected(self):
        with pytest.raises(ValueError):
            bootstrap_voice_services(VoiceNlpConfig(scoring={"bogus": 1.0}))

    def test_reminder_defaults_reach_parser(self):
        config = VoiceNlpConfig.from_dict({"reminder_defaults": {"evening": "19:30", "fallback": "09:00"}})
        services = bootstrap_voice_services(config)
        now = datetime(2026, 3, 10, 9, 0)
        assert services.reminder_parser.parse("Abends Tablette nehmen", now=now).time == "19:30"
        assert services.reminder_parser.parse("Tablette nehmen", now=now).time == "09:00"

    def test_build_lexicon_keeps_patterns(self):
        lexicon = build_lexicon(VoiceNlpConfig())
        names = [name for name, _, _ in lexicon.reminder.time_of_day]
        assert names == ["morning", "noon", "evening", "night"]


class TestSegmentStoreBootstrap:
    """Test store selection."""

    def test_memory_store_by_default(self):
        assert isinstance(bootstrap_segment_store(VoiceNlpConfig()), InMemorySegmentStore)

    def test_redis_store_when_configured(self):
        config = VoiceNlpConfig.from_dict({"store": {"type": "redis", "redis": {"host": "localhost"}}})
        assert isinstance(bootstrap_segment_store(config), RedisSegmentStore)
