"""Tests for voice NLP configuration loading."""

import pytest

from config.voice_config import (
    ReminderDefaults,
    StoreType,
    VoiceNlpConfig,
    get_voice_config,
    reload_config,
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in (
        "VOICE_NLP_CONFIG_PATH",
        "VOICE_NLP_VERSION",
        "VOICE_NLP_LOG_LEVEL",
        "VOICE_NLP_STORE",
        "REDIS_HOST",
        "REDIS_PORT",
    ):
        monkeypatch.delenv(name, raising=False)


class TestFromDict:
    """Test building config from parsed YAML."""

    def test_defaults(self):
        config = VoiceNlpConfig.from_dict({})
        assert config.nlp_version == "v1.0.0"
        assert config.log_level == "INFO"
        assert config.store.type == StoreType.MEMORY
        assert config.reminder_defaults.evening == "18:00"
        assert config.api.cors_origins == ["*"]

    def test_full_document(self):
        config = VoiceNlpConfig.from_dict({
            "nlp_version": "v1.1.0",
            "log_level": "debug",
            "scoring": {"pain_keywords": 0.5},
            "reminder_defaults": {"evening": "19:30"},
            "store": {"type": "redis", "redis": {"host": "cache", "port": 6380}},
            "api": {"cors_origins": ["http://localhost:3000"]},
        })
        assert config.nlp_version == "v1.1.0"
        assert config.log_level == "DEBUG"
        assert config.scoring == {"pain_keywords": 0.5}
        assert config.reminder_defaults.evening == "19:30"
        assert config.reminder_defaults.morning == "08:00"
        assert config.store.type == StoreType.REDIS
        assert config.store.redis.host == "cache"
        assert config.store.redis.port == 6380
        assert config.api.cors_origins == ["http://localhost:3000"]

    def test_invalid_log_level(self):
        with pytest.raises(ValueError, match="Invalid log level"):
            VoiceNlpConfig.from_dict({"log_level": "LOUD"})

    def test_non_numeric_weight(self):
        with pytest.raises(ValueError):
            VoiceNlpConfig.from_dict({"scoring": {"pain_keywords": "high"}})

    def test_invalid_store_type(self):
        with pytest.raises(ValueError):
            VoiceNlpConfig.from_dict({"store": {"type": "postgres"}})

    @pytest.mark.parametrize("value", ["25:00", "8", "abends", "08:60"])
    def test_invalid_reminder_time(self, value):
        with pytest.raises(ValueError, match="Invalid reminder time"):
            ReminderDefaults(evening=value)


class TestFromYaml:
    """Test YAML loading."""

    def test_missing_file_gives_defaults(self, tmp_path):
        config = VoiceNlpConfig.from_yaml(str(tmp_path / "missing.yaml"))
        assert config == VoiceNlpConfig()

    def test_bundled_file(self):
        config = VoiceNlpConfig.from_yaml()
        assert config.nlp_version == "v1.0.0"
        assert config.scoring["min_winning_score"] == 0.3

    def test_custom_file(self, tmp_path):
        path = tmp_path / "voice.yaml"
        path.write_text("nlp_version: v9\nreminder_defaults:\n  noon: '13:00'\n", encoding="utf-8")
        config = VoiceNlpConfig.from_yaml(str(path))
        assert config.nlp_version == "v9"
        assert config.reminder_defaults.noon == "13:00"

    def test_empty_file(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("", encoding="utf-8")
        assert VoiceNlpConfig.from_yaml(str(path)) == VoiceNlpConfig()


class TestFromEnv:
    """Test environment overrides."""

    def test_env_overrides(self, monkeypatch):
        monkeypatch.setenv("VOICE_NLP_VERSION", "v2.0.0")
        monkeypatch.setenv("VOICE_NLP_LOG_LEVEL", "warning")
        monkeypatch.setenv("VOICE_NLP_STORE", "redis")
        monkeypatch.setenv("REDIS_HOST", "redis.internal")
        monkeypatch.setenv("REDIS_PORT", "6390")

        config = VoiceNlpConfig.from_env()
        assert config.nlp_version == "v2.0.0"
        assert config.log_level == "WARNING"
        assert config.store.type == StoreType.REDIS
        assert config.store.redis.host == "redis.internal"
        assert config.store.redis.port == 6390

    def test_invalid_env_log_level(self, monkeypatch):
        monkeypatch.setenv("VOICE_NLP_LOG_LEVEL", "chatty")
        with pytest.raises(ValueError):
            VoiceNlpConfig.from_env()

    def test_config_path_from_env(self, monkeypatch, tmp_path):
        path = tmp_path / "voice.yaml"
        path.write_text("nlp_version: from-file\n", encoding="utf-8")
        monkeypatch.setenv("VOICE_NLP_CONFIG_PATH", str(path))
        assert VoiceNlpConfig.from_env().nlp_version == "from-file"


class TestGlobalConfig:
    """Test the lazily loaded global instance."""

    def test_reload_replaces_global(self, tmp_path):
        path = tmp_path / "voice.yaml"
        path.write_text("nlp_version: reloaded\n", encoding="utf-8")
        try:
            reload_config(str(path))
            assert get_voice_config().nlp_version == "reloaded"
        finally:
            reload_config()
