"""
Voice NLP Configuration

Loads and validates configuration from config/voice_nlp.yaml.
Provides typed models for the rule-set version, scoring weights, reminder
defaults, the segment store backend and the HTTP API.
"""

import os
from dataclasses import dataclass, field, fields
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

DEFAULT_CONFIG_PATH = Path(__file__).parent / "voice_nlp.yaml"

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class StoreType(str, Enum):
    """Segment store implementation type."""
    MEMORY = "memory"
    REDIS = "redis"


@dataclass
class RedisConfig:
    """Redis connection configuration."""
    host: str = "localhost"
    port: int = 6379
    db: int = 0


@dataclass
class StoreConfig:
    """Segment store configuration."""
    type: StoreType = StoreType.MEMORY
    redis: RedisConfig = field(default_factory=RedisConfig)


@dataclass
class ReminderDefaults:
    """Clock time used when only a time of day is said ("morgens", "abends")."""
    morning: str = "08:00"
    noon: str = "12:00"
    evening: str = "18:00"
    night: str = "22:00"
    fallback: str = "08:00"  # nothing said at all

    def __post_init__(self):
        for f in fields(self):
            value = getattr(self, f.name)
            hours, _, minutes = str(value).partition(":")
            if not (hours.isdigit() and minutes.isdigit() and int(hours) < 24 and int(minutes) < 60):
                raise ValueError(f"Invalid reminder time for {f.name}: {value!r} (expected HH:MM)")


@dataclass
class ApiConfig:
    """HTTP API configuration."""
    cors_origins: List[str] = field(default_factory=lambda: ["*"])


@dataclass
class VoiceNlpConfig:
    """Complete voice NLP configuration."""
    nlp_version: str = "v1.0.0"
    log_level: str = "INFO"
    scoring: Dict[str, float] = field(default_factory=dict)
    reminder_defaults: ReminderDefaults = field(default_factory=ReminderDefaults)
    store: StoreConfig = field(default_factory=StoreConfig)
    api: ApiConfig = field(default_factory=ApiConfig)

    def __post_init__(self):
        self.log_level = str(self.log_level).upper()
        if self.log_level not in LOG_LEVELS:
            raise ValueError(f"Invalid log level: {self.log_level}")
        for name, weight in self.scoring.items():
            if not isinstance(weight, (int, float)) or isinstance(weight, bool):
                raise ValueError(f"Scoring weight {name} must be a number, got {weight!r}")

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "VoiceNlpConfig":
        """Create config from dictionary (parsed YAML)."""
        store_data = data.get("store", {}) or {}
        store = StoreConfig(
            type=StoreType(store_data.get("type", "memory")),
            redis=RedisConfig(**store_data["redis"]) if store_data.get("redis") else RedisConfig(),
        )

        api_data = data.get("api", {}) or {}

        return cls(
            nlp_version=str(data.get("nlp_version", "v1.0.0")),
            log_level=data.get("log_level", "INFO"),
            scoring=dict(data.get("scoring", {}) or {}),
            reminder_defaults=ReminderDefaults(**(data.get("reminder_defaults", {}) or {})),
            store=store,
            api=ApiConfig(cors_origins=list(api_data.get("cors_origins", ["*"]))),
        )

    @classmethod
    def from_yaml(cls, path: Optional[str] = None) -> "VoiceNlpConfig":
        """Load config from YAML file; defaults when the file does not exist."""
        if path is None:
            path = os.getenv("VOICE_NLP_CONFIG_PATH", str(DEFAULT_CONFIG_PATH))

        config_path = Path(path)
        if not config_path.is_absolute():
            config_path = Path.cwd() / path

        if not config_path.exists():
            return cls()

        with open(config_path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}

        return cls.from_dict(data)

    @classmethod
    def from_env(cls) -> "VoiceNlpConfig":
        """
        Create config from environment variables.

        Environment variables override YAML config.
        """
        config = cls.from_yaml()

        if os.getenv("VOICE_NLP_VERSION"):
            config.nlp_version = os.getenv("VOICE_NLP_VERSION")

        if os.getenv("VOICE_NLP_LOG_LEVEL"):
            level = os.getenv("VOICE_NLP_LOG_LEVEL").upper()
            if level not in LOG_LEVELS:
                raise ValueError(f"Invalid log level: {level}")
            config.log_level = level

        if os.getenv("VOICE_NLP_STORE"):
            config.store.type = StoreType(os.getenv("VOICE_NLP_STORE"))

        if os.getenv("REDIS_HOST"):
            config.store.redis.host = os.getenv("REDIS_HOST")

        if os.getenv("REDIS_PORT"):
            config.store.redis.port = int(os.getenv("REDIS_PORT"))

        return config


# Global config instance (lazy loaded)
_config: Optional[VoiceNlpConfig] = None


def get_voice_config() -> VoiceNlpConfig:
    """Get the global voice NLP configuration (lazy loaded)."""
    global _config
    if _config is None:
        _config = VoiceNlpConfig.from_env()
    return _config


def reload_config(path: Optional[str] = None) -> VoiceNlpConfig:
    """Reload configuration from file."""
    global _config
    _config = VoiceNlpConfig.from_yaml(path)
    return _config
