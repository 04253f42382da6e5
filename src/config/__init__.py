"""Configuration package for the voice NLP service."""

from .voice_config import VoiceNlpConfig, get_voice_config, reload_config

__all__ = ["VoiceNlpConfig", "get_voice_config", "reload_config"]
