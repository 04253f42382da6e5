"""Dependency injection for FastAPI application."""

from typing import Optional

from application.services.context_segmenter import ContextSegmenter
from application.services.intent_scorer import IntentScorer
from application.services.reminder_parser import ReminderParser
from application.services.transcript_normalizer import TranscriptNormalizer
from application.services.voice_entry_parser import VoiceEntryParser
from composition_root import VoiceServices, bootstrap_segment_store, bootstrap_voice_services
from config.voice_config import VoiceNlpConfig, get_voice_config
from domain.segment_store import SegmentStore

# Global instances to hold state
_services_instance: Optional[VoiceServices] = None
_segment_store_instance: Optional[SegmentStore] = None


def get_config() -> VoiceNlpConfig:
    """Dependency to get the voice NLP configuration."""
    return get_voice_services().config


def get_voice_services() -> VoiceServices:
    """Dependency to get the NLP service bundle."""
    global _services_instance
    if _services_instance is None:
        _services_instance = bootstrap_voice_services(get_voice_config())
    return _services_instance


def get_normalizer() -> TranscriptNormalizer:
    return get_voice_services().normalizer


def get_intent_scorer() -> IntentScorer:
    return get_voice_services().scorer


def get_segmenter() -> ContextSegmenter:
    return get_voice_services().segmenter


def get_entry_parser() -> VoiceEntryParser:
    return get_voice_services().entry_parser


def get_reminder_parser() -> ReminderParser:
    return get_voice_services().reminder_parser


async def get_segment_store() -> SegmentStore:
    """Dependency to get the segment store."""
    global _segment_store_instance
    if _segment_store_instance is None:
        _segment_store_instance = bootstrap_segment_store(get_voice_services().config)
    return _segment_store_instance


def reset_dependencies() -> None:
    """Drop cached instances, e.g. after reload_config()."""
    global _services_instance, _segment_store_instance
    _services_instance = None
    _segment_store_instance = None
