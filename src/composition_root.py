# src/composition_root.py

import logging
from dataclasses import dataclass, replace
from typing import Optional

from application.services.context_segmenter import ContextSegmenter
from application.services.intent_scorer import IntentScorer, ScoringWeights
from application.services.reminder_parser import ReminderParser
from application.services.transcript_normalizer import TranscriptNormalizer
from application.services.voice_entry_parser import VoiceEntryParser
from config.voice_config import StoreType, VoiceNlpConfig, get_voice_config
from domain.german_lexicon import GERMAN, GermanLexicon
from domain.segment_store import SegmentStore
from infrastructure.in_memory_segment_store import InMemorySegmentStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class VoiceServices:
    """The stateless NLP services, built once per process from one config."""
    config: VoiceNlpConfig
    lexicon: GermanLexicon
    normalizer: TranscriptNormalizer
    scorer: IntentScorer
    segmenter: ContextSegmenter
    entry_parser: VoiceEntryParser
    reminder_parser: ReminderParser


# --- Factory Functions ---

def build_lexicon(config: VoiceNlpConfig) -> GermanLexicon:
    """German lexicon with the configured reminder clock times."""
    defaults = config.reminder_defaults
    clock_by_bucket = {
        "morning": defaults.morning,
        "noon": defaults.noon,
        "evening": defaults.evening,
        "night": defaults.night,
    }
    reminder = GERMAN.reminder
    reminder = replace(
        reminder,
        time_of_day=tuple(
            (name, pattern, clock_by_bucket.get(name, default))
            for name, pattern, default in reminder.time_of_day
        ),
        default_time=defaults.fallback,
    )
    return replace(GERMAN, reminder=reminder)


def create_scoring_weights(config: VoiceNlpConfig) -> ScoringWeights:
    """Default weights with the configured overrides; unknown names raise ValueError."""
    return ScoringWeights.from_overrides(config.scoring)


def bootstrap_voice_services(config: Optional[VoiceNlpConfig] = None) -> VoiceServices:
    """
    Build every NLP service from configuration.

    Args:
        config: Optional custom configuration. If not provided, loads
                config/voice_nlp.yaml with environment overrides.

    Returns:
        VoiceServices bundle
    """
    config = config or get_voice_config()
    lexicon = build_lexicon(config)
    services = VoiceServices(
        config=config,
        lexicon=lexicon,
        normalizer=TranscriptNormalizer(lexicon.normalizer),
        scorer=IntentScorer(lexicon, create_scoring_weights(config)),
        segmenter=ContextSegmenter(lexicon, nlp_version=config.nlp_version),
        entry_parser=VoiceEntryParser(lexicon),
        reminder_parser=ReminderParser(lexicon),
    )
    logger.info(f"✅ Voice NLP services ready (rule set {config.nlp_version})")
    return services


def bootstrap_segment_store(config: Optional[VoiceNlpConfig] = None) -> SegmentStore:
    """Initialize the configured segment store."""
    config = config or get_voice_config()

    if config.store.type == StoreType.REDIS:
        from infrastructure.redis_segment_store import RedisSegmentStore
        redis_config = config.store.redis
        store = RedisSegmentStore(host=redis_config.host, port=redis_config.port, db=redis_config.db)
        logger.info(f"✅ Using Redis segment store at {redis_config.host}:{redis_config.port}")
        return store

    logger.info("✅ Using in-memory segment store")
    return InMemorySegmentStore()
