"""FastAPI router for the voice diary NLP endpoints."""

import logging
from typing import Any, ClassVar, Dict, List, Optional, Union

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field

from application.services.context_segmenter import ContextSegmenter
from application.services.intent_scorer import IntentScorer, get_top_intents
from application.services.reminder_parser import ReminderParser
from application.services.transcript_normalizer import TranscriptNormalizer
from application.services.voice_entry_parser import VoiceEntryParser
from application.services.voice_merge import merge_voice_append
from domain.segment_store import SegmentStore
from .dependencies import (
    get_entry_parser,
    get_intent_scorer,
    get_normalizer,
    get_reminder_parser,
    get_segment_store,
    get_segmenter,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/voice", tags=["Voice NLP"])

UserMedPayload = Union[str, Dict[str, Any]]


class TextRequest(BaseModel):
    model_config: ClassVar[ConfigDict] = ConfigDict(populate_by_name=True)

    text: Optional[str] = None
    user_meds: List[UserMedPayload] = Field(default_factory=list, alias="userMeds")


class SegmentRequest(TextRequest):
    voice_note_id: Optional[str] = Field(None, alias="voiceNoteId")


class MergeRequest(BaseModel):
    model_config: ClassVar[ConfigDict] = ConfigDict(populate_by_name=True)

    previous_state: Dict[str, Any] = Field(default_factory=dict, alias="previousState")
    new_parse: Dict[str, Any] = Field(default_factory=dict, alias="newParse")
    user_edited: Dict[str, bool] = Field(default_factory=dict, alias="userEdited")


def _missing_text(extra: Optional[Dict[str, Any]] = None) -> JSONResponse:
    content = {"error": "text is required"}
    content.update(extra or {})
    return JSONResponse(status_code=400, content=content)


@router.post("/segments")
async def segment_voice_note(
    request: SegmentRequest,
    segmenter: ContextSegmenter = Depends(get_segmenter),
    store: SegmentStore = Depends(get_segment_store),
):
    """Split a context note into typed segments and persist them for the voice note."""
    text = (request.text or "").strip()
    if not text:
        return _missing_text({"segments": []})

    segments = []
    try:
        segments = segmenter.segment(text, request.user_meds)
        if request.voice_note_id:
            await store.replace_segments(request.voice_note_id, segments)
            await store.mark_processed(request.voice_note_id, segmenter.nlp_version)
    except Exception as e:
        logger.error(f"Segmentation failed for voice note {request.voice_note_id}: {e}", exc_info=True)
        return JSONResponse(
            status_code=500,
            content={"error": str(e), "segments": [s.to_dict() for s in segments]},
        )

    logger.info(f"📝 Segmented voice note {request.voice_note_id or '-'} into {len(segments)} segments")
    return {
        "segments": [s.to_dict() for s in segments],
        "nlp_version": segmenter.nlp_version,
        "segment_count": len(segments),
    }


@router.post("/intent")
async def score_intent(
    request: TextRequest,
    scorer: IntentScorer = Depends(get_intent_scorer),
):
    """Classify what an utterance asks for."""
    if not (request.text or "").strip():
        return _missing_text()
    result = scorer.score(request.text, request.user_meds)
    response = result.to_dict()
    response["top_intents"] = [
        {"intent": intent.value, "score": score}
        for intent, score in get_top_intents(result.scores)
    ]
    return response


@router.post("/normalize")
async def normalize(
    request: TextRequest,
    normalizer: TranscriptNormalizer = Depends(get_normalizer),
):
    """Canonicalize a raw transcript."""
    return normalizer.normalize(request.text).to_dict()


@router.post("/parse")
async def parse_entry(
    request: TextRequest,
    parser: VoiceEntryParser = Depends(get_entry_parser),
):
    """Parse a dictated diary entry into a review-sheet draft."""
    return parser.parse(request.text, request.user_meds).to_dict()


@router.post("/reminder")
async def parse_reminder(
    request: TextRequest,
    parser: ReminderParser = Depends(get_reminder_parser),
):
    """Parse a spoken reminder request."""
    if not (request.text or "").strip():
        return _missing_text()
    return parser.parse(request.text, request.user_meds).to_dict()


@router.post("/merge")
async def merge_append(request: MergeRequest):
    """Fold a follow-up dictation into the open review sheet."""
    try:
        result = merge_voice_append(request.previous_state, request.new_parse, request.user_edited)
    except (TypeError, ValueError) as e:
        return JSONResponse(status_code=400, content={"error": str(e)})
    return {"state": result.state.to_dict(), "painDefaultUsed": result.pain_default_used}


@router.get("/health")
async def health(segmenter: ContextSegmenter = Depends(get_segmenter)):
    return {"status": "ok", "nlp_version": segmenter.nlp_version}
