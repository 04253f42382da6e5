"""Main FastAPI application entry point."""

import logging

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from config.voice_config import get_voice_config
from .dependencies import get_segment_store, get_voice_services
from .voice_router import router as voice_router

load_dotenv()

logger = logging.getLogger(__name__)

config = get_voice_config()

logging.basicConfig(
    level=getattr(logging, config.log_level, logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)

app = FastAPI(
    title="Voice Diary NLP API",
    description="German voice transcript understanding for the headache diary",
    version=config.nlp_version.lstrip("v"),
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=config.api.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(voice_router)


# ========================================
# Startup Events
# ========================================

@app.on_event("startup")
async def startup_event():
    """Initialize services on application startup."""
    logger.info("🚀 Starting Voice Diary NLP API...")
    services = get_voice_services()
    await get_segment_store()
    logger.info(f"✅ Rule set {services.config.nlp_version} loaded")


@app.get("/")
async def root():
    return {"name": "Voice Diary NLP API", "nlp_version": config.nlp_version}
