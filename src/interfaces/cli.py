"""Command-line interface for the voice diary NLP pipeline."""

from __future__ import annotations

import json
from datetime import datetime
from typing import List, Optional

import typer
from dotenv import load_dotenv

from composition_root import bootstrap_voice_services

# --- Environment Loading ---
load_dotenv()


# --- Typer App ---
app = typer.Typer(
    help="Understand German diary dictations: normalize, score, segment, parse.",
    add_completion=False,
)

MED_OPTION = typer.Option(None, "--med", "-m", help="A medication from the user's list (repeatable).")
NOW_OPTION = typer.Option(None, "--now", help="Reference time as ISO 8601 (default: current time).")


def _emit(payload) -> None:
    typer.echo(json.dumps(payload, ensure_ascii=False, indent=2))


def _reference_time(now: Optional[str]) -> Optional[datetime]:
    if not now:
        return None
    try:
        return datetime.fromisoformat(now)
    except ValueError:
        raise typer.BadParameter(f"Not an ISO 8601 timestamp: {now}", param_hint="--now")


# --- CLI Commands ---


@app.command()
def normalize(text: str):
    """Prints the normalized transcript and its tokens."""
    services = bootstrap_voice_services()
    _emit(services.normalizer.normalize(text).to_dict())


@app.command()
def score(text: str, med: Optional[List[str]] = MED_OPTION):
    """Scores the transcript against every intent."""
    services = bootstrap_voice_services()
    _emit(services.scorer.score(text, med or []).to_dict())


@app.command()
def segment(text: str, med: Optional[List[str]] = MED_OPTION):
    """Splits a context note into typed segments."""
    services = bootstrap_voice_services()
    segments = services.segmenter.segment(text, med or [])
    _emit({
        "segments": [s.to_dict() for s in segments],
        "nlp_version": services.segmenter.nlp_version,
        "segment_count": len(segments),
    })


@app.command()
def parse(text: str, med: Optional[List[str]] = MED_OPTION, now: Optional[str] = NOW_OPTION):
    """Parses a dictated diary entry."""
    services = bootstrap_voice_services()
    _emit(services.entry_parser.parse(text, med or [], now=_reference_time(now)).to_dict())


@app.command()
def reminder(text: str, med: Optional[List[str]] = MED_OPTION, now: Optional[str] = NOW_OPTION):
    """Parses a spoken reminder request."""
    services = bootstrap_voice_services()
    _emit(services.reminder_parser.parse(text, med or [], now=_reference_time(now)).to_dict())


if __name__ == "__main__":
    app()
