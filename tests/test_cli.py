"""Tests for the voice-nlp command-line interface."""

import json

import pytest
from typer.testing import CliRunner

from interfaces.cli import app


@pytest.fixture
def runner():
    return CliRunner()


class TestCommands:
    """Test each command prints JSON."""

    def test_normalize(self, runner):
        result = runner.invoke(app, ["normalize", "Übelkeit 7/10"])
        assert result.exit_code == 0
        assert json.loads(result.output)["normalized"] == "uebelkeit 7 von 10"

    def test_score_with_meds(self, runner):
        result = runner.invoke(app, ["score", "Sumatriptan genommen, Kopfschmerz Stärke 7", "--med", "Sumatriptan"])
        assert result.exit_code == 0
        assert json.loads(result.output)["intent"] == "pain_entry"

    def test_segment(self, runner):
        result = runner.invoke(app, ["segment", "Danach Übelkeit. Schlecht geschlafen."])
        assert result.exit_code == 0
        assert json.loads(result.output)["segment_count"] == 2

    def test_parse_with_reference_time(self, runner):
        result = runner.invoke(app, ["parse", "vor 2 Stunden Kopfschmerzen 6 von 10", "--now", "2026-03-10T14:30:00"])
        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["time"]["time"] == "12:30"
        assert data["pain_intensity"]["value"] == 6

    def test_reminder(self, runner):
        result = runner.invoke(app, [
            "reminder", "Erinnere mich übermorgen um 8 an Ibuprofen",
            "-m", "Ibuprofen", "--now", "2026-03-10T09:00:00",
        ])
        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["date"] == "2026-03-12"
        assert data["medications"] == ["Ibuprofen"]

    def test_bad_reference_time(self, runner):
        result = runner.invoke(app, ["parse", "Kopfschmerzen", "--now", "gestern"])
        assert result.exit_code != 0
