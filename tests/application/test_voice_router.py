"""Integration tests for the voice NLP API endpoints.

Runs every endpoint against the real services with an in-memory segment
store, and checks the error bodies for blank input and store failures.
"""

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from application.api.dependencies import get_segment_store, get_segmenter
from application.api.voice_router import router
from application.services.context_segmenter import ContextSegmenter
from domain.segment_store import SegmentStore, SegmentStoreError
from infrastructure.in_memory_segment_store import InMemorySegmentStore


class FailingSegmentStore(SegmentStore):
    """Store whose writes always fail."""

    async def replace_segments(self, voice_note_id, segments):
        raise SegmentStoreError("insert failed")

    async def get_segments(self, voice_note_id):
        return []

    async def mark_processed(self, voice_note_id, nlp_version):
        raise SegmentStoreError("update failed")


@pytest.fixture
def store():
    return InMemorySegmentStore()


@pytest.fixture
def app_with_store(store):
    """FastAPI app with the in-memory store wired up."""
    app = FastAPI()
    app.include_router(router)

    app.dependency_overrides[get_segment_store] = lambda: store
    app.dependency_overrides[get_segmenter] = lambda: ContextSegmenter(nlp_version="v-test")

    yield app

    app.dependency_overrides.clear()


@pytest.fixture
def client(app_with_store):
    return TestClient(app_with_store)


class TestSegmentsEndpoint:
    """Test POST /api/voice/segments."""

    def test_segments_returned(self, client):
        resp = client.post("/api/voice/segments", json={
            "text": "Sumatriptan 50 mg genommen. Danach Übelkeit. Schlecht geschlafen.",
        })
        assert resp.status_code == 200
        data = resp.json()
        assert data["segment_count"] == 3
        assert data["nlp_version"] == "v-test"
        assert [s["segment_type"] for s in data["segments"]] == [
            "medication_event", "symptom_course", "lifestyle_factor",
        ]

    def test_segments_persisted_for_voice_note(self, client, store):
        resp = client.post("/api/voice/segments", json={
            "text": "Ibuprofen hat gut geholfen",
            "voiceNoteId": "note-1",
            "userMeds": ["Ibuprofen 400 mg"],
        })
        assert resp.status_code == 200
        assert store.processed_version("note-1") == "v-test"

    def test_blank_text_rejected(self, client):
        resp = client.post("/api/voice/segments", json={"text": "   "})
        assert resp.status_code == 400
        assert resp.json() == {"error": "text is required", "segments": []}

    def test_store_failure_returns_segments(self, app_with_store):
        app_with_store.dependency_overrides[get_segment_store] = lambda: FailingSegmentStore()
        client = TestClient(app_with_store)
        resp = client.post("/api/voice/segments", json={
            "text": "Danach Übelkeit. Schlecht geschlafen.",
            "voiceNoteId": "note-2",
        })
        assert resp.status_code == 500
        data = resp.json()
        assert data["error"] == "insert failed"
        assert len(data["segments"]) == 2


class TestTextEndpoints:
    """Test the stateless parsing endpoints."""

    def test_intent(self, client):
        resp = client.post("/api/voice/intent", json={"text": "Füge Paracetamol 500 mg hinzu"})
        assert resp.status_code == 200
        data = resp.json()
        assert data["intent"] == "add_medication"
        assert data["top_intents"][0] == {"intent": "add_medication", "score": 1.1}

    def test_intent_blank_text(self, client):
        assert client.post("/api/voice/intent", json={}).status_code == 400

    def test_normalize(self, client):
        resp = client.post("/api/voice/normalize", json={"text": "Kopfschmerzen 7/10"})
        assert resp.json()["normalized"] == "kopfschmerzen 7 von 10"

    def test_parse(self, client):
        resp = client.post("/api/voice/parse", json={"text": "Ibuprofen 400 mg genommen"})
        data = resp.json()
        assert data["entry_type"] == "new_entry"
        assert data["medications"][0]["name"] == "Ibuprofen"

    def test_reminder(self, client):
        resp = client.post("/api/voice/reminder", json={
            "text": "Erinnere mich abends an Ibuprofen",
            "userMeds": [{"name": "Ibuprofen"}],
        })
        data = resp.json()
        assert data["type"] == "medication"
        assert data["time"] == "18:00"

    def test_reminder_blank_text(self, client):
        assert client.post("/api/voice/reminder", json={"text": ""}).status_code == 400


class TestMergeEndpoint:
    """Test POST /api/voice/merge."""

    def test_merge(self, client):
        resp = client.post("/api/voice/merge", json={
            "previousState": {"painLevel": 5, "selectedMedications": {}, "notesText": "a"},
            "newParse": {"pain_intensity": {"value": 8}, "medications": [], "note": "b"},
            "userEdited": {"pain": True, "notes": True},
        })
        assert resp.status_code == 200
        data = resp.json()
        assert data["state"]["pain_level"] == 5
        assert data["state"]["notes_text"] == "a\n\nb"
        assert data["painDefaultUsed"] is False

    def test_merge_invalid_pain(self, client):
        resp = client.post("/api/voice/merge", json={"newParse": {"pain_intensity": {"value": 12}}})
        assert resp.status_code == 400

    def test_merge_malformed_selection(self, client):
        resp = client.post("/api/voice/merge", json={
            "previousState": {"selectedMedications": ["Ibuprofen"]},
            "newParse": {"medications": [{"name": "Ibuprofen"}]},
        })
        assert resp.status_code == 400
        assert "selected medications" in resp.json()["error"]


class TestHealth:

    def test_health(self, client):
        resp = client.get("/api/voice/health")
        assert resp.json() == {"status": "ok", "nlp_version": "v-test"}
