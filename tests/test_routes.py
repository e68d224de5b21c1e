"""HTTP-level tests for the FastAPI app, with rendering backends faked."""

import pytest
from fastapi.testclient import TestClient

from podcast_assembly.api.dependencies import get_dispatcher, get_stitcher
from podcast_assembly.main import app
from podcast_assembly.tools.errors import StitchError


@pytest.fixture
def client(dispatcher):
    app.dependency_overrides[get_dispatcher] = lambda: dispatcher
    yield TestClient(app)
    app.dependency_overrides.clear()


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}


def test_orchestrate_returns_summary_and_results(client, raw_plan):
    response = client.post("/api/orchestrate", json=raw_plan)
    assert response.status_code == 200

    body = response.json()
    assert body["success"] is True
    assert body["message"] == "Podcast Assembly Plan received and processed"
    assert body["summary"]["episode_id"] == "2026-10-19"
    assert body["summary"]["total_segments"] == 5
    assert body["summary"]["segment_breakdown"] == {"dialogue": 2, "music": 1, "ads": 1, "weather": 1}
    assert [s["segment_index"] for s in body["processed_segments"]] == [0, 1, 2, 3, 4]
    assert all(s["status"] == "success" for s in body["processed_segments"])
    assert "error" not in body["processed_segments"][0]
    assert body["artifact_ids"][0] == "2026-10-19_music_000"
    assert "stitched" not in body


def test_orchestrate_rejects_invalid_plan(client, speech_backend):
    plan = {
        "episode_id": "e1",
        "title": "T",
        "description": "D",
        "segments": [{"type": "dialogue", "speaker": "HOST", "text": "Hi", "tts_voice": "robot"}],
    }
    response = client.post("/api/orchestrate", json=plan)
    assert response.status_code == 400

    body = response.json()
    assert body["error"] == "Invalid Podcast Assembly Plan format"
    assert body["details"][0]["path"] == "segments[0].tts_voice"
    assert body["messages"][0].startswith("segments[0].tts_voice: Invalid tts_voice 'robot'")
    assert speech_backend.calls == []


def test_orchestrate_empty_segments(client):
    response = client.post(
        "/api/orchestrate",
        json={"episode_id": "e1", "title": "T", "description": "D", "segments": []},
    )
    assert response.status_code == 400
    assert [d["path"] for d in response.json()["details"]] == ["segments"]


def test_orchestrate_malformed_body_is_500(client):
    response = client.post(
        "/api/orchestrate",
        content=b"{not json",
        headers={"content-type": "application/json"},
    )
    assert response.status_code == 500
    body = response.json()
    assert body["error"] == "Failed to process Podcast Assembly Plan"
    assert body["details"]


def test_orchestrate_reports_backend_failures_per_segment(raw_plan):
    from conftest import FakeMusicBackend, FakeSpeechBackend

    from podcast_assembly.nodes.segment_dispatcher import SegmentDispatcher

    backend = FakeSpeechBackend(reject={"2026-10-19_dialogue_001"})
    app.dependency_overrides[get_dispatcher] = lambda: SegmentDispatcher(
        backend, {"elevenlabs": FakeMusicBackend()}
    )
    try:
        response = TestClient(app).post("/api/orchestrate", json=raw_plan)
    finally:
        app.dependency_overrides.clear()

    assert response.status_code == 200
    segments = response.json()["processed_segments"]
    assert segments[1]["status"] == "failed"
    assert segments[1]["error"]["error"] == "Invalid voice"
    assert response.json()["summary"]["status_counts"]["failed"] == 1


def test_orchestrate_with_stitch(client, raw_plan):
    def fake_stitcher(storage_dir, output_dir, episode_name, segment_ids):
        return {"success": True, "filename": "morning-show.mp3", "files_stitched": len(segment_ids)}

    app.dependency_overrides[get_stitcher] = lambda: fake_stitcher
    response = client.post("/api/orchestrate?stitch=true", json=raw_plan)

    assert response.status_code == 200
    assert response.json()["stitched"] == {
        "success": True,
        "filename": "morning-show.mp3",
        "files_stitched": 5,
    }


def test_stitch_endpoint_passes_through_errors(client):
    def failing_stitcher(*args):
        raise StitchError(404, "No matching audio files found for provided segment_ids")

    app.dependency_overrides[get_stitcher] = lambda: failing_stitcher
    response = client.post("/api/stitch", json={"episode_name": "Show", "segment_ids": ["x"]})

    assert response.status_code == 404
    assert response.json() == {"error": "No matching audio files found for provided segment_ids"}


def test_stitch_endpoint_success(client):
    seen = {}

    def fake_stitcher(storage_dir, output_dir, episode_name, segment_ids):
        seen.update(name=episode_name, ids=segment_ids)
        return {"success": True, "filename": "show.mp3"}

    app.dependency_overrides[get_stitcher] = lambda: fake_stitcher
    response = client.post("/api/stitch", json={"episode_name": "Show", "segment_ids": ["a", "b"]})

    assert response.status_code == 200
    assert response.json()["filename"] == "show.mp3"
    assert seen == {"name": "Show", "ids": ["a", "b"]}


def test_tts_rejects_unknown_voice(client):
    response = client.post("/api/tts", json={"text": "Hello", "voice": "verse"})
    assert response.status_code == 400
    assert response.json()["error"].startswith("Invalid voice. Must be one of: alloy")


def test_tts_requires_text(client):
    response = client.post("/api/tts", json={"voice": "alloy"})
    assert response.status_code == 400
    assert response.json() == {"error": "Text is required"}


def test_music_rejects_out_of_range_duration(client):
    response = client.post("/api/music", json={"prompt": "jazz", "duration": 500})
    assert response.status_code == 400
    assert "between 1 and 300" in response.json()["error"]


def test_generate_pap_requires_prompt(client):
    response = client.post("/api/generate-pap", json={})
    assert response.status_code == 400
    assert response.json() == {"error": "Prompt is required"}


def test_generate_pap_returns_candidate(client, monkeypatch):
    from podcast_assembly.api import routes

    async def fake_generate_plan(prompt, system=None, model=None, temperature=None):
        return {"episode_id": "e1", "title": prompt, "description": "D", "segments": []}

    monkeypatch.setattr(routes, "generate_plan", fake_generate_plan)
    response = client.post("/api/generate-pap", json={"prompt": "Coffee news"})

    assert response.status_code == 200
    assert response.json()["title"] == "Coffee news"


def test_generate_streams_tokens(client, monkeypatch):
    from podcast_assembly.api import routes

    async def fake_stream_text(prompt, system=None, model=None, temperature=0.7, max_tokens=None):
        for token in ("Hello", " world"):
            yield token

    monkeypatch.setattr(routes, "stream_text", fake_stream_text)
    response = client.post("/api/generate", json={"prompt": "Say hi", "maxTokens": 20})

    assert response.status_code == 200
    text = response.text
    assert "event: token" in text
    assert "data: Hello" in text
    assert "event: done" in text


def test_tts_rejects_segment_id_outside_storage(client):
    response = client.post(
        "/api/tts", json={"text": "Hello", "voice": "alloy", "segment_id": "../outside/pwned"}
    )
    assert response.status_code == 400
    assert response.json() == {"error": "Invalid segment_id"}


def test_orchestrate_rejects_path_like_segment_ids(client, speech_backend):
    plan = {
        "episode_id": "e1",
        "title": "T",
        "description": "D",
        "segments": [
            {"id": "../x", "type": "dialogue", "speaker": "HOST", "text": "Hi", "tts_voice": "alloy"}
        ],
    }
    response = client.post("/api/orchestrate", json=plan)
    assert response.status_code == 400
    assert response.json()["details"][0]["path"] == "segments[0].id"
    assert speech_backend.calls == []
