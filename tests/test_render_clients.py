"""Tests for the HTTP rendering backends and request checks of the in-process ones."""

import asyncio
import json

import httpx
import pytest

from podcast_assembly.models.rendering import MusicRenderRequest, SpeechRenderRequest
from podcast_assembly.tools.elevenlabs import compose_music
from podcast_assembly.tools.errors import BackendRejected
from podcast_assembly.tools.openai_tts import synthesize_speech
from podcast_assembly.tools.render_clients import HttpMusicBackend, HttpSpeechBackend


def test_speech_backend_posts_tts_contract():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"success": True, "filename": "s1.mp3"})

    backend = HttpSpeechBackend("http://render.local/", transport=httpx.MockTransport(handler))
    request = SpeechRenderRequest(text="Hi", voice="nova", type="dialogue", segment_id="s1")
    result = asyncio.run(backend.render(request))

    assert result == {"success": True, "filename": "s1.mp3"}
    assert seen["url"] == "http://render.local/api/tts"
    assert seen["body"] == {"text": "Hi", "voice": "nova", "type": "dialogue", "segment_id": "s1"}


def test_music_backend_posts_music_contract():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"success": True, "filename": "m1.mp3"})

    backend = HttpMusicBackend("http://render.local", transport=httpx.MockTransport(handler))
    request = MusicRenderRequest(prompt="jazz", duration=12, segment_id="m1", role="background")
    asyncio.run(backend.render(request))

    assert seen["url"] == "http://render.local/api/music"
    assert seen["body"] == {"prompt": "jazz", "duration": 12, "segment_id": "m1"}


def test_error_status_raises_backend_rejected_with_payload():
    def handler(request):
        return httpx.Response(400, json={"error": "Invalid voice. Must be one of: alloy"})

    backend = HttpSpeechBackend("http://render.local", transport=httpx.MockTransport(handler))
    with pytest.raises(BackendRejected) as excinfo:
        asyncio.run(backend.render(SpeechRenderRequest(text="Hi", segment_id="s1")))

    assert excinfo.value.status_code == 400
    assert excinfo.value.payload == {"error": "Invalid voice. Must be one of: alloy"}


def test_non_json_error_body_is_wrapped():
    def handler(request):
        return httpx.Response(502, text="bad gateway")

    backend = HttpMusicBackend("http://render.local", transport=httpx.MockTransport(handler))
    with pytest.raises(BackendRejected) as excinfo:
        asyncio.run(backend.render(MusicRenderRequest(prompt="x", segment_id="m1")))

    assert excinfo.value.status_code == 502
    assert excinfo.value.payload == {"error": "bad gateway"}


def test_network_fault_propagates():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    backend = HttpSpeechBackend("http://render.local", transport=httpx.MockTransport(handler))
    with pytest.raises(httpx.ConnectError):
        asyncio.run(backend.render(SpeechRenderRequest(text="Hi")))


@pytest.mark.parametrize(
    "overrides, message",
    [
        ({"text": ""}, "Text is required"),
        ({"voice": "verse"}, "Invalid voice"),
        ({"type": "intro"}, "Invalid type"),
        ({"response_format": "ogg"}, "Invalid response_format"),
    ],
)
def test_speech_request_checks(tmp_path, overrides, message):
    fields = {"text": "Hello", "voice": "alloy"}
    fields.update(overrides)
    with pytest.raises(BackendRejected) as excinfo:
        asyncio.run(synthesize_speech(SpeechRenderRequest(**fields), tmp_path))
    assert excinfo.value.status_code == 400
    assert message in excinfo.value.payload["error"]


@pytest.mark.parametrize(
    "fields, message",
    [
        ({"prompt": ""}, "Prompt is required"),
        ({"prompt": "x", "duration": 0}, "Duration must be between 1 and 300 seconds"),
        ({"prompt": "x", "duration": 301}, "Duration must be between 1 and 300 seconds"),
    ],
)
def test_music_request_checks(tmp_path, fields, message):
    with pytest.raises(BackendRejected) as excinfo:
        asyncio.run(compose_music(MusicRenderRequest(**fields), tmp_path))
    assert excinfo.value.status_code == 400
    assert excinfo.value.payload["error"] == message


@pytest.mark.parametrize(
    "response",
    [
        httpx.Response(200, json=["not", "an", "object"]),
        httpx.Response(200, text="<html>ok</html>"),
    ],
)
def test_success_status_with_non_object_body_is_rejected(response):
    backend = HttpSpeechBackend("http://render.local", transport=httpx.MockTransport(lambda r: response))
    with pytest.raises(BackendRejected) as excinfo:
        asyncio.run(backend.render(SpeechRenderRequest(text="Hi", segment_id="s1")))

    assert excinfo.value.status_code == 502
    assert excinfo.value.payload["error"] == "Rendering backend returned a malformed response"
