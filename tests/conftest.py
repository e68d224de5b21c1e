"""Shared fixtures: fake rendering backends and sample plans."""

from __future__ import annotations

import asyncio
import os
import tempfile

# Keep artifacts of the app under test out of the working tree
_TMP_ROOT = tempfile.mkdtemp(prefix="podcast_assembly_tests_")
os.environ["AUDIO_STORAGE_DIR"] = os.path.join(_TMP_ROOT, "temp_audio")
os.environ["OUTPUT_DIR"] = os.path.join(_TMP_ROOT, "output")
os.environ["SPEECH_BACKEND_URL"] = ""
os.environ["MUSIC_BACKEND_URL"] = ""
os.environ["AMBIENT_WEATHER_APPLICATION_KEY"] = ""
os.environ["AMBIENT_WEATHER_API_KEY"] = ""

import httpx  # noqa: E402
import pytest  # noqa: E402

from podcast_assembly.models.rendering import MusicRenderRequest, SpeechRenderRequest  # noqa: E402
from podcast_assembly.nodes.segment_dispatcher import SegmentDispatcher  # noqa: E402
from podcast_assembly.tools.errors import BackendRejected  # noqa: E402


class FakeSpeechBackend:
    """Records calls; rejects, crashes, times out, garbles or delays specific segment ids."""

    def __init__(self, reject=(), crash=(), timeouts=(), malformed=(), delays=None):
        self.reject = set(reject)
        self.crash = set(crash)
        self.timeouts = set(timeouts)
        self.malformed = set(malformed)
        self.delays = delays or {}
        self.calls: list[SpeechRenderRequest] = []
        self.in_flight = 0
        self.max_in_flight = 0

    async def render(self, request: SpeechRenderRequest) -> dict:
        self.calls.append(request)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(self.delays.get(request.segment_id, 0))
            if request.segment_id in self.reject:
                raise BackendRejected(400, {"error": "Invalid voice", "details": request.voice})
            if request.segment_id in self.crash:
                raise httpx.ConnectError("connection refused")
            if request.segment_id in self.timeouts:
                raise TimeoutError("upstream read timed out")
            if request.segment_id in self.malformed:
                return ["not", "an", "object"]
            return {
                "success": True,
                "filename": f"{request.segment_id}.mp3",
                "filepath": f"/tmp/{request.segment_id}.mp3",
                "size": 1024,
                "format": "mp3",
                "voice": request.voice,
                "model": "fake-tts",
                "type": request.type,
                "segment_id": request.segment_id,
            }
        finally:
            self.in_flight -= 1


class FakeMusicBackend:
    def __init__(self):
        self.calls: list[MusicRenderRequest] = []

    async def render(self, request: MusicRenderRequest) -> dict:
        self.calls.append(request)
        return {
            "success": True,
            "filename": f"{request.segment_id}.mp3",
            "filepath": f"/tmp/{request.segment_id}.mp3",
            "size": 2048,
            "format": "mp3",
            "type": "music",
            "prompt": request.prompt,
            "duration": request.duration,
            "segment_id": request.segment_id,
        }


@pytest.fixture
def speech_backend() -> FakeSpeechBackend:
    return FakeSpeechBackend()


@pytest.fixture
def music_backend() -> FakeMusicBackend:
    return FakeMusicBackend()


@pytest.fixture
def dispatcher(speech_backend, music_backend) -> SegmentDispatcher:
    return SegmentDispatcher(
        speech_backend=speech_backend,
        music_backends={"elevenlabs": music_backend},
        max_concurrency=2,
    )


@pytest.fixture
def raw_plan() -> dict:
    """A plan covering every segment type, without ids."""
    return {
        "episode_id": "2026-10-19",
        "title": "Morning Show",
        "description": "Coffee, weather and a jingle",
        "segments": [
            {"type": "music", "role": "intro_jingle", "prompt": "upbeat acoustic intro", "engine": "elevenlabs"},
            {"type": "dialogue", "speaker": "HOST", "text": "Good morning!", "tts_voice": "alloy"},
            {"type": "dialogue", "speaker": "GUEST", "text": "(laughs) Morning!", "tts_voice": "nova"},
            {"type": "weather", "text": "Sunny and 14 degrees.", "tts_voice": "onyx"},
            {"type": "ad", "text": "Brought to you by Coffee Co.", "tts_voice": "shimmer"},
        ],
    }
