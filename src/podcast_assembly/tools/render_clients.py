"""Rendering backends used by the segment dispatcher.

Every backend exposes ``async render(request) -> dict`` and follows one error
contract: a structured refusal raises ``BackendRejected`` carrying the
backend's JSON payload, anything else (network fault, timeout, SDK crash)
propagates as an ordinary exception.
"""

from __future__ import annotations

from pathlib import Path
from typing import Protocol

import httpx
import structlog

from podcast_assembly.models.rendering import MusicRenderRequest, SpeechRenderRequest
from podcast_assembly.tools.elevenlabs import compose_music
from podcast_assembly.tools.errors import BackendRejected
from podcast_assembly.tools.openai_tts import synthesize_speech

logger = structlog.get_logger()

_HTTP_TIMEOUT_SEC = 300


class SpeechBackend(Protocol):
    async def render(self, request: SpeechRenderRequest) -> dict: ...


class MusicBackend(Protocol):
    async def render(self, request: MusicRenderRequest) -> dict: ...


# ---------------------------------------------------------------------------
# In-process backends
# ---------------------------------------------------------------------------


class OpenAISpeechBackend:
    """Speech rendering through the OpenAI TTS helper, writing into *storage_dir*."""

    def __init__(self, storage_dir: Path):
        self.storage_dir = storage_dir

    async def render(self, request: SpeechRenderRequest) -> dict:
        return await synthesize_speech(request, self.storage_dir)


class ElevenLabsMusicBackend:
    """Music rendering through the ElevenLabs helper, writing into *storage_dir*."""

    def __init__(self, storage_dir: Path):
        self.storage_dir = storage_dir

    async def render(self, request: MusicRenderRequest) -> dict:
        return await compose_music(request, self.storage_dir)


# ---------------------------------------------------------------------------
# Remote backends (POST contracts of /api/tts and /api/music)
# ---------------------------------------------------------------------------


async def _post_json(
    url: str,
    payload: dict,
    transport: httpx.AsyncBaseTransport | None = None,
) -> dict:
    async with httpx.AsyncClient(timeout=_HTTP_TIMEOUT_SEC, transport=transport) as http:
        response = await http.post(url, json=payload)

    if response.is_success:
        try:
            body = response.json()
        except ValueError:
            body = None
        if isinstance(body, dict):
            return body
        logger.warning("render_client.malformed_response", url=url, status_code=response.status_code)
        raise BackendRejected(
            502,
            {
                "error": "Rendering backend returned a malformed response",
                "details": response.text[:200],
            },
        )

    try:
        error_payload = response.json()
    except ValueError:
        error_payload = {"error": response.text or response.reason_phrase}
    if not isinstance(error_payload, dict):
        error_payload = {"error": str(error_payload)}

    logger.warning("render_client.rejected", url=url, status_code=response.status_code)
    raise BackendRejected(response.status_code, error_payload)


class HttpSpeechBackend:
    """Speech rendering via a remote service exposing ``POST /api/tts``."""

    def __init__(self, base_url: str, transport: httpx.AsyncBaseTransport | None = None):
        self.url = f"{base_url.rstrip('/')}/api/tts"
        self.transport = transport

    async def render(self, request: SpeechRenderRequest) -> dict:
        payload = request.model_dump(
            include={"text", "voice", "type", "segment_id"}, exclude_none=True
        )
        return await _post_json(self.url, payload, self.transport)


class HttpMusicBackend:
    """Music rendering via a remote service exposing ``POST /api/music``."""

    def __init__(self, base_url: str, transport: httpx.AsyncBaseTransport | None = None):
        self.url = f"{base_url.rstrip('/')}/api/music"
        self.transport = transport

    async def render(self, request: MusicRenderRequest) -> dict:
        payload = request.model_dump(
            include={"prompt", "duration", "segment_id"}, exclude_none=True
        )
        return await _post_json(self.url, payload, self.transport)
