"""OpenAI text-to-speech — async helper function."""

from __future__ import annotations

from pathlib import Path

import openai
import structlog
from openai import AsyncOpenAI

from podcast_assembly.config import settings
from podcast_assembly.models.plan import TTS_VOICES
from podcast_assembly.models.rendering import SpeechRenderRequest
from podcast_assembly.tools.errors import BackendRejected
from podcast_assembly.tools.storage import artifact_path

logger = structlog.get_logger()

SPEECH_SEGMENT_TYPES = ("dialogue", "ad", "music", "weather")
RESPONSE_FORMATS = ("mp3", "opus", "aac", "flac", "wav", "pcm")

_SPEECH_INSTRUCTIONS = (
    "Use the emotional cues in parentheses to indicate the speaker's emotion, "
    "but never mention them in the speech.\n"
    "Use natural pauses and hesitations."
)


def _check_request(request: SpeechRenderRequest) -> None:
    if not request.text:
        raise BackendRejected(400, {"error": "Text is required"})
    if request.type and request.type not in SPEECH_SEGMENT_TYPES:
        raise BackendRejected(
            400, {"error": f"Invalid type. Must be one of: {', '.join(SPEECH_SEGMENT_TYPES)}"}
        )
    if request.voice not in TTS_VOICES:
        raise BackendRejected(
            400, {"error": f"Invalid voice. Must be one of: {', '.join(TTS_VOICES)}"}
        )
    if request.response_format not in RESPONSE_FORMATS:
        raise BackendRejected(
            400,
            {"error": f"Invalid response_format. Must be one of: {', '.join(RESPONSE_FORMATS)}"},
        )


async def synthesize_speech(request: SpeechRenderRequest, storage_dir: Path) -> dict:
    """Render *request* with OpenAI TTS and save it under *storage_dir*.

    The file is named after ``segment_id`` (or a random UUID) so the
    concatenation step can find it again.

    Returns:
        Metadata about the saved file: filename, filepath, size, format, voice, model.

    Raises:
        BackendRejected: For invalid parameters or an OpenAI status error.
    """
    _check_request(request)
    filepath = artifact_path(storage_dir, request.segment_id, request.response_format)
    model = request.model or settings.tts_model

    logger.info(
        "openai_tts.start",
        model=model,
        voice=request.voice,
        segment_type=request.type,
        segment_id=request.segment_id,
        text_len=len(request.text),
    )

    client = AsyncOpenAI(api_key=settings.openai_api_key)
    try:
        response = await client.audio.speech.create(
            model=model,
            voice=request.voice,
            input=request.text,
            speed=request.speed,
            instructions=_SPEECH_INSTRUCTIONS,
            response_format=request.response_format,
        )
    except openai.AuthenticationError as exc:
        raise BackendRejected(401, {"error": "Invalid OpenAI API key"}) from exc
    except openai.RateLimitError as exc:
        raise BackendRejected(429, {"error": "Rate limit exceeded"}) from exc
    except openai.APIStatusError as exc:
        raise BackendRejected(
            exc.status_code, {"error": "Failed to generate speech", "details": exc.message}
        ) from exc

    audio_data = response.content

    storage_dir.mkdir(parents=True, exist_ok=True)
    filename = filepath.name
    filepath.write_bytes(audio_data)

    logger.info("openai_tts.done", filename=filename, bytes_written=len(audio_data))

    result = {
        "success": True,
        "filename": filename,
        "filepath": str(filepath),
        "size": len(audio_data),
        "format": request.response_format,
        "voice": request.voice,
        "model": model,
    }
    if request.type:
        result["type"] = request.type
    if request.segment_id:
        result["segment_id"] = request.segment_id
    return result
