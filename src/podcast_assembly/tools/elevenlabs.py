"""ElevenLabs music generation — async helper function."""

from __future__ import annotations

from pathlib import Path

import structlog
from elevenlabs import AsyncElevenLabs
from elevenlabs.core.api_error import ApiError

from podcast_assembly.config import settings
from podcast_assembly.models.rendering import MusicRenderRequest
from podcast_assembly.tools.errors import BackendRejected
from podcast_assembly.tools.storage import artifact_path

logger = structlog.get_logger()

MIN_DURATION_SEC = 1
MAX_DURATION_SEC = 300


async def compose_music(request: MusicRenderRequest, storage_dir: Path) -> dict:
    """Generate a music clip with ElevenLabs and save it under *storage_dir*.

    Args:
        request: Prompt, duration in seconds and the segment id used as filename.
        storage_dir: Artifact storage root shared with the concatenation step.

    Returns:
        Metadata about the saved MP3 file.

    Raises:
        BackendRejected: For an empty prompt, an out-of-range duration or an API error.
        RuntimeError: If the API returns empty audio data.
    """
    if not request.prompt:
        raise BackendRejected(400, {"error": "Prompt is required"})
    if not MIN_DURATION_SEC <= request.duration <= MAX_DURATION_SEC:
        raise BackendRejected(
            400,
            {"error": f"Duration must be between {MIN_DURATION_SEC} and {MAX_DURATION_SEC} seconds"},
        )
    filepath = artifact_path(storage_dir, request.segment_id, "mp3")

    logger.info(
        "elevenlabs_music.start",
        prompt_len=len(request.prompt),
        duration=request.duration,
        role=request.role,
        segment_id=request.segment_id,
    )

    client = AsyncElevenLabs(api_key=settings.elevenlabs_api_key)

    chunks: list[bytes] = []
    try:
        audio_iter = client.music.compose(
            prompt=request.prompt,
            music_length_ms=int(request.duration * 1000),
            model_id=settings.elevenlabs_music_model,
        )
        async for chunk in audio_iter:
            chunks.append(chunk)
    except ApiError as exc:
        raise BackendRejected(
            exc.status_code or 500,
            {"error": "Failed to generate music", "details": str(exc.body)},
        ) from exc

    audio_data = b"".join(chunks)
    if not audio_data:
        raise RuntimeError(
            f"ElevenLabs returned empty audio for segment_id={request.segment_id}"
        )

    storage_dir.mkdir(parents=True, exist_ok=True)
    filename = filepath.name
    filepath.write_bytes(audio_data)

    logger.info(
        "elevenlabs_music.done",
        filename=filename,
        bytes_written=len(audio_data),
    )

    result = {
        "success": True,
        "filename": filename,
        "filepath": str(filepath),
        "size": len(audio_data),
        "format": "mp3",
        "type": "music",
        "prompt": request.prompt,
        "duration": request.duration,
    }
    if request.segment_id:
        result["segment_id"] = request.segment_id
    return result
