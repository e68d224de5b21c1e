"""Audio stitching — merge rendered segment files into one episode with MoviePy."""

from __future__ import annotations

import re
from datetime import date
from pathlib import Path

import structlog
from moviepy import AudioFileClip, concatenate_audioclips

from podcast_assembly.tools.errors import StitchError

logger = structlog.get_logger()

_AUDIO_FILE_RE = re.compile(r"\.(mp3|wav|aac|opus|flac|m4a)$", re.IGNORECASE)


def slugify(text: str) -> str:
    """Lower-case, dash-separated, word characters only."""
    slug = text.strip().lower()
    slug = re.sub(r"\s+", "-", slug)
    slug = re.sub(r"[^\w\-]+", "", slug)
    slug = re.sub(r"-{2,}", "-", slug)
    return slug.strip("-")


def episode_filename(episode_name: str, on: date | None = None) -> str:
    """``{slug}-{YYYY-MM-DD}.mp3`` for the stitched episode."""
    day = on or date.today()
    return f"{slugify(episode_name)}-{day.isoformat()}.mp3"


def select_audio_files(filenames: list[str], segment_ids: list[str] | None = None) -> list[str]:
    """Pick the audio files to stitch, in order.

    With *segment_ids*, each id contributes the first file named ``{id}.<ext>``
    and ids without a file are skipped. Without, every audio file is used in
    name order.
    """
    audio_files = sorted(name for name in filenames if _AUDIO_FILE_RE.search(name))

    if segment_ids is None:
        return audio_files

    ordered: list[str] = []
    for segment_id in segment_ids:
        match = next((name for name in audio_files if name.startswith(f"{segment_id}.")), None)
        if match:
            ordered.append(match)
    return ordered


def _concatenate_audio(audio_paths: list[str], output_path: str) -> str:
    """Concatenate multiple audio files into one using MoviePy.

    Returns the output_path on success.
    """
    clips = [AudioFileClip(p) for p in audio_paths]
    try:
        final = concatenate_audioclips(clips)
        final.write_audiofile(output_path, logger=None)
        final.close()
    finally:
        for c in clips:
            c.close()

    logger.info("concatenate_audio.done", output_path=output_path)
    return output_path


def stitch_segments(
    storage_dir: Path,
    output_dir: Path,
    episode_name: str = "episode",
    segment_ids: list[str] | None = None,
) -> dict:
    """Merge rendered segment files from *storage_dir* into one MP3 in *output_dir*.

    Blocking (MoviePy/ffmpeg); call through ``asyncio.to_thread`` from async code.

    Raises:
        StitchError: 400 for a bad episode name, 404 when there is nothing to
            stitch, 500 when the merge itself fails.
    """
    if not episode_name or not isinstance(episode_name, str):
        raise StitchError(400, "Invalid episode_name. Must be a non-empty string.")

    if not storage_dir.is_dir():
        raise StitchError(404, f"{storage_dir.name} directory not found")

    filenames = [p.name for p in storage_dir.iterdir() if p.is_file()]
    audio_files = select_audio_files(filenames, segment_ids)

    if not audio_files:
        if segment_ids is not None:
            raise StitchError(404, "No matching audio files found for provided segment_ids")
        raise StitchError(404, f"No audio files found in {storage_dir.name} directory")

    output_dir.mkdir(parents=True, exist_ok=True)
    output_filename = episode_filename(episode_name)
    output_path = output_dir / output_filename

    logger.info(
        "stitch.start",
        files=audio_files,
        output=output_filename,
    )

    try:
        _concatenate_audio([str(storage_dir / name) for name in audio_files], str(output_path))
    except FileNotFoundError as exc:
        raise StitchError(
            500,
            "FFmpeg is not installed or not found in PATH",
            "Please install FFmpeg to use the audio stitching feature. "
            "Visit https://ffmpeg.org/download.html",
        ) from exc
    except Exception as exc:
        logger.exception("stitch.failed", output=output_filename)
        raise StitchError(500, "Failed to stitch audio files", str(exc)) from exc

    size = output_path.stat().st_size
    logger.info("stitch.done", output=output_filename, size=size, files_stitched=len(audio_files))

    return {
        "success": True,
        "filename": output_filename,
        "filepath": str(output_path),
        "size": size,
        "files_stitched": len(audio_files),
        "source_files": audio_files,
    }
