"""Segment dispatcher node — renders every plan segment through its backend.

Each segment runs as its own task and ``asyncio.gather`` returns the results in
task order, so the output order is the plan order no matter which backend
call finishes first. A failing segment never stops the others.
"""

from __future__ import annotations

import asyncio
from typing import Mapping

import structlog
from langchain_core.runnables import RunnableConfig

from podcast_assembly.config import get_storage_dir, settings
from podcast_assembly.graph.state import AssemblyState
from podcast_assembly.models.plan import (
    AdSegment,
    DialogueSegment,
    MusicSegment,
    PodcastAssemblyPlan,
    WeatherSegment,
)
from podcast_assembly.models.rendering import (
    MusicRenderRequest,
    SegmentRenderingResult,
    SpeechRenderRequest,
)
from podcast_assembly.tools.errors import BackendRejected
from podcast_assembly.tools.render_clients import (
    ElevenLabsMusicBackend,
    HttpMusicBackend,
    HttpSpeechBackend,
    MusicBackend,
    OpenAISpeechBackend,
    SpeechBackend,
)

logger = structlog.get_logger()


def _preview(text: str, limit: int = 100) -> str:
    return text[:limit] + ("..." if len(text) > limit else "")


class SegmentDispatcher:
    """Route validated segments to rendering backends and capture every outcome.

    *music_backends* maps an engine name to its backend; engines missing from
    the mapping are reported as ``skipped``.
    """

    def __init__(
        self,
        speech_backend: SpeechBackend,
        music_backends: Mapping[str, MusicBackend] | None = None,
        max_concurrency: int = 2,
        timeout: float | None = None,
        music_duration_sec: float = 30,
    ):
        self.speech_backend = speech_backend
        self.music_backends = dict(music_backends or {})
        self.max_concurrency = max(1, max_concurrency)
        self.timeout = timeout
        self.music_duration_sec = music_duration_sec

    async def dispatch(self, plan: PodcastAssemblyPlan) -> list[SegmentRenderingResult]:
        """Render all segments of *plan*; one result per segment, in plan order."""
        total = len(plan.segments)
        semaphore = asyncio.Semaphore(self.max_concurrency)

        logger.info("dispatch.start", episode_id=plan.episode_id, num_segments=total)

        async def _run(index: int) -> SegmentRenderingResult:
            async with semaphore:
                return await self.dispatch_segment(index, plan.segments[index], total)

        # gather returns one result per task, in task order
        results = await asyncio.gather(*[_run(i) for i in range(total)])

        logger.info("dispatch.done", episode_id=plan.episode_id, num_segments=total)
        return list(results)

    async def dispatch_segment(self, index: int, segment, total: int = 0) -> SegmentRenderingResult:
        """Render a single segment, converting every failure into a result record."""
        segment_type = getattr(segment, "type", "unknown")
        segment_id = getattr(segment, "id", None)
        log = logger.bind(
            segment_index=index,
            position=f"{index + 1}/{total}" if total else None,
            segment_id=segment_id,
            segment_type=segment_type,
        )

        match segment:
            case DialogueSegment() | AdSegment() | WeatherSegment():
                log.info(
                    "dispatch.segment_start",
                    backend="speech",
                    voice=segment.tts_voice,
                    speaker=getattr(segment, "speaker", None),
                    text=_preview(segment.text),
                )
                request = SpeechRenderRequest(
                    text=segment.text,
                    voice=segment.tts_voice,
                    type=segment.type,
                    segment_id=segment.id,
                )
                return await self._call(log, index, segment_type, segment_id,
                                        self.speech_backend.render(request))

            case MusicSegment():
                backend = self.music_backends.get(segment.engine)
                if backend is None:
                    note = f"Music engine '{segment.engine}' is not wired to a rendering backend"
                    log.warning("dispatch.segment_skipped", engine=segment.engine, note=note)
                    return SegmentRenderingResult(
                        segment_index=index,
                        segment_id=segment_id,
                        type=segment_type,
                        status="skipped",
                        note=note,
                    )
                log.info(
                    "dispatch.segment_start",
                    backend="music",
                    engine=segment.engine,
                    role=segment.role,
                    prompt=_preview(segment.prompt),
                )
                request = MusicRenderRequest(
                    prompt=segment.prompt,
                    duration=self.music_duration_sec,
                    segment_id=segment.id,
                    role=segment.role,
                    engine=segment.engine,
                )
                return await self._call(log, index, segment_type, segment_id,
                                        backend.render(request))

            case _:
                log.warning("dispatch.segment_skipped", note="Unknown segment type")
                return SegmentRenderingResult(
                    segment_index=index,
                    segment_id=segment_id,
                    type="unknown",
                    status="skipped",
                    note="Unknown segment type",
                )

    async def _call(self, log, index: int, segment_type: str, segment_id: str | None, call) -> SegmentRenderingResult:
        # asyncio.timeout(None) never expires
        deadline = asyncio.timeout(self.timeout or None)
        try:
            async with deadline:
                rendered = await call
            if not isinstance(rendered, dict):
                raise TypeError(
                    f"Backend returned {type(rendered).__name__} instead of a result object"
                )
            log.info("dispatch.segment_done", filename=rendered.get("filename"))
            return SegmentRenderingResult(
                segment_index=index,
                segment_id=segment_id,
                type=segment_type,
                status="success",
                result=rendered,
            )
        except BackendRejected as exc:
            log.error("dispatch.segment_failed", status_code=exc.status_code, error=exc.payload)
            return SegmentRenderingResult(
                segment_index=index,
                segment_id=segment_id,
                type=segment_type,
                status="failed",
                error=exc.payload,
            )
        except Exception as exc:
            if isinstance(exc, TimeoutError) and deadline.expired():
                message = f"Rendering timed out after {self.timeout}s"
                log.error("dispatch.segment_error", error=message)
            else:
                message = str(exc) or exc.__class__.__name__
                log.exception("dispatch.segment_error", error=message)
            return SegmentRenderingResult(
                segment_index=index,
                segment_id=segment_id,
                type=segment_type,
                status="error",
                error=message,
            )


def build_dispatcher() -> SegmentDispatcher:
    """Wire backends from settings: remote services when URLs are set, else in-process."""
    storage_dir = get_storage_dir()

    if settings.speech_backend_url:
        speech_backend: SpeechBackend = HttpSpeechBackend(settings.speech_backend_url)
    else:
        speech_backend = OpenAISpeechBackend(storage_dir)

    # sora and udio have no backend yet; their segments are reported as skipped
    music_backends: dict[str, MusicBackend] = {}
    if settings.music_backend_url:
        music_backends["elevenlabs"] = HttpMusicBackend(settings.music_backend_url)
    elif settings.elevenlabs_api_key:
        music_backends["elevenlabs"] = ElevenLabsMusicBackend(storage_dir)

    logger.info(
        "dispatch.backends",
        speech="remote" if settings.speech_backend_url else "openai",
        music_engines=sorted(music_backends),
    )
    return SegmentDispatcher(
        speech_backend=speech_backend,
        music_backends=music_backends,
        max_concurrency=settings.max_concurrent_renders,
        timeout=settings.render_timeout_sec,
        music_duration_sec=settings.music_default_duration_sec,
    )


async def dispatch_segments(state: AssemblyState, config: RunnableConfig) -> dict:
    """Graph node: dispatch every segment of the validated plan."""
    dispatcher: SegmentDispatcher = config.get("configurable", {}).get("dispatcher")
    if dispatcher is None:
        raise RuntimeError("No segment dispatcher configured for this run")

    processed = await dispatcher.dispatch(state["plan"])
    return {"processed_segments": processed}
