"""FastAPI route handlers for plan generation, rendering, stitching and orchestration."""

from __future__ import annotations

import asyncio

import httpx
import openai
import structlog
from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from sse_starlette.sse import EventSourceResponse

from podcast_assembly.api.dependencies import get_compiled_graph, get_dispatcher, get_stitcher
from podcast_assembly.api.schemas import (
    ErrorResponse,
    GeneratePlanRequest,
    GenerateTextRequest,
    OrchestrateResponse,
    PlanValidationErrorResponse,
    StitchRequest,
)
from podcast_assembly.config import get_output_dir, get_storage_dir
from podcast_assembly.graph.builder import run_assembly
from podcast_assembly.models.rendering import MusicRenderRequest, SpeechRenderRequest
from podcast_assembly.nodes.plan_generator import generate_plan, stream_text
from podcast_assembly.nodes.segment_dispatcher import SegmentDispatcher
from podcast_assembly.tools.elevenlabs import compose_music
from podcast_assembly.tools.errors import BackendRejected
from podcast_assembly.tools.openai_tts import synthesize_speech

logger = structlog.get_logger()

router = APIRouter(prefix="/api")


def _error(status_code: int, error: str, details: str | None = None) -> JSONResponse:
    content = {"error": error}
    if details is not None:
        content["details"] = details or "Unknown error"
    return JSONResponse(status_code=status_code, content=content)


# ---------------------------------------------------------------------------
# Orchestration
# ---------------------------------------------------------------------------


@router.post(
    "/orchestrate",
    response_model=OrchestrateResponse,
    response_model_exclude_none=True,
    responses={400: {"model": PlanValidationErrorResponse}, 500: {"model": ErrorResponse}},
)
async def orchestrate(
    request: Request,
    stitch: bool = False,
    dispatcher: SegmentDispatcher = Depends(get_dispatcher),
    stitcher=Depends(get_stitcher),
):
    """Validate a raw plan, render every segment and summarize the episode."""
    try:
        raw_plan = await request.json()
        state = await run_assembly(
            get_compiled_graph(),
            raw_plan,
            dispatcher,
            stitch=stitch,
            stitcher=stitcher,
        )
    except Exception as exc:
        logger.exception("orchestrate.failed")
        return _error(500, "Failed to process Podcast Assembly Plan", str(exc))

    errors = state.get("validation_errors") or []
    if errors:
        body = PlanValidationErrorResponse(
            details=errors,
            messages=[error.render() for error in errors],
        )
        return JSONResponse(status_code=400, content=body.model_dump())

    summary = state["summary"]
    logger.info(
        "orchestrate.done",
        episode_id=summary.episode_id,
        total_segments=summary.total_segments,
        statuses=summary.status_counts.model_dump(),
    )
    return OrchestrateResponse(
        summary=summary,
        processed_segments=state["processed_segments"],
        artifact_ids=state.get("artifact_ids", []),
        stitched=state.get("stitch_result"),
    )


# ---------------------------------------------------------------------------
# Plan and text generation
# ---------------------------------------------------------------------------


@router.post("/generate-pap")
async def generate_pap(request: GeneratePlanRequest):
    """Generate a candidate plan with the LLM. The output is not validated here."""
    if not request.prompt:
        return _error(400, "Prompt is required")

    try:
        plan = await generate_plan(
            request.prompt,
            system=request.system,
            model=request.model,
            temperature=request.temperature,
        )
    except openai.AuthenticationError:
        return _error(401, "Invalid OpenAI API key")
    except openai.RateLimitError:
        return _error(429, "Rate limit exceeded")
    except Exception as exc:
        logger.exception("generate_pap.failed")
        return _error(500, "Failed to generate podcast plan", str(exc))

    return JSONResponse(content=plan)


@router.post("/generate")
async def generate_text(request: GenerateTextRequest):
    """Stream free-form text as server-sent events (``token`` … ``done``)."""
    if not request.prompt:
        return _error(400, "Prompt is required")

    async def event_generator():
        try:
            async for text in stream_text(
                request.prompt,
                system=request.system,
                model=request.model,
                temperature=request.temperature,
                max_tokens=request.max_tokens,
            ):
                yield {"event": "token", "data": text}
        except Exception as e:
            logger.exception("generate_text.failed")
            yield {"event": "error", "data": str(e)}
            return
        yield {"event": "done", "data": ""}

    return EventSourceResponse(event_generator())


# ---------------------------------------------------------------------------
# Rendering backends
# ---------------------------------------------------------------------------


@router.post("/tts")
async def render_speech(request: SpeechRenderRequest):
    """Render one line of speech and save it under the storage root."""
    try:
        return await synthesize_speech(request, get_storage_dir())
    except BackendRejected:
        raise
    except Exception as exc:
        logger.exception("tts.failed", segment_id=request.segment_id)
        return _error(500, "Failed to generate speech", str(exc))


@router.post("/music")
async def render_music(request: MusicRenderRequest):
    """Render one music clip and save it under the storage root."""
    try:
        return await compose_music(request, get_storage_dir())
    except BackendRejected:
        raise
    except httpx.ConnectError as exc:
        logger.exception("music.connect_failed", segment_id=request.segment_id)
        return _error(503, "Failed to connect to the music generation service", str(exc))
    except Exception as exc:
        logger.exception("music.failed", segment_id=request.segment_id)
        return _error(500, "Failed to generate music", str(exc))


@router.post("/stitch")
async def stitch(request: StitchRequest, stitcher=Depends(get_stitcher)):
    """Concatenate rendered segment files into one episode, in the given order."""
    try:
        return await asyncio.to_thread(
            stitcher,
            get_storage_dir(create=False),
            get_output_dir(),
            request.episode_name,
            request.segment_ids,
        )
    except BackendRejected:
        raise
    except Exception as exc:
        logger.exception("stitch.request_failed")
        return _error(500, "Failed to process stitch request", str(exc))
