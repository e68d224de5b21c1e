"""Episode stitcher node — merges successful segment artifacts in plan order."""

from __future__ import annotations

import asyncio

import structlog
from langchain_core.runnables import RunnableConfig

from podcast_assembly.config import get_output_dir, get_storage_dir
from podcast_assembly.graph.state import AssemblyState
from podcast_assembly.tools.audio_stitch import stitch_segments
from podcast_assembly.tools.errors import StitchError

logger = structlog.get_logger()


async def stitch_episode(state: AssemblyState, config: RunnableConfig) -> dict:
    """Graph node: concatenate the run's artifacts into one episode file.

    A stitch failure is recorded in ``stitch_result`` and does not fail the run;
    the per-segment results are still returned to the caller.
    """
    stitcher = config.get("configurable", {}).get("stitcher") or stitch_segments
    summary = state["summary"]
    artifact_ids = state.get("artifact_ids", [])

    logger.info("stitch_episode.start", episode_id=summary.episode_id, artifacts=len(artifact_ids))

    try:
        result = await asyncio.to_thread(
            stitcher,
            get_storage_dir(create=False),
            get_output_dir(),
            summary.title or summary.episode_id,
            artifact_ids,
        )
    except StitchError as exc:
        logger.error("stitch_episode.failed", status_code=exc.status_code, error=exc.payload)
        return {"stitch_result": exc.payload}

    logger.info("stitch_episode.done", filename=result.get("filename"))
    return {"stitch_result": result}
