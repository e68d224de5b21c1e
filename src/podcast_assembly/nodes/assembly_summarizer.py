"""Assembly summarizer node — episode summary and the artifact list for stitching."""

from __future__ import annotations

from collections import Counter
from typing import Iterable

import structlog

from podcast_assembly.graph.state import AssemblyState
from podcast_assembly.models.plan import PodcastAssemblyPlan
from podcast_assembly.models.rendering import (
    AssemblySummary,
    SegmentBreakdown,
    SegmentRenderingResult,
    StatusCounts,
)

logger = structlog.get_logger()


def summarize_assembly(
    plan: PodcastAssemblyPlan,
    results: Iterable[SegmentRenderingResult],
) -> AssemblySummary:
    """Build the episode summary.

    ``segment_breakdown`` describes the plan's shape (counted from the plan,
    whatever the rendering outcome); ``status_counts`` tallies the outcomes.
    """
    type_counts = Counter(segment.type for segment in plan.segments)
    status_counts = Counter(result.status for result in results)

    return AssemblySummary(
        episode_id=plan.episode_id,
        title=plan.title,
        total_segments=len(plan.segments),
        segment_breakdown=SegmentBreakdown(
            dialogue=type_counts["dialogue"],
            music=type_counts["music"],
            ads=type_counts["ad"],
            weather=type_counts["weather"],
        ),
        status_counts=StatusCounts(
            success=status_counts["success"],
            failed=status_counts["failed"],
            error=status_counts["error"],
            skipped=status_counts["skipped"],
        ),
    )


def collect_artifact_ids(results: Iterable[SegmentRenderingResult]) -> list[str]:
    """Segment ids of successful renders, in segment order, as the stitcher expects them."""
    ordered = sorted(results, key=lambda result: result.segment_index)
    return [
        result.segment_id
        for result in ordered
        if result.status == "success" and result.segment_id
    ]


async def summarize(state: AssemblyState) -> dict:
    """Graph node: summarize the run and collect the ordered artifact ids."""
    results = state.get("processed_segments", [])
    summary = summarize_assembly(state["plan"], results)
    artifact_ids = collect_artifact_ids(results)

    logger.info(
        "summarize.done",
        episode_id=summary.episode_id,
        total_segments=summary.total_segments,
        breakdown=summary.segment_breakdown.model_dump(),
        statuses=summary.status_counts.model_dump(),
        artifacts=len(artifact_ids),
    )
    return {"summary": summary, "artifact_ids": artifact_ids}
