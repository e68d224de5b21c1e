"""Segment ID assigner node — fills in missing segment ids before validation."""

from __future__ import annotations

from typing import Any

import structlog

from podcast_assembly.graph.state import AssemblyState

logger = structlog.get_logger()


def synthesize_segment_id(episode_id: Any, segment_type: Any, index: int) -> str:
    """Build a predictable id of the form ``{episode}_{type}_{index:03d}``."""
    episode_prefix = episode_id or "episode"
    type_prefix = segment_type or "segment"
    return f"{episode_prefix}_{type_prefix}_{index:03d}"


def assign_segment_ids(raw_plan: Any) -> Any:
    """Return a copy of *raw_plan* where every segment carries an ``id``.

    Segments that already have a non-empty id are left alone. Anything that is
    not shaped like a plan is returned unchanged so the validator can report it.
    The caller's object is never mutated.
    """
    if not isinstance(raw_plan, dict):
        return raw_plan
    segments = raw_plan.get("segments")
    if not isinstance(segments, list):
        return raw_plan

    episode_id = raw_plan.get("episode_id")
    assigned: list[Any] = []
    for index, segment in enumerate(segments):
        if isinstance(segment, dict) and not segment.get("id"):
            segment = {
                **segment,
                "id": synthesize_segment_id(episode_id, segment.get("type"), index),
            }
        assigned.append(segment)

    return {**raw_plan, "segments": assigned}


async def assign_ids(state: AssemblyState) -> dict:
    """Graph node: populate missing segment ids on the raw plan."""
    raw_plan = assign_segment_ids(state.get("raw_plan"))
    segments = raw_plan.get("segments") if isinstance(raw_plan, dict) else None
    logger.info(
        "assign_ids.done",
        num_segments=len(segments) if isinstance(segments, list) else 0,
    )
    return {"raw_plan": raw_plan}
