"""Central assembly state definition for the LangGraph workflow."""

from __future__ import annotations

from typing import Any, Optional

from typing_extensions import TypedDict

from podcast_assembly.models.plan import FieldError, PodcastAssemblyPlan
from podcast_assembly.models.rendering import AssemblySummary, SegmentRenderingResult


class AssemblyState(TypedDict, total=False):
    """State shared across all nodes of one orchestration run."""

    # Input (set once at start)
    raw_plan: Any
    stitch: bool

    # Validation
    plan: Optional[PodcastAssemblyPlan]
    validation_errors: list[FieldError]

    # Dispatch
    processed_segments: list[SegmentRenderingResult]

    # Summary
    summary: Optional[AssemblySummary]
    artifact_ids: list[str]

    # Concatenation ({success, filename, ...} or {error, details})
    stitch_result: Optional[dict[str, Any]]
