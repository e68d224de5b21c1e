"""Conditional edge routing functions for the assembly graph."""

from __future__ import annotations

from typing import Literal

from podcast_assembly.graph.state import AssemblyState

END = "__end__"


def route_after_validation(state: AssemblyState) -> Literal["dispatch_segments", "__end__"]:
    """Route after validate_plan: invalid plans end the run before any rendering."""
    if state.get("validation_errors") or state.get("plan") is None:
        return END
    return "dispatch_segments"


def route_after_summary(state: AssemblyState) -> Literal["stitch_episode", "__end__"]:
    """Route after summarize: stitch only when requested and something rendered."""
    if state.get("stitch") and state.get("artifact_ids"):
        return "stitch_episode"
    return END
