"""StateGraph definition — assembles nodes, edges, and conditional routing."""

from __future__ import annotations

from typing import Any, Callable

from langgraph.graph import END, StateGraph

from podcast_assembly.graph.edges import route_after_summary, route_after_validation
from podcast_assembly.graph.state import AssemblyState
from podcast_assembly.nodes.assembly_summarizer import summarize
from podcast_assembly.nodes.episode_stitcher import stitch_episode
from podcast_assembly.nodes.id_assigner import assign_ids
from podcast_assembly.nodes.plan_validator import validate_plan_node
from podcast_assembly.nodes.segment_dispatcher import SegmentDispatcher, dispatch_segments


def build_graph():
    """Build and compile the podcast assembly graph.

    assign_ids → validate_plan → dispatch_segments → summarize → (stitch_episode)

    The dispatcher (and optionally a stitcher) are supplied per run through
    ``config["configurable"]``; see ``run_assembly``.

    Returns:
        Compiled StateGraph ready for invocation.
    """
    graph = StateGraph(AssemblyState)

    # Add nodes
    graph.add_node("assign_ids", assign_ids)
    graph.add_node("validate_plan", validate_plan_node)
    graph.add_node("dispatch_segments", dispatch_segments)
    graph.add_node("summarize", summarize)
    graph.add_node("stitch_episode", stitch_episode)

    # Entry point
    graph.set_entry_point("assign_ids")
    graph.add_edge("assign_ids", "validate_plan")

    graph.add_conditional_edges(
        "validate_plan",
        route_after_validation,
        {
            "dispatch_segments": "dispatch_segments",
            END: END,
        },
    )

    graph.add_edge("dispatch_segments", "summarize")

    graph.add_conditional_edges(
        "summarize",
        route_after_summary,
        {
            "stitch_episode": "stitch_episode",
            END: END,
        },
    )

    graph.add_edge("stitch_episode", END)

    return graph.compile()


async def run_assembly(
    graph,
    raw_plan: Any,
    dispatcher: SegmentDispatcher,
    stitch: bool = False,
    stitcher: Callable[..., dict] | None = None,
) -> AssemblyState:
    """Run one orchestration over *raw_plan* and return the final state."""
    initial_state: AssemblyState = {
        "raw_plan": raw_plan,
        "stitch": stitch,
        "plan": None,
        "validation_errors": [],
        "processed_segments": [],
        "summary": None,
        "artifact_ids": [],
        "stitch_result": None,
    }
    configurable: dict[str, Any] = {"dispatcher": dispatcher}
    if stitcher is not None:
        configurable["stitcher"] = stitcher

    return await graph.ainvoke(initial_state, config={"configurable": configurable})
