"""FastAPI dependency injection — compiled graph and segment dispatcher."""

from __future__ import annotations

from functools import lru_cache

from podcast_assembly.graph.builder import build_graph
from podcast_assembly.nodes.segment_dispatcher import SegmentDispatcher, build_dispatcher
from podcast_assembly.tools.audio_stitch import stitch_segments


@lru_cache(maxsize=1)
def get_compiled_graph():
    """Return the compiled assembly graph."""
    return build_graph()


@lru_cache(maxsize=1)
def get_dispatcher() -> SegmentDispatcher:
    """Return a singleton dispatcher wired from settings."""
    return build_dispatcher()


def get_stitcher():
    """Return the blocking stitch function used by the API and the graph."""
    return stitch_segments
