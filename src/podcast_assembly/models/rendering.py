"""Pydantic models for segment rendering requests, outcomes and the episode summary."""

from __future__ import annotations

from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

RenderStatus = Literal["success", "failed", "error", "skipped"]


class SpeechRenderRequest(BaseModel):
    text: str = ""
    voice: str = "alloy"
    model: Optional[str] = None
    speed: float = 1.0
    response_format: str = "mp3"
    type: Optional[str] = None
    segment_id: Optional[str] = None


class MusicRenderRequest(BaseModel):
    prompt: str = ""
    duration: float = 30
    segment_id: Optional[str] = None
    role: Optional[str] = None
    engine: Optional[str] = None


class SegmentRenderingResult(BaseModel):
    """Outcome of dispatching one segment. Written once, never mutated."""

    model_config = ConfigDict(frozen=True)

    segment_index: int
    segment_id: Optional[str] = None
    type: str
    status: RenderStatus
    result: Optional[dict[str, Any]] = None
    error: Optional[dict[str, Any] | str] = None
    note: Optional[str] = None


class SegmentBreakdown(BaseModel):
    dialogue: int = 0
    music: int = 0
    ads: int = 0
    weather: int = 0


class StatusCounts(BaseModel):
    success: int = 0
    failed: int = 0
    error: int = 0
    skipped: int = 0


class AssemblySummary(BaseModel):
    episode_id: str
    title: str
    total_segments: int
    segment_breakdown: SegmentBreakdown
    status_counts: StatusCounts = Field(default_factory=StatusCounts)
