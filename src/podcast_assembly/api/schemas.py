"""Request/Response schemas for the FastAPI endpoints."""

from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, Field

from podcast_assembly.models.plan import FieldError
from podcast_assembly.models.rendering import AssemblySummary, SegmentRenderingResult


class GeneratePlanRequest(BaseModel):
    prompt: str = ""
    system: Optional[str] = None
    model: Optional[str] = None
    temperature: Optional[float] = None


class GenerateTextRequest(BaseModel):
    prompt: str = ""
    system: Optional[str] = None
    model: Optional[str] = None
    temperature: float = 0.7
    max_tokens: Optional[int] = Field(default=None, alias="maxTokens")

    model_config = {"populate_by_name": True}


class StitchRequest(BaseModel):
    episode_name: Any = "episode"
    segment_ids: Optional[list[str]] = None


class OrchestrateResponse(BaseModel):
    success: bool = True
    message: str = "Podcast Assembly Plan received and processed"
    summary: AssemblySummary
    processed_segments: list[SegmentRenderingResult]
    artifact_ids: list[str] = Field(default_factory=list)
    stitched: Optional[dict[str, Any]] = None


class PlanValidationErrorResponse(BaseModel):
    error: str = "Invalid Podcast Assembly Plan format"
    details: list[FieldError]
    messages: list[str]


class ErrorResponse(BaseModel):
    error: str
    details: Optional[str] = None
