"""Plan validator node — checks a raw plan against the PAP schema.

Pydantic does the structural work (discriminated union on ``type``, enum
fields, non-empty strings, defaults). Its error locations are rewritten into
``segments[2].tts_voice`` style paths, and the cross-segment rules (unique ids,
at most one weather segment) are evaluated in the same pass so that every
violation is reported at once.
"""

from __future__ import annotations

import re
from typing import Any

import structlog
from pydantic import ValidationError

from podcast_assembly.graph.state import AssemblyState
from podcast_assembly.models.plan import (
    MUSIC_ENGINES,
    MUSIC_ROLES,
    SEGMENT_TYPES,
    TTS_VOICES,
    FieldError,
    PlanValidationResult,
    PodcastAssemblyPlan,
)

logger = structlog.get_logger()

_ENUM_FIELDS: dict[str, tuple[str, ...]] = {
    "tts_voice": TTS_VOICES,
    "role": MUSIC_ROLES,
    "engine": MUSIC_ENGINES,
}

_SEGMENT_INDEX_RE = re.compile(r"^segments\[(\d+)\]")


def _normalize_loc(loc: tuple[Any, ...], error_type: str) -> list[Any]:
    """Drop the union tag pydantic inserts after a segment index and point tag errors at ``type``."""
    parts = list(loc)
    if len(parts) >= 3 and parts[0] == "segments" and isinstance(parts[1], int):
        if parts[2] in SEGMENT_TYPES:
            del parts[2]
    if error_type in ("union_tag_invalid", "union_tag_not_found"):
        parts.append("type")
    return parts


def format_path(parts: list[Any]) -> str:
    """Render a location as dot/bracket notation, e.g. ``segments[2].tts_voice``."""
    path = ""
    for part in parts:
        if isinstance(part, int):
            path += f"[{part}]"
        elif path:
            path += f".{part}"
        else:
            path = str(part)
    return path or "(root)"


def _allowed(values: tuple[str, ...]) -> str:
    return ", ".join(values)


def _message_for(error: dict[str, Any], parts: list[Any]) -> str:
    error_type = error["type"]
    field = parts[-1] if parts else None

    if error_type == "union_tag_invalid":
        tag = error.get("ctx", {}).get("tag", error.get("input"))
        return f"Invalid segment type '{tag}'. Must be one of: {_allowed(SEGMENT_TYPES)}"
    if error_type == "union_tag_not_found":
        return f"Segment type is required. Must be one of: {_allowed(SEGMENT_TYPES)}"
    if error_type == "literal_error" and field in _ENUM_FIELDS:
        return (
            f"Invalid {field} '{error.get('input')}'. "
            f"Must be one of: {_allowed(_ENUM_FIELDS[field])}"
        )
    if error_type == "string_pattern_mismatch" and field == "id":
        return (
            f"Invalid segment id '{error.get('input')}'. "
            "Use only letters, digits, '_', '-' and '.'"
        )
    return error["msg"]


def _schema_errors(exc: ValidationError) -> list[FieldError]:
    errors: list[FieldError] = []
    for error in exc.errors(include_url=False):
        parts = _normalize_loc(tuple(error["loc"]), error["type"])
        errors.append(
            FieldError(
                path=format_path(parts),
                message=_message_for(error, parts),
                code=error["type"],
            )
        )
    return errors


def _plan_rule_errors(raw: Any) -> list[FieldError]:
    """Cross-segment rules: unique ids and at most one weather segment."""
    if not isinstance(raw, dict) or not isinstance(raw.get("segments"), list):
        return []

    errors: list[FieldError] = []
    first_id_index: dict[str, int] = {}
    first_weather_index: int | None = None

    for index, segment in enumerate(raw["segments"]):
        if not isinstance(segment, dict):
            continue

        segment_id = segment.get("id")
        if isinstance(segment_id, str) and segment_id:
            if segment_id in first_id_index:
                errors.append(
                    FieldError(
                        path=f"segments[{index}].id",
                        message=(
                            f"Duplicate segment id '{segment_id}' "
                            f"(already used by segments[{first_id_index[segment_id]}])"
                        ),
                        code="duplicate_id",
                    )
                )
            else:
                first_id_index[segment_id] = index

        if segment.get("type") == "weather":
            if first_weather_index is None:
                first_weather_index = index
            else:
                errors.append(
                    FieldError(
                        path=f"segments[{index}].type",
                        message=(
                            "At most one weather segment is allowed per episode "
                            f"(first weather segment is segments[{first_weather_index}])"
                        ),
                        code="duplicate_weather",
                    )
                )

    return errors


def _encounter_order(error: FieldError) -> int:
    match = _SEGMENT_INDEX_RE.match(error.path)
    return int(match.group(1)) if match else -1


def validate_plan(raw: Any) -> PlanValidationResult:
    """Validate *raw* against the PAP schema, collecting every violation.

    Returns a successful result carrying the typed plan (defaults applied), or
    a failed result whose ``errors`` list is in top-to-bottom encounter order.
    """
    plan: PodcastAssemblyPlan | None = None
    errors: list[FieldError] = []

    try:
        plan = PodcastAssemblyPlan.model_validate(raw)
    except ValidationError as exc:
        errors.extend(_schema_errors(exc))

    errors.extend(_plan_rule_errors(raw))

    if errors:
        # Stable sort: schema errors keep pydantic's field order within a segment
        errors.sort(key=_encounter_order)
        return PlanValidationResult(success=False, errors=errors)

    return PlanValidationResult(success=True, plan=plan)


async def validate_plan_node(state: AssemblyState) -> dict:
    """Graph node: validate the raw plan and store either the plan or its errors."""
    result = validate_plan(state.get("raw_plan"))

    if not result.success:
        logger.error("validate_plan.failed", error_count=len(result.errors))
        for message in result.messages:
            logger.error("validate_plan.violation", message=message)
        return {"plan": None, "validation_errors": result.errors}

    plan = result.plan
    logger.info(
        "validate_plan.done",
        episode_id=plan.episode_id,
        title=plan.title,
        num_segments=len(plan.segments),
    )
    return {"plan": plan, "validation_errors": []}
