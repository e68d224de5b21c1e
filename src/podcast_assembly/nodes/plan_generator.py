"""Plan generator — asks the LLM for a Podcast Assembly Plan and for free text."""

from __future__ import annotations

from typing import AsyncIterator

import structlog
from langchain_openai import ChatOpenAI

from podcast_assembly.config import settings
from podcast_assembly.models.plan import PodcastAssemblyPlan
from podcast_assembly.tools.weather import gather_context

logger = structlog.get_logger()

AVAILABLE_MODELS: dict[str, str] = {
    "gpt-5": "gpt-5-2025-08-07",
    "gpt-4o-mini": "gpt-4o-mini",
}

# ---------------------------------------------------------------------------
# Prompt templates
# ---------------------------------------------------------------------------

PLAN_SYSTEM_PROMPT = """\
You are a creative radio host and podcast producer who writes engaging, emotionally \
rich Podcast Assembly Plans (PAPs). Use the current date, time and weather you are \
given to make the episode timely and relevant.

SEGMENT TYPES
1. dialogue: speaker, text and tts_voice
2. music: role (intro_jingle, background, outro_jingle, transition), prompt and engine \
(sora, udio or elevenlabs)
3. ad: text and tts_voice
4. weather: text and tts_voice; at most one weather segment per episode

VALID TTS VOICES
alloy, echo, fable, onyx, nova, shimmer

WRITING RULES
- Make it sound like close friends talking naturally: contractions, short bursts, \
small hesitations ("uh", "you know") and reactions ("no way!", "right?").
- Put emotional cues in parentheses, e.g. (soft laugh), (warmly), (thoughtful pause).
- Keep each speaker turn to 1-3 sentences and let each line build on the previous one.
- Use music segments to mark mood shifts and the start and end of the show.

STRUCTURE RULES
- Every dialogue, ad and weather segment MUST include a tts_voice.
- Keep one voice per speaker for the whole episode.
- Each segment MUST have a unique id."""

CONTEXT_SUFFIX = "\n\nCurrent date time and weather:\n{context}"


def resolve_model(model: str | None) -> str:
    """Map a short alias ('gpt-5') to a concrete model id; unknown names pass through."""
    if not model:
        return settings.plan_model
    return AVAILABLE_MODELS.get(model, model)


async def generate_plan(
    prompt: str,
    system: str | None = None,
    model: str | None = None,
    temperature: float | None = None,
) -> dict:
    """Generate a candidate plan for *prompt*.

    The result is a plain dict shaped like a PAP. It is NOT validated here; the
    orchestration run treats it as untrusted input.
    """
    model_id = resolve_model(model)
    context = await gather_context()
    user_content = prompt + CONTEXT_SUFFIX.format(context=context)

    logger.info("plan_generator.start", model=model_id, prompt_len=len(prompt))

    llm_kwargs: dict = {"model": model_id, "api_key": settings.openai_api_key}
    if temperature is not None:
        llm_kwargs["temperature"] = temperature
    llm = ChatOpenAI(**llm_kwargs)

    plan_llm = llm.with_structured_output(
        PodcastAssemblyPlan.model_json_schema(),
        method="function_calling",
    )

    result = await plan_llm.ainvoke(
        [
            {"role": "system", "content": system or PLAN_SYSTEM_PROMPT},
            {"role": "user", "content": user_content},
        ]
    )

    segments = result.get("segments") if isinstance(result, dict) else None
    logger.info(
        "plan_generator.done",
        model=model_id,
        episode_id=result.get("episode_id") if isinstance(result, dict) else None,
        num_segments=len(segments) if isinstance(segments, list) else 0,
    )
    return result


async def stream_text(
    prompt: str,
    system: str | None = None,
    model: str | None = None,
    temperature: float = 0.7,
    max_tokens: int | None = None,
) -> AsyncIterator[str]:
    """Stream free-form text for *prompt* chunk by chunk."""
    llm = ChatOpenAI(
        model=model or settings.text_model,
        api_key=settings.openai_api_key,
        temperature=temperature,
        max_tokens=max_tokens or settings.text_max_tokens,
    )

    messages = []
    if system:
        messages.append({"role": "system", "content": system})
    messages.append({"role": "user", "content": prompt})

    async for chunk in llm.astream(messages):
        if chunk.content:
            yield chunk.content
