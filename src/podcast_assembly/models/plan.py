"""Pydantic models for the Podcast Assembly Plan (PAP)."""

from __future__ import annotations

from typing import Annotated, Literal, Union

from pydantic import BaseModel, Field

TTS_VOICES = ("alloy", "echo", "fable", "onyx", "nova", "shimmer")
MUSIC_ROLES = ("intro_jingle", "background", "outro_jingle", "transition")
MUSIC_ENGINES = ("sora", "udio", "elevenlabs")
SEGMENT_TYPES = ("dialogue", "music", "ad", "weather")

DEFAULT_MUSIC_ENGINE = "sora"

# Segment ids double as artifact file names
SEGMENT_ID_PATTERN = r"^[\w.-]+$"

TtsVoice = Literal["alloy", "echo", "fable", "onyx", "nova", "shimmer"]
MusicRole = Literal["intro_jingle", "background", "outro_jingle", "transition"]
MusicEngine = Literal["sora", "udio", "elevenlabs"]


class DialogueSegment(BaseModel):
    id: str = Field(
        min_length=1,
        pattern=SEGMENT_ID_PATTERN,
        description="Unique identifier (e.g. 'episode-001-dialogue-01')",
    )
    type: Literal["dialogue"]
    speaker: str = Field(description="Consistent speaker name, e.g. HOST, GUEST")
    text: str = Field(min_length=1, description="The line to be spoken")
    tts_voice: TtsVoice = Field(description="Voice used for this speaker; keep it consistent per speaker")


class MusicSegment(BaseModel):
    id: str = Field(
        min_length=1,
        pattern=SEGMENT_ID_PATTERN,
        description="Unique identifier (e.g. 'episode-001-music-01')",
    )
    type: Literal["music"]
    role: MusicRole = Field(
        description="intro_jingle (start), outro_jingle (end), transition (between segments), "
        "background (under dialogue)"
    )
    prompt: str = Field(min_length=1, description="Descriptive prompt, e.g. 'upbeat jazz intro'")
    engine: MusicEngine = Field(default=DEFAULT_MUSIC_ENGINE, description="Music generation engine")


class AdSegment(BaseModel):
    id: str = Field(
        min_length=1,
        pattern=SEGMENT_ID_PATTERN,
        description="Unique identifier (e.g. 'episode-001-ad-01')",
    )
    type: Literal["ad"]
    text: str = Field(min_length=1, description="The advertisement text to be spoken")
    tts_voice: TtsVoice = Field(description="Voice for the advertisement, typically a distinct one")


class WeatherSegment(BaseModel):
    id: str = Field(
        min_length=1,
        pattern=SEGMENT_ID_PATTERN,
        description="Unique identifier (e.g. 'episode-001-weather-01')",
    )
    type: Literal["weather"]
    text: str = Field(min_length=1, description="The weather report to be spoken")
    tts_voice: TtsVoice = Field(description="Voice for the weather report")


Segment = Annotated[
    Union[DialogueSegment, MusicSegment, AdSegment, WeatherSegment],
    Field(discriminator="type"),
]


class PodcastAssemblyPlan(BaseModel):
    """One podcast episode described as an ordered list of typed segments."""

    episode_id: str = Field(
        min_length=1, description="Unique episode identifier (e.g. YYYY-MM-DD or episode number)"
    )
    title: str = Field(min_length=1, description="Clear and engaging episode title")
    description: str = Field(min_length=1, description="Brief summary of the episode content")
    segments: list[Segment] = Field(
        min_length=1,
        description="Podcast segments in playback order; at least one segment",
    )


class FieldError(BaseModel):
    """One schema violation, located by a dot/bracket path like ``segments[2].tts_voice``."""

    path: str
    message: str
    code: str = "invalid"

    def render(self) -> str:
        return f"{self.path}: {self.message}"


class PlanValidationResult(BaseModel):
    success: bool
    plan: PodcastAssemblyPlan | None = None
    errors: list[FieldError] = Field(default_factory=list)

    @property
    def messages(self) -> list[str]:
        return [error.render() for error in self.errors]
