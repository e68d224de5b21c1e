"""Application configuration loaded from environment variables."""

from pathlib import Path

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}

    # LLM API Keys
    openai_api_key: str = ""

    # Rendering providers
    elevenlabs_api_key: str = ""

    # Weather context (Ambient Weather station)
    ambient_weather_application_key: str = ""
    ambient_weather_api_key: str = ""
    weather_location: str = "Glenelg, Nova Scotia"

    # LLM Model Configuration
    plan_model: str = "gpt-5-2025-08-07"
    text_model: str = "gpt-4o-mini"
    text_max_tokens: int = 1000

    # Speech rendering
    tts_model: str = "gpt-4o-mini-tts"

    # Music rendering
    music_default_duration_sec: int = 30
    elevenlabs_music_model: str = "music_v1"

    # Remote rendering services (empty → render in-process)
    speech_backend_url: str = ""
    music_backend_url: str = ""

    # Dispatch
    max_concurrent_renders: int = 2
    render_timeout_sec: float = 120.0

    # Storage
    audio_storage_dir: str = "./temp_audio"
    output_dir: str = "./output"

    # CORS (comma separated, added to the localhost defaults)
    allowed_origins: str = ""


settings = Settings()


def get_storage_dir(create: bool = True) -> Path:
    """Return the artifact storage root, created on demand unless *create* is False."""
    path = Path(settings.audio_storage_dir).resolve()
    if create:
        path.mkdir(parents=True, exist_ok=True)
    return path


def get_output_dir() -> Path:
    """Return the stitched-episode output directory, created on demand."""
    path = Path(settings.output_dir).resolve()
    path.mkdir(parents=True, exist_ok=True)
    return path
