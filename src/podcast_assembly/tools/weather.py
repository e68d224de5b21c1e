"""Ambient Weather station lookup — current conditions for the weather segment."""

from __future__ import annotations

from datetime import datetime
from typing import Any

import httpx
import structlog

from podcast_assembly.config import settings

logger = structlog.get_logger()

_AMBIENT_DEVICES_URL = "https://rt.ambientweather.net/v1/devices"


def _f_to_c(fahrenheit: float) -> float:
    return (fahrenheit - 32) * 5 / 9


def describe_conditions(last_data: dict[str, Any]) -> str:
    """Turn an Ambient Weather ``lastData`` reading into a short Celsius report."""
    parts: list[str] = []
    if last_data.get("tempf") is not None:
        parts.append(f"temperature {_f_to_c(last_data['tempf']):.1f}°C")
    if last_data.get("feelsLike") is not None:
        parts.append(f"feels like {_f_to_c(last_data['feelsLike']):.1f}°C")
    if last_data.get("humidity") is not None:
        parts.append(f"humidity {last_data['humidity']}%")
    if last_data.get("windspeedmph") is not None:
        parts.append(f"wind {last_data['windspeedmph'] * 1.609344:.1f} km/h")
    if last_data.get("dailyrainin") is not None:
        parts.append(f"rain today {last_data['dailyrainin'] * 25.4:.1f} mm")
    return ", ".join(parts)


def describe_now(now: datetime | None = None) -> str:
    """Human-readable current date and time, e.g. 'Monday, October 19, 2026 at 07:30 AM'."""
    moment = now or datetime.now().astimezone()
    return moment.strftime("%A, %B %d, %Y at %I:%M %p %Z").strip()


async def fetch_current_weather(transport: httpx.AsyncBaseTransport | None = None) -> dict | None:
    """Return the first station's ``lastData`` reading, or None when not configured."""
    if not (settings.ambient_weather_application_key and settings.ambient_weather_api_key):
        return None

    params = {
        "applicationKey": settings.ambient_weather_application_key,
        "apiKey": settings.ambient_weather_api_key,
    }
    async with httpx.AsyncClient(timeout=15, transport=transport) as http:
        resp = await http.get(_AMBIENT_DEVICES_URL, params=params)
        resp.raise_for_status()

    try:
        devices = resp.json()
    except ValueError:
        logger.warning("weather.malformed_response", body=resp.text[:200])
        return None

    if not isinstance(devices, list) or not devices or not isinstance(devices[0], dict):
        logger.warning("weather.unexpected_payload", payload_type=type(devices).__name__)
        return None
    reading = devices[0].get("lastData")
    return reading if isinstance(reading, dict) and reading else None


async def gather_context(location: str | None = None) -> str:
    """Date/time plus local weather, used to make a generated plan timely.

    Weather problems are logged and leave the context with date/time only.
    """
    location = location or settings.weather_location
    lines = [f"Current date and time: {describe_now()}"]

    conditions = ""
    try:
        reading = await fetch_current_weather()
        if reading:
            conditions = describe_conditions(reading)
    except (httpx.HTTPError, ValueError, KeyError, TypeError):
        logger.warning("weather.fetch_failed", location=location, exc_info=True)

    lines.append(f"Weather in {location}: {conditions or 'unavailable'}")

    logger.info("weather.context", location=location, has_weather=bool(conditions))
    return "\n".join(lines)
