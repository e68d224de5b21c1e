"""Exceptions raised by rendering and concatenation helpers."""

from __future__ import annotations

from typing import Any


class BackendRejected(Exception):
    """A rendering backend refused the request with a structured error payload.

    ``payload`` is what the backend would return as its JSON body, e.g.
    ``{"error": "Invalid voice. Must be one of: ...", "details": ...}``.
    """

    def __init__(self, status_code: int, payload: dict[str, Any]):
        super().__init__(payload.get("error", "Backend rejected the request"))
        self.status_code = status_code
        self.payload = payload


class StitchError(BackendRejected):
    """Concatenating rendered segments into an episode failed."""

    def __init__(self, status_code: int, error: str, details: str | None = None):
        payload: dict[str, Any] = {"error": error}
        if details:
            payload["details"] = details
        super().__init__(status_code, payload)
