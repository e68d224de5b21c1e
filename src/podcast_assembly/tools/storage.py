"""Artifact storage helpers — where rendered segment files live."""

from __future__ import annotations

import uuid
from pathlib import Path

from podcast_assembly.tools.errors import BackendRejected


def artifact_path(storage_dir: Path, segment_id: str | None, extension: str) -> Path:
    """Return ``{segment_id}.{extension}`` directly inside *storage_dir*.

    Without a segment id a random UUID names the file.

    Raises:
        BackendRejected: 400 when the id would place the file anywhere but
            the storage root itself.
    """
    root = storage_dir.resolve()
    file_id = segment_id or str(uuid.uuid4())
    path = (root / f"{file_id}.{extension}").resolve()
    if path.parent != root:
        raise BackendRejected(400, {"error": "Invalid segment_id"})
    return path
