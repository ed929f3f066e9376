"""Derive deterministic output file names from image locations."""
from __future__ import annotations

import time
from pathlib import PurePath, PurePosixPath
from urllib.parse import parse_qs, urlsplit

_DRIVE_HOST_MARKER = "drive.google.com"


def _timestamp_name() -> str:
    return f"image_{int(time.time() * 1000)}"


def _drive_identifier(location: str) -> str | None:
    parts = urlsplit(location)
    ids = parse_qs(parts.query).get("id")
    if ids and ids[0]:
        return ids[0]
    if "/d/" in parts.path:
        segment = parts.path.split("/d/", 1)[1].split("/", 1)[0]
        return segment or None
    return None


def derive_output_name(location: str) -> str:
    """Return the base name (no suffix, no extension) for a location's output file.

    Drive links use their file id, other URLs the last path segment without
    extension, local paths the file stem. Anything unusable falls back to a
    millisecond timestamp name.
    """
    if "://" not in location:
        return PurePath(location).stem or _timestamp_name()

    if _DRIVE_HOST_MARKER in location:
        return _drive_identifier(location) or _timestamp_name()

    segment = PurePosixPath(urlsplit(location).path).name
    if not segment or "=" in segment or "&" in segment:
        return _timestamp_name()
    return PurePosixPath(segment).stem or _timestamp_name()
