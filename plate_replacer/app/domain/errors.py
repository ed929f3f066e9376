"""Error taxonomy for a run.

ConfigurationError aborts the run before processing starts. ListingError is
absorbed by the shared folder source. Everything else is per task and is
converted to a failure at the task boundary.
"""
from __future__ import annotations


class PlateReplacerError(Exception):
    """Base for all run errors."""


class ConfigurationError(PlateReplacerError):
    """Missing logo asset, malformed folder reference, missing input directory."""


class ListingError(PlateReplacerError):
    """Shared folder listing could not be retrieved."""


class TaskError(PlateReplacerError):
    """Base for per-image failures."""


class SubmissionError(TaskError):
    def __init__(self, message: str, *, status_code: int | None = None, body: str = "") -> None:
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class PollTimeoutError(TaskError):
    def __init__(self, location: str, attempts: int) -> None:
        super().__init__(f"processing not ready after {attempts} status checks for {location}")
        self.location = location
        self.attempts = attempts


class DecodeError(TaskError):
    """Result payload could not be turned into image bytes.

    `reason` is a short machine-readable tag (e.g. ``no-image-field``).
    `payload` carries the raw response body when it is worth a debug dump.
    """

    def __init__(self, reason: str, detail: str = "", *, payload: str | None = None) -> None:
        super().__init__(f"{reason}: {detail}" if detail else reason)
        self.reason = reason
        self.detail = detail
        self.payload = payload


class WriteError(TaskError):
    """Local persistence of a result failed."""
