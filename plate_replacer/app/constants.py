"""Run-level constants shared across modules."""
from __future__ import annotations


class TASK_STATUS:
    PENDING = "PENDING"
    SUBMITTED = "SUBMITTED"
    POLLING = "POLLING"
    READY = "READY"
    DOWNLOADED = "DOWNLOADED"
    FAILED = "FAILED"


class PROCESSING_MODE:
    SEQUENTIAL = "sequential"
    CONCURRENT = "concurrent"


class IMAGE_SOURCE_MODE:
    LOCAL = "local"
    SHARED_FOLDER = "shared_folder"


READY_PHASE = "ready"

JSON_ACCEPT = "application/json"

ACCEPTED_IMAGE_EXTENSIONS = frozenset({".jpg", ".jpeg", ".png"})

# Used when the shared folder is private, unreachable or empty.
FALLBACK_IMAGE_LOCATIONS: tuple[str, ...] = (
    "https://drive.google.com/uc?export=download&id=1siW1i8uEthjkZKvUnNCkr0lS9tGvHf5m",
    "https://drive.google.com/uc?export=download&id=1_LUKh35xzw5li7QgFhlb-QHjBNvea7y5",
)

LOG_BODY_PREVIEW_LENGTH = 200
