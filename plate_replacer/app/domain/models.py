"""Domain models."""
from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from plate_replacer.app.constants import TASK_STATUS


@dataclass
class ImageTask:
    """One image moving through submit -> poll -> fetch -> write.

    Owned by a single task execution; only that execution mutates it.
    """

    location: str
    output_name: str
    status: str = TASK_STATUS.PENDING
    error: str | None = None
    output_path: Path | None = None
    history: list[str] = field(default_factory=list)

    def advance(self, status: str) -> None:
        self.history.append(self.status)
        self.status = status

    def fail(self, error: Exception) -> None:
        self.error = str(error)
        self.advance(TASK_STATUS.FAILED)

    @property
    def finished(self) -> bool:
        return self.status in (TASK_STATUS.DOWNLOADED, TASK_STATUS.FAILED)


@dataclass
class BatchResult:
    """Aggregate outcome of a run. Only ever incremented."""

    succeeded: int = 0
    failed: int = 0

    def record(self, success: bool) -> None:
        if success:
            self.succeeded += 1
        else:
            self.failed += 1

    @property
    def total(self) -> int:
        return self.succeeded + self.failed


@dataclass(frozen=True)
class LogoAsset:
    """Logo image substituted for detected plates. Read-only, shared by all tasks."""

    path: Path
    content_type: str = "image/png"

    @property
    def filename(self) -> str:
        return self.path.name
