"""Abstract interface for result persistence (port)."""
from __future__ import annotations

from pathlib import Path
from typing import Protocol


class ResultStore(Protocol):
    """Port: output file persistence. Implementations live in infrastructure."""

    def prepare(self) -> None:
        """Create the output location if needed."""
        ...

    def output_path(self, name: str) -> Path: ...

    def write(self, name: str, data: bytes) -> tuple[Path, int]:
        """Persist `data` for `name`; return the path and the size on disk. Raise WriteError."""
        ...

    def write_debug(self, name: str, payload: str) -> Path: ...
