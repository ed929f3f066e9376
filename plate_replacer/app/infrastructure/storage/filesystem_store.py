"""Filesystem implementation of ResultStore."""
from __future__ import annotations

from pathlib import Path

from plate_replacer.app.domain.errors import WriteError


class FilesystemResultStore:
    """Writes one file per task: ``{output_dir}/{name}{suffix}.{extension}``.

    Distinct names never share a file, so concurrent tasks need no locking.
    """

    def __init__(self, output_dir: Path, *, suffix: str, extension: str) -> None:
        self._output_dir = Path(output_dir)
        self._suffix = suffix
        self._extension = extension.lstrip(".")

    @property
    def output_dir(self) -> Path:
        return self._output_dir

    def prepare(self) -> None:
        try:
            self._output_dir.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise WriteError(f"cannot create output directory {self._output_dir}: {exc}") from exc

    def output_path(self, name: str) -> Path:
        return self._output_dir / f"{name}{self._suffix}.{self._extension}"

    def write(self, name: str, data: bytes) -> tuple[Path, int]:
        path = self.output_path(name)
        try:
            path.write_bytes(data)
            size = path.stat().st_size
        except OSError as exc:
            raise WriteError(f"cannot write {path}: {exc}") from exc
        return path, size

    def write_debug(self, name: str, payload: str) -> Path:
        output = self.output_path(name)
        path = output.with_name(output.name + ".debug.json")
        try:
            path.write_text(payload, encoding="utf-8")
        except OSError as exc:
            raise WriteError(f"cannot write {path}: {exc}") from exc
        return path
