"""Result store factory: selects and assembles persistence adapters."""
from __future__ import annotations

from pathlib import Path

from plate_replacer.app.config.settings import Settings
from plate_replacer.app.infrastructure.storage.filesystem_store import FilesystemResultStore
from plate_replacer.app.ports.result_store import ResultStore


def create_result_store(settings: Settings) -> ResultStore:
    """Build the output store and make sure its directory exists."""
    store = FilesystemResultStore(
        Path(settings.output_dir),
        suffix=settings.output_suffix,
        extension=settings.output_extension,
    )
    store.prepare()
    return store
