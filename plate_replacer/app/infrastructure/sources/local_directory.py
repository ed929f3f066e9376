"""Image source backed by a local directory."""
from __future__ import annotations

import os
from pathlib import Path
from typing import Any

from loguru import logger

from plate_replacer.app.constants import ACCEPTED_IMAGE_EXTENSIONS
from plate_replacer.app.core import SERVICE_NAME
from plate_replacer.app.domain.errors import ConfigurationError


def _log(event: str, **kwargs: Any) -> None:
    logger.bind(service_name=SERVICE_NAME, event=event, **kwargs).info("")


class LocalDirectorySource:
    """Lists image files of one directory.

    Order follows directory enumeration and is not stable across platforms.
    """

    def __init__(self, directory: Path, *, extensions: frozenset[str] = ACCEPTED_IMAGE_EXTENSIONS) -> None:
        self._directory = Path(directory)
        self._extensions = frozenset(ext.lower() for ext in extensions)

    async def resolve(self) -> list[str]:
        if not self._directory.is_dir():
            raise ConfigurationError(f"input directory not found: {self._directory}")
        locations: list[str] = []
        with os.scandir(self._directory) as entries:
            for entry in entries:
                if not entry.is_file():
                    continue
                if os.path.splitext(entry.name)[1].lower() in self._extensions:
                    locations.append(str(Path(entry.path).resolve()))
        _log("local_images_listed", directory=str(self._directory), count=len(locations))
        return locations
