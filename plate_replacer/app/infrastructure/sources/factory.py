"""Image source factory: selects the source implementation from config."""
from __future__ import annotations

from pathlib import Path

from loguru import logger

from plate_replacer.app.config.settings import Settings
from plate_replacer.app.constants import IMAGE_SOURCE_MODE
from plate_replacer.app.infrastructure.sources.local_directory import LocalDirectorySource
from plate_replacer.app.infrastructure.sources.shared_folder import SharedFolderSource
from plate_replacer.app.ports.http_client import AbstractHttpClient, RequestTimeout
from plate_replacer.app.ports.image_source import ImageSource


def create_image_source(settings: Settings, client: AbstractHttpClient) -> ImageSource:
    mode = settings.image_source_mode

    if mode == IMAGE_SOURCE_MODE.SHARED_FOLDER:
        if settings.shared_folder_enabled:
            return SharedFolderSource(
                client,
                settings.shared_folder_url,
                origin=settings.shared_folder_origin,
                timeout=RequestTimeout(
                    connect_seconds=settings.api_connect_timeout_seconds,
                    read_seconds=settings.api_read_timeout_seconds,
                ),
            )
        logger.warning("shared folder source disabled; reading images from {}", settings.input_dir)
        return LocalDirectorySource(Path(settings.input_dir))

    if mode == IMAGE_SOURCE_MODE.LOCAL:
        return LocalDirectorySource(Path(settings.input_dir))

    raise ValueError(f"Unsupported image source mode: {mode}")
