"""Run composition root: wires settings into concrete adapters and services.

Owns the HTTP client; everything else is rebuilt on each connect.
"""
from __future__ import annotations

from pathlib import Path
from typing import Any

from loguru import logger

from plate_replacer.app.application.batch_scheduler import BatchScheduler
from plate_replacer.app.application.processing_service import ProcessingService
from plate_replacer.app.config.settings import Settings
from plate_replacer.app.core import SERVICE_NAME
from plate_replacer.app.domain.models import LogoAsset
from plate_replacer.app.domain.plate_api_client import PlateApiClient
from plate_replacer.app.domain.result_decoder import ResultDecoder
from plate_replacer.app.infrastructure.assets.logo_locator import find_logo_asset
from plate_replacer.app.infrastructure.http.factory import create_http_client
from plate_replacer.app.infrastructure.sources.factory import create_image_source
from plate_replacer.app.infrastructure.storage.factory import create_result_store
from plate_replacer.app.ports.http_client import AbstractHttpClient
from plate_replacer.app.ports.image_source import ImageSource


def _log(event: str, **kwargs: Any) -> None:
    logger.bind(service_name=SERVICE_NAME, event=event, **kwargs).info("")


class RunDependencies:
    """Holds wired run dependencies and their lifecycle."""

    def __init__(self, *, settings: Settings, http_client: AbstractHttpClient | None = None) -> None:
        self._settings = settings
        self._http_client = http_client
        self._logo: LogoAsset | None = None
        self._image_source: ImageSource | None = None
        self._processing_service: ProcessingService | None = None
        self._scheduler: BatchScheduler | None = None
        self._connected = False

    @property
    def settings(self) -> Settings:
        return self._settings

    @property
    def connected(self) -> bool:
        return self._connected

    @property
    def logo(self) -> LogoAsset:
        if self._logo is None:
            raise RuntimeError("logo is not initialized")
        return self._logo

    @property
    def image_source(self) -> ImageSource:
        if self._image_source is None:
            raise RuntimeError("image_source is not initialized")
        return self._image_source

    @property
    def processing_service(self) -> ProcessingService:
        if self._processing_service is None:
            raise RuntimeError("processing_service is not initialized")
        return self._processing_service

    @property
    def scheduler(self) -> BatchScheduler:
        if self._scheduler is None:
            raise RuntimeError("scheduler is not initialized")
        return self._scheduler

    async def connect(self) -> None:
        settings = self._settings
        self._logo = find_logo_asset(Path(settings.logo_dir), settings.logo_extension_list)
        _log("logo_selected", path=str(self._logo.path))

        store = create_result_store(settings)

        if self._http_client is None:
            self._http_client = create_http_client(settings)

        api_client = PlateApiClient(
            self._http_client,
            base_url=settings.api_base_url,
            api_key=settings.api_key,
            cut_type=settings.cut_type,
            guideline_id=settings.guideline_id,
            connect_timeout_seconds=settings.api_connect_timeout_seconds,
            read_timeout_seconds=settings.api_read_timeout_seconds,
            poll_interval_seconds=settings.poll_interval_seconds,
            poll_max_attempts=settings.poll_max_retries,
        )
        decoder = ResultDecoder.default(api_client, min_image_bytes=settings.min_image_bytes)
        self._processing_service = ProcessingService(
            api_client,
            decoder,
            store,
            self._logo,
            write_debug_payloads=settings.write_debug_payloads,
        )
        self._scheduler = BatchScheduler(
            self._processing_service,
            mode=settings.processing_mode,
            max_concurrency=settings.max_concurrency,
        )
        self._image_source = create_image_source(settings, self._http_client)
        self._connected = True

    async def close(self) -> None:
        if self._http_client is not None:
            try:
                await self._http_client.close()
            except Exception as exc:
                logger.warning("http client close failed: {}", exc)
            self._http_client = None

        self._image_source = None
        self._processing_service = None
        self._scheduler = None
        self._connected = False


def create_run_dependencies(
    settings: Settings | None = None,
    *,
    http_client: AbstractHttpClient | None = None,
) -> RunDependencies:
    return RunDependencies(settings=settings or Settings(), http_client=http_client)
