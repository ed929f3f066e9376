"""Builds the shared HTTP client for a run."""
from __future__ import annotations

import httpx

from plate_replacer.app.config.settings import Settings
from plate_replacer.app.constants import PROCESSING_MODE
from plate_replacer.app.infrastructure.http.httpx_client import HttpxHttpClient
from plate_replacer.app.ports.http_client import AbstractHttpClient


def create_http_client(settings: Settings) -> AbstractHttpClient:
    # Timeouts travel with each request; only the pool is sized here.
    in_flight = settings.max_concurrency if settings.processing_mode == PROCESSING_MODE.CONCURRENT else 1
    limits = httpx.Limits(max_connections=max(in_flight * 2, 10))
    return HttpxHttpClient(httpx.AsyncClient(limits=limits))
