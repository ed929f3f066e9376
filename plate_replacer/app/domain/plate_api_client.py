"""Plate API client: the submission / status / result wire protocol.

Uses the HTTP port (AbstractHttpClient); client is built in the composition root.
Every request carries the static bearer credential. Transport and status errors
are mapped to domain exceptions here; polling treats them as "not ready yet".
"""
from __future__ import annotations

import asyncio
import json
from typing import Any
from urllib.parse import quote

from loguru import logger

from plate_replacer.app.constants import JSON_ACCEPT, LOG_BODY_PREVIEW_LENGTH, READY_PHASE
from plate_replacer.app.core import SERVICE_NAME
from plate_replacer.app.core.backoff import Sleep, fixed_interval
from plate_replacer.app.domain.errors import PollTimeoutError, SubmissionError
from plate_replacer.app.domain.models import LogoAsset
from plate_replacer.app.ports.http_client import (
    AbstractHttpClient,
    HttpClientError,
    HttpResponse,
    RequestTimeout,
)


def _log(event: str, **kwargs: Any) -> None:
    logger.bind(service_name=SERVICE_NAME, event=event, **kwargs).info("")


def _preview(value: Any) -> str:
    text = value if isinstance(value, str) else json.dumps(value, default=str)
    return text[:LOG_BODY_PREVIEW_LENGTH]


def extract_phase(payload: Any) -> str | None:
    """Return ``data.images[0].phase`` or None when the shape is not as expected."""
    if not isinstance(payload, dict):
        return None
    data = payload.get("data")
    images = data.get("images") if isinstance(data, dict) else None
    if not isinstance(images, list) or not images or not isinstance(images[0], dict):
        return None
    phase = images[0].get("phase")
    return phase if isinstance(phase, str) else None


class PlateApiClient:
    """Submits one image with the logo, polls until ready and fetches the result."""

    def __init__(
        self,
        client: AbstractHttpClient,
        *,
        base_url: str,
        api_key: str,
        cut_type: str,
        guideline_id: str,
        connect_timeout_seconds: float,
        read_timeout_seconds: float,
        poll_interval_seconds: float,
        poll_max_attempts: int,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self._client = client
        self._base_url = base_url.rstrip("/")
        self._api_key = api_key
        self._cut_type = cut_type
        self._guideline_id = guideline_id
        self._timeout = RequestTimeout(
            connect_seconds=connect_timeout_seconds,
            read_seconds=read_timeout_seconds,
        )
        self._poll_interval_seconds = poll_interval_seconds
        self._poll_max_attempts = poll_max_attempts
        self._sleep = sleep

    def _headers(self, accept: str | None = None) -> dict[str, str]:
        headers = {"Authorization": f"Bearer {self._api_key}"}
        if accept:
            headers["Accept"] = accept
        return headers

    @property
    def submission_url(self) -> str:
        return f"{self._base_url}/submission"

    def status_url(self, location: str) -> str:
        return f"{self._base_url}/status?image_url={quote(location, safe='')}"

    def result_url(self, location: str) -> str:
        return f"{self._base_url}/result?image_url={quote(location, safe='')}"

    async def submit(self, location: str, logo: LogoAsset) -> None:
        """POST the submission; any 2xx counts as accepted whatever the body says."""
        _log(
            "submission_sending",
            url=self.submission_url,
            image_url=location,
            cut_type=self._cut_type,
            guideline_id=self._guideline_id,
            logo=str(logo.path),
        )
        try:
            with logo.path.open("rb") as logo_file:
                response = await self._client.post(
                    self.submission_url,
                    timeout=self._timeout,
                    data={
                        "image_url": location,
                        "cut_type": self._cut_type,
                        "guideline_id": self._guideline_id,
                    },
                    files={"license_plate": (logo.filename, logo_file, logo.content_type)},
                    headers=self._headers(),
                )
                response.raise_for_status()
        except HttpClientError as exc:
            raise SubmissionError(
                f"submission failed for {location}: {exc}",
                status_code=exc.status_code,
                body=exc.body,
            ) from exc
        except OSError as exc:
            raise SubmissionError(f"cannot read logo {logo.path}: {exc}") from exc

        _log(
            "submission_accepted",
            image_url=location,
            status_code=response.status_code,
            body=response.text[:LOG_BODY_PREVIEW_LENGTH],
        )

    async def wait_until_ready(self, location: str) -> str:
        """Poll the status endpoint; return the result URL once the phase is ready.

        Failed or malformed status checks count as "not ready" against the same
        attempt ceiling. Raises PollTimeoutError when the ceiling is reached.
        """
        url = self.status_url(location)
        attempt = 0
        async for _ in fixed_interval(
            self._poll_interval_seconds,
            self._poll_max_attempts,
            sleep=self._sleep,
        ):
            attempt += 1
            _log("status_check", image_url=location, attempt=attempt, max_attempts=self._poll_max_attempts)
            phase = await self._query_phase(url)
            if phase == READY_PHASE:
                _log("processing_ready", image_url=location, attempts=attempt)
                return self.result_url(location)
        raise PollTimeoutError(location, attempt)

    async def _query_phase(self, url: str) -> str | None:
        try:
            response = await self._client.get(url, timeout=self._timeout, headers=self._headers(JSON_ACCEPT))
            response.raise_for_status()
            payload = response.json()
        except HttpClientError as exc:
            logger.warning("status check failed (status={}): {} {}", exc.status_code, exc, exc.body)
            return None
        except ValueError as exc:
            logger.warning("status response is not JSON: {}", exc)
            return None

        phase = extract_phase(payload)
        if phase is None:
            logger.warning("unexpected status response format: {}", _preview(payload))
        else:
            _log("status_reported", phase=phase, status=payload["data"]["images"][0].get("status"))
        return phase

    async def fetch_result(self, url: str, *, accept: str) -> HttpResponse:
        return await self._client.get(
            url,
            timeout=self._timeout,
            follow_redirects=True,
            headers=self._headers(accept),
        )
