"""httpx adapter for the HTTP port; the only module that imports httpx besides its factory."""
from __future__ import annotations

from typing import Any

import httpx

from plate_replacer.app.constants import LOG_BODY_PREVIEW_LENGTH
from plate_replacer.app.ports.http_client import (
    AbstractHttpClient,
    HttpClientError,
    HttpClientTimeoutError,
    HttpResponse,
    RequestTimeout,
)


class _HttpxResponseAdapter:
    """Adapts httpx.Response to the HttpResponse protocol."""

    def __init__(self, response: httpx.Response) -> None:
        self._response = response

    @property
    def headers(self) -> dict[str, str]:
        return dict(self._response.headers)

    @property
    def content_type(self) -> str:
        return self._response.headers.get("content-type", "")

    @property
    def content(self) -> bytes:
        return self._response.content

    @property
    def text(self) -> str:
        return self._response.text

    @property
    def status_code(self) -> int:
        return self._response.status_code

    @property
    def url(self) -> str:
        return str(self._response.url)

    def json(self) -> Any:
        return self._response.json()

    def raise_for_status(self) -> None:
        try:
            self._response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise HttpClientError(
                f"http status {exc.response.status_code} for {exc.request.url}",
                status_code=exc.response.status_code,
                body=exc.response.text[:LOG_BODY_PREVIEW_LENGTH],
            ) from exc


def _to_httpx_timeout(timeout: RequestTimeout) -> httpx.Timeout:
    return httpx.Timeout(
        connect=timeout.connect_seconds,
        read=timeout.read_seconds,
        write=timeout.read_seconds,
        pool=timeout.connect_seconds,
    )


class HttpxHttpClient(AbstractHttpClient):
    """AbstractHttpClient over one shared httpx.AsyncClient; maps httpx errors to port errors."""

    def __init__(self, client: httpx.AsyncClient) -> None:
        self._client = client

    async def _send(self, method: str, url: str, timeout: RequestTimeout, **kwargs: Any) -> HttpResponse:
        try:
            response = await self._client.request(method, url, timeout=_to_httpx_timeout(timeout), **kwargs)
        except httpx.TimeoutException as exc:
            raise HttpClientTimeoutError(f"{method} {url} timed out") from exc
        except httpx.HTTPError as exc:
            raise HttpClientError(f"{method} {url} failed: {exc}") from exc
        return _HttpxResponseAdapter(response)

    async def get(
        self,
        url: str,
        *,
        timeout: RequestTimeout,
        follow_redirects: bool = True,
        headers: dict[str, str] | None = None,
    ) -> HttpResponse:
        return await self._send("GET", url, timeout, follow_redirects=follow_redirects, headers=headers or {})

    async def post(
        self,
        url: str,
        *,
        timeout: RequestTimeout,
        data: dict[str, str] | None = None,
        files: dict[str, tuple[str, Any, str]] | None = None,
        headers: dict[str, str] | None = None,
    ) -> HttpResponse:
        return await self._send("POST", url, timeout, data=data, files=files, headers=headers or {})

    async def close(self) -> None:
        await self._client.aclose()
