from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Callable

import pytest

from plate_replacer.app.config.settings import Settings
from plate_replacer.app.domain.errors import WriteError
from plate_replacer.app.domain.models import LogoAsset
from plate_replacer.app.ports.http_client import HttpClientError, RequestTimeout
from tests.test_data import PNG_BYTES

TIMEOUT = RequestTimeout(connect_seconds=1.0, read_seconds=1.0)


class FakeResponse:
    """Implements HttpResponse for tests."""

    def __init__(
        self,
        status_code: int = 200,
        *,
        content: bytes = b"",
        content_type: str = "",
        json_body: Any = None,
        url: str = "",
    ) -> None:
        if json_body is not None:
            content = json.dumps(json_body).encode()
            content_type = content_type or "application/json; charset=utf-8"
        self.status_code = status_code
        self.content = content
        self.content_type = content_type
        self.url = url
        self.headers = {"content-type": content_type} if content_type else {}

    @property
    def text(self) -> str:
        return self.content.decode("utf-8", errors="replace")

    def json(self) -> Any:
        return json.loads(self.text)

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            raise HttpClientError(
                f"http status {self.status_code} for {self.url}",
                status_code=self.status_code,
                body=self.text[:200],
            )


Handler = Callable[[str, str, dict[str, str]], "FakeResponse | Exception"]


class FakeHttpClient:
    """Implements AbstractHttpClient; a handler decides each response.

    The handler gets (method, url, headers) and returns a FakeResponse, or an
    exception instance to raise. Every call is recorded, including the bytes of
    any uploaded file.
    """

    def __init__(self, handler: Handler) -> None:
        self._handler = handler
        self.calls: list[dict[str, Any]] = []
        self.closed = False

    def _respond(self, method: str, url: str, headers: dict[str, str] | None) -> FakeResponse:
        outcome = self._handler(method, url, dict(headers or {}))
        if isinstance(outcome, Exception):
            raise outcome
        outcome.url = outcome.url or url
        return outcome

    async def get(
        self,
        url: str,
        *,
        timeout: RequestTimeout,
        follow_redirects: bool = True,
        headers: dict[str, str] | None = None,
    ) -> FakeResponse:
        self.calls.append({"method": "GET", "url": url, "headers": dict(headers or {})})
        return self._respond("GET", url, headers)

    async def post(
        self,
        url: str,
        *,
        timeout: RequestTimeout,
        data: dict[str, str] | None = None,
        files: dict[str, tuple[str, Any, str]] | None = None,
        headers: dict[str, str] | None = None,
    ) -> FakeResponse:
        uploaded = {name: (fname, fh.read(), ctype) for name, (fname, fh, ctype) in (files or {}).items()}
        self.calls.append(
            {"method": "POST", "url": url, "headers": dict(headers or {}), "data": dict(data or {}), "files": uploaded}
        )
        return self._respond("POST", url, headers)

    async def close(self) -> None:
        self.closed = True

    def calls_to(self, fragment: str) -> list[dict[str, Any]]:
        return [c for c in self.calls if fragment in c["url"]]


class RecordingSleep:
    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


class MemoryResultStore:
    """Implements ResultStore in memory for tests."""

    def __init__(self, *, fail_write: bool = False, report_size: int | None = None) -> None:
        self.files: dict[str, bytes] = {}
        self.debug: dict[str, str] = {}
        self._fail_write = fail_write
        self._report_size = report_size

    def prepare(self) -> None:
        return None

    def output_path(self, name: str) -> Path:
        return Path("/memory") / f"{name}_edited.png"

    def write(self, name: str, data: bytes) -> tuple[Path, int]:
        if self._fail_write:
            raise WriteError(f"disk full while writing {name}")
        self.files[name] = data
        size = len(data) if self._report_size is None else self._report_size
        return self.output_path(name), size

    def write_debug(self, name: str, payload: str) -> Path:
        self.debug[name] = payload
        return Path("/memory") / f"{name}_edited.png.debug.json"


def make_settings(**overrides: Any) -> Settings:
    """Settings from env-style names, ignoring any local .env file."""
    values: dict[str, Any] = {
        "API_BASE_URL": "https://api.example.test/v1",
        "API_KEY": "secret-key",
        "CUT_TYPE": "license_plate",
        "GUIDELINE_ID": "guideline-42",
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


@pytest.fixture()
def logo_asset(tmp_path: Path) -> LogoAsset:
    logo_dir = tmp_path / "plate"
    logo_dir.mkdir()
    path = logo_dir / "logo.png"
    path.write_bytes(PNG_BYTES)
    return LogoAsset(path=path)


@pytest.fixture()
def recording_sleep() -> RecordingSleep:
    return RecordingSleep()
