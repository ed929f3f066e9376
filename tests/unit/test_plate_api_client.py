"""Unit tests for the submission / status / result wire protocol."""
from __future__ import annotations

import pytest

from plate_replacer.app.domain.errors import PollTimeoutError, SubmissionError
from plate_replacer.app.domain.plate_api_client import PlateApiClient, extract_phase
from plate_replacer.app.ports.http_client import HttpClientError, HttpClientTimeoutError
from tests.conftest import FakeHttpClient, FakeResponse
from tests.test_data import PNG_BYTES, status_payload

BASE_URL = "https://api.example.test/v1"
IMAGE_URL = "https://drive.google.com/uc?export=download&id=1siW1i8uEthjkZKvUnNCkr0lS9tGvHf5m"


def _client(handler, sleep, *, max_attempts: int = 5, interval: float = 2.5) -> tuple[PlateApiClient, FakeHttpClient]:
    http = FakeHttpClient(handler)
    api = PlateApiClient(
        http,
        base_url=BASE_URL + "/",
        api_key="secret-key",
        cut_type="license_plate",
        guideline_id="guideline-42",
        connect_timeout_seconds=1.0,
        read_timeout_seconds=1.0,
        poll_interval_seconds=interval,
        poll_max_attempts=max_attempts,
        sleep=sleep,
    )
    return api, http


def _phases(*phases):
    """Status handler answering with the given phases in order."""
    remaining = list(phases)

    def handler(method, url, headers):
        item = remaining.pop(0)
        if isinstance(item, (Exception, FakeResponse)):
            return item
        return FakeResponse(json_body=status_payload(item))

    return handler


@pytest.mark.asyncio
async def test_submit_sends_multipart_fields_logo_and_bearer(logo_asset, recording_sleep):
    api, http = _client(lambda m, u, h: FakeResponse(json_body={"ok": True}), recording_sleep)

    await api.submit(IMAGE_URL, logo_asset)

    (call,) = http.calls
    assert call["method"] == "POST"
    assert call["url"] == f"{BASE_URL}/submission"
    assert call["headers"]["Authorization"] == "Bearer secret-key"
    assert call["data"] == {"image_url": IMAGE_URL, "cut_type": "license_plate", "guideline_id": "guideline-42"}
    filename, content, content_type = call["files"]["license_plate"]
    assert filename == "logo.png"
    assert content == PNG_BYTES
    assert content_type == "image/png"


@pytest.mark.asyncio
async def test_submit_accepts_any_2xx_regardless_of_body(logo_asset, recording_sleep):
    api, _ = _client(lambda m, u, h: FakeResponse(202, json_body={"error": "queued with warnings"}), recording_sleep)

    await api.submit(IMAGE_URL, logo_asset)


@pytest.mark.asyncio
@pytest.mark.parametrize("status_code", [400, 401, 500])
async def test_submit_error_status_raises_submission_error(logo_asset, recording_sleep, status_code):
    api, _ = _client(lambda m, u, h: FakeResponse(status_code, json_body={"message": "rejected"}), recording_sleep)

    with pytest.raises(SubmissionError) as excinfo:
        await api.submit(IMAGE_URL, logo_asset)
    assert excinfo.value.status_code == status_code
    assert "rejected" in excinfo.value.body


@pytest.mark.asyncio
async def test_submit_network_error_raises_submission_error(logo_asset, recording_sleep):
    api, _ = _client(lambda m, u, h: HttpClientTimeoutError("timeout while posting"), recording_sleep)

    with pytest.raises(SubmissionError) as excinfo:
        await api.submit(IMAGE_URL, logo_asset)
    assert excinfo.value.status_code is None


@pytest.mark.asyncio
async def test_poll_ready_on_third_check_issues_three_queries(recording_sleep):
    api, http = _client(_phases("processing", "processing", "ready"), recording_sleep, interval=2.5)

    result_url = await api.wait_until_ready(IMAGE_URL)

    assert len(http.calls) == 3
    assert recording_sleep.delays == [2.5, 2.5]
    assert result_url == api.result_url(IMAGE_URL)
    assert result_url.startswith(f"{BASE_URL}/result?image_url=https%3A%2F%2Fdrive.google.com")
    for call in http.calls:
        assert call["url"] == api.status_url(IMAGE_URL)
        assert call["headers"]["Accept"] == "application/json"
        assert call["headers"]["Authorization"] == "Bearer secret-key"


@pytest.mark.asyncio
async def test_poll_never_ready_times_out_after_exact_ceiling(recording_sleep):
    api, http = _client(lambda m, u, h: FakeResponse(json_body=status_payload("processing")), recording_sleep, max_attempts=3)

    with pytest.raises(PollTimeoutError) as excinfo:
        await api.wait_until_ready(IMAGE_URL)

    assert excinfo.value.attempts == 3
    assert len(http.calls) == 3
    assert len(recording_sleep.delays) == 2


@pytest.mark.asyncio
async def test_poll_errors_count_as_not_ready_and_loop_continues(recording_sleep):
    handler = _phases(
        HttpClientError("connection refused"),
        FakeResponse(500, content=b"oops", content_type="text/plain"),
        FakeResponse(content=b"<html>", content_type="text/html"),
        FakeResponse(json_body={"data": {"images": []}}),
        "ready",
    )
    api, http = _client(handler, recording_sleep, max_attempts=5)

    await api.wait_until_ready(IMAGE_URL)

    assert len(http.calls) == 5
    assert len(recording_sleep.delays) == 4


@pytest.mark.asyncio
async def test_poll_errors_still_consume_the_ceiling(recording_sleep):
    api, http = _client(lambda m, u, h: HttpClientError("down"), recording_sleep, max_attempts=4)

    with pytest.raises(PollTimeoutError):
        await api.wait_until_ready(IMAGE_URL)
    assert len(http.calls) == 4


@pytest.mark.asyncio
async def test_fetch_result_sends_requested_accept(recording_sleep):
    api, http = _client(lambda m, u, h: FakeResponse(content=PNG_BYTES, content_type="image/png"), recording_sleep)

    response = await api.fetch_result(api.result_url(IMAGE_URL), accept="image/*")

    assert response.content == PNG_BYTES
    assert http.calls[0]["headers"] == {"Authorization": "Bearer secret-key", "Accept": "image/*"}


@pytest.mark.parametrize(
    "payload,expected",
    [
        (status_payload("ready"), "ready"),
        (status_payload("processing"), "processing"),
        ({"data": {"images": [{"status": "active"}]}}, None),
        ({"data": {"images": []}}, None),
        ({"data": None}, None),
        ([], None),
    ],
)
def test_extract_phase(payload, expected):
    assert extract_phase(payload) == expected
