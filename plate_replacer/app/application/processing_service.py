from __future__ import annotations

from typing import Any

from loguru import logger

from plate_replacer.app.constants import TASK_STATUS
from plate_replacer.app.core import SERVICE_NAME
from plate_replacer.app.domain.errors import (
    DecodeError,
    PollTimeoutError,
    SubmissionError,
    WriteError,
)
from plate_replacer.app.domain.filenames import derive_output_name
from plate_replacer.app.domain.models import ImageTask, LogoAsset
from plate_replacer.app.domain.plate_api_client import PlateApiClient
from plate_replacer.app.domain.result_decoder import ResultDecoder
from plate_replacer.app.ports.result_store import ResultStore


def _log(event: str, **kwargs: Any) -> None:
    logger.bind(service_name=SERVICE_NAME, event=event, **kwargs).info("")


def _log_failure(event: str, **kwargs: Any) -> None:
    logger.bind(service_name=SERVICE_NAME, event=event, **kwargs).error("")


class ProcessingService:
    """
    Processes one image: submit, poll until ready, decode the result, write it.

    Task states advance SUBMITTED -> POLLING -> READY -> DOWNLOADED. Every error
    ends the task as FAILED and is reported as ``False``; nothing propagates to
    the caller, so one image can never abort its siblings.
    """

    def __init__(
        self,
        api_client: PlateApiClient,
        decoder: ResultDecoder,
        store: ResultStore,
        logo: LogoAsset,
        *,
        write_debug_payloads: bool = True,
    ) -> None:
        self._api = api_client
        self._decoder = decoder
        self._store = store
        self._logo = logo
        self._write_debug_payloads = write_debug_payloads

    async def process(self, location: str) -> bool:
        task = ImageTask(location=location, output_name=derive_output_name(location))
        return await self.run_task(task)

    async def run_task(self, task: ImageTask) -> bool:
        _log("task_started", image_url=task.location, output_name=task.output_name)
        try:
            task.advance(TASK_STATUS.SUBMITTED)
            await self._api.submit(task.location, self._logo)

            task.advance(TASK_STATUS.POLLING)
            result_url = await self._api.wait_until_ready(task.location)

            task.advance(TASK_STATUS.READY)
            image = await self._decoder.decode(result_url)
        except SubmissionError as exc:
            return self._fail(task, exc, "task_submission_failed", status_code=exc.status_code, body=exc.body)
        except PollTimeoutError as exc:
            return self._fail(task, exc, "task_timed_out", attempts=exc.attempts)
        except DecodeError as exc:
            self._dump_payload(task, exc)
            return self._fail(task, exc, "task_decode_failed", reason=exc.reason)
        except Exception as exc:
            logger.exception("unexpected failure processing {}: {}", task.location, exc)
            return self._fail(task, exc, "task_failed")

        task.advance(TASK_STATUS.DOWNLOADED)
        try:
            path, size = self._store.write(task.output_name, image)
        except WriteError as exc:
            return self._fail(task, exc, "task_write_failed")
        if size == 0:
            return self._fail(task, DecodeError("empty-output", f"{path} is empty"), "task_decode_failed")

        task.output_path = path
        _log("task_completed", image_url=task.location, output_path=str(path), size=size)
        return True

    def _fail(self, task: ImageTask, exc: Exception, event: str, **context: Any) -> bool:
        failed_in = task.status
        task.fail(exc)
        _log_failure(
            event,
            image_url=task.location,
            failed_in=failed_in,
            error=str(exc),
            **context,
        )
        return False

    def _dump_payload(self, task: ImageTask, exc: DecodeError) -> None:
        if not self._write_debug_payloads or not exc.payload:
            return
        try:
            path = self._store.write_debug(task.output_name, exc.payload)
        except WriteError as write_exc:
            logger.warning("debug payload not written: {}", write_exc)
            return
        _log("debug_payload_written", image_url=task.location, path=str(path))
