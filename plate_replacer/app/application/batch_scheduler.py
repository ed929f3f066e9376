"""Batch scheduler: runs the per-image processor over all locations.

Sequential mode finishes one image before starting the next. Concurrent mode is
a fixed pool of workers draining a shared queue, so at most ``max_concurrency``
images are in flight. Counters are only touched between awaits, which is safe on
a single event loop.
"""
from __future__ import annotations

import asyncio
from typing import Any, Protocol, Sequence

from loguru import logger

from plate_replacer.app.constants import PROCESSING_MODE
from plate_replacer.app.core import SERVICE_NAME
from plate_replacer.app.domain.models import BatchResult


def _log(event: str, **kwargs: Any) -> None:
    logger.bind(service_name=SERVICE_NAME, event=event, **kwargs).info("")


class ImageProcessor(Protocol):
    async def process(self, location: str) -> bool: ...


class BatchScheduler:
    def __init__(
        self,
        processor: ImageProcessor,
        *,
        mode: str = PROCESSING_MODE.SEQUENTIAL,
        max_concurrency: int = 1,
    ) -> None:
        if mode not in (PROCESSING_MODE.SEQUENTIAL, PROCESSING_MODE.CONCURRENT):
            raise ValueError(f"Unsupported processing mode: {mode}")
        if max_concurrency < 1:
            raise ValueError("max_concurrency must be at least 1")
        self._processor = processor
        self._mode = mode
        self._max_concurrency = max_concurrency
        self._in_flight = 0
        self.peak_in_flight = 0

    async def run(self, locations: Sequence[str]) -> BatchResult:
        result = BatchResult()
        if not locations:
            return result

        if self._mode == PROCESSING_MODE.CONCURRENT:
            await self._run_concurrent(locations, result)
        else:
            for location in locations:
                result.record(await self._run_one(location))

        _log(
            "batch_finished",
            mode=self._mode,
            total=result.total,
            succeeded=result.succeeded,
            failed=result.failed,
            peak_in_flight=self.peak_in_flight,
        )
        return result

    async def _run_concurrent(self, locations: Sequence[str], result: BatchResult) -> None:
        queue: asyncio.Queue[str] = asyncio.Queue()
        for location in locations:
            queue.put_nowait(location)

        async def worker(worker_id: int) -> None:
            while True:
                try:
                    location = queue.get_nowait()
                except asyncio.QueueEmpty:
                    _log("worker_drained", worker_id=worker_id)
                    return
                result.record(await self._run_one(location))

        workers = min(self._max_concurrency, len(locations))
        _log("workers_starting", workers=workers, queued=len(locations))
        await asyncio.gather(*(worker(i) for i in range(workers)))

    async def _run_one(self, location: str) -> bool:
        self._in_flight += 1
        self.peak_in_flight = max(self.peak_in_flight, self._in_flight)
        try:
            return bool(await self._processor.process(location))
        except Exception as exc:
            logger.exception("image processing raised for {}: {}", location, exc)
            return False
        finally:
            self._in_flight -= 1
