import asyncio
import sys
from typing import Any

from loguru import logger
from pydantic import ValidationError

from plate_replacer.app.composition import RunDependencies, create_run_dependencies
from plate_replacer.app.config.settings import Settings
from plate_replacer.app.constants import PROCESSING_MODE
from plate_replacer.app.core import SERVICE_NAME
from plate_replacer.app.core.log_setup import configure_logging
from plate_replacer.app.domain.errors import ConfigurationError
from plate_replacer.app.domain.models import BatchResult


def _log(event: str, **kwargs: Any) -> None:
    logger.bind(service_name=SERVICE_NAME, event=event, **kwargs).info("")


async def run_batch(deps: RunDependencies) -> BatchResult:
    """Resolve the image source and process every image. Caller owns deps lifecycle."""
    settings = deps.settings
    locations = await deps.image_source.resolve()
    if not locations:
        logger.error("no images found for source mode {}", settings.image_source_mode)
        return BatchResult()

    concurrent = settings.processing_mode == PROCESSING_MODE.CONCURRENT
    _log(
        "batch_starting",
        images=len(locations),
        mode=settings.processing_mode,
        max_concurrency=settings.max_concurrency if concurrent else 1,
    )
    return await deps.scheduler.run(locations)


async def run(settings: Settings) -> BatchResult:
    deps = create_run_dependencies(settings)
    try:
        await deps.connect()
        return await run_batch(deps)
    finally:
        await deps.close()


def report(result: BatchResult) -> None:
    _log("run_summary", total=result.total, succeeded=result.succeeded, failed=result.failed)
    logger.info("====== Processing Summary ======")
    logger.info("Total: {}", result.total)
    logger.info("Succeeded: {}", result.succeeded)
    logger.info("Failed: {}", result.failed)


def main() -> None:
    try:
        settings = Settings()
    except ValidationError as e:
        configure_logging()
        logger.error("invalid configuration: {}", e)
        sys.exit(1)

    configure_logging(settings.log_level, serialize=settings.log_json)
    _log(
        "run_started",
        api_base_url=settings.api_base_url,
        source_mode=settings.image_source_mode,
        output_dir=settings.output_dir,
        processing_mode=settings.processing_mode,
    )
    try:
        result = asyncio.run(run(settings))
    except ConfigurationError as e:
        logger.error("configuration error: {}", e)
        sys.exit(1)
    except KeyboardInterrupt:
        _log("run_interrupted")
        sys.exit(130)
    except Exception as e:
        logger.exception("run failed: {}", e)
        sys.exit(1)

    report(result)


if __name__ == "__main__":
    main()
