import asyncio

from plate_replacer.app.core.backoff import exponential_backoff, fixed_interval
from tests.conftest import RecordingSleep


async def _collect(gen):
    return [delay async for delay in gen]


def test_fixed_interval_sleeps_only_between_attempts():
    sleep = RecordingSleep()

    delays = asyncio.run(_collect(fixed_interval(0.5, 4, sleep=sleep)))

    assert delays == [0.5, 0.5, 0.5, 0.5]
    assert sleep.delays == [0.5, 0.5, 0.5]


def test_single_attempt_never_sleeps():
    sleep = RecordingSleep()

    assert asyncio.run(_collect(fixed_interval(1.0, 1, sleep=sleep))) == [1.0]
    assert sleep.delays == []


def test_exponential_backoff_is_capped():
    sleep = RecordingSleep()

    delays = asyncio.run(_collect(exponential_backoff(1.0, 5.0, 2.0, 5, sleep=sleep)))

    assert delays == [1.0, 2.0, 4.0, 5.0, 5.0]
    assert sleep.delays == [1.0, 2.0, 4.0, 5.0]
