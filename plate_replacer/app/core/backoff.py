"""Backoff utilities.

Provides an async generator for retry delays.
`exponential_backoff` yields the current delay for the caller to attempt an operation,
then sleeps for that delay before the next attempt. No sleep follows the final attempt.
`fixed_interval` is the multiplier=1 case used by the status poll loop.
"""
import asyncio
from typing import AsyncIterator, Awaitable, Callable

Sleep = Callable[[float], Awaitable[None]]


async def exponential_backoff(
    initial_delay: float,
    max_delay: float,
    multiplier: float,
    max_attempts: int,
    *,
    sleep: Sleep = asyncio.sleep,
) -> AsyncIterator[float]:
    delay = initial_delay
    for attempt in range(1, max_attempts + 1):
        yield delay
        if attempt < max_attempts:
            await sleep(delay)
            delay = min(delay * multiplier, max_delay)


async def fixed_interval(
    delay: float,
    max_attempts: int,
    *,
    sleep: Sleep = asyncio.sleep,
) -> AsyncIterator[float]:
    async for current in exponential_backoff(delay, delay, 1.0, max_attempts, sleep=sleep):
        yield current
