"""Bounded retry with a fixed delay."""

import asyncio
from collections.abc import Awaitable, Callable
from typing import TypeVar

from lifecycle_relay.core.logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


async def retry_with_delay(
    operation: Callable[[], Awaitable[T | None]],
    max_attempts: int,
    delay_seconds: float,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    operation_name: str = "operation",
) -> T | None:
    """Await ``operation`` until it returns a value other than None.

    A None result is treated as "not there yet" and retried after
    ``delay_seconds``, up to ``max_attempts`` calls in total. There is no
    sleep after the final attempt. Exceptions raised by ``operation`` are
    not retried; they propagate to the caller unchanged.

    Args:
        operation: Zero-argument coroutine function to call
        max_attempts: Total number of calls, at least 1
        delay_seconds: Fixed pause between attempts
        sleep: Awaitable sleep, injectable for tests
        operation_name: Name used in log entries

    Returns:
        The first non-None result, or None when every attempt came back empty
    """
    if max_attempts < 1:
        raise ValueError("max_attempts must be at least 1")

    for attempt in range(1, max_attempts + 1):
        result = await operation()
        if result is not None:
            return result

        if attempt < max_attempts:
            logger.info(
                "retry_scheduled",
                operation=operation_name,
                attempt=attempt,
                max_attempts=max_attempts,
                delay_seconds=delay_seconds,
            )
            await sleep(delay_seconds)

    logger.warning(
        "retry_attempts_exhausted",
        operation=operation_name,
        max_attempts=max_attempts,
    )
    return None
