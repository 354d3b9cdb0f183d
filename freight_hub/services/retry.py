from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, TypeVar

from freight_hub.core.errors import error_message


T = TypeVar("T")


class RetryExhaustedError(Exception):
    def __init__(self, first: Exception, second: Exception):
        super().__init__(f"Initial: {error_message(first)}, Retry: {error_message(second)}")
        self.first = first
        self.second = second


async def call_with_single_retry(
    fn: Callable[[], Awaitable[T]],
    *,
    delay_seconds: float = 1.0,
    on_first_failure: Callable[[Exception], None] | None = None,
) -> T:
    # one attempt, fixed pause, one more attempt; never a third
    try:
        return await fn()
    except Exception as first:
        if on_first_failure is not None:
            on_first_failure(first)
        await asyncio.sleep(delay_seconds)
        try:
            return await fn()
        except Exception as second:
            raise RetryExhaustedError(first, second) from second
