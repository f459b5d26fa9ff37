"""
Request lifetime — cancellation scope for in-flight backend calls.

Bound to a checkout flow. Closing it cancels every request still running, and a
response that lands after close() is discarded instead of acted upon.
"""

import asyncio
from typing import Any, Awaitable, TypeVar

from conference_checkout.errors import StaleResponseError

T = TypeVar("T")


class RequestLifetime:
    def __init__(self) -> None:
        self._tasks: set[asyncio.Future[Any]] = set()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def in_flight(self) -> int:
        return len(self._tasks)

    async def run(self, aw: Awaitable[T]) -> T:
        if self._closed:
            if asyncio.iscoroutine(aw):
                aw.close()
            raise StaleResponseError()
        task = asyncio.ensure_future(aw)
        self._tasks.add(task)
        try:
            result = await task
        except asyncio.CancelledError:
            if self._closed and task.cancelled():
                raise StaleResponseError() from None
            raise
        finally:
            self._tasks.discard(task)
        if self._closed:
            raise StaleResponseError()
        return result

    def close(self) -> None:
        self._closed = True
        for task in list(self._tasks):
            task.cancel()
