from __future__ import annotations

import asyncio
from collections.abc import Awaitable
from typing import TypeVar

from promptforge.core.models.errors import LLMCancelledError

T = TypeVar("T")


class CancellationToken:
    """Shared stop signal checked at every suspension point of a request.

    The HTTP layer owns the token and fires it when the client goes away; the
    pipeline, the coordinator and the backends only observe it.
    """

    def __init__(self) -> None:
        self._event = asyncio.Event()
        self.reason: str | None = None

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self, reason: str = "cancelled") -> None:
        if self._event.is_set():
            return
        self.reason = reason
        self._event.set()

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise LLMCancelledError(self.reason or "cancelled")

    async def wait(self) -> None:
        await self._event.wait()

    async def sleep(self, delay_s: float) -> None:
        self.raise_if_cancelled()
        if delay_s <= 0:
            await asyncio.sleep(0)
            self.raise_if_cancelled()
            return
        try:
            await asyncio.wait_for(self._event.wait(), timeout=delay_s)
        except asyncio.TimeoutError:
            return
        self.raise_if_cancelled()

    async def race(self, awaitable: Awaitable[T]) -> T:
        if self.cancelled:
            if asyncio.iscoroutine(awaitable):
                awaitable.close()
            self.raise_if_cancelled()
        work = asyncio.ensure_future(awaitable)
        stop = asyncio.ensure_future(self._event.wait())
        try:
            done, _ = await asyncio.wait({work, stop}, return_when=asyncio.FIRST_COMPLETED)
        except BaseException:
            work.cancel()
            raise
        finally:
            stop.cancel()

        if work in done:
            return work.result()

        work.cancel()
        await asyncio.gather(work, return_exceptions=True)
        raise LLMCancelledError(self.reason or "cancelled")


async def guarded(cancel: CancellationToken | None, awaitable: Awaitable[T]) -> T:
    if cancel is None:
        return await awaitable
    return await cancel.race(awaitable)
