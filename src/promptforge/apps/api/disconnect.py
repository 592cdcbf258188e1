from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from starlette.requests import Request

from promptforge.core.infra.cancellation import CancellationToken

_POLL_INTERVAL_S = 0.1


@asynccontextmanager
async def cancel_on_disconnect(request: Request, token: CancellationToken) -> AsyncIterator[CancellationToken]:
    """Fire ``token`` if the client drops while the block is running."""

    async def _watch() -> None:
        while not token.cancelled:
            if await request.is_disconnected():
                token.cancel("client disconnected")
                return
            await asyncio.sleep(_POLL_INTERVAL_S)

    watcher = asyncio.create_task(_watch())
    try:
        yield token
    finally:
        watcher.cancel()
        await asyncio.gather(watcher, return_exceptions=True)
