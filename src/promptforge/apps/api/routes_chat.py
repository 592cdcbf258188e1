from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator
from contextlib import aclosing

from fastapi import APIRouter, Depends
from fastapi.responses import StreamingResponse

from promptforge.core.chat.coordinator import ChatCoordinator
from promptforge.core.infra.cancellation import CancellationToken
from promptforge.core.models.llm import LLMClient
from promptforge.core.sessions.store import SessionStore

from .deps import get_llm_client, get_session_store
from .schemas import ChatRequest

LOG = logging.getLogger("promptforge.api.chat")

SSE_HEADERS = {"Cache-Control": "no-cache", "Connection": "keep-alive"}

router = APIRouter(prefix="/api", tags=["chat"])


async def _event_stream(
    coordinator: ChatCoordinator,
    payload: ChatRequest,
    token: CancellationToken,
) -> AsyncIterator[str]:
    events = coordinator.run(
        payload.final_prompt,
        payload.session_id,
        use_system_role=payload.use_system_role,
        cancel=token,
    )
    try:
        async with aclosing(events):
            async for event in events:
                yield event.to_sse()
                if event.terminal:
                    return
    except (asyncio.CancelledError, GeneratorExit):
        token.cancel("client disconnected")
        raise


@router.post("/chat")
async def chat(
    payload: ChatRequest,
    store: SessionStore = Depends(get_session_store),
    llm: LLMClient = Depends(get_llm_client),
) -> StreamingResponse:
    coordinator = ChatCoordinator(store, llm)
    LOG.info(
        "chat_request",
        extra={"extra_fields": {"session_id": payload.session_id, "prompt_len": len(payload.final_prompt)}},
    )
    return StreamingResponse(
        _event_stream(coordinator, payload, CancellationToken()),
        media_type="text/event-stream",
        headers=SSE_HEADERS,
    )
