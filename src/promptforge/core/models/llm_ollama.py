from __future__ import annotations

import json
import logging
from collections.abc import AsyncIterator, Sequence
from contextlib import aclosing

import httpx

from promptforge.core.config import HTTPSettings
from promptforge.core.http.client import build_http_client, iter_lines, open_stream
from promptforge.core.infra.cancellation import CancellationToken

from .llm import StreamingChatMixin
from .schemas import Message

LOG = logging.getLogger("promptforge.llm.ollama")

_ROLE_LABELS = {"system": "System", "user": "User", "assistant": "Assistant"}


class OllamaClient(StreamingChatMixin):
    """Local inference over ``/api/generate`` (newline-delimited JSON)."""

    name = "ollama"

    def __init__(
        self,
        base_url: str = "http://localhost:11434",
        model: str = "llama3",
        http_settings: HTTPSettings | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.model = model
        self.http_settings = http_settings or HTTPSettings()
        self._transport = transport

    @staticmethod
    def _messages_to_prompt(messages: Sequence[Message]) -> str:
        return "\n\n".join(f"{_ROLE_LABELS.get(m.role, m.role)}: {m.content}" for m in messages)

    @staticmethod
    def _parse_line(line: str) -> dict | None:
        stripped = line.strip()
        if not stripped:
            return None
        try:
            data = json.loads(stripped)
        except json.JSONDecodeError:
            LOG.debug("ollama_skip_malformed_line", extra={"extra_fields": {"line_len": len(stripped)}})
            return None
        return data if isinstance(data, dict) else None

    async def stream_chat(self, messages: Sequence[Message], cancel: CancellationToken | None = None) -> AsyncIterator[str]:
        if cancel is not None:
            cancel.raise_if_cancelled()
        payload = {"model": self.model, "prompt": self._messages_to_prompt(messages), "stream": True}

        async with build_http_client(self.http_settings, transport=self._transport) as client:
            async with open_stream(
                client,
                f"{self.base_url}/api/generate",
                json=payload,
                headers={"Content-Type": "application/json"},
                cancel=cancel,
                label="Ollama",
            ) as response:
                async with aclosing(iter_lines(response, cancel, label="Ollama")) as lines:
                    async for line in lines:
                        data = self._parse_line(line)
                        if data is None:
                            continue
                        if data.get("done"):
                            return
                        fragment = data.get("response")
                        if fragment:
                            yield str(fragment)
