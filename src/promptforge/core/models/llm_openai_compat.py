from __future__ import annotations

import json
import logging
from collections.abc import AsyncIterator, Sequence
from contextlib import aclosing

import httpx

from promptforge.core.config import HTTPSettings
from promptforge.core.http.client import build_http_client, iter_lines, open_stream
from promptforge.core.infra.cancellation import CancellationToken

from .errors import LLMConfigurationError
from .llm import StreamingChatMixin
from .schemas import Message

LOG = logging.getLogger("promptforge.llm.openai")

_DATA_PREFIX = "data: "
_DONE_LINE = "data: [DONE]"


class OpenAICompatClient(StreamingChatMixin):
    """Hosted ``/chat/completions`` backend read as Server-Sent Events."""

    name = "openai"

    def __init__(
        self,
        api_key: str | None,
        base_url: str = "https://api.openai.com/v1",
        model: str = "gpt-3.5-turbo",
        http_settings: HTTPSettings | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.api_key = api_key or ""
        self.base_url = base_url.rstrip("/")
        self.model = model
        self.http_settings = http_settings or HTTPSettings()
        self._transport = transport

    @staticmethod
    def _delta_content(line: str) -> str | None:
        if not line.startswith(_DATA_PREFIX):
            return None
        try:
            data = json.loads(line[len(_DATA_PREFIX):])
        except json.JSONDecodeError:
            LOG.debug("openai_skip_malformed_event", extra={"extra_fields": {"line_len": len(line)}})
            return None
        try:
            content = data["choices"][0]["delta"].get("content")
        except (KeyError, IndexError, TypeError, AttributeError):
            return None
        return content if isinstance(content, str) and content else None

    async def stream_chat(self, messages: Sequence[Message], cancel: CancellationToken | None = None) -> AsyncIterator[str]:
        if not self.api_key:
            raise LLMConfigurationError("PROMPTFORGE_LLM_API_KEY is not set; the hosted backend needs a credential")
        if cancel is not None:
            cancel.raise_if_cancelled()

        payload = {
            "model": self.model,
            "messages": [message.as_payload() for message in messages],
            "stream": True,
        }
        headers = {"Content-Type": "application/json", "Authorization": f"Bearer {self.api_key}"}

        async with build_http_client(self.http_settings, transport=self._transport) as client:
            async with open_stream(
                client,
                f"{self.base_url}/chat/completions",
                json=payload,
                headers=headers,
                cancel=cancel,
                label="LLM",
            ) as response:
                async with aclosing(iter_lines(response, cancel, label="LLM")) as lines:
                    async for line in lines:
                        stripped = line.strip()
                        if not stripped:
                            continue
                        if stripped == _DONE_LINE:
                            return
                        content = self._delta_content(stripped)
                        if content:
                            yield content
