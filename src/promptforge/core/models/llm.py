from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import AsyncIterator, Sequence
from typing import Protocol, runtime_checkable

from promptforge.core.infra.cancellation import CancellationToken

from .schemas import Message


@runtime_checkable
class LLMClient(Protocol):
    name: str

    def stream_chat(self, messages: Sequence[Message], cancel: CancellationToken | None = None) -> AsyncIterator[str]: ...

    async def chat(self, messages: Sequence[Message], cancel: CancellationToken | None = None) -> str: ...


class StreamingChatMixin(ABC):
    """Derives ``chat`` from ``stream_chat`` so both always agree on the text."""

    @abstractmethod
    def stream_chat(self, messages: Sequence[Message], cancel: CancellationToken | None = None) -> AsyncIterator[str]: ...

    async def chat(self, messages: Sequence[Message], cancel: CancellationToken | None = None) -> str:
        parts: list[str] = []
        async for fragment in self.stream_chat(messages, cancel):
            parts.append(fragment)
        return "".join(parts)
