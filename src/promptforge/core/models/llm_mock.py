from __future__ import annotations

from collections.abc import AsyncIterator, Sequence

from promptforge.core.infra.cancellation import CancellationToken

from .llm import StreamingChatMixin
from .schemas import Message

END_OF_RESPONSE = "\n\n(End of Mock Response)"


def mock_response_text(messages: Sequence[Message]) -> str:
    prompt = messages[-1].content if messages else "No prompt provided"
    return (
        f'[MOCK] I received your request: "{prompt}". \n\n'
        "Here is a generated answer based on the enriched prompt. "
        "I am simulating a real LLM response to demonstrate the streaming capability."
    )


class MockLLMClient(StreamingChatMixin):
    """Offline stand-in: a fixed think delay, then one word per fragment."""

    name = "mock"

    def __init__(self, think_delay_s: float = 0.5, chunk_delay_s: float = 0.03) -> None:
        self.think_delay_s = max(0.0, think_delay_s)
        self.chunk_delay_s = max(0.0, chunk_delay_s)

    async def stream_chat(self, messages: Sequence[Message], cancel: CancellationToken | None = None) -> AsyncIterator[str]:
        token = cancel or CancellationToken()
        await token.sleep(self.think_delay_s)

        for word in mock_response_text(messages).split(" "):
            token.raise_if_cancelled()
            await token.sleep(self.chunk_delay_s)
            yield word + " "
        yield END_OF_RESPONSE
