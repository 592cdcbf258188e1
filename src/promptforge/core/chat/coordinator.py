from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator
from dataclasses import dataclass
from enum import Enum
from typing import Literal

from promptforge.core.infra.cancellation import CancellationToken
from promptforge.core.models.errors import LLMCancelledError
from promptforge.core.models.llm import LLMClient
from promptforge.core.models.schemas import Message
from promptforge.core.observability.trace import Trace
from promptforge.core.sessions.store import SessionStore

from .sse import DONE_FRAME, STREAM_ABORTED, STREAM_INTERRUPTED, content_frame, error_frame

LOG = logging.getLogger("promptforge.chat")


class ExchangeState(str, Enum):
    IDLE = "idle"
    ASSEMBLING = "assembling"
    STREAMING = "streaming"
    COMPLETED = "completed"
    ABORTED = "aborted"
    FAILED = "failed"


TERMINAL_STATES = frozenset({ExchangeState.COMPLETED, ExchangeState.ABORTED, ExchangeState.FAILED})


@dataclass(frozen=True)
class StreamEvent:
    kind: Literal["fragment", "done", "aborted", "error"]
    text: str = ""
    detail: str | None = None

    @property
    def terminal(self) -> bool:
        return self.kind != "fragment"

    def to_sse(self) -> str:
        if self.kind == "fragment":
            return content_frame(self.text)
        if self.kind == "done":
            return DONE_FRAME
        return error_frame(self.text)


class ChatCoordinator:
    """Runs one streamed exchange against a session.

    The session is only extended once the backend stream is exhausted without
    error; aborted or failed exchanges leave it untouched. Instances are single
    use.
    """

    def __init__(self, store: SessionStore, llm: LLMClient, trace: Trace | None = None) -> None:
        self.store = store
        self.llm = llm
        self.trace = trace or Trace(operation="chat")
        self.state = ExchangeState.IDLE
        self._session_id: str | None = None

    def _transition(self, target: ExchangeState) -> None:
        self.trace.emit("ExchangeStateChanged", {"from": self.state.value, "to": target.value})
        self.state = target

    def _log(self, level: int, event: str, exc_info: bool = False, **fields: object) -> None:
        fields.setdefault("session_id", self._session_id)
        fields.setdefault("backend", getattr(self.llm, "name", "unknown"))
        LOG.log(level, event, exc_info=exc_info, extra={"extra_fields": fields})

    def assemble(self, prompt: str, session_id: str, use_system_role: bool = False) -> list[Message]:
        role = "system" if use_system_role else "user"
        return [*self.store.history(session_id), Message(role=role, content=prompt)]

    async def run(
        self,
        prompt: str,
        session_id: str,
        use_system_role: bool = False,
        cancel: CancellationToken | None = None,
    ) -> AsyncIterator[StreamEvent]:
        if self.state is not ExchangeState.IDLE:
            raise RuntimeError(f"exchange already {self.state.value}")

        self._session_id = session_id
        self.trace.session_id = session_id
        self._transition(ExchangeState.ASSEMBLING)
        messages = self.assemble(prompt, session_id, use_system_role)
        self._log(logging.INFO, "chat_exchange_started", history_len=len(messages) - 1, role=messages[-1].role)

        self._transition(ExchangeState.STREAMING)
        parts: list[str] = []
        stream = self.llm.stream_chat(messages, cancel)
        try:
            async for fragment in stream:
                if cancel is not None:
                    cancel.raise_if_cancelled()
                parts.append(fragment)
                yield StreamEvent(kind="fragment", text=fragment)
            if cancel is not None:
                cancel.raise_if_cancelled()
        except LLMCancelledError as exc:
            self._abort(str(exc), len(parts))
            yield StreamEvent(kind="aborted", text=STREAM_ABORTED, detail=str(exc))
            return
        except (asyncio.CancelledError, GeneratorExit):
            self._abort("consumer went away", len(parts))
            raise
        except Exception as exc:
            self._transition(ExchangeState.FAILED)
            self._log(logging.ERROR, "chat_exchange_failed", exc_info=True, fragments=len(parts), status=getattr(exc, "status_code", None))
            yield StreamEvent(kind="error", text=STREAM_INTERRUPTED, detail=str(exc))
            return
        finally:
            aclose = getattr(stream, "aclose", None)
            if aclose is not None:
                await aclose()

        reply = "".join(parts)
        self.store.append_exchange(session_id, prompt, reply)
        self._transition(ExchangeState.COMPLETED)
        self._log(logging.INFO, "chat_exchange_completed", fragments=len(parts), reply_len=len(reply), duration_ms=self.trace.elapsed_ms())
        yield StreamEvent(kind="done")

    def _abort(self, reason: str, fragments: int) -> None:
        self._transition(ExchangeState.ABORTED)
        self._log(logging.INFO, "chat_exchange_aborted", reason=reason, fragments=fragments)
