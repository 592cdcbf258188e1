"""Prompt enrichment: normalize, screen, then have a model rewrite the prompt.

Each stage takes an ``EnrichmentContext`` and hands back a new one; only the
final rewrite stage talks to a backend.
"""

from __future__ import annotations

import asyncio
import logging
import re
from uuid import uuid4

from promptforge.core.config import load_settings
from promptforge.core.infra.cancellation import CancellationToken
from promptforge.core.logging.context import log_context
from promptforge.core.models.errors import LLMCancelledError
from promptforge.core.models.llm import LLMClient
from promptforge.core.models.llm_provider import create_llm_client
from promptforge.core.models.schemas import Message
from promptforge.core.observability.trace import Trace

from .detect import detect_intent, detect_language
from .prompts import REWRITER_SYSTEM_PROMPT, SAFETY_REFUSAL, build_rewrite_prompt
from .schemas import EnrichmentContext, IntentLevel, PipelineResult, coerce_intent_level

MAX_PROMPT_CHARS = 8000
UNSAFE_KEYWORDS: tuple[str, ...] = ("ignore previous instructions", "system prompt", "drop table")
UNSAFE_FLAG = "unsafe_keyword_detected"

_WHITESPACE_RE = re.compile(r"\s+")

LOG = logging.getLogger("promptforge.enrichment")


def normalize_step(ctx: EnrichmentContext) -> EnrichmentContext:
    normalized = _WHITESPACE_RE.sub(" ", ctx.user_message.strip())
    # truncation can expose a trailing space; strip again so the result stays a fixed point
    normalized = normalized[:MAX_PROMPT_CHARS].rstrip()
    return ctx.with_message(normalized)


def safety_check_step(ctx: EnrichmentContext) -> EnrichmentContext:
    lowered = ctx.user_message.lower()
    if any(keyword in lowered for keyword in UNSAFE_KEYWORDS):
        return ctx.with_flag(UNSAFE_FLAG)
    return ctx


async def ai_enrichment_step(
    ctx: EnrichmentContext,
    llm: LLMClient,
    cancel: CancellationToken | None = None,
    trace: Trace | None = None,
) -> str:
    if ctx.safety_flags:
        if trace is not None:
            trace.emit("EnrichmentRefused", {"flags": list(ctx.safety_flags)})
        return SAFETY_REFUSAL

    messages = [
        Message(role="system", content=REWRITER_SYSTEM_PROMPT),
        Message(role="user", content=build_rewrite_prompt(ctx.user_message, ctx.intent_level)),
    ]
    if cancel is not None:
        cancel.raise_if_cancelled()

    try:
        enriched = await llm.chat(messages, cancel)
    except (LLMCancelledError, asyncio.CancelledError):
        raise
    except Exception as exc:
        LOG.warning(
            "enrichment_backend_failed",
            exc_info=True,
            extra={"extra_fields": {"backend": getattr(llm, "name", "unknown"), "status": getattr(exc, "status_code", None)}},
        )
        if trace is not None:
            trace.emit("EnrichmentFallback", {"error": exc.__class__.__name__})
        return ctx.user_message

    if trace is not None:
        trace.emit("EnrichmentSucceeded", {"chars": len(enriched)})
    return enriched


def format_enriched_prompt(messages: list[Message]) -> str:
    if len(messages) == 1 and messages[0].role == "assistant":
        return messages[0].content

    system_msg = next((m.content for m in messages if m.role == "system"), "")
    user_msg = next((m.content for m in messages if m.role == "user"), "")
    if system_msg and user_msg:
        return f"{system_msg}\n\nUser request:\n{user_msg}"
    return system_msg or user_msg


def new_context(raw_message: str, session_id: str | None = None, intent_level: str | None = None) -> EnrichmentContext:
    return EnrichmentContext(
        request_id=str(uuid4()),
        session_id=session_id or str(uuid4()),
        user_message=raw_message,
        intent_level=coerce_intent_level(intent_level),
        language=detect_language(raw_message),
        intent=detect_intent(raw_message),
    )


async def run_pipeline(
    raw_message: str,
    session_id: str | None = None,
    intent_level: IntentLevel | str | None = "casual",
    cancel: CancellationToken | None = None,
    llm: LLMClient | None = None,
    trace: Trace | None = None,
) -> PipelineResult:
    ctx = new_context(raw_message, session_id, intent_level)
    client = llm or create_llm_client(load_settings())
    run_trace = trace or Trace(operation="enrich")
    run_trace.request_id = ctx.request_id
    run_trace.session_id = ctx.session_id

    with log_context(request_id=ctx.request_id, session_id=ctx.session_id):
        run_trace.add_step("normalize")
        ctx = normalize_step(ctx)
        run_trace.add_step("safety_check")
        ctx = safety_check_step(ctx)
        run_trace.add_step("ai_enrichment")
        enriched = await ai_enrichment_step(ctx, client, cancel=cancel, trace=run_trace)

        LOG.info(
            "enrichment_completed",
            extra={
                "extra_fields": {
                    "backend": getattr(client, "name", "unknown"),
                    "intent_level": ctx.intent_level,
                    "flags": list(ctx.safety_flags),
                    "input_len": len(ctx.user_message),
                    "output_len": len(enriched),
                    "duration_ms": run_trace.elapsed_ms(),
                }
            },
        )

    return PipelineResult(messages=[Message(role="assistant", content=enriched)], context=ctx)
