from __future__ import annotations

import codecs
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

import httpx

from promptforge.core.config import HTTPSettings
from promptforge.core.infra.cancellation import CancellationToken, guarded
from promptforge.core.logging.redact import redact_string, truncate
from promptforge.core.models.errors import LLMBackendError

_DEFAULT_USER_AGENT = "promptforge/0.1"

LOG = logging.getLogger("promptforge.http")


def build_timeout(settings: HTTPSettings) -> httpx.Timeout:
    # read stays unbounded unless configured
    return httpx.Timeout(settings.read_timeout_s, connect=max(0.1, settings.connect_timeout_s))


def build_http_client(
    settings: HTTPSettings | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> httpx.AsyncClient:
    cfg = settings or HTTPSettings()
    return httpx.AsyncClient(
        timeout=build_timeout(cfg),
        headers={"User-Agent": _DEFAULT_USER_AGENT},
        transport=transport,
    )


@asynccontextmanager
async def open_stream(
    client: httpx.AsyncClient,
    url: str,
    *,
    json: Any,
    headers: dict[str, str] | None = None,
    cancel: CancellationToken | None = None,
    label: str = "backend",
) -> AsyncIterator[httpx.Response]:
    request = client.build_request("POST", url, json=json, headers=headers)
    try:
        response = await guarded(cancel, client.send(request, stream=True))
    except httpx.HTTPError as exc:
        raise LLMBackendError(f"{label} request failed: {exc.__class__.__name__}: {exc}") from exc

    try:
        if not response.is_success:
            raw = await guarded(cancel, response.aread())
            body = raw.decode("utf-8", errors="replace")
            LOG.warning(
                "backend_http_error",
                extra={"extra_fields": {"backend": label, "status": response.status_code, "body": truncate(redact_string(body))}},
            )
            raise LLMBackendError(
                f"{label} API Error: {response.reason_phrase} ({response.status_code}) - {body}",
                status_code=response.status_code,
                body=body,
            )
        yield response
    finally:
        await response.aclose()


async def iter_lines(
    response: httpx.Response,
    cancel: CancellationToken | None = None,
    label: str = "backend",
) -> AsyncIterator[str]:
    """Yield complete lines from a streamed body, holding partial lines across reads.

    A final line without a trailing newline is yielded once the body ends.
    """
    decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
    chunks = response.aiter_bytes()
    buffer = ""
    received = False

    while True:
        try:
            chunk = await guarded(cancel, anext(chunks, None))
        except httpx.HTTPError as exc:
            raise LLMBackendError(f"{label} stream failed: {exc.__class__.__name__}: {exc}") from exc
        if chunk is None:
            break
        if not chunk:
            continue
        received = True
        buffer += decoder.decode(chunk)
        *lines, buffer = buffer.split("\n")
        for line in lines:
            yield line

    buffer += decoder.decode(b"", final=True)
    if not received:
        raise LLMBackendError(f"No response body received from {label}", status_code=response.status_code)
    if buffer:
        yield buffer


async def probe(url: str, settings: HTTPSettings | None = None, transport: httpx.AsyncBaseTransport | None = None) -> bool:
    cfg = (settings or HTTPSettings()).model_copy(update={"read_timeout_s": 1.0, "connect_timeout_s": 1.0})
    async with build_http_client(cfg, transport=transport) as client:
        try:
            response = await client.get(url)
        except httpx.HTTPError:
            return False
    return response.is_success
