from __future__ import annotations

import logging
from dataclasses import dataclass

import httpx

from promptforge.core.config import Settings

from .llm import LLMClient
from .llm_mock import MockLLMClient
from .llm_ollama import OllamaClient
from .llm_openai_compat import OpenAICompatClient

LOG = logging.getLogger("promptforge.llm")


@dataclass(frozen=True)
class BackendSelection:
    name: str
    model: str | None
    base_url: str | None


def select_backend(settings: Settings) -> BackendSelection:
    """Pick the backend for a configuration.

    Order: forced mock, then an explicit ``ollama`` provider, then any hosted
    credential, and finally the simulator. No state is kept between calls.
    """
    llm = settings.llm
    if llm.use_mock:
        return BackendSelection(name="mock", model=None, base_url=None)
    if llm.provider == "ollama":
        return BackendSelection(name="ollama", model=llm.resolved_model("ollama"), base_url=llm.resolved_base_url("ollama"))
    if llm.api_key:
        return BackendSelection(name="openai", model=llm.resolved_model("openai"), base_url=llm.resolved_base_url("openai"))
    return BackendSelection(name="mock", model=None, base_url=None)


def create_llm_client(settings: Settings, transport: httpx.AsyncBaseTransport | None = None) -> LLMClient:
    selection = select_backend(settings)
    LOG.debug("llm_backend_selected", extra={"extra_fields": {"backend": selection.name, "model": selection.model}})

    if selection.name == "ollama":
        return OllamaClient(
            base_url=selection.base_url or "",
            model=selection.model or "",
            http_settings=settings.http,
            transport=transport,
        )
    if selection.name == "openai":
        return OpenAICompatClient(
            api_key=settings.llm.api_key,
            base_url=selection.base_url or "",
            model=selection.model or "",
            http_settings=settings.http,
            transport=transport,
        )
    return MockLLMClient(
        think_delay_s=settings.llm.mock_think_ms / 1000.0,
        chunk_delay_s=settings.llm.mock_chunk_ms / 1000.0,
    )
