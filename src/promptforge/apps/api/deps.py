from __future__ import annotations

from fastapi import Depends, Request

from promptforge.core.config import Settings, load_settings
from promptforge.core.models.llm import LLMClient
from promptforge.core.models.llm_provider import create_llm_client
from promptforge.core.sessions.store import SessionStore


def get_settings() -> Settings:
    # read per request so backend choice follows the current environment
    return load_settings()


def get_llm_client(settings: Settings = Depends(get_settings)) -> LLMClient:
    return create_llm_client(settings)


def get_session_store(request: Request) -> SessionStore:
    store = getattr(request.app.state, "session_store", None)
    if not isinstance(store, SessionStore):
        raise RuntimeError("session store missing; it is created by the app lifespan at startup")
    return store
