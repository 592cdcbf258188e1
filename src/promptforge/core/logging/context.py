from __future__ import annotations

from contextlib import contextmanager
from contextvars import ContextVar, Token
from typing import Iterator

CONTEXT_FIELDS = ("correlation_id", "request_id", "session_id")

_VARS: dict[str, ContextVar[str | None]] = {name: ContextVar(name, default=None) for name in CONTEXT_FIELDS}

ContextTokens = dict[str, Token[str | None]]


def set_context(**values: str | None) -> ContextTokens:
    """Bind the given ids for the current task; unknown names and ``None`` are ignored."""
    return {
        name: _VARS[name].set(value)
        for name, value in values.items()
        if name in _VARS and value is not None
    }


def reset_context(tokens: ContextTokens) -> None:
    for name, token in tokens.items():
        _VARS[name].reset(token)


@contextmanager
def log_context(
    correlation_id: str | None = None,
    request_id: str | None = None,
    session_id: str | None = None,
) -> Iterator[None]:
    # None leaves an outer value in place
    tokens = set_context(correlation_id=correlation_id, request_id=request_id, session_id=session_id)
    try:
        yield
    finally:
        reset_context(tokens)


def get_log_context() -> dict[str, str]:
    bound = ((name, var.get()) for name, var in _VARS.items())
    return {name: value for name, value in bound if value is not None}
