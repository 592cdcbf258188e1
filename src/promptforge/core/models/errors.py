from __future__ import annotations


class LLMError(RuntimeError):
    """Base error for model backend operations."""


class LLMBackendError(LLMError):
    def __init__(self, message: str, status_code: int | None = None, body: str | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class LLMConfigurationError(LLMBackendError):
    """Raised before any network call when a backend is missing required settings."""


class LLMCancelledError(LLMError):
    """The caller stopped the operation; not a failure."""

    def __init__(self, reason: str = "cancelled") -> None:
        super().__init__(reason)
        self.reason = reason
