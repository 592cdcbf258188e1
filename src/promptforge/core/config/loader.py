"""Settings for the promptforge service.

Values come from an optional YAML file first, then from ``PROMPTFORGE_*``
environment variables, which always win.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any, Optional

import yaml
from pydantic import BaseModel, Field

LOG = logging.getLogger("promptforge.config")

_INT_FIELDS = frozenset({"mock_think_ms", "mock_chunk_ms", "port"})
_FLOAT_FIELDS = frozenset({"connect_timeout_s", "read_timeout_s"})


class _Unparsable(ValueError):
    pass


PROVIDER_DEFAULTS: dict[str, dict[str, str]] = {
    "ollama": {"base_url": "http://localhost:11434", "model": "llama3"},
    "openai": {"base_url": "https://api.openai.com/v1", "model": "gpt-3.5-turbo"},
}


class LLMSettings(BaseModel):
    provider: str = "mock"
    base_url: Optional[str] = None
    model: Optional[str] = None
    api_key: Optional[str] = None
    use_mock: bool = False
    mock_think_ms: int = 500
    mock_chunk_ms: int = 30

    def resolved_base_url(self, provider: str) -> str:
        return (self.base_url or PROVIDER_DEFAULTS[provider]["base_url"]).rstrip("/")

    def resolved_model(self, provider: str) -> str:
        return self.model or PROVIDER_DEFAULTS[provider]["model"]


class HTTPSettings(BaseModel):
    connect_timeout_s: float = 5.0
    read_timeout_s: Optional[float] = None


class APISettings(BaseModel):
    host: str = "127.0.0.1"
    port: int = 8080
    cors_origins: list[str] = Field(default_factory=lambda: ["http://localhost:3000"])


class Settings(BaseModel):
    llm: LLMSettings = Field(default_factory=LLMSettings)
    http: HTTPSettings = Field(default_factory=HTTPSettings)
    api: APISettings = Field(default_factory=APISettings)


_ENV_FIELDS: dict[str, tuple[str, str]] = {
    "PROMPTFORGE_LLM_PROVIDER": ("llm", "provider"),
    "PROMPTFORGE_LLM_BASE_URL": ("llm", "base_url"),
    "PROMPTFORGE_LLM_MODEL": ("llm", "model"),
    "PROMPTFORGE_LLM_API_KEY": ("llm", "api_key"),
    "PROMPTFORGE_USE_MOCK_LLM": ("llm", "use_mock"),
    "PROMPTFORGE_MOCK_THINK_MS": ("llm", "mock_think_ms"),
    "PROMPTFORGE_MOCK_CHUNK_MS": ("llm", "mock_chunk_ms"),
    "PROMPTFORGE_HTTP_CONNECT_TIMEOUT_S": ("http", "connect_timeout_s"),
    "PROMPTFORGE_HTTP_READ_TIMEOUT_S": ("http", "read_timeout_s"),
    "PROMPTFORGE_HOST": ("api", "host"),
    "PROMPTFORGE_PORT": ("api", "port"),
    "PROMPTFORGE_CORS_ORIGINS": ("api", "cors_origins"),
}


def _coerce(section: str, key: str, raw: str) -> Any:
    value = raw.strip()
    if key == "use_mock":
        return value.casefold() in {"on", "true", "1", "yes"}
    if key == "provider":
        return value.casefold() or "mock"
    if key == "cors_origins":
        return [origin.strip() for origin in value.split(",") if origin.strip()]
    if key in {"base_url", "model", "api_key", "read_timeout_s"} and not value:
        return None
    try:
        if key in _INT_FIELDS:
            return int(value)
        if key in _FLOAT_FIELDS:
            return float(value)
    except ValueError as exc:
        raise _Unparsable(value) from exc
    return value


def _read_yaml(path: Path) -> dict[str, Any]:
    with path.open("r", encoding="utf-8") as handle:
        data = yaml.safe_load(handle) or {}
    if not isinstance(data, dict):
        raise ValueError(f"config file must contain a mapping: {path}")
    return data


def load_settings(path: str | Path | None = None, env: Mapping[str, str] | None = None) -> Settings:
    environ = os.environ if env is None else env
    config_path = path or environ.get("PROMPTFORGE_CONFIG")

    data: dict[str, Any] = {}
    if config_path:
        data = _read_yaml(Path(config_path).expanduser())

    for name, (section, key) in _ENV_FIELDS.items():
        raw = environ.get(name)
        if raw is None:
            continue
        try:
            value = _coerce(section, key, raw)
        except _Unparsable:
            # a bad number keeps the file or default value
            LOG.warning("config_env_ignored", extra={"extra_fields": {"env": name, "value": raw}})
            continue
        bucket = data.get(section) or {}
        data[section] = bucket
        bucket[key] = value

    return Settings.model_validate(data)
