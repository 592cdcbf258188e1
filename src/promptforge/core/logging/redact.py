from __future__ import annotations

import re

_SECRET_VALUE_RE = re.compile(r"(?i)(api[_-]?key|token|secret)(\s*[=:]\s*)([^\s,;\"']+)")
_BEARER_RE = re.compile(r"(?i)(bearer\s+)([^\s\"']+)")
_OPENAI_KEY_RE = re.compile(r"sk-[A-Za-z0-9_\-]{8,}")


def redact_string(s: str) -> str:
    redacted = _SECRET_VALUE_RE.sub(lambda m: f"{m.group(1)}{m.group(2)}***", s)
    redacted = _BEARER_RE.sub(lambda m: f"{m.group(1)}***", redacted)
    return _OPENAI_KEY_RE.sub("sk-***", redacted)


def truncate(s: str, limit: int = 500) -> str:
    if len(s) <= limit:
        return s
    return s[:limit] + "…"
