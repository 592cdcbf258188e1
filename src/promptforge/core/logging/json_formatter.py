from __future__ import annotations

import json
import logging
import traceback
from datetime import datetime, timezone
from typing import Any

from .context import get_log_context
from .redact import redact_string


def _scrub(value: object) -> object:
    return redact_string(value) if isinstance(value, str) else value


def _exception_fields(exc_info: Any) -> dict[str, str]:
    exc_type, exc_value, exc_tb = exc_info
    return {
        "exc_type": exc_type.__name__ if exc_type else "Exception",
        "exc_msg": redact_string(str(exc_value)) if exc_value else "",
        "stack": redact_string("".join(traceback.format_exception(exc_type, exc_value, exc_tb))),
    }


class JSONFormatter(logging.Formatter):
    """One JSON object per line; string fields pass through secret redaction."""

    def format(self, record: logging.LogRecord) -> str:
        stamp = datetime.fromtimestamp(record.created, tz=timezone.utc)
        payload: dict[str, object] = {
            "ts_iso_utc": stamp.isoformat(timespec="milliseconds").replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "msg": redact_string(record.getMessage()),
            **get_log_context(),
        }

        fields = getattr(record, "extra_fields", None)
        if isinstance(fields, dict):
            payload.update((key, _scrub(value)) for key, value in fields.items())

        if record.exc_info:
            payload.update(_exception_fields(record.exc_info))

        return json.dumps(payload, separators=(",", ":"), ensure_ascii=False, default=str)
