from __future__ import annotations

import json

DONE_FRAME = "data: [DONE]\n\n"
STREAM_ABORTED = "Stream aborted"
STREAM_INTERRUPTED = "Stream interrupted"


def data_frame(payload: dict[str, object]) -> str:
    # compact separators, same bytes as JSON.stringify
    return f"data: {json.dumps(payload, ensure_ascii=False, separators=(',', ':'))}\n\n"


def content_frame(fragment: str) -> str:
    return data_frame({"content": fragment})


def error_frame(message: str) -> str:
    return data_frame({"error": message})
