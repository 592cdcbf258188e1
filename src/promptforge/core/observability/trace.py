from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Any


@dataclass
class Trace:
    """In-process event log for one enrichment or chat run."""

    operation: str
    request_id: str | None = None
    session_id: str | None = None
    steps: list[str] = field(default_factory=list)
    events: list[dict[str, Any]] = field(default_factory=list)
    _started: float = field(default_factory=time.perf_counter, repr=False)

    def add_step(self, step: str) -> None:
        self.steps.append(step)

    def emit(self, name: str, payload: dict[str, Any] | None = None) -> None:
        enriched_payload = dict(payload or {})
        if self.request_id:
            enriched_payload.setdefault("request_id", self.request_id)
        if self.session_id:
            enriched_payload.setdefault("session_id", self.session_id)
        enriched_payload.setdefault("elapsed_ms", self.elapsed_ms())
        self.events.append({"event": name, "payload": enriched_payload})

    def elapsed_ms(self) -> int:
        return int((time.perf_counter() - self._started) * 1000)

    def event_names(self) -> list[str]:
        return [event["event"] for event in self.events]
