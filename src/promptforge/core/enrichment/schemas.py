from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Literal

from promptforge.core.models.schemas import Message

IntentLevel = Literal["casual", "academic", "concise", "deep-dive"]
Language = Literal["he", "en", "other"]
IntentCategory = Literal["question", "code", "writing", "planning", "other"]

INTENT_LEVELS: tuple[str, ...] = ("casual", "academic", "concise", "deep-dive")
DEFAULT_INTENT_LEVEL: IntentLevel = "casual"


def coerce_intent_level(value: str | None) -> IntentLevel:
    if value in INTENT_LEVELS:
        return value  # type: ignore[return-value]
    return DEFAULT_INTENT_LEVEL


@dataclass(frozen=True)
class EnrichmentContext:
    request_id: str
    session_id: str
    user_message: str
    intent_level: IntentLevel = DEFAULT_INTENT_LEVEL
    language: Language = "en"
    intent: IntentCategory = "other"
    safety_flags: tuple[str, ...] = field(default_factory=tuple)

    def with_message(self, user_message: str) -> EnrichmentContext:
        return replace(self, user_message=user_message)

    def with_flag(self, flag: str) -> EnrichmentContext:
        if flag in self.safety_flags:
            return self
        return replace(self, safety_flags=self.safety_flags + (flag,))

    def metadata(self) -> dict[str, object]:
        return {
            "language": self.language,
            "intent": self.intent,
            "safetyFlags": list(self.safety_flags),
        }


@dataclass(frozen=True)
class PipelineResult:
    messages: list[Message]
    context: EnrichmentContext
