from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from promptforge.core.enrichment.pipeline import MAX_PROMPT_CHARS
from promptforge.core.enrichment.schemas import IntentLevel


class _WireModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class EnrichRequest(_WireModel):
    message: str = Field(min_length=1, max_length=MAX_PROMPT_CHARS)
    session_id: str | None = Field(default=None, alias="sessionId")
    intent_level: IntentLevel = Field(default="casual", alias="intentLevel")


class EnrichMetadata(_WireModel):
    language: str
    intent: str
    safety_flags: list[str] = Field(default_factory=list, alias="safetyFlags")


class EnrichResponse(_WireModel):
    enriched_prompt: str = Field(alias="enrichedPrompt")
    metadata: EnrichMetadata


class ChatRequest(_WireModel):
    final_prompt: str = Field(min_length=1, alias="finalPrompt")
    session_id: str = Field(min_length=1, alias="sessionId")
    use_system_role: bool = Field(default=False, alias="useSystemRole")
