from __future__ import annotations

from promptforge.core.enrichment.detect import detect_intent, detect_language
from promptforge.core.enrichment.prompts import build_rewrite_prompt, intent_instructions
from promptforge.core.enrichment.schemas import INTENT_LEVELS, coerce_intent_level


def test_detect_language() -> None:
    assert detect_language("שלום עולם") == "he"
    assert detect_language("hello world") == "en"
    assert detect_language("מה זה API?") == "he"
    assert detect_language("12345 !?") == "other"


def test_detect_intent_categories() -> None:
    assert detect_intent("Fix this python bug please") == "code"
    assert detect_intent("Plan a three day trip to Rome") == "planning"
    assert detect_intent("Write an email to my landlord") == "writing"
    assert detect_intent("How do plants grow?") == "question"
    assert detect_intent("bread recipes?") == "question"
    assert detect_intent("hello there") == "other"
    assert detect_intent("   ") == "other"


def test_every_intent_level_has_distinct_instructions() -> None:
    blocks = {level: intent_instructions(level) for level in INTENT_LEVELS}
    assert len(set(blocks.values())) == len(INTENT_LEVELS)
    assert "academic instructor" in blocks["academic"]
    assert "in-depth explanation" in blocks["deep-dive"]


def test_unknown_intent_level_falls_back_to_casual() -> None:
    assert intent_instructions("shouty") == intent_instructions("casual")
    assert intent_instructions(None) == intent_instructions("casual")
    assert coerce_intent_level("shouty") == "casual"
    assert coerce_intent_level("deep-dive") == "deep-dive"


def test_rewrite_prompt_embeds_message_and_instructions() -> None:
    prompt = build_rewrite_prompt("explain monads", "academic")
    assert '"explain monads"' in prompt
    assert intent_instructions("academic") in prompt
    assert prompt.endswith("Enriched Prompt:")
