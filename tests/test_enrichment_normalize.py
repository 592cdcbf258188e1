from __future__ import annotations

from promptforge.core.enrichment.pipeline import MAX_PROMPT_CHARS, new_context, normalize_step


def _normalize(text: str) -> str:
    return normalize_step(new_context(text)).user_message


def test_normalize_collapses_whitespace_and_trims() -> None:
    assert _normalize("  hello   world  ") == "hello world"


def test_normalize_folds_tabs_and_newlines_into_single_spaces() -> None:
    assert _normalize("first\t\tsecond\n\nthird\r\n") == "first second third"


def test_normalize_whitespace_only_becomes_empty() -> None:
    assert _normalize(" \n\t  ") == ""


def test_normalize_is_idempotent() -> None:
    samples = [
        "  hello   world  ",
        "already clean",
        "x" * (MAX_PROMPT_CHARS + 100),
        "a" * (MAX_PROMPT_CHARS - 1) + "   tail",
        "שלום   עולם",
    ]
    for sample in samples:
        once = _normalize(sample)
        assert _normalize(once) == once


def test_normalize_truncates_to_limit() -> None:
    out = _normalize("y" * (MAX_PROMPT_CHARS + 500))
    assert len(out) == MAX_PROMPT_CHARS


def test_normalize_never_ends_on_space_at_truncation_boundary() -> None:
    out = _normalize("a" * (MAX_PROMPT_CHARS - 1) + " bbbb")
    assert len(out) <= MAX_PROMPT_CHARS
    assert not out.endswith(" ")


def test_normalize_keeps_other_context_fields() -> None:
    ctx = new_context("  what   is this?  ", session_id="s-1", intent_level="academic")
    out = normalize_step(ctx)
    assert out.session_id == "s-1"
    assert out.request_id == ctx.request_id
    assert out.intent_level == "academic"
    assert ctx.user_message == "  what   is this?  "
