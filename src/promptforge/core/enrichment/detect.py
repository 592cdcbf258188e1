from __future__ import annotations

import re

from .schemas import IntentCategory, Language

_HEBREW_RE = re.compile("[\u0590-\u05FF]")
_LATIN_RE = re.compile(r"[A-Za-z]")

_CODE_HINTS = re.compile(
    r"(```|\bdef |\bclass |\bfunction\b|\bimport\b|\bsql\b|\bpython\b|\bjavascript\b|\btypescript\b|\bbug\b|\bcompile|\bscript\b|\bregex\b|\bapi\b)",
    re.IGNORECASE,
)
_PLANNING_HINTS = re.compile(r"\b(plan|roadmap|schedule|itinerary|steps to|strategy|timeline|milestones?)\b", re.IGNORECASE)
_WRITING_HINTS = re.compile(r"\b(write|draft|essay|email|letter|poem|story|blog|rewrite|summari[sz]e)\b", re.IGNORECASE)
_QUESTION_WORDS = re.compile(r"^(who|what|when|where|why|how|which|is|are|can|could|should|does|do)\b", re.IGNORECASE)


def detect_language(text: str) -> Language:
    hebrew = len(_HEBREW_RE.findall(text))
    latin = len(_LATIN_RE.findall(text))
    if hebrew and hebrew >= latin:
        return "he"
    if latin:
        return "en"
    return "other"


def detect_intent(text: str) -> IntentCategory:
    stripped = text.strip()
    if not stripped:
        return "other"
    if _CODE_HINTS.search(stripped):
        return "code"
    if _PLANNING_HINTS.search(stripped):
        return "planning"
    if _WRITING_HINTS.search(stripped):
        return "writing"
    if stripped.endswith("?") or _QUESTION_WORDS.match(stripped):
        return "question"
    return "other"
