from __future__ import annotations

from .schemas import IntentLevel

SAFETY_REFUSAL = "I cannot fulfill this request due to safety concerns."

REWRITER_SYSTEM_PROMPT = "You are a professional Prompt Engineer."

_INTENT_INSTRUCTIONS: dict[str, str] = {
    "casual": (
        "You are a friendly and knowledgeable assistant.\n"
        "Explain concepts clearly and intuitively.\n"
        "Use simple language and examples.\n"
        "Avoid unnecessary formalism or deep theory unless explicitly requested."
    ),
    "academic": (
        "You are an academic instructor.\n"
        "Provide formal definitions and structured explanations.\n"
        "Use precise terminology and clear organization.\n"
        "Assume the reader is a university-level student."
    ),
    "concise": (
        "You are a concise expert assistant.\n"
        "Provide a short, direct answer.\n"
        "Focus only on the most important points.\n"
        "Avoid long explanations, examples, or repetition."
    ),
    "deep-dive": (
        "You are an expert providing an in-depth explanation.\n"
        "Cover theory, structure, edge cases, and implications.\n"
        "Include detailed explanations and multiple perspectives.\n"
        "Assume a technically advanced audience."
    ),
}


def intent_instructions(level: IntentLevel | str | None) -> str:
    return _INTENT_INSTRUCTIONS.get(level or "casual", _INTENT_INSTRUCTIONS["casual"])


def build_rewrite_prompt(user_message: str, level: IntentLevel | str | None) -> str:
    return (
        "You are a professional Prompt Engineer.\n"
        "Your goal is to rewrite the user's prompt to be more effective, precise, and robust for an LLM.\n"
        "Retain the user's original intent but improve clarity, context, and structure.\n"
        "Do not answer the user's prompt. Only rewrite it.\n"
        "\n"
        "IMPORTANT: The rewritten prompt should be self-contained and strictly instructions for the model.\n"
        'Do not include conversational filler like "Here is the improved prompt".\n'
        "Do not include the user's original request in the output, only the enhanced version.\n"
        "Embed the following persona/intent instructions into the rewritten prompt:\n"
        f'"{intent_instructions(level)}"\n'
        "\n"
        "User's Original Prompt:\n"
        f'"{user_message}"\n'
        "\n"
        "Enriched Prompt:"
    )
