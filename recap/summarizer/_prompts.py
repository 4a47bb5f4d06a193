"""Prompt templates for engine-backed summarization.

The engine sees one bounded unit at a time, so every prompt is self-contained:
the shared context (summary shape, format, and any caller instructions) is
repeated in each call.
"""

from __future__ import annotations

SYSTEM_PROMPT = "You are a concise summarizer. Output only the summary, no preamble."

DETAIL_INSTRUCTIONS = {
    "brief": "Provide 3-5 concise key points. Be brief and to the point.",
    "standard": "Provide 5-8 clear key points with adequate detail.",
    "detailed": "Provide 8-12 detailed key points with explanations and context.",
    "comprehensive": (
        "Provide a comprehensive analysis with 12 or more points. Include all important "
        "details, explanations, and relevant context."
    ),
}

SUMMARY_TYPE_LABELS = {
    "key-points": "Key Points",
    "tldr": "TL;DR",
    "teaser": "Teaser",
    "headline": "Headline",
}

# Target size of each summary type per length
SUMMARY_LENGTHS = {
    "key-points": {"short": "3 bullets", "medium": "5 bullets", "long": "7 bullets"},
    "tldr": {"short": "1 sentence", "medium": "3 sentences", "long": "5 sentences"},
    "teaser": {"short": "1 sentence", "medium": "3 sentences", "long": "5 sentences"},
    "headline": {"short": "12 words", "medium": "17 words", "long": "22 words"},
}

TYPE_INSTRUCTIONS = {
    "key-points": "Provide the most important key points as exactly {size}.",
    "tldr": "Write a short, direct TL;DR of {size} that captures the gist.",
    "teaser": (
        "Write an intriguing teaser of {size} that makes the reader want to read "
        "the full text."
    ),
    "headline": "Write a single headline of about {size} that captures the main point.",
}

FORMAT_INSTRUCTIONS = {
    "markdown": "Format the summary as Markdown.",
    "plain-text": "Use plain text only, with no Markdown formatting.",
}

UNIT_SUMMARY_PROMPT = """Summarize the following content.
Capture the main points while preserving important details.
If the content consists of several section summaries separated by ---,
combine them into a single coherent overview without repeating yourself.

{context}

Content:
{content}

Summary:""".strip()


def build_shared_context(
    detail_level: str,
    context: str | None = None,
    *,
    summary_type: str = "key-points",
    length: str | None = None,
    summary_format: str = "markdown",
) -> str:
    """Build the instructions repeated in every unit prompt.

    Key points without an explicit ``length`` follow the detail level. Any
    other type, or an explicit length, asks for the size of that type and
    length instead.
    """
    if summary_type == "key-points" and length is None:
        parts = [DETAIL_INSTRUCTIONS.get(detail_level, DETAIL_INSTRUCTIONS["standard"])]
    else:
        size = SUMMARY_LENGTHS[summary_type][length or "medium"]
        parts = [TYPE_INSTRUCTIONS[summary_type].format(size=size)]
    parts.append(FORMAT_INSTRUCTIONS[summary_format])
    if context:
        parts.append(context.strip())
    return " ".join(parts)


def format_summary_label(summary_type: str, length: str | None = None) -> str:
    """Return a display label such as ``Key Points (5 bullets)``."""
    label = SUMMARY_TYPE_LABELS.get(summary_type, summary_type)
    size = SUMMARY_LENGTHS.get(summary_type, {}).get(length or "")
    return f"{label} ({size})" if size else label


def format_unit_prompt(content: str, shared_context: str | None) -> str:
    """Format the prompt for a single summarize-unit call."""
    return UNIT_SUMMARY_PROMPT.format(
        content=content,
        context=f"Instructions: {shared_context}" if shared_context else "",
    )
