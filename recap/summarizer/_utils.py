"""Utility functions for budget sizing, truncation, and summary statistics."""

from __future__ import annotations

import math

from recap.constants import (
    CHARS_PER_TOKEN,
    DEFAULT_CHUNK_CHARS,
    MAX_CHUNK_CHARS,
    MIN_CHUNK_CHARS,
    MIN_CONTENT_CHARS,
    MIN_CONTENT_WORDS,
    SAFETY_MARGIN,
    WORDS_PER_MINUTE,
)
from recap.errors import ValidationError
from recap.summarizer.chunking import count_words
from recap.summarizer.models import SummaryStats


def effective_chunk_size(budget_hint: int | None) -> int:
    """Convert an engine token budget into a character chunk size.

    Uses ``CHARS_PER_TOKEN`` characters per token and keeps a ``SAFETY_MARGIN``
    of the budget, clamped to ``[MIN_CHUNK_CHARS, MAX_CHUNK_CHARS]``. Without a
    hint the conservative ``DEFAULT_CHUNK_CHARS`` is used.
    """
    if budget_hint is None or budget_hint <= 0:
        return DEFAULT_CHUNK_CHARS
    chars = int(budget_hint * CHARS_PER_TOKEN * SAFETY_MARGIN)
    return min(MAX_CHUNK_CHARS, max(MIN_CHUNK_CHARS, chars))


def truncate_content(content: str, max_length: int) -> str:
    """Cut content to ``max_length``, preferring paragraph or sentence ends.

    A boundary is only used when it falls within the last 20% of the window,
    so the result never loses more than a fifth of the allowed length.
    """
    if len(content) <= max_length:
        return content

    truncated = content[:max_length]
    threshold = len(truncated) * 0.8

    last_paragraph = truncated.rfind("\n\n")
    if last_paragraph > threshold:
        return truncated[:last_paragraph]

    last_sentence = max(truncated.rfind(". "), truncated.rfind("! "), truncated.rfind("? "))
    if last_sentence > threshold:
        return truncated[: last_sentence + 1]

    return truncated


def validate_content(content: str) -> str:
    """Check that content is long enough to be worth summarizing.

    Returns:
        The stripped content.

    Raises:
        ValidationError: If the content is too short or has too few words.

    """
    stripped = content.strip()
    if len(stripped) < MIN_CONTENT_CHARS:
        msg = (
            f"Content is too short to summarize (minimum {MIN_CONTENT_CHARS} characters). "
            f"Found {len(stripped)} characters."
        )
        raise ValidationError(msg)

    words = count_words(stripped)
    if words < MIN_CONTENT_WORDS:
        msg = f"Insufficient text. Found only {words} words, need at least {MIN_CONTENT_WORDS}."
        raise ValidationError(msg)

    return stripped


def reading_time_seconds(word_count: int) -> int:
    """Reading time in seconds at ``WORDS_PER_MINUTE``."""
    return math.ceil(word_count / WORDS_PER_MINUTE * 60)


def format_reading_time(seconds: int) -> str:
    """Format a reading time for display."""
    if seconds < 60:  # noqa: PLR2004
        return f"{seconds} sec"
    return f"{seconds // 60} min"


def compression_ratio(original_words: int, summary_words: int) -> int:
    """Percentage of words removed by the summary."""
    if original_words == 0:
        return 0
    return round((original_words - summary_words) / original_words * 100)


def generate_stats(original: str, summary: str) -> SummaryStats:
    """Compute word-level statistics for a summary."""
    original_words = count_words(original)
    summary_words = count_words(summary)
    return SummaryStats(
        original_word_count=original_words,
        summary_word_count=summary_words,
        compression_ratio=compression_ratio(original_words, summary_words),
        reading_time_seconds=reading_time_seconds(summary_words),
    )
