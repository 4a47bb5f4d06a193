"""Recursive map-reduce summarization over bounded chunks.

Simple algorithm:
1. Map: split content into chunks and summarize each one, in source order
2. Reduce: join the summaries; if they still exceed the chunk size, recurse
3. Combine: with several summaries that fit, make one final combining call

The engine exposes one exclusive session at a time, so units are summarized
sequentially. Depth is bounded by ``max_depth``; past it the content is
truncated instead of summarized, which is lossy but never raises.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from recap.constants import DEFAULT_CHUNK_OVERLAP, DEFAULT_MAX_DEPTH, SUMMARY_SEPARATOR
from recap.summarizer._utils import effective_chunk_size, truncate_content
from recap.summarizer.chunking import ChunkingOptions, chunk_text

if TYPE_CHECKING:
    from recap.summarizer.models import ProgressCallback, SummarizeUnit

logger = logging.getLogger(__name__)


async def summarize_large(
    text: str,
    summarize_unit: SummarizeUnit,
    *,
    budget_hint: int | None = None,
    max_depth: int = DEFAULT_MAX_DEPTH,
    shared_context: str | None = None,
    on_progress: ProgressCallback | None = None,
    overlap: int = DEFAULT_CHUNK_OVERLAP,
) -> str:
    """Summarize text of any length down to a single bounded summary.

    Args:
        text: The content to summarize.
        summarize_unit: Coroutine that summarizes one bounded unit.
        budget_hint: Engine input capacity in tokens, if known.
        max_depth: Maximum number of reduce levels before truncating.
        shared_context: Instructions passed to every unit call.
        on_progress: Optional ``(current, total, stage)`` callback.
        overlap: Characters shared between consecutive chunks.

    Returns:
        The final summary. Empty input gives an empty string.

    """
    if not text or not text.strip():
        return ""

    # Sized once per call; the engine's hint may change between calls
    chunk_size = effective_chunk_size(budget_hint)
    logger.info(
        "Summarizing %d characters (chunk_size=%d, max_depth=%d)",
        len(text),
        chunk_size,
        max_depth,
    )
    return await reduce_content(
        text,
        0,
        chunk_size=chunk_size,
        summarize_unit=summarize_unit,
        max_depth=max_depth,
        overlap=overlap,
        shared_context=shared_context,
        on_progress=on_progress,
    )


async def reduce_content(
    content: str,
    depth: int,
    *,
    chunk_size: int,
    summarize_unit: SummarizeUnit,
    max_depth: int = DEFAULT_MAX_DEPTH,
    overlap: int = DEFAULT_CHUNK_OVERLAP,
    shared_context: str | None = None,
    on_progress: ProgressCallback | None = None,
) -> str:
    """Reduce ``content`` at recursion level ``depth`` to a bounded summary."""
    if depth >= max_depth:
        logger.warning(
            "Hit max depth %d with %d characters, returning truncated content",
            max_depth,
            len(content),
        )
        return truncate_content(content, chunk_size)

    if len(content) <= chunk_size:
        _report(on_progress, 0, 1, "Summarizing")
        summary = await summarize_unit(content, shared_context)
        _report(on_progress, 1, 1, "Summarizing")
        return summary

    options = ChunkingOptions(max_chunk_size=chunk_size, overlap=min(overlap, chunk_size // 2))
    chunks = chunk_text(content, options)
    total = len(chunks)
    stage = f"Summarizing chunks (level {depth + 1})"
    logger.info("Reduce level %d: summarizing %d chunks", depth + 1, total)

    _report(on_progress, 0, total, stage)
    summaries: list[str] = []
    for index, chunk in enumerate(chunks):
        summaries.append(await summarize_unit(chunk, shared_context))
        _report(on_progress, index + 1, total, stage)

    combined = SUMMARY_SEPARATOR.join(summaries)
    if len(combined) > chunk_size:
        logger.info(
            "Combined summaries still %d characters (> %d), recursing",
            len(combined),
            chunk_size,
        )
        return await reduce_content(
            combined,
            depth + 1,
            chunk_size=chunk_size,
            summarize_unit=summarize_unit,
            max_depth=max_depth,
            overlap=overlap,
            shared_context=shared_context,
            on_progress=on_progress,
        )

    if len(summaries) == 1:
        return summaries[0]

    _report(on_progress, 0, 1, "Combining summaries")
    final = await summarize_unit(combined, shared_context)
    _report(on_progress, 1, 1, "Combining summaries")
    return final


def _report(on_progress: ProgressCallback | None, current: int, total: int, stage: str) -> None:
    if on_progress is not None:
        on_progress(current, total, stage)
