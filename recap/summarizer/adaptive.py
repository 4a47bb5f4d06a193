"""Engine-backed summarization front end.

Validates the content, sizes chunks from the engine's input budget, and runs
the map-reduce pipeline with a unit summarizer that opens a fresh engine
session for every call.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from recap.engine.base import open_session
from recap.streaming.session import StreamSession
from recap.summarizer._prompts import SYSTEM_PROMPT, build_shared_context, format_unit_prompt
from recap.summarizer._utils import effective_chunk_size, generate_stats, validate_content
from recap.summarizer.map_reduce import summarize_large
from recap.summarizer.models import SummarizerConfig, SummaryResult

if TYPE_CHECKING:
    from collections.abc import Callable

    from recap.engine.base import Engine
    from recap.summarizer.models import DetailLevel, ProgressCallback, SummarizeUnit

logger = logging.getLogger(__name__)

__all__ = [
    "SummarizerConfig",
    "make_unit_summarizer",
    "summarize",
]


def make_unit_summarizer(
    engine: Engine,
    config: SummarizerConfig,
    *,
    on_delta: Callable[[str], None] | None = None,
) -> SummarizeUnit:
    """Build a ``summarize_unit`` coroutine backed by ``engine``.

    Each call owns one engine session, destroyed on every exit path. With
    ``config.streaming`` the response is streamed and ``on_delta`` receives
    the text accumulated so far for the current unit.
    """
    options = {
        "system_prompt": SYSTEM_PROMPT,
        "temperature": config.temperature,
        "max_tokens": config.max_tokens,
    }

    async def summarize_unit(chunk: str, shared_context: str | None) -> str:
        prompt = format_unit_prompt(chunk, shared_context)
        async with open_session(engine, config.kind, options) as session:
            if not config.streaming:
                return await session.generate(prompt)

            text = ""
            async with StreamSession(session.generate_streaming(prompt)) as stream:
                async for delta in stream:
                    text += delta
                    if on_delta is not None:
                        on_delta(text)
            return text.strip()

    return summarize_unit


async def summarize(
    content: str,
    engine: Engine,
    config: SummarizerConfig,
    *,
    detail_level: DetailLevel = "standard",
    context: str | None = None,
    on_progress: ProgressCallback | None = None,
    on_delta: Callable[[str], None] | None = None,
) -> SummaryResult:
    """Summarize content of any length with the given engine.

    Args:
        content: The content to summarize.
        engine: Engine that serves the unit summaries.
        config: Summarizer configuration.
        detail_level: How many key points to ask for when ``config`` asks for
            key points without an explicit length.
        context: Extra instructions added to every unit prompt.
        on_progress: Optional ``(current, total, stage)`` callback.
        on_delta: With streaming enabled, receives the text of the current unit.

    Returns:
        SummaryResult with the summary and statistics.

    Raises:
        ValidationError: If the content is too short to summarize.
        RecapError: Classified engine failures.

    Examples:
        # Brief summary with a local Ollama model
        engine = OpenAIEngine("http://localhost:11434/v1", "llama3.1:8b")
        result = await summarize(article, engine, SummarizerConfig(model="llama3.1:8b"),
                                 detail_level="brief")

        # One-sentence TL;DR in plain text
        config = SummarizerConfig(model="llama3.1:8b", summary_type="tldr",
                                  length="short", summary_format="plain-text")
        result = await summarize(article, engine, config)

    """
    content = validate_content(content)
    shared_context = build_shared_context(
        detail_level,
        context,
        summary_type=config.summary_type,
        length=config.length,
        summary_format=config.summary_format,
    )
    budget_hint = await engine.input_budget(config.kind)
    chunk_size = effective_chunk_size(budget_hint)

    unit = make_unit_summarizer(engine, config, on_delta=on_delta)
    calls = 0

    async def counted_unit(chunk: str, unit_context: str | None) -> str:
        nonlocal calls
        calls += 1
        return await unit(chunk, unit_context)

    logger.info(
        "Summarizing %d characters with %s (type=%s, length=%s, detail=%s, budget=%s)",
        len(content),
        config.model,
        config.summary_type,
        config.length,
        detail_level,
        budget_hint,
    )
    summary = await summarize_large(
        content,
        counted_unit,
        budget_hint=budget_hint,
        max_depth=config.max_depth,
        shared_context=shared_context,
        on_progress=on_progress,
        overlap=config.overlap,
    )

    return SummaryResult(
        summary=summary,
        input_chars=len(content),
        output_chars=len(summary),
        chunk_size=chunk_size,
        unit_calls=calls,
        stats=generate_stats(content, summary),
    )
