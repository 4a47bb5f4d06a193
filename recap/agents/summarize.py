"""Summarize text files or stdin using recursive map-reduce summarization."""

from __future__ import annotations

import asyncio
import contextlib
import json
import sys
import time
from enum import Enum
from pathlib import Path  # noqa: TC003
from typing import TYPE_CHECKING

import typer
from rich.live import Live
from rich.panel import Panel
from rich.text import Text

from recap import config, opts
from recap.cli import app
from recap.core.utils import (
    console,
    create_status,
    print_command_line_args,
    print_error_message,
    print_input_panel,
    print_output_panel,
    print_with_style,
    setup_logging,
)
from recap.engine.openai import OpenAIEngine
from recap.errors import RecapError
from recap.summarizer import SummarizerConfig, summarize
from recap.summarizer._prompts import format_summary_label
from recap.summarizer._utils import format_reading_time

if TYPE_CHECKING:
    from rich.status import Status

    from recap.summarizer import SummaryResult


class DetailLevel(str, Enum):
    """How detailed the summary should be."""

    brief = "brief"
    standard = "standard"
    detailed = "detailed"
    comprehensive = "comprehensive"


class SummaryType(str, Enum):
    """Shape of the summary."""

    key_points = "key-points"
    tldr = "tldr"
    teaser = "teaser"
    headline = "headline"


class SummaryLength(str, Enum):
    """Target size of the summary."""

    short = "short"
    medium = "medium"
    long = "long"


class SummaryFormat(str, Enum):
    """Markup used inside the summary text."""

    markdown = "markdown"
    plain_text = "plain-text"


class OutputFormat(str, Enum):
    """Output format for the summarization result."""

    text = "text"
    json = "json"


def _read_input(file_path: Path | None) -> str | None:
    """Read input from file or stdin."""
    if file_path:
        if not file_path.exists():
            print_error_message(
                f"File not found: {file_path}",
                "Please check the file path and try again.",
            )
            return None
        return file_path.read_text(encoding="utf-8")

    if sys.stdin.isatty():
        print_error_message(
            "No input provided",
            "Provide a file path or pipe content via stdin.",
        )
        return None

    return sys.stdin.read()


def _display_input_preview(
    content: str,
    *,
    quiet: bool,
    max_preview_chars: int = 500,
) -> None:
    """Display a preview of the input content."""
    if quiet:
        return

    preview = content[:max_preview_chars]
    if len(content) > max_preview_chars:
        preview += f"\n... [{len(content) - max_preview_chars} more characters]"

    print_input_panel(preview, title=f"Input ({len(content):,} characters)")


def _display_result(
    result: SummaryResult,
    elapsed: float,
    output_format: OutputFormat,
    *,
    quiet: bool,
    title: str = "Summary",
) -> None:
    """Display the summarization result."""
    if output_format == OutputFormat.json:
        print(json.dumps(result.model_dump(mode="json"), indent=2))
        return

    if quiet:
        if result.summary:
            print(result.summary)
        return

    if not result.summary:
        print_with_style("No summary generated.", style="yellow")
        return

    stats = result.stats
    print_output_panel(
        result.summary,
        title=title,
        subtitle=(
            f"[dim]{stats.summary_word_count:,} words | {stats.compression_ratio}% shorter | "
            f"{format_reading_time(stats.reading_time_seconds)} read | "
            f"{result.unit_calls} calls | {elapsed:.2f}s[/dim]"
        ),
    )


def _unit_panel(text: str, stage: str) -> Panel:
    """Panel showing the unit summary currently being streamed."""
    return Panel(
        Text(text),
        title=f"[bold yellow]{stage}[/bold yellow]",
        border_style="yellow",
    )


async def _async_summarize(
    content: str,
    *,
    detail_level: DetailLevel,
    context: str | None,
    summary_type: SummaryType,
    length: SummaryLength | None,
    summary_format: SummaryFormat,
    engine_cfg: config.Engine,
    chunking_cfg: config.Chunking,
    general_cfg: config.General,
    stream: bool,
    output_format: OutputFormat,
) -> None:
    """Asynchronous summarization entry point."""
    setup_logging(general_cfg.log_level, general_cfg.log_file, quiet=general_cfg.quiet)
    _display_input_preview(content, quiet=general_cfg.quiet or output_format == OutputFormat.json)

    engine = OpenAIEngine(
        engine_cfg.base_url,
        engine_cfg.model,
        engine_cfg.api_key,
        context_tokens=engine_cfg.context_tokens,
    )
    length_value = length.value if length else None
    summarizer_config = SummarizerConfig(
        model=engine_cfg.model,
        max_depth=chunking_cfg.max_depth,
        overlap=chunking_cfg.overlap,
        streaming=stream,
        summary_type=summary_type.value,
        length=length_value,
        summary_format=summary_format.value,
    )

    # Streamed unit text replaces the spinner; both are skipped for quiet or JSON output
    show_progress = not general_cfg.quiet and output_format == OutputFormat.text
    stage_label = f"Summarizing with {engine_cfg.model}..."
    live: Live | None = None
    status: Status | None = None
    if show_progress and stream:
        live = Live(
            _unit_panel("", stage_label),
            console=console,
            refresh_per_second=15,
            transient=True,
        )
    elif show_progress:
        status = create_status(stage_label, "bold yellow")

    def on_progress(current: int, total: int, stage: str) -> None:
        nonlocal stage_label
        stage_label = f"{stage}: {current}/{total}"
        if status is not None:
            status.update(f"[bold yellow]{stage_label}[/bold yellow]")

    def on_delta(text: str) -> None:
        if live is not None:
            live.update(_unit_panel(text, stage_label))

    try:
        with live or status or contextlib.nullcontext():
            start_time = time.monotonic()
            result = await summarize(
                content,
                engine,
                summarizer_config,
                detail_level=detail_level.value,
                context=context,
                on_progress=on_progress,
                on_delta=on_delta if live is not None else None,
            )
            elapsed = time.monotonic() - start_time
    except RecapError as e:
        print_error_message(str(e), e.hint)
        raise typer.Exit(1) from e

    _display_result(
        result,
        elapsed,
        output_format,
        quiet=general_cfg.quiet,
        title=f"Summary: {format_summary_label(summary_type.value, length_value)}",
    )


@app.command("summarize")
def summarize_command(
    *,
    file_path: Path | None = typer.Argument(  # noqa: B008
        None,
        help="Path to file to summarize. If not provided, reads from stdin.",
    ),
    # --- Content Options ---
    detail_level: DetailLevel = typer.Option(  # noqa: B008
        DetailLevel.standard,
        "--detail",
        "-d",
        help="How many key points to ask for (key points without --length).",
        rich_help_panel="Content Options",
    ),
    summary_type: SummaryType = typer.Option(  # noqa: B008
        SummaryType.key_points,
        "--type",
        "-t",
        help="Summary shape: key points, a TL;DR, a teaser, or a headline.",
        rich_help_panel="Content Options",
    ),
    length: SummaryLength | None = typer.Option(  # noqa: B008
        None,
        "--length",
        help=(
            "Summary size (bullets, sentences, or words depending on --type). "
            "Key points without a length follow --detail."
        ),
        rich_help_panel="Content Options",
    ),
    summary_format: SummaryFormat = typer.Option(  # noqa: B008
        SummaryFormat.markdown,
        "--format",
        "-f",
        help="Markup inside the summary: 'markdown' or 'plain-text'.",
        rich_help_panel="Content Options",
    ),
    context: str | None = typer.Option(
        None,
        "--context",
        help="Extra instructions added to every summarization prompt.",
        rich_help_panel="Content Options",
    ),
    # --- Chunking Options ---
    overlap: int = opts.OVERLAP,
    max_depth: int = opts.MAX_DEPTH,
    # --- Output Options ---
    stream: bool = typer.Option(
        False,  # noqa: FBT003
        "--stream/--no-stream",
        help="Stream each unit summary from the server and show it as it is generated.",
        rich_help_panel="Output Options",
    ),
    output_format: OutputFormat = typer.Option(  # noqa: B008
        OutputFormat.text,
        "--output",
        "-o",
        help="Output format: 'text' (summary only) or 'json' (summary with statistics).",
        rich_help_panel="Output Options",
    ),
    # --- Engine Options ---
    base_url: str = opts.BASE_URL,
    model: str = opts.MODEL,
    api_key: str | None = opts.API_KEY,
    context_tokens: int | None = opts.CONTEXT_TOKENS,
    # --- General Options ---
    log_level: str = opts.LOG_LEVEL,
    log_file: str | None = opts.LOG_FILE,
    quiet: bool = opts.QUIET,
    print_args: bool = opts.PRINT_ARGS,
) -> None:
    """Summarize text of any length.

    Long input is split into overlapping chunks, each chunk is summarized, and
    the summaries are combined recursively until a single summary remains.

    Examples:
        # Summarize a file
        recap summarize document.txt

        # Pipe content from stdin, asking for a brief summary
        cat book.txt | recap summarize --detail brief

        # One-sentence TL;DR in plain text, streamed as it is written
        recap summarize article.txt --type tldr --length short --format plain-text --stream

        # Use a model with a known context size
        recap summarize notes.md --model qwen2.5:7b --context-tokens 8192

    """
    if print_args:
        print_command_line_args(locals())

    engine_cfg = config.Engine(
        base_url=base_url,
        model=model,
        api_key=api_key,
        context_tokens=context_tokens,
    )
    chunking_cfg = config.Chunking(overlap=overlap, max_depth=max_depth)
    general_cfg = config.General(log_level=log_level, log_file=log_file, quiet=quiet)

    content = _read_input(file_path)
    if content is None:
        raise typer.Exit(1)

    asyncio.run(
        _async_summarize(
            content,
            detail_level=detail_level,
            context=context,
            summary_type=summary_type,
            length=length,
            summary_format=summary_format,
            engine_cfg=engine_cfg,
            chunking_cfg=chunking_cfg,
            general_cfg=general_cfg,
            stream=stream,
            output_format=output_format,
        ),
    )