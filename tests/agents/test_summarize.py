"""Tests for the summarize agent's display paths."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any
from unittest.mock import AsyncMock, patch

import pytest

from recap import config
from recap.agents.summarize import (
    DetailLevel,
    OutputFormat,
    SummaryFormat,
    SummaryLength,
    SummaryType,
    _async_summarize,
)
from recap.summarizer import SummaryResult, SummaryStats

if TYPE_CHECKING:
    from rich.console import Console


def _result() -> SummaryResult:
    return SummaryResult(
        summary="The river feeds the farms.",
        input_chars=2000,
        output_chars=26,
        chunk_size=3000,
        unit_calls=3,
        stats=SummaryStats(
            original_word_count=350,
            summary_word_count=5,
            compression_ratio=99,
            reading_time_seconds=2,
        ),
    )


async def _fake_summarize(
    *_args: Any,
    on_progress: Any,
    on_delta: Any,
    **_kwargs: Any,
) -> SummaryResult:
    on_progress(0, 2, "Summarizing chunks (level 1)")
    on_delta("The river rises")
    on_delta("The river rises in the northern hills.")
    return _result()


async def _run(*, stream: bool, quiet: bool = False, length: SummaryLength | None = None) -> None:
    await _async_summarize(
        "The river rises in the northern hills. " * 50,
        detail_level=DetailLevel.standard,
        context=None,
        summary_type=SummaryType.tldr,
        length=length,
        summary_format=SummaryFormat.plain_text,
        engine_cfg=config.Engine(),
        chunking_cfg=config.Chunking(),
        general_cfg=config.General(quiet=quiet),
        stream=stream,
        output_format=OutputFormat.text,
    )


@pytest.mark.asyncio
@patch("recap.agents.summarize.setup_logging")
async def test_stream_renders_unit_text(
    mock_setup_logging: Any,  # noqa: ARG001
    mock_console: Console,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    """Test that --stream shows the current unit's text with its stage."""
    monkeypatch.setenv("TERM", "xterm-256color")
    mock_summarize = AsyncMock(side_effect=_fake_summarize)
    with (
        patch("recap.agents.summarize.summarize", mock_summarize),
        patch("recap.agents.summarize.console", mock_console),
        patch("recap.core.utils.console", mock_console),
    ):
        await _run(stream=True, length=SummaryLength.short)

    output = mock_console.file.getvalue()  # type: ignore[attr-defined]
    assert "The river rises in the northern hills." in output
    assert "Summarizing chunks (level 1): 0/2" in output
    assert "Summary: TL;DR (1 sentence)" in output
    assert "The river feeds the farms." in output
    assert mock_summarize.call_args.kwargs["on_delta"] is not None


@pytest.mark.asyncio
@patch("recap.agents.summarize.setup_logging")
async def test_no_stream_passes_no_delta_callback(
    mock_setup_logging: Any,  # noqa: ARG001
    mock_console: Console,
) -> None:
    """Test that without --stream no unit text is rendered."""
    mock_summarize = AsyncMock(return_value=_result())
    with (
        patch("recap.agents.summarize.summarize", mock_summarize),
        patch("recap.core.utils.console", mock_console),
    ):
        await _run(stream=False)

    assert mock_summarize.call_args.kwargs["on_delta"] is None
    output = mock_console.file.getvalue()  # type: ignore[attr-defined]
    assert "Summary: TL;DR" in output


@pytest.mark.asyncio
@patch("recap.agents.summarize.setup_logging")
async def test_quiet_stream_prints_only_summary(
    mock_setup_logging: Any,  # noqa: ARG001
    capsys: pytest.CaptureFixture[str],
) -> None:
    """Test that quiet mode streams without any live display."""
    mock_summarize = AsyncMock(return_value=_result())
    with patch("recap.agents.summarize.summarize", mock_summarize):
        await _run(stream=True, quiet=True)

    assert mock_summarize.call_args.kwargs["on_delta"] is None
    assert capsys.readouterr().out.strip() == "The river feeds the farms."
