"""Data models for map-reduce summarization."""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Literal, get_args

from pydantic import BaseModel, Field

from recap.constants import DEFAULT_CHUNK_OVERLAP, DEFAULT_MAX_DEPTH
from recap.errors import ConfigurationError

DetailLevel = Literal["brief", "standard", "detailed", "comprehensive"]
SummaryType = Literal["key-points", "tldr", "teaser", "headline"]
SummaryLength = Literal["short", "medium", "long"]
SummaryFormat = Literal["markdown", "plain-text"]

# (chunk, shared_context) -> summary of that chunk
SummarizeUnit = Callable[[str, str | None], Awaitable[str]]

# (current_unit, total_units, stage_label) -> None
ProgressCallback = Callable[[int, int, str], None]


@dataclass
class SummarizerConfig:
    """Configuration for summarization operations.

    Example:
        config = SummarizerConfig(model="llama3.1:8b", summary_type="tldr", length="short")
        result = await summarize(long_document, engine, config)
        print(f"Saved {result.stats.compression_ratio}% of the words")

    """

    model: str
    kind: str = "summarizer"
    max_depth: int = DEFAULT_MAX_DEPTH
    overlap: int = DEFAULT_CHUNK_OVERLAP
    streaming: bool = False
    temperature: float = 0.3
    max_tokens: int | None = None
    summary_type: SummaryType = "key-points"
    length: SummaryLength | None = None
    summary_format: SummaryFormat = "markdown"

    def __post_init__(self) -> None:
        """Validate depth, overlap, and the summary shape."""
        if self.max_depth < 0:
            msg = f"max_depth must not be negative, got {self.max_depth}"
            raise ConfigurationError(msg)
        if self.overlap < 0:
            msg = f"overlap must not be negative, got {self.overlap}"
            raise ConfigurationError(msg)
        if self.summary_type not in get_args(SummaryType):
            msg = f"Unknown summary type: {self.summary_type}"
            raise ConfigurationError(msg)
        if self.length is not None and self.length not in get_args(SummaryLength):
            msg = f"Unknown summary length: {self.length}"
            raise ConfigurationError(msg)
        if self.summary_format not in get_args(SummaryFormat):
            msg = f"Unknown summary format: {self.summary_format}"
            raise ConfigurationError(msg)


class SummaryStats(BaseModel):
    """Word-level statistics comparing a summary to its source."""

    original_word_count: int = Field(..., ge=0)
    summary_word_count: int = Field(..., ge=0)
    compression_ratio: int = Field(
        ...,
        description="Percentage of words removed (0 = no compression)",
    )
    reading_time_seconds: int = Field(..., ge=0, description="Reading time of the summary")


class SummaryResult(BaseModel):
    """Result of summarization.

    Contains the summary and metadata about how it was produced.
    """

    summary: str = Field(..., description="The final summary text")
    input_chars: int = Field(..., ge=0, description="Character count of the input content")
    output_chars: int = Field(..., ge=0, description="Character count of the summary")
    chunk_size: int = Field(..., gt=0, description="Effective chunk size used for splitting")
    unit_calls: int = Field(
        default=0,
        ge=0,
        description="Number of engine calls made to produce the summary",
    )
    stats: SummaryStats
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(UTC),
        description="Timestamp when summary was created",
    )
