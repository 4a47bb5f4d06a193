"""Unit tests for summarizer data models."""

from __future__ import annotations

from datetime import UTC, datetime

import pytest
from pydantic import ValidationError as PydanticValidationError

from recap.errors import ConfigurationError
from recap.summarizer.models import SummarizerConfig, SummaryResult, SummaryStats


def _stats() -> SummaryStats:
    return SummaryStats(
        original_word_count=100,
        summary_word_count=20,
        compression_ratio=80,
        reading_time_seconds=6,
    )


class TestSummarizerConfig:
    """Tests for SummarizerConfig initialization."""

    def test_defaults(self) -> None:
        """Test default values."""
        config = SummarizerConfig(model="llama3.1:8b")
        assert config.kind == "summarizer"
        assert config.max_depth == 5
        assert config.overlap == 200
        assert config.streaming is False
        assert config.summary_type == "key-points"
        assert config.length is None
        assert config.summary_format == "markdown"

    def test_negative_depth_raises(self) -> None:
        """Test that a negative depth limit is rejected."""
        with pytest.raises(ConfigurationError, match="max_depth"):
            SummarizerConfig(model="m", max_depth=-1)

    def test_negative_overlap_raises(self) -> None:
        """Test that a negative overlap is rejected."""
        with pytest.raises(ConfigurationError, match="overlap"):
            SummarizerConfig(model="m", overlap=-5)

    @pytest.mark.parametrize(
        ("field", "value"),
        [("summary_type", "essay"), ("length", "huge"), ("summary_format", "html")],
    )
    def test_unknown_summary_shape_raises(self, field: str, value: str) -> None:
        """Test that unknown type, length, and format values are rejected."""
        with pytest.raises(ConfigurationError, match="Unknown summary"):
            SummarizerConfig(model="m", **{field: value})


class TestSummaryResult:
    """Tests for SummaryResult model."""

    def test_created_at_defaults_to_now(self) -> None:
        """Test that the timestamp is timezone-aware and recent."""
        before = datetime.now(UTC)
        result = SummaryResult(
            summary="Short.",
            input_chars=500,
            output_chars=6,
            chunk_size=3000,
            stats=_stats(),
        )
        assert result.created_at >= before
        assert result.unit_calls == 0

    def test_serializes_to_json(self) -> None:
        """Test JSON output used by the CLI."""
        result = SummaryResult(
            summary="Short.",
            input_chars=500,
            output_chars=6,
            chunk_size=3000,
            unit_calls=1,
            stats=_stats(),
        )
        data = result.model_dump(mode="json")
        assert data["stats"]["compression_ratio"] == 80
        assert isinstance(data["created_at"], str)

    def test_chunk_size_must_be_positive(self) -> None:
        """Test field validation."""
        with pytest.raises(PydanticValidationError):
            SummaryResult(
                summary="",
                input_chars=0,
                output_chars=0,
                chunk_size=0,
                stats=_stats(),
            )
