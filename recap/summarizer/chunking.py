"""Recursive character text splitting with overlap.

Splits text at the highest-priority separator that keeps chunks within
``max_chunk_size`` (paragraph break, line break, word boundary, and finally
anywhere). Each chunk after the first opens with the last ``overlap``
characters of its predecessor so it carries some context across the split.
Chunks are trimmed, so when that window starts on whitespace the shared run
is shorter than ``overlap`` by that leading whitespace. The forced fixed-width
windows share exactly ``overlap`` characters.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass

from recap.constants import CHARS_PER_TOKEN, DEFAULT_CHUNK_OVERLAP, DEFAULT_SEPARATORS
from recap.errors import ConfigurationError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ChunkingOptions:
    """Size limits and separators for `chunk_text`.

    Example:
        options = ChunkingOptions(max_chunk_size=3000, overlap=200)
        chunks = chunk_text(long_document, options)

    """

    max_chunk_size: int
    overlap: int = DEFAULT_CHUNK_OVERLAP
    separators: tuple[str, ...] = DEFAULT_SEPARATORS

    def __post_init__(self) -> None:
        """Reject option combinations that cannot make progress."""
        if self.max_chunk_size <= 0:
            msg = f"max_chunk_size must be positive, got {self.max_chunk_size}"
            raise ConfigurationError(msg)
        if self.overlap < 0:
            msg = f"overlap must not be negative, got {self.overlap}"
            raise ConfigurationError(msg)
        if self.overlap >= self.max_chunk_size:
            msg = (
                f"overlap ({self.overlap}) must be less than "
                f"max_chunk_size ({self.max_chunk_size})"
            )
            raise ConfigurationError(msg)
        # Accept lists from config files but keep the dataclass hashable
        object.__setattr__(self, "separators", tuple(self.separators))


def chunk_text(text: str, options: ChunkingOptions) -> list[str]:
    """Split text into ordered, overlapping chunks of at most ``max_chunk_size``.

    Args:
        text: The text to split.
        options: Chunk size, overlap, and separators in priority order.

    Returns:
        List of chunks. Empty input gives an empty list, and input that already
        fits is returned unchanged as a single chunk.

    """
    if not text:
        return []

    if len(text) <= options.max_chunk_size:
        return [text]

    closed, tail, fresh_from = _split(text, options.separators, options)
    if tail[fresh_from:].strip():
        closed.append(tail)
    chunks = [chunk.strip() for chunk in closed if chunk.strip()]
    logger.debug(
        "Split %d characters into %d chunks (size=%d, overlap=%d)",
        len(text),
        len(chunks),
        options.max_chunk_size,
        options.overlap,
    )
    return chunks


def _split(
    text: str,
    separators: tuple[str, ...],
    options: ChunkingOptions,
    protected: int = 0,
) -> tuple[list[str], str, int]:
    """Split ``text`` on the first separator, recursing into oversized pieces.

    The first ``protected`` characters of ``text`` already ended a previous
    chunk (they are the overlap seed), so a buffer holding nothing else is
    never flushed on its own.

    Returns the completed chunks, the still-open buffer, and the offset where
    new text starts in that buffer. The open buffer is kept untrimmed so that
    it stays contiguous with whatever the caller appends to it.
    """
    # "" means split anywhere, which is the fixed-width base case
    if not separators or not separators[0]:
        closed, tail = _split_fixed_width(text, options)
        return closed, tail, 0

    separator, remaining = separators[0], separators[1:]
    pieces = text.split(separator)
    size = options.max_chunk_size
    chunks: list[str] = []
    current = ""
    fresh_from = protected

    for i, piece in enumerate(pieces):
        # Re-attach the separator to every piece except the last
        to_add = piece + separator if i < len(pieces) - 1 else piece

        if len(current) + len(to_add) <= size:
            current += to_add
            continue

        if current[fresh_from:].strip():
            chunks.append(current.strip())
            current = _overlap_seed(current, options.overlap)
            fresh_from = len(current)
        elif not to_add.strip():
            # Whitespace after an already-emitted seed adds nothing
            continue
        else:
            content = current.rstrip()
            current = content + current[len(content) :][:1]
            fresh_from = len(current)

        if len(current) + len(to_add) <= size:
            current += to_add
        else:
            # Oversized: split seed and piece together so the first sub-chunk
            # still starts with the overlap from the chunk just flushed
            sub_chunks, current, fresh_from = _split(
                current + to_add,
                remaining,
                options,
                protected=fresh_from,
            )
            chunks.extend(sub_chunks)

    return chunks, current, fresh_from


def _overlap_seed(buffer: str, overlap: int) -> str:
    """Return the tail of ``buffer`` that opens the next chunk.

    Takes the last ``overlap`` characters of the trimmed content, minus any
    whitespace they start with, and keeps the trailing whitespace so the seed
    remains contiguous with the text that follows.
    """
    if overlap <= 0:
        return ""
    content = buffer.rstrip()
    return content[-overlap:].lstrip() + buffer[len(content) :]


def _split_fixed_width(text: str, options: ChunkingOptions) -> tuple[list[str], str]:
    """Cut text into fixed-size windows with stride ``size - overlap``."""
    size = options.max_chunk_size
    stride = size - options.overlap
    # Stop once a window reaches the end, so no window is contained in the previous one
    windows = [
        text[start : start + size] for start in range(0, max(len(text) - options.overlap, 1), stride)
    ]
    return windows[:-1], windows[-1]


def estimate_tokens(text: str) -> int:
    """Approximate token count (~4 characters per token)."""
    return math.ceil(len(text) / CHARS_PER_TOKEN)


def count_words(text: str) -> int:
    """Count whitespace-separated words."""
    return len(text.split())
