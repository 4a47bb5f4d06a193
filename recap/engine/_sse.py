"""Parsing helpers for OpenAI-style Server-Sent Events."""

from __future__ import annotations

import json
from typing import Any

DONE_MARKER = "[DONE]"


def parse_chunk(line: str) -> dict[str, Any] | None:
    """Parse one SSE line into a JSON chunk.

    Returns None for comments, keep-alives, non-data fields, the ``[DONE]``
    marker, and payloads that are not JSON objects.
    """
    line = line.strip()
    if not line.startswith("data:"):
        return None
    data = line[len("data:") :].strip()
    if not data or data == DONE_MARKER:
        return None
    try:
        chunk = json.loads(data)
    except json.JSONDecodeError:
        return None
    return chunk if isinstance(chunk, dict) else None


def is_done(line: str) -> bool:
    """Whether the line is the end-of-stream marker."""
    return line.strip() == f"data: {DONE_MARKER}"


def extract_content(chunk: dict[str, Any]) -> str:
    """Extract the assistant text delta from a streamed chunk."""
    choices = chunk.get("choices") or []
    if not choices:
        return ""
    delta = choices[0].get("delta") or {}
    return delta.get("content") or ""


def extract_error(chunk: dict[str, Any]) -> str | None:
    """Return the error message carried by a chunk, if any."""
    error = chunk.get("error")
    if error is None:
        return None
    if isinstance(error, dict):
        return str(error.get("message") or error)
    return str(error)
