"""Default configuration settings for the recap package."""

from __future__ import annotations

# --- Engine Budget Conversion ---
CHARS_PER_TOKEN = 4  # rough average for English text
SAFETY_MARGIN = 0.8  # use 80% of the engine's reported input capacity

# --- Chunk Sizing (characters) ---
DEFAULT_CHUNK_CHARS = 3000  # ~750 tokens, used when the engine gives no hint
MIN_CHUNK_CHARS = 1000
MAX_CHUNK_CHARS = 12000
DEFAULT_CHUNK_OVERLAP = 200
DEFAULT_SEPARATORS = ("\n\n", "\n", " ", "")

# --- Map-Reduce ---
DEFAULT_MAX_DEPTH = 5
SUMMARY_SEPARATOR = "\n\n---\n\n"

# --- Content Validation ---
MIN_CONTENT_CHARS = 100
MIN_CONTENT_WORDS = 20
MAX_MESSAGE_CHARS = 10_000

# --- Chat Context ---
PAGE_CONTENT_CHARS = 4000
DEFAULT_HISTORY_TOKENS = 3000
TITLE_CHARS = 60

# --- Reading Speed ---
WORDS_PER_MINUTE = 200
