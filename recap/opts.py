"""Shared CLI options for recap commands."""

from __future__ import annotations

import typer

from recap import config
from recap.constants import DEFAULT_CHUNK_OVERLAP, DEFAULT_MAX_DEPTH

# --- Engine Options ---
BASE_URL = typer.Option(
    config.DEFAULT_BASE_URL,
    "--base-url",
    envvar="RECAP_BASE_URL",
    help="Base URL of the OpenAI-compatible API (Ollama, llama.cpp, vLLM, OpenAI).",
    rich_help_panel="Engine Options",
)
MODEL = typer.Option(
    config.DEFAULT_MODEL,
    "--model",
    "-m",
    envvar="RECAP_MODEL",
    help="Name of the model to use.",
    rich_help_panel="Engine Options",
)
API_KEY = typer.Option(
    None,
    "--api-key",
    envvar="OPENAI_API_KEY",
    help="API key for the server, if it needs one.",
    rich_help_panel="Engine Options",
)
CONTEXT_TOKENS = typer.Option(
    None,
    "--context-tokens",
    min=1,
    help="Input budget of the model in tokens. Chunk sizes are derived from it.",
    rich_help_panel="Engine Options",
)

# --- Chunking Options ---
OVERLAP = typer.Option(
    DEFAULT_CHUNK_OVERLAP,
    "--overlap",
    min=0,
    help="Characters shared between consecutive chunks.",
    rich_help_panel="Chunking Options",
)
MAX_DEPTH = typer.Option(
    DEFAULT_MAX_DEPTH,
    "--max-depth",
    min=0,
    help="Maximum reduce levels before the content is truncated instead.",
    rich_help_panel="Chunking Options",
)

# --- General Options ---
LOG_LEVEL = typer.Option(
    "WARNING",
    "--log-level",
    help="Set the log level (e.g., DEBUG, INFO, WARNING).",
    rich_help_panel="General Options",
)
LOG_FILE = typer.Option(
    None,
    "--log-file",
    help="Path to a file to write logs to.",
    rich_help_panel="General Options",
)
QUIET = typer.Option(
    False,  # noqa: FBT003
    "--quiet",
    "-q",
    help="Suppress all output except for the final result.",
    rich_help_panel="General Options",
)
PRINT_ARGS = typer.Option(
    False,  # noqa: FBT003
    "--print-args",
    help="Print the command line arguments, including variables taken from the configuration file.",
    rich_help_panel="General Options",
)
