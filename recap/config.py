"""Pydantic models for command configurations and config file loading."""

from __future__ import annotations

import tomllib
from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, Field, field_validator
from rich.console import Console

from recap.constants import (
    DEFAULT_CHUNK_OVERLAP,
    DEFAULT_HISTORY_TOKENS,
    DEFAULT_MAX_DEPTH,
    MAX_MESSAGE_CHARS,
)

console = Console()

DEFAULT_BASE_URL = "http://localhost:11434/v1"
DEFAULT_MODEL = "llama3.1:8b"

# --- Config File Loading ---

CONFIG_PATH = Path.home() / ".config" / "recap" / "config.toml"
CONFIG_PATH_2 = Path("recap-config.toml")


def _replace_dashed_keys(cfg: dict[str, Any]) -> dict[str, Any]:
    """Replace dashed keys with underscores in the config options."""
    return {k.replace("-", "_"): v for k, v in cfg.items()}


def load_config(config_path_str: str | None = None) -> dict[str, Any]:
    """Load the TOML configuration file and process it for nested structures."""
    if config_path_str:
        config_path = Path(config_path_str).expanduser()
    elif CONFIG_PATH.exists():
        config_path = CONFIG_PATH
    elif CONFIG_PATH_2.exists():
        config_path = CONFIG_PATH_2
    else:
        return {}

    if config_path.exists():
        with config_path.open("rb") as f:
            cfg = tomllib.load(f)
            return {k: _replace_dashed_keys(v) for k, v in cfg.items() if isinstance(v, dict)}

    # Report error only if an explicit path was given
    if config_path_str:
        console.print(
            f"[bold red]Config file not found at {config_path_str}[/bold red]",
        )
    return {}


# --- Pydantic Models for Configuration ---

# --- Panel: Engine Configuration ---


class Engine(BaseModel):
    """Connection settings for the OpenAI-compatible server."""

    base_url: str = DEFAULT_BASE_URL
    model: str = DEFAULT_MODEL
    api_key: str | None = None
    context_tokens: int | None = Field(default=None, gt=0)

    @field_validator("base_url")
    @classmethod
    def _strip_slash(cls, v: str) -> str:
        return v.rstrip("/")


# --- Panel: Chunking Options ---


class Chunking(BaseModel):
    """Configuration for map-reduce chunking."""

    overlap: int = Field(default=DEFAULT_CHUNK_OVERLAP, ge=0)
    max_depth: int = Field(default=DEFAULT_MAX_DEPTH, ge=0)


# --- Panel: Chat Options ---


class Chat(BaseModel):
    """Configuration for the interactive chat."""

    mode: Literal["personal", "page"] = "personal"
    max_message_length: int = Field(default=MAX_MESSAGE_CHARS, gt=0)
    history_tokens: int = Field(default=DEFAULT_HISTORY_TOKENS, gt=0)


# --- Panel: General Options ---


class General(BaseModel):
    """General configuration parameters for logging and I/O."""

    log_level: str = "WARNING"
    log_file: str | None = None
    quiet: bool = False

    @field_validator("log_file", mode="before")
    @classmethod
    def _expand_user_path(cls, v: str | None) -> str | None:
        if v:
            return str(Path(v).expanduser())
        return None
