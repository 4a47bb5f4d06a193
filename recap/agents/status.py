"""Report whether the configured engine can serve the configured model."""

from __future__ import annotations

import asyncio

import typer

from recap import config, opts
from recap.cli import app
from recap.core.utils import (
    print_command_line_args,
    print_error_message,
    print_with_style,
    setup_logging,
)
from recap.engine.base import Capability
from recap.engine.openai import OpenAIEngine

_MESSAGES = {
    Capability.AVAILABLE: ("✅ {model} is available at {base_url}", "bold green"),
    Capability.NEEDS_DOWNLOAD: (
        "⏬ {model} is not downloaded yet. Run `ollama pull {model}` first.",
        "bold yellow",
    ),
}


async def check_engine(engine_cfg: config.Engine, kind: str = "chat") -> Capability:
    """Query the engine's capability for ``kind``."""
    engine = OpenAIEngine(
        engine_cfg.base_url,
        engine_cfg.model,
        engine_cfg.api_key,
        context_tokens=engine_cfg.context_tokens,
    )
    return await engine.check_capability(kind)


@app.command("status")
def status(
    *,
    base_url: str = opts.BASE_URL,
    model: str = opts.MODEL,
    api_key: str | None = opts.API_KEY,
    context_tokens: int | None = opts.CONTEXT_TOKENS,
    log_level: str = opts.LOG_LEVEL,
    log_file: str | None = opts.LOG_FILE,
    quiet: bool = opts.QUIET,
    print_args: bool = opts.PRINT_ARGS,
) -> None:
    """Check that the LLM server is reachable and serves the model."""
    if print_args:
        print_command_line_args(locals())

    setup_logging(log_level, log_file, quiet=quiet)
    engine_cfg = config.Engine(
        base_url=base_url,
        model=model,
        api_key=api_key,
        context_tokens=context_tokens,
    )
    capability = asyncio.run(check_engine(engine_cfg))

    if capability is Capability.UNAVAILABLE:
        print_error_message(
            f"{engine_cfg.model} is not available at {engine_cfg.base_url}",
            "Check that the LLM server is running and the model name is correct.",
        )
        raise typer.Exit(1)

    if not quiet:
        message, style = _MESSAGES[capability]
        print_with_style(
            message.format(model=engine_cfg.model, base_url=engine_cfg.base_url),
            style=style,
        )
    if context_tokens and not quiet:
        print_with_style(f"Input budget: {context_tokens:,} tokens", style="dim")
