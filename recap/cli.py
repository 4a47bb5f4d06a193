"""Shared CLI functionality for recap."""

from __future__ import annotations

import typer

from .config import load_config
from .core.utils import console

app = typer.Typer(
    name="recap",
    help="Summarize long text and chat with local or remote LLMs, with cancellable streaming.",
    add_completion=True,
)


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    config_file: str | None = typer.Option(
        None,
        "--config",
        "-c",
        help="Path to a custom config file.",
    ),
) -> None:
    """Summarize long text and chat with LLMs."""
    if ctx.invoked_subcommand is None:
        console.print("[bold red]No command specified.[/bold red]")
        console.print("[bold yellow]Running --help for your convenience.[/bold yellow]")
        console.print(ctx.get_help())
        raise typer.Exit
    import dotenv  # noqa: PLC0415

    dotenv.load_dotenv()
    set_config_defaults(ctx, config_file)


def set_config_defaults(ctx: typer.Context, config_file: str | None) -> None:
    """Set the default values for every subcommand from the config file.

    ``[defaults]`` applies to all commands and ``[<command>]`` overrides it for
    one command. Click hands ``default_map[<command>]`` to the subcommand.
    """
    config = load_config(config_file)
    wildcard_config = config.get("defaults", {})
    command_names = getattr(ctx.command, "commands", {})
    ctx.default_map = {
        name: {**wildcard_config, **config.get(name, {})} for name in command_names
    }


# Import commands from other modules to register them
from .agents import chat, status, summarize  # noqa: E402, F401
