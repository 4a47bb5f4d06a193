"""Console output and logging helpers shared by the CLI commands."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING, Any

from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.text import Text

if TYPE_CHECKING:
    from rich.status import Status

console = Console()
err_console = Console(stderr=True)


def setup_logging(log_level: str, log_file: str | None, *, quiet: bool) -> None:
    """Configure the root logger with Rich and an optional log file.

    Args:
        log_level: Logging level (debug, info, warning, error).
        log_file: Also write plain-text logs to this file when set.
        quiet: Only show errors on the console.

    """
    level = getattr(logging, log_level.upper(), logging.WARNING)

    handler = RichHandler(
        console=err_console,
        show_time=True,
        show_level=True,
        show_path=False,
        rich_tracebacks=True,
        markup=False,
    )
    handler.setFormatter(logging.Formatter("%(message)s"))
    handler.setLevel(logging.ERROR if quiet else level)
    handlers: list[logging.Handler] = [handler]

    if log_file:
        path = Path(log_file).expanduser()
        path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(path, mode="a", encoding="utf-8")
        file_handler.setFormatter(
            logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s"),
        )
        file_handler.setLevel(level)
        handlers.append(file_handler)

    root = logging.getLogger()
    root.handlers.clear()
    for h in handlers:
        root.addHandler(h)
    root.setLevel(level)

    # Library chatter is only useful when debugging
    for name in ("httpx", "httpcore", "openai"):
        logging.getLogger(name).setLevel(max(level, logging.WARNING))


def print_input_panel(text: str, title: str = "Input", subtitle: str = "") -> None:
    """Show the input text in a panel."""
    console.print(
        Panel(Text(text), title=f"[bold]{title}[/bold]", subtitle=subtitle, border_style="blue"),
    )


def print_output_panel(text: str, title: str = "Output", subtitle: str = "") -> None:
    """Show a result in a panel."""
    console.print(
        Panel(Text(text), title=f"[bold]{title}[/bold]", subtitle=subtitle, border_style="green"),
    )


def print_error_message(message: str, suggestion: str | None = None) -> None:
    """Show an error with an optional hint."""
    body = Text(message, style="bold red")
    if suggestion:
        body.append(f"\n\n{suggestion}", style="yellow")
    err_console.print(Panel(body, title="[bold red]Error[/bold red]", border_style="red"))


def print_with_style(message: str, style: str = "bold green") -> None:
    """Print a single styled line."""
    console.print(Text(message, style=style))


def print_command_line_args(args: dict[str, Any]) -> None:
    """Print the resolved command arguments, for ``--print-args``."""
    lines = [f"{key} = {value!r}" for key, value in sorted(args.items()) if key != "ctx"]
    console.print(Panel("\n".join(lines), title="Command Line Arguments", border_style="dim"))


def create_status(message: str, style: str = "bold yellow") -> Status:
    """Create a spinner status line."""
    return console.status(f"[{style}]{message}[/{style}]")
