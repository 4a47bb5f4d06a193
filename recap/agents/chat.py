"""Interactive streamed chat with an OpenAI-compatible LLM.

Type a message and the response streams in as it is generated. Pressing
Ctrl+C while a response is streaming stops it and keeps the partial text;
pressing it at the prompt leaves the chat. Slash commands (/help, /mode,
/history, /clear, /exit) manage the session.
"""

from __future__ import annotations

import asyncio
import logging
import signal
from contextlib import suppress
from pathlib import Path  # noqa: TC003
from typing import TYPE_CHECKING

import typer
from rich.live import Live
from rich.text import Text

from recap import config, opts
from recap.cli import app
from recap.constants import DEFAULT_HISTORY_TOKENS, MAX_MESSAGE_CHARS
from recap.core.chat_state import (
    ChatSessionState,
    handle_slash_command,
    parse_slash_command,
)
from recap.core.utils import (
    console,
    print_command_line_args,
    print_error_message,
    print_with_style,
    setup_logging,
)
from recap.engine.openai import OpenAIEngine
from recap.errors import RecapError
from recap.streaming.controller import StreamingCommandController

if TYPE_CHECKING:
    from recap.streaming.controller import SendResult

LOGGER = logging.getLogger(__name__)

EXIT_COMMANDS = frozenset({"exit", "quit"})


async def _stream_reply(
    controller: StreamingCommandController,
    message: str,
    *,
    quiet: bool,
) -> SendResult:
    """Send one message, rendering the reply as it streams."""
    if quiet:
        result = await controller.send(message)
        print(result.text)
        return result

    with Live(Text(""), console=console, refresh_per_second=15) as live:

        def on_delta(text: str) -> None:
            live.update(Text(text))

        return await controller.send(message, on_delta=on_delta)


async def handle_turn(
    text: str,
    *,
    controller: StreamingCommandController,
    state: ChatSessionState,
    quiet: bool = False,
) -> bool:
    """Process one line of user input.

    Returns:
        False when the user asked to leave the chat, True otherwise.

    """
    parsed = parse_slash_command(text)
    if parsed is not None:
        command, args = parsed
        if command in EXIT_COMMANDS:
            return False
        print_with_style(handle_slash_command(command, args, state), style="cyan")
        return True

    try:
        result = await _stream_reply(controller, text, quiet=quiet)
    except RecapError as e:
        print_error_message(str(e), e.hint)
        return True

    state.add_message("user", text.strip())
    if result.text:
        state.add_message("assistant", result.text)
    if result.stopped and not quiet:
        print_with_style("(stopped)", style="dim")
    return True


async def _async_main(
    *,
    engine_cfg: config.Engine,
    chat_cfg: config.Chat,
    general_cfg: config.General,
    page_content: str | None,
) -> None:
    """Main async function, consumes parsed arguments."""
    engine = OpenAIEngine(
        engine_cfg.base_url,
        engine_cfg.model,
        engine_cfg.api_key,
        context_tokens=engine_cfg.context_tokens,
        temperature=0.7,
    )
    state = ChatSessionState(
        mode=chat_cfg.mode,
        page_content=page_content,
        history_tokens=chat_cfg.history_tokens,
    )
    controller = StreamingCommandController(
        engine,
        kind="chat",
        max_message_length=chat_cfg.max_message_length,
        prompt_builder=state.build_prompt,
    )

    # Keep references so pending stop requests are not garbage collected
    stop_tasks: set[asyncio.Task[None]] = set()

    def _on_sigint() -> None:
        task = asyncio.ensure_future(controller.stop())
        stop_tasks.add(task)
        task.add_done_callback(stop_tasks.discard)

    loop = asyncio.get_running_loop()
    if not general_cfg.quiet:
        print_with_style(
            f"Chatting with {engine_cfg.model} ({state.mode} mode). Type /help for commands.",
            style="bold green",
        )

    while True:
        try:
            text = await asyncio.to_thread(console.input, "[bold blue]You:[/bold blue] ")
        except (EOFError, KeyboardInterrupt):
            break
        if not text.strip():
            continue

        # Ctrl+C stops the reply instead of exiting while a response streams
        loop.add_signal_handler(signal.SIGINT, _on_sigint)
        try:
            if not await handle_turn(
                text,
                controller=controller,
                state=state,
                quiet=general_cfg.quiet,
            ):
                break
        finally:
            with suppress(ValueError):
                loop.remove_signal_handler(signal.SIGINT)

    LOGGER.debug("Chat ended after %d messages", len(state.history))


@app.command("chat")
def chat(
    *,
    # --- Chat Options ---
    mode: str = typer.Option(
        "personal",
        "--mode",
        help="Chat mode: 'personal' for general chat, 'page' to ask about --context-file.",
        rich_help_panel="Chat Options",
    ),
    context_file: Path | None = typer.Option(  # noqa: B008
        None,
        "--context-file",
        help="Text file whose content the assistant answers questions about in page mode.",
        rich_help_panel="Chat Options",
    ),
    max_message_length: int = typer.Option(
        MAX_MESSAGE_CHARS,
        "--max-message-length",
        min=1,
        help="Maximum length of a single message in characters.",
        rich_help_panel="Chat Options",
    ),
    history_tokens: int = typer.Option(
        DEFAULT_HISTORY_TOKENS,
        "--history-tokens",
        min=1,
        help="Token budget for the conversation history sent with each message.",
        rich_help_panel="Chat Options",
    ),
    # --- Engine Options ---
    base_url: str = opts.BASE_URL,
    model: str = opts.MODEL,
    api_key: str | None = opts.API_KEY,
    context_tokens: int | None = opts.CONTEXT_TOKENS,
    # --- General Options ---
    log_level: str = opts.LOG_LEVEL,
    log_file: str | None = opts.LOG_FILE,
    quiet: bool = opts.QUIET,
    print_args: bool = opts.PRINT_ARGS,
) -> None:
    """Chat with an LLM, streaming replies that Ctrl+C can stop."""
    if print_args:
        print_command_line_args(locals())

    setup_logging(log_level, log_file, quiet=quiet)
    general_cfg = config.General(log_level=log_level, log_file=log_file, quiet=quiet)
    engine_cfg = config.Engine(
        base_url=base_url,
        model=model,
        api_key=api_key,
        context_tokens=context_tokens,
    )

    page_content = None
    if context_file is not None:
        if not context_file.exists():
            print_error_message(
                f"File not found: {context_file}",
                "Please check the file path and try again.",
            )
            raise typer.Exit(1)
        page_content = context_file.read_text(encoding="utf-8")
    elif mode == "page":
        print_error_message(
            "Page mode needs content to talk about",
            "Pass the content with --context-file.",
        )
        raise typer.Exit(1)

    try:
        chat_cfg = config.Chat(
            mode=mode,
            max_message_length=max_message_length,
            history_tokens=history_tokens,
        )
    except ValueError as e:
        print_error_message(str(e), "Use --mode personal or --mode page.")
        raise typer.Exit(1) from e

    with suppress(KeyboardInterrupt):
        asyncio.run(
            _async_main(
                engine_cfg=engine_cfg,
                chat_cfg=chat_cfg,
                general_cfg=general_cfg,
                page_content=page_content,
            ),
        )
