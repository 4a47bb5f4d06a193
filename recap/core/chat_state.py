"""Chat session state, prompt building, and slash command handling.

This module provides state management for interactive chat sessions
and handles slash commands like /mode, /history, /clear, /help.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Literal, TypedDict

from recap.constants import (
    CHARS_PER_TOKEN,
    DEFAULT_HISTORY_TOKENS,
    MAX_MESSAGE_CHARS,
    PAGE_CONTENT_CHARS,
    TITLE_CHARS,
)
from recap.errors import ValidationError

ChatMode = Literal["personal", "page"]

SYSTEM_PROMPTS: dict[str, str] = {
    "page": (
        "You are a helpful AI assistant that answers questions about web page content.\n"
        "You have access to the current page's content and can provide insights, summaries, "
        "and explanations.\n"
        "Be concise, accurate, and helpful. If you're unsure about something, say so."
    ),
    "personal": (
        "You are a helpful AI assistant for general conversation.\n"
        "You can answer questions, provide explanations, help with tasks, and engage in "
        "friendly discussion.\n"
        "Be helpful, accurate, and conversational."
    ),
}

TRUNCATION_MARKER = "\n\n[Content truncated...]"
DEFAULT_TITLE = "New Conversation"


class ChatMessage(TypedDict):
    """A single turn in the conversation."""

    role: Literal["user", "assistant"]
    content: str
    timestamp: str


def validate_message(message: str, max_length: int = MAX_MESSAGE_CHARS) -> str:
    """Return the trimmed message.

    Raises:
        ValidationError: If the message is empty or longer than ``max_length``.

    """
    if not message.strip():
        msg = "Message cannot be empty"
        raise ValidationError(msg)
    if len(message) > max_length:
        msg = f"Message too long (max {max_length:,} characters)"
        raise ValidationError(msg)
    return message.strip()


def truncate_page_content(content: str, max_length: int = PAGE_CONTENT_CHARS) -> str:
    """Truncate page content, at a paragraph break when one is near the end."""
    if len(content) <= max_length:
        return content
    truncated = content[:max_length]
    last_paragraph = truncated.rfind("\n\n")
    if last_paragraph > max_length * 0.8:
        truncated = truncated[:last_paragraph]
    return truncated + TRUNCATION_MARKER


def estimate_message_tokens(message: ChatMessage) -> int:
    """Rough token count for one message."""
    return math.ceil(len(message["content"]) / CHARS_PER_TOKEN)


def prune_history(history: list[ChatMessage], max_tokens: int) -> list[ChatMessage]:
    """Keep the newest messages whose combined estimate fits ``max_tokens``."""
    kept: list[ChatMessage] = []
    total = 0
    for message in reversed(history):
        tokens = estimate_message_tokens(message)
        if total + tokens > max_tokens:
            break
        kept.append(message)
        total += tokens
    kept.reverse()
    return kept


def format_history(history: list[ChatMessage]) -> str:
    """Render messages as ``User:`` and ``Assistant:`` turns."""
    return "\n\n".join(
        f"{'User' if message['role'] == 'user' else 'Assistant'}: {message['content']}"
        for message in history
    )


def build_context(
    history: list[ChatMessage],
    mode: ChatMode,
    page_content: str | None = None,
) -> str:
    """Build the full prompt from the system prompt, page content, and history."""
    parts = [SYSTEM_PROMPTS[mode]]
    if mode == "page" and page_content:
        parts.append(f"\n\nPage Content:\n{truncate_page_content(page_content)}")
    conversation = format_history(history)
    if conversation:
        parts.append(f"\n\nConversation History:\n{conversation}")
    return "\n".join(parts)


def generate_title(history: list[ChatMessage]) -> str:
    """Title a conversation after its first user message."""
    first = next((message for message in history if message["role"] == "user"), None)
    if first is None:
        return DEFAULT_TITLE
    content = first["content"].strip()
    title = content[:TITLE_CHARS]
    return f"{title}..." if len(title) < len(content) else title


def _now() -> str:
    return datetime.now(UTC).isoformat()


@dataclass
class ChatSessionState:
    """Runtime state for an interactive chat session."""

    mode: ChatMode = "personal"
    page_content: str | None = None
    history_tokens: int = DEFAULT_HISTORY_TOKENS
    history: list[ChatMessage] = field(default_factory=list)

    def add_message(self, role: Literal["user", "assistant"], content: str) -> None:
        """Append a message to the history."""
        self.history.append(ChatMessage(role=role, content=content, timestamp=_now()))

    def build_prompt(self, message: str) -> str:
        """Prompt for ``message`` given the pruned history so far."""
        turn = ChatMessage(role="user", content=message, timestamp=_now())
        history = prune_history([*self.history, turn], self.history_tokens)
        if not history:
            # The new message alone exceeds the budget; send it anyway
            history = [turn]
        return build_context(history, self.mode, self.page_content)

    def set_mode(self, mode: ChatMode) -> None:
        """Set the chat mode."""
        self.mode = mode

    def clear_history(self) -> int:
        """Clear conversation history. Returns number of messages cleared."""
        count = len(self.history)
        self.history.clear()
        return count

    @property
    def title(self) -> str:
        """Title derived from the first user message."""
        return generate_title(self.history)


def parse_slash_command(text: str) -> tuple[str, list[str]] | None:
    """Parse a slash command from text.

    Args:
        text: The input text to parse

    Returns:
        Tuple of (command, args) if it's a slash command, None otherwise

    """
    text = text.strip()
    if not text.startswith("/"):
        return None

    parts = text[1:].split()
    if not parts:
        return None

    return parts[0].lower(), parts[1:]


def handle_slash_command(
    command: str,
    args: list[str],
    state: ChatSessionState,
) -> str:
    """Execute a slash command and return a response message.

    ``/exit`` is recognized by the chat loop itself before this is called.
    """
    if command == "help":
        return _handle_help()

    if command == "mode":
        return _handle_mode(args, state)

    if command == "clear":
        return _handle_clear(state)

    if command == "history":
        return _handle_history(state)

    return f"Unknown command: /{command}. Type /help for available commands."


def _handle_help() -> str:
    return """\
Available commands:
  /mode            Show the current mode
  /mode personal   General conversation
  /mode page       Answer questions about the loaded page content
  /history         Show the conversation so far
  /clear           Clear conversation history
  /help            Show this help message
  /exit            Leave the chat

Keyboard shortcuts:
  Ctrl+C         Stop the current response (exit when idle)"""


def _handle_mode(args: list[str], state: ChatSessionState) -> str:
    if not args:
        return f"Current mode: {state.mode}. Use /mode personal or /mode page"

    arg = args[0].lower()
    if arg == "personal":
        state.set_mode("personal")
        return "Switched to personal mode"
    if arg == "page":
        if not state.page_content:
            return "No page content loaded. Start the chat with --context-file to use page mode."
        state.set_mode("page")
        return "Switched to page mode"
    return f"Invalid mode: {arg}. Use /mode personal or /mode page"


def _handle_clear(state: ChatSessionState) -> str:
    count = state.clear_history()
    return f"Cleared {count} messages from conversation history"


def _handle_history(state: ChatSessionState) -> str:
    if not state.history:
        return "No messages yet."
    return f"{state.title}\n\n{format_history(state.history)}"
