"""Send/stop state machine for interactive streamed generation.

States move ``IDLE -> GENERATING -> {COMPLETED, STOPPED, ERRORED} -> IDLE``,
with ``STOPPING`` between a stop request and the end of the in-flight pull.
Stop is cooperative: the flag is checked before every pull, so at most one
pull that was already in flight completes after `stop` is called.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any

from recap.constants import MAX_MESSAGE_CHARS
from recap.core.chat_state import validate_message
from recap.errors import EngineBusyError, classify_error
from recap.streaming.session import StreamSession

if TYPE_CHECKING:
    from collections.abc import Callable

    from recap.engine.base import Engine, EngineSession

logger = logging.getLogger(__name__)


class StreamState(str, Enum):
    """State of a `StreamingCommandController`."""

    IDLE = "idle"
    GENERATING = "generating"
    STOPPING = "stopping"
    STOPPED = "stopped"
    ERRORED = "errored"
    COMPLETED = "completed"


@dataclass
class SendResult:
    """Outcome of a `send` that did not raise."""

    text: str
    state: StreamState
    session_id: str | None = None

    @property
    def stopped(self) -> bool:
        """Whether the user stopped the generation early."""
        return self.state is StreamState.STOPPED


@dataclass
class StreamingCommandController:
    """Run one streamed generation at a time with cooperative stop.

    Every `send` opens a brand-new engine session and `StreamSession`; a
    session is never reused after it ends.
    ``history`` holds the transitions of the most recent send only.

    Example:
        controller = StreamingCommandController(engine, kind="chat")
        result = await controller.send("Hello", on_delta=lambda text: print(text))
        if result.stopped:
            print("(stopped)")

    """

    engine: Engine
    kind: str = "chat"
    session_options: dict[str, Any] = field(default_factory=dict)
    max_message_length: int = MAX_MESSAGE_CHARS
    prompt_builder: Callable[[str], str] | None = None
    on_state_change: Callable[[StreamState, StreamState], None] | None = None
    state: StreamState = field(default=StreamState.IDLE, init=False)
    history: list[StreamState] = field(default_factory=list, init=False)
    stop_requested: bool = field(default=False, init=False)
    active_session: StreamSession | None = field(default=None, init=False)

    def _transition(self, new_state: StreamState) -> None:
        old_state = self.state
        self.state = new_state
        self.history.append(new_state)
        logger.debug("Controller state %s -> %s", old_state.value, new_state.value)
        if self.on_state_change is not None:
            self.on_state_change(old_state, new_state)

    async def send(
        self,
        message: str,
        *,
        on_delta: Callable[[str], None] | None = None,
    ) -> SendResult:
        """Generate a streamed response to ``message``.

        Args:
            message: The user's input.
            on_delta: Called with the accumulated text after every delta.

        Returns:
            The accumulated text with state ``COMPLETED`` or ``STOPPED``.

        Raises:
            EngineBusyError: If a generation is already running.
            ValidationError: If the message is empty or too long.
            RecapError: The classified engine error, after the state has
                passed through ``ERRORED`` back to ``IDLE``.
            asyncio.CancelledError: If the caller cancels the send. The
                session is released and the state passes through
                ``STOPPED`` back to ``IDLE``.

        """
        if self.state is not StreamState.IDLE:
            msg = f"Cannot send while {self.state.value}"
            raise EngineBusyError(msg)

        message = validate_message(message, self.max_message_length)
        prompt = self.prompt_builder(message) if self.prompt_builder else message

        self.stop_requested = False
        self.history.clear()
        self._transition(StreamState.GENERATING)
        buffer = ""
        session_id: str | None = None
        try:
            stream = await self._open_stream(prompt)
            session_id = stream.id
            while True:
                if self.stop_requested:
                    await stream.cancel("stopped by user")
                    break
                delta = await stream.pull()
                if delta is None:
                    break
                buffer += delta
                if on_delta is not None:
                    on_delta(buffer)
        except Exception as e:
            if self.stop_requested:
                logger.debug("Error after stop request ignored: %s", e)
            else:
                self._transition(StreamState.ERRORED)
                error = classify_error(e)
                if error is e:
                    raise
                raise error from e
        except asyncio.CancelledError:
            logger.debug("Send cancelled by caller")
            self._transition(StreamState.STOPPED)
            raise
        finally:
            await self._release()
            if self.state in (StreamState.ERRORED, StreamState.STOPPED):
                self._transition(StreamState.IDLE)

        final_state = StreamState.STOPPED if self.stop_requested else StreamState.COMPLETED
        self._transition(final_state)
        self._transition(StreamState.IDLE)
        return SendResult(text=buffer, state=final_state, session_id=session_id)

    async def _open_stream(self, prompt: str) -> StreamSession:
        engine_session: EngineSession = await self.engine.create_session(
            self.kind,
            self.session_options,
        )
        try:
            source = engine_session.generate_streaming(prompt)
        except Exception:
            await engine_session.destroy()
            raise
        self.active_session = StreamSession(source, engine_session)
        return self.active_session

    async def _release(self) -> None:
        session, self.active_session = self.active_session, None
        if session is not None:
            await session.cancel("released")

    async def stop(self) -> None:
        """Request that the running generation stop. Does nothing when idle."""
        if self.state is StreamState.IDLE:
            return
        self.stop_requested = True
        if self.state is StreamState.GENERATING:
            self._transition(StreamState.STOPPING)
        if self.active_session is not None:
            await self.active_session.cancel("stopped by user")
