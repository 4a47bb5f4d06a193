"""Tests for the send/stop streaming controller."""

from __future__ import annotations

import asyncio
from typing import Any

import pytest

from recap.errors import (
    EngineBusyError,
    EngineUnavailableError,
    RateLimitedError,
    ValidationError,
)
from recap.streaming.controller import StreamingCommandController, StreamState
from tests.fakes import FakeEngine, FakeEngineSession, ScriptedTokenSource


def _engine(*emission_lists: list[str], **source_kwargs: Any) -> FakeEngine:
    """Engine whose n-th session streams the n-th emission list."""
    scripts = iter(emission_lists)

    def factory() -> FakeEngineSession:
        emissions = next(scripts)
        return FakeEngineSession(
            source_factory=lambda _: ScriptedTokenSource(emissions, **source_kwargs),
        )

    return FakeEngine(session_factory=factory)


class TestSend:
    """Tests for StreamingCommandController.send."""

    @pytest.mark.asyncio
    async def test_completes_with_full_text(self) -> None:
        """Test a natural completion."""
        engine = _engine(["Hi", " there", "!"])
        transitions: list[tuple[StreamState, StreamState]] = []
        controller = StreamingCommandController(
            engine,
            on_state_change=lambda old, new: transitions.append((old, new)),
        )
        buffers: list[str] = []

        result = await controller.send("  hello  ", on_delta=buffers.append)

        assert result.text == "Hi there!"
        assert result.state is StreamState.COMPLETED
        assert not result.stopped
        assert result.session_id
        assert buffers == ["Hi", "Hi there", "Hi there!"]
        assert controller.state is StreamState.IDLE
        assert controller.history == [StreamState.GENERATING, StreamState.COMPLETED, StreamState.IDLE]
        assert transitions[0] == (StreamState.IDLE, StreamState.GENERATING)
        assert engine.sessions[0].prompts == ["hello"]
        assert engine.sessions[0].destroy_calls == 1

    @pytest.mark.asyncio
    async def test_prompt_builder_and_options(self) -> None:
        """Test that the prompt builder and session options reach the engine."""
        engine = _engine(["ok"])
        controller = StreamingCommandController(
            engine,
            kind="chat",
            session_options={"temperature": 0.7},
            prompt_builder=lambda message: f"User: {message}",
        )
        await controller.send("question")
        assert engine.sessions[0].prompts == ["User: question"]
        assert engine.options == [{"temperature": 0.7}]

    @pytest.mark.asyncio
    async def test_fresh_session_per_send(self) -> None:
        """Test that a new engine session is created for every send."""
        engine = _engine(["one"], ["two"])
        controller = StreamingCommandController(engine)

        first = await controller.send("a")
        second = await controller.send("b")

        assert (first.text, second.text) == ("one", "two")
        assert first.session_id != second.session_id
        assert len(engine.sessions) == 2
        assert [session.destroy_calls for session in engine.sessions] == [1, 1]

    @pytest.mark.parametrize("message", ["", "   \n\t"])
    @pytest.mark.asyncio
    async def test_empty_message_rejected(self, message: str) -> None:
        """Test that validation fails without leaving Idle."""
        engine = _engine(["never"])
        controller = StreamingCommandController(engine)
        with pytest.raises(ValidationError, match="empty"):
            await controller.send(message)
        assert controller.state is StreamState.IDLE
        assert controller.history == []
        assert engine.sessions == []

    @pytest.mark.asyncio
    async def test_too_long_message_rejected(self) -> None:
        """Test the message length limit."""
        controller = StreamingCommandController(_engine(["never"]), max_message_length=10)
        with pytest.raises(ValidationError, match="too long"):
            await controller.send("x" * 11)
        assert controller.state is StreamState.IDLE

    @pytest.mark.asyncio
    async def test_busy_while_generating(self) -> None:
        """Test that a second send is rejected instead of queued."""
        gate = asyncio.Event()
        engine = _engine(["slow"], gate=gate)
        controller = StreamingCommandController(engine)

        first = asyncio.create_task(controller.send("a"))
        source = await _wait_for_source(engine)
        await source.read_started.wait()

        with pytest.raises(EngineBusyError):
            await controller.send("b")

        gate.set()
        result = await first
        assert result.text == "slow"
        assert len(engine.sessions) == 1

    @pytest.mark.asyncio
    async def test_engine_error_goes_through_errored(self) -> None:
        """Test that a stream error is classified and the controller recovers."""

        def failing() -> FakeEngineSession:
            return FakeEngineSession(
                source_factory=lambda _: ScriptedTokenSource(
                    ["partial"],
                    error=RuntimeError("Rate limit reached"),
                ),
            )

        engine = FakeEngine(session_factory=failing)
        controller = StreamingCommandController(engine)
        with pytest.raises(RateLimitedError):
            await controller.send("a")
        assert controller.history == [
            StreamState.GENERATING,
            StreamState.ERRORED,
            StreamState.IDLE,
        ]
        assert engine.sessions[0].destroy_calls == 1

        engine.session_factory = lambda: FakeEngineSession(responder=lambda _: "recovered")
        result = await controller.send("b")
        assert result.text == "recovered"
        assert len(engine.sessions) == 2

    @pytest.mark.asyncio
    async def test_create_session_error(self) -> None:
        """Test an engine that cannot create a session."""

        class Unavailable(FakeEngine):
            async def create_session(  # noqa: ARG002
                self,
                kind: str,
                options: dict[str, Any] | None = None,
            ) -> FakeEngineSession:
                msg = "Model is not available"
                raise EngineUnavailableError(msg)

        controller = StreamingCommandController(Unavailable())
        with pytest.raises(EngineUnavailableError):
            await controller.send("hello")
        assert controller.history == [StreamState.GENERATING, StreamState.ERRORED, StreamState.IDLE]
        assert controller.active_session is None

    @pytest.mark.asyncio
    async def test_generate_streaming_failure_destroys_session(self) -> None:
        """Test that the engine session is released when streaming cannot start."""

        def broken(_: str) -> ScriptedTokenSource:
            msg = "not supported"
            raise RuntimeError(msg)

        session = FakeEngineSession(source_factory=broken)
        controller = StreamingCommandController(FakeEngine(session_factory=lambda: session))
        with pytest.raises(EngineUnavailableError):
            await controller.send("hello")
        assert session.destroy_calls == 1
        assert controller.state is StreamState.IDLE


class TestStop:
    """Tests for StreamingCommandController.stop."""

    @pytest.mark.asyncio
    async def test_stop_while_idle_is_noop(self) -> None:
        """Test that stopping an idle controller changes nothing."""
        controller = StreamingCommandController(_engine())
        await controller.stop()
        await controller.stop()
        assert controller.state is StreamState.IDLE
        assert controller.history == []
        assert not controller.stop_requested

    @pytest.mark.asyncio
    async def test_stop_before_first_pull_resolves(self) -> None:
        """Test stopping while the first read is still in flight."""
        engine = _engine(["never delivered"], gate=asyncio.Event())
        controller = StreamingCommandController(engine)

        task = asyncio.create_task(controller.send("Summarize this"))
        source = await _wait_for_source(engine)
        await source.read_started.wait()
        assert controller.state is StreamState.GENERATING

        await controller.stop()
        result = await task

        assert result.text == ""
        assert result.stopped
        assert controller.history[0] is StreamState.GENERATING
        assert controller.history[-2:] == [StreamState.STOPPED, StreamState.IDLE]
        assert StreamState.ERRORED not in controller.history
        assert source.cancel_calls == 1
        assert engine.sessions[0].destroy_calls == 1

    @pytest.mark.asyncio
    async def test_stop_between_pulls_keeps_partial_text(self) -> None:
        """Test that at most one pull completes after a stop request."""
        gate = asyncio.Event()
        gate.set()
        engine = _engine(["Hel", "lo", " world"], gate=gate)
        controller = StreamingCommandController(engine)
        pending: list[asyncio.Task[None]] = []

        def on_delta(_: str) -> None:
            if not pending:
                pending.append(asyncio.create_task(controller.stop()))

        result = await controller.send("hi", on_delta=on_delta)
        await asyncio.gather(*pending)

        assert result.stopped
        assert result.text == "Hel"
        assert controller.state is StreamState.IDLE
        assert engine.sessions[0].destroy_calls == 1

    @pytest.mark.asyncio
    async def test_send_after_stop_uses_new_session(self) -> None:
        """Test that a stopped session is never reused."""
        engine = _engine(["first"], gate=asyncio.Event())
        controller = StreamingCommandController(engine)

        task = asyncio.create_task(controller.send("a"))
        source = await _wait_for_source(engine)
        await source.read_started.wait()
        await controller.stop()
        await task

        engine.session_factory = lambda: FakeEngineSession(responder=lambda _: "fresh")
        result = await controller.send("b")
        assert result.text == "fresh"
        assert result.state is StreamState.COMPLETED
        assert len(engine.sessions) == 2


class TestCallerCancellation:
    """Tests for a send cancelled from outside the controller."""

    @pytest.mark.asyncio
    async def test_wait_for_timeout_returns_to_idle(self) -> None:
        """Test that a timed-out send releases its session and allows another send."""
        engine = _engine(["never delivered"], gate=asyncio.Event())
        controller = StreamingCommandController(engine)

        with pytest.raises(asyncio.TimeoutError):
            await asyncio.wait_for(controller.send("hello"), 0.05)

        assert controller.state is StreamState.IDLE
        assert controller.history == [StreamState.GENERATING, StreamState.STOPPED, StreamState.IDLE]
        assert controller.active_session is None
        assert engine.sessions[0].destroy_calls == 1

        engine.session_factory = lambda: FakeEngineSession(responder=lambda _: "again")
        result = await controller.send("again")
        assert result.text == "again"
        assert result.state is StreamState.COMPLETED
        assert engine.sessions[1].destroy_calls == 1


class TestHistory:
    """Tests for the per-send transition history."""

    @pytest.mark.asyncio
    async def test_history_covers_latest_send_only(self) -> None:
        """Test that history does not grow across sends."""
        engine = _engine(["one"], ["two"], ["three"])
        controller = StreamingCommandController(engine)

        for message in ("a", "b", "c"):
            await controller.send(message)

        assert controller.history == [StreamState.GENERATING, StreamState.COMPLETED, StreamState.IDLE]


async def _wait_for_source(engine: FakeEngine) -> ScriptedTokenSource:
    while not engine.sessions or not engine.sessions[-1].sources:
        await asyncio.sleep(0)
    source = engine.sessions[-1].sources[-1]
    assert isinstance(source, ScriptedTokenSource)
    return source
