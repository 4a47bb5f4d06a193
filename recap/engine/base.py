"""Abstract interface to a generative text engine.

An `Engine` hands out single-use `EngineSession` objects. A session can
generate a complete response or a `TokenSource`, a read-once cancellable
stream of text emissions. Sessions are exclusive resources: the component
that creates one owns it and must destroy it exactly once.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from contextlib import asynccontextmanager
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from recap.streaming.session import EmissionStyle

logger = logging.getLogger(__name__)


class Capability(str, Enum):
    """Whether the engine can serve a given session kind."""

    AVAILABLE = "available"
    NEEDS_DOWNLOAD = "needs_download"
    UNAVAILABLE = "unavailable"


@dataclass(frozen=True)
class ReadResult:
    """One read from a `TokenSource`."""

    done: bool
    value: str | None = None


class TokenSource(ABC):
    """A read-once, cancellable stream of text emissions.

    Emissions are either cumulative snapshots or incremental deltas. Sources
    that know which one they produce set ``emission_style``; otherwise the
    consumer detects it.
    """

    emission_style: EmissionStyle | None = None

    @abstractmethod
    async def read(self) -> ReadResult:
        """Advance the stream once."""
        ...

    @abstractmethod
    async def cancel(self, reason: str | None = None) -> None:
        """Request cancellation of the stream."""
        ...


class EngineSession(ABC):
    """A stateful, single-use handle to the engine."""

    input_quota: int | None = None
    input_usage: int = 0

    @abstractmethod
    async def generate(self, prompt: str) -> str:
        """Generate a complete response."""
        ...

    @abstractmethod
    def generate_streaming(self, prompt: str) -> TokenSource:
        """Start a streamed response."""
        ...

    @abstractmethod
    async def destroy(self) -> None:
        """Release the session. Calling it again must be a no-op."""
        ...


class Engine(ABC):
    """Factory for engine sessions."""

    @abstractmethod
    async def check_capability(self, kind: str) -> Capability:
        """Report whether sessions of ``kind`` can be created."""
        ...

    @abstractmethod
    async def create_session(
        self,
        kind: str,
        options: dict[str, Any] | None = None,
    ) -> EngineSession:
        """Create a new exclusive session."""
        ...

    async def input_budget(self, kind: str) -> int | None:  # noqa: ARG002
        """Remaining input capacity in tokens, or None when unknown."""
        return None


@asynccontextmanager
async def open_session(
    engine: Engine,
    kind: str,
    options: dict[str, Any] | None = None,
) -> AsyncIterator[EngineSession]:
    """Create a session and destroy it on every exit path."""
    session = await engine.create_session(kind, options)
    try:
        yield session
    finally:
        await session.destroy()
        logger.debug("Destroyed %s session", kind)
