"""Normalized, cancellable view over an engine token stream.

Engines emit either cumulative snapshots ("Hi", "Hi there", ...) or
incremental deltas ("Hi", " there", ...). `StreamSession` turns both into
deltas. The style is taken from the source when it declares one, otherwise
it is detected once, on the second non-empty emission, and kept for the rest
of the session.
"""

from __future__ import annotations

import logging
import os
import uuid
from enum import Enum
from typing import TYPE_CHECKING

from recap.errors import classify_error

if TYPE_CHECKING:
    from collections.abc import AsyncIterator
    from types import TracebackType

    from recap.engine.base import EngineSession, TokenSource

logger = logging.getLogger(__name__)


class EmissionStyle(str, Enum):
    """How a token source reports generated text."""

    CUMULATIVE = "cumulative"
    INCREMENTAL = "incremental"


def classify_emission(previous: str, current: str) -> EmissionStyle:
    """Classify a stream from its accumulated text and the next emission.

    A stream whose next emission starts with everything seen so far is
    cumulative; anything else is treated as incremental.
    """
    if previous and current.startswith(previous):
        return EmissionStyle.CUMULATIVE
    return EmissionStyle.INCREMENTAL


class StreamSession:
    """Single-pass lazy sequence of text deltas from one token source.

    The session owns the token source and, if given, the engine session that
    produced it. Both are released exactly once: on completion, on error, or
    on the first `cancel`.

    Example:
        source = engine_session.generate_streaming(prompt)
        async with StreamSession(source, engine_session) as stream:
            async for delta in stream:
                print(delta, end="")

    """

    def __init__(
        self,
        source: TokenSource,
        engine_session: EngineSession | None = None,
    ) -> None:
        """Wrap ``source``; ``engine_session`` is destroyed when the stream ends."""
        self.id = uuid.uuid4().hex
        self.source = source
        self.engine_session = engine_session
        self.text = ""
        self.style: EmissionStyle | None = getattr(source, "emission_style", None)
        self.cancel_requested = False
        self.destroyed = False
        self.finished = False
        self.error: BaseException | None = None
        self._emissions = 0

    async def pull(self) -> str | None:
        """Return the next non-empty delta, or None when the stream has ended.

        Raises:
            RecapError: The classified error from the underlying source. The
                same error is raised again on later pulls.

        """
        while True:
            if self.error is not None:
                raise self.error
            if self.finished or self.cancel_requested:
                return None

            try:
                result = await self.source.read()
            except Exception as e:
                error = classify_error(e)
                self.error = error
                logger.debug("Stream %s failed: %s", self.id, e)
                await self._release()
                if error is e:
                    raise
                raise error from e

            if result.done:
                self.finished = True
                await self._release()
                return None

            delta = self._normalize(result.value or "")
            if delta:
                return delta

    def _normalize(self, emission: str) -> str:
        """Convert one raw emission into a delta and update ``text``."""
        if not emission:
            return ""
        self._emissions += 1

        if self.style is None and self._emissions == 2:  # noqa: PLR2004
            self.style = classify_emission(self.text, emission)
            logger.debug("Stream %s emits %s text", self.id, self.style.value)

        if self.style is EmissionStyle.CUMULATIVE:
            if emission.startswith(self.text):
                delta = emission[len(self.text) :]
            else:
                # The engine rewrote earlier text; keep the new snapshot and
                # emit what follows the common prefix
                common = len(os.path.commonprefix([self.text, emission]))
                logger.warning(
                    "Stream %s snapshot does not extend the previous text, replacing it",
                    self.id,
                )
                delta = emission[common:]
            self.text = emission
            return delta

        self.text += emission
        return emission

    async def cancel(self, reason: str | None = None) -> None:
        """Cancel the stream and release its resources. Safe to call repeatedly."""
        if self.cancel_requested:
            return
        self.cancel_requested = True
        logger.debug("Cancelling stream %s: %s", self.id, reason or "no reason given")
        if not self.finished and self.error is None:
            await self.source.cancel(reason)
        await self._release()

    async def _release(self) -> None:
        if self.destroyed:
            return
        self.destroyed = True
        if self.engine_session is not None:
            await self.engine_session.destroy()

    def __aiter__(self) -> AsyncIterator[str]:
        return self._iterate()

    async def _iterate(self) -> AsyncIterator[str]:
        while (delta := await self.pull()) is not None:
            yield delta

    async def __aenter__(self) -> StreamSession:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.cancel("closed")
