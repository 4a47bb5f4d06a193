"""Generative engine interface and adapters."""

from recap.engine.base import (
    Capability,
    Engine,
    EngineSession,
    ReadResult,
    TokenSource,
    open_session,
)

__all__ = [
    "Capability",
    "Engine",
    "EngineSession",
    "ReadResult",
    "TokenSource",
    "open_session",
]
