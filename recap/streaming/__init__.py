"""Cancellable streamed generation."""

from recap.streaming.controller import SendResult, StreamingCommandController, StreamState
from recap.streaming.session import EmissionStyle, StreamSession, classify_emission

__all__ = [
    "EmissionStyle",
    "SendResult",
    "StreamSession",
    "StreamState",
    "StreamingCommandController",
    "classify_emission",
]
