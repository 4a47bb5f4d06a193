"""Error taxonomy for engine-backed summarization and chat.

Every failure that reaches a caller is one of the `RecapError` subclasses
below. Raw engine exceptions are converted with `classify_error`, which keeps
the original exception chained as ``__cause__`` for diagnostics.

A user-initiated stop is not an error: the controller returns the partial
output with state ``STOPPED``. `ErrorKind.ABORTED_BY_USER` exists only so the
outcome can be reported alongside the other kinds.
"""

from __future__ import annotations

from enum import Enum

import httpx


class ErrorKind(str, Enum):
    """Category of a failure, used for user-facing messages."""

    CONFIGURATION = "configuration"
    VALIDATION = "validation"
    ENGINE_BUSY = "engine_busy"
    ENGINE_UNAVAILABLE = "engine_unavailable"
    ENGINE_DOWNLOADING = "engine_downloading"
    RATE_LIMITED = "rate_limited"
    QUOTA_EXCEEDED = "quota_exceeded"
    ABORTED_BY_USER = "aborted_by_user"
    UNKNOWN = "unknown"


class RecapError(Exception):
    """Base class for all classified errors."""

    kind: ErrorKind = ErrorKind.UNKNOWN
    hint: str = "An unexpected error occurred."


class ConfigurationError(RecapError, ValueError):
    """Caller misconfiguration, raised at construction time."""

    kind = ErrorKind.CONFIGURATION
    hint = "Check the chunking and engine settings."


class ValidationError(RecapError, ValueError):
    """Invalid interactive input or content that cannot be summarized."""

    kind = ErrorKind.VALIDATION
    hint = "Adjust the input and try again."


class EngineBusyError(RecapError):
    """A send was issued while a generation is still running."""

    kind = ErrorKind.ENGINE_BUSY
    hint = "Wait for the current response to finish or stop it first."


class EngineUnavailableError(RecapError):
    """The generative engine is missing or does not support the request."""

    kind = ErrorKind.ENGINE_UNAVAILABLE
    hint = "Check that the LLM server is running and the model exists."


class EngineDownloadingError(RecapError):
    """The engine needs a one-time model download before it can be used."""

    kind = ErrorKind.ENGINE_DOWNLOADING
    hint = "The model is downloading. This may take a few minutes on first use."


class RateLimitedError(RecapError):
    """Transient backpressure from the engine."""

    kind = ErrorKind.RATE_LIMITED
    hint = "The engine is rate limited. Wait a minute and try again."


class QuotaExceededError(RecapError):
    """The input exceeded the engine's capacity."""

    kind = ErrorKind.QUOTA_EXCEEDED
    hint = "The input is too large for the engine. Try a shorter text or a smaller chunk size."


class UnknownEngineError(RecapError):
    """Any other engine failure, wrapping the original message."""

    kind = ErrorKind.UNKNOWN


# Checked in order, first match wins.
_KEYWORD_RULES: tuple[tuple[tuple[str, ...], type[RecapError]], ...] = (
    (("too large", "quotaexceedederror", "context length", "maximum context"), QuotaExceededError),
    (("rate limit", "quota", "too many requests"), RateLimitedError),
    (("after-download", "downloading", "download"), EngineDownloadingError),
    (("not available", "not supported", "connection refused", "not found"), EngineUnavailableError),
)


def _classify_status(status_code: int) -> type[RecapError] | None:
    if status_code == 413:  # noqa: PLR2004
        return QuotaExceededError
    if status_code == 429:  # noqa: PLR2004
        return RateLimitedError
    if status_code in (404, 501, 503):
        return EngineUnavailableError
    return None


def classify_error(exc: BaseException) -> RecapError:
    """Convert an arbitrary exception into a classified `RecapError`.

    Already-classified errors are returned unchanged, so callers re-raise with
    a bare ``raise`` when the result is ``e`` itself and ``raise error from e``
    otherwise.
    """
    if isinstance(exc, RecapError):
        return exc

    message = str(exc) or exc.__class__.__name__

    if isinstance(exc, httpx.HTTPStatusError):
        status_code: int | None = exc.response.status_code
    else:
        # pydantic-ai's ModelHTTPError and the openai SDK errors carry status_code
        status_code = getattr(exc, "status_code", None)
    if isinstance(status_code, int):
        error_cls = _classify_status(status_code)
        if error_cls is not None:
            return error_cls(message)
    if isinstance(exc, httpx.ConnectError):
        return EngineUnavailableError(message)

    lowered = f"{exc.__class__.__name__} {message}".lower()
    for keywords, error_cls in _KEYWORD_RULES:
        if any(keyword in lowered for keyword in keywords):
            return error_cls(message)

    return UnknownEngineError(f"Engine request failed: {message}")
