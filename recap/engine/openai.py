"""Engine adapter for OpenAI-compatible chat-completion servers.

Works with Ollama, llama.cpp, vLLM, and OpenAI itself. Complete responses go
through pydantic-ai; streamed responses read the ``/chat/completions``
Server-Sent Events directly with httpx so that they can be cancelled between
tokens.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Any

import httpx

from recap.engine._sse import extract_content, extract_error, is_done, parse_chunk
from recap.engine.base import Capability, Engine, EngineSession, ReadResult, TokenSource
from recap.errors import EngineDownloadingError, EngineUnavailableError, classify_error
from recap.streaming.session import EmissionStyle
from recap.summarizer.chunking import estimate_tokens

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator

logger = logging.getLogger(__name__)

OLLAMA_DEFAULT_PORT = "11434"


def is_ollama_host(base_url: str) -> bool:
    """Whether the server looks like Ollama, which pulls models on demand."""
    return OLLAMA_DEFAULT_PORT in base_url or "ollama" in base_url.lower()


def _auth_headers(api_key: str | None) -> dict[str, str]:
    return {"Authorization": f"Bearer {api_key}"} if api_key else {}


class SSETokenSource(TokenSource):
    """Token source over a streamed chat completion.

    Each read yields one incremental delta. Cancelling while a read is in
    flight ends that read with ``done=True`` and closes the HTTP response.
    """

    emission_style = EmissionStyle.INCREMENTAL

    def __init__(
        self,
        client: httpx.AsyncClient,
        url: str,
        payload: dict[str, Any],
        headers: dict[str, str] | None = None,
    ) -> None:
        """Prepare the request; nothing is sent until the first read."""
        self._client = client
        self._url = url
        self._payload = payload
        self._headers = headers or {}
        self._iterator = self._deltas()
        self._pending: asyncio.Task[str | None] | None = None
        self._cancelled = False
        self._finished = False

    async def _deltas(self) -> AsyncGenerator[str, None]:
        async with self._client.stream(
            "POST",
            self._url,
            json=self._payload,
            headers=self._headers,
        ) as response:
            if response.status_code != 200:  # noqa: PLR2004
                await response.aread()
                response.raise_for_status()
            async for line in response.aiter_lines():
                if not line:
                    continue
                if is_done(line):
                    return
                chunk = parse_chunk(line)
                if chunk is None:
                    continue
                error = extract_error(chunk)
                if error is not None:
                    raise classify_error(RuntimeError(error))
                piece = extract_content(chunk)
                if piece:
                    yield piece

    async def _next(self) -> str | None:
        try:
            return await anext(self._iterator)
        except StopAsyncIteration:
            return None

    async def read(self) -> ReadResult:
        """Read the next delta from the stream."""
        if self._cancelled or self._finished:
            return ReadResult(done=True)

        self._pending = asyncio.ensure_future(self._next())
        try:
            value = await self._pending
        except asyncio.CancelledError:
            if self._cancelled:
                return ReadResult(done=True)
            raise
        finally:
            self._pending = None

        if value is None:
            self._finished = True
            return ReadResult(done=True)
        return ReadResult(done=False, value=value)

    async def cancel(self, reason: str | None = None) -> None:
        """Stop the stream and close the underlying response."""
        if self._cancelled:
            return
        self._cancelled = True
        logger.debug("Cancelling stream: %s", reason or "no reason given")
        if self._pending is not None and not self._pending.done():
            self._pending.cancel()
        else:
            await self._iterator.aclose()


class OpenAISession(EngineSession):
    """A single-use session against an OpenAI-compatible server."""

    def __init__(
        self,
        engine: OpenAIEngine,
        *,
        system_prompt: str | None = None,
        temperature: float | None = None,
        max_tokens: int | None = None,
    ) -> None:
        """Bind the session to the engine's server and model."""
        self.engine = engine
        self.system_prompt = system_prompt
        self.temperature = engine.temperature if temperature is None else temperature
        self.max_tokens = engine.max_tokens if max_tokens is None else max_tokens
        self.input_quota = engine.context_tokens
        self.input_usage = 0
        self.destroyed = False
        self._client: httpx.AsyncClient | None = None

    def _check_alive(self) -> None:
        if self.destroyed:
            msg = "Engine session has been destroyed"
            raise RuntimeError(msg)

    async def generate(self, prompt: str) -> str:
        """Generate a complete response with pydantic-ai."""
        from pydantic_ai import Agent  # noqa: PLC0415
        from pydantic_ai.models.openai import OpenAIChatModel  # noqa: PLC0415
        from pydantic_ai.providers.openai import OpenAIProvider  # noqa: PLC0415
        from pydantic_ai.settings import ModelSettings  # noqa: PLC0415

        self._check_alive()
        self.input_usage += estimate_tokens(prompt)

        settings = ModelSettings(temperature=self.temperature)
        if self.max_tokens is not None:
            settings["max_tokens"] = self.max_tokens

        provider = OpenAIProvider(
            api_key=self.engine.api_key or "dummy",
            base_url=self.engine.base_url,
        )
        model = OpenAIChatModel(
            model_name=self.engine.model,
            provider=provider,
            settings=settings,
        )
        agent = Agent(
            model=model,
            system_prompt=self.system_prompt or (),
            output_type=str,
        )

        try:
            result = await agent.run(prompt)
        except Exception as e:
            error = classify_error(e)
            if error is e:
                raise
            raise error from e
        return result.output.strip()

    def generate_streaming(self, prompt: str) -> TokenSource:
        """Start a streamed chat completion."""
        self._check_alive()
        self.input_usage += estimate_tokens(prompt)

        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.engine.request_timeout)

        messages: list[dict[str, str]] = []
        if self.system_prompt:
            messages.append({"role": "system", "content": self.system_prompt})
        messages.append({"role": "user", "content": prompt})

        payload: dict[str, Any] = {
            "model": self.engine.model,
            "messages": messages,
            "stream": True,
            "temperature": self.temperature,
        }
        if self.max_tokens is not None:
            payload["max_tokens"] = self.max_tokens

        return SSETokenSource(
            self._client,
            f"{self.engine.base_url}/chat/completions",
            payload,
            headers=_auth_headers(self.engine.api_key),
        )

    async def destroy(self) -> None:
        """Close the HTTP client. Later calls do nothing."""
        if self.destroyed:
            return
        self.destroyed = True
        if self._client is not None:
            await self._client.aclose()
            self._client = None


class OpenAIEngine(Engine):
    """Engine backed by an OpenAI-compatible ``/v1`` endpoint.

    Example:
        engine = OpenAIEngine("http://localhost:11434/v1", "llama3.1:8b")
        async with open_session(engine, "chat") as session:
            print(await session.generate("Hello"))

    """

    def __init__(
        self,
        base_url: str,
        model: str,
        api_key: str | None = None,
        *,
        context_tokens: int | None = None,
        temperature: float = 0.3,
        max_tokens: int | None = None,
        request_timeout: float = 120.0,
    ) -> None:
        """Store connection settings; no request is made until a session is used."""
        self.base_url = base_url.rstrip("/")
        self.model = model
        self.api_key = api_key
        self.context_tokens = context_tokens
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.request_timeout = request_timeout
        self._available = False

    async def list_models(self) -> list[str]:
        """Return the model ids reported by ``GET /models``."""
        async with httpx.AsyncClient(timeout=self.request_timeout) as client:
            response = await client.get(
                f"{self.base_url}/models",
                headers=_auth_headers(self.api_key),
            )
            response.raise_for_status()
            data = response.json()
        return [item["id"] for item in data.get("data", []) if "id" in item]

    async def check_capability(self, kind: str) -> Capability:
        """Check that the server is reachable and serves the configured model."""
        try:
            models = await self.list_models()
        except (httpx.HTTPError, ValueError) as e:
            logger.warning("Engine at %s is unavailable for %s: %s", self.base_url, kind, e)
            return Capability.UNAVAILABLE

        if self.model in models:
            return Capability.AVAILABLE
        if is_ollama_host(self.base_url):
            return Capability.NEEDS_DOWNLOAD
        logger.warning("Model %s not found at %s", self.model, self.base_url)
        return Capability.UNAVAILABLE

    async def create_session(
        self,
        kind: str,
        options: dict[str, Any] | None = None,
    ) -> OpenAISession:
        """Create a session once the model is known to be available.

        Raises:
            EngineDownloadingError: If the model must be pulled first.
            EngineUnavailableError: If the server or model is missing.

        """
        if not self._available:
            capability = await self.check_capability(kind)
            if capability is Capability.NEEDS_DOWNLOAD:
                msg = f"Model {self.model} needs to be downloaded (ollama pull {self.model})"
                raise EngineDownloadingError(msg)
            if capability is Capability.UNAVAILABLE:
                msg = f"Model {self.model} is not available at {self.base_url}"
                raise EngineUnavailableError(msg)
            self._available = True

        options = options or {}
        logger.debug("Creating %s session for %s", kind, self.model)
        return OpenAISession(
            self,
            system_prompt=options.get("system_prompt"),
            temperature=options.get("temperature"),
            max_tokens=options.get("max_tokens"),
        )

    async def input_budget(self, kind: str) -> int | None:  # noqa: ARG002
        """The configured context size in tokens, if any."""
        return self.context_tokens
