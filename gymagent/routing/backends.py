"""Backend model interface and its langchain-openai implementation.

A backend answers one prompt per call, either as a whole or streamed chunk by
chunk. Every call is bounded by a timeout; failures surface as
BackendUnavailableError or BackendCallError and are handled by the router.
"""

import asyncio
from collections.abc import AsyncIterator, Callable
from typing import Protocol, runtime_checkable

from langchain_core.prompts import ChatPromptTemplate
from langchain_openai import ChatOpenAI
from loguru import logger
from pydantic import SecretStr

from gymagent.core.settings import settings
from gymagent.routing.errors import BackendCallError, BackendUnavailableError
from gymagent.routing.types import BackendRequest, BackendResponse, StreamResult, Tier

ChunkCallback = Callable[[str], None]

_STREAM_END = object()

COACH_SYSTEM_PROMPT = (
    "You are a knowledgeable, encouraging strength and fitness coach. "
    "Answer precisely and follow any output format the request asks for."
)

_chat_prompt = ChatPromptTemplate.from_messages([
    ("system", "{system}"),
    ("human", "{prompt}"),
])


@runtime_checkable
class LLMBackend(Protocol):
    tier: Tier

    @property
    def available(self) -> bool: ...

    async def generate(self, request: BackendRequest) -> BackendResponse: ...

    async def stream(
        self,
        request: BackendRequest,
        on_chunk: ChunkCallback,
        cancel_event: asyncio.Event | None = None,
    ) -> StreamResult: ...


def _content_to_text(content: object) -> str:
    """Flatten a chat message content (str or list of content parts) to text."""
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        parts = []
        for part in content:
            if isinstance(part, str):
                parts.append(part)
            elif isinstance(part, dict) and isinstance(part.get("text"), str):
                parts.append(part["text"])
        return "".join(parts)
    return str(content)


def _to_messages(request: BackendRequest):
    return _chat_prompt.format_messages(system=request.system or COACH_SYSTEM_PROMPT, prompt=request.prompt)


class LangChainBackend:
    """Chat-model backend for one tier."""

    def __init__(
        self,
        tier: Tier,
        model_name: str,
        api_key: str | None = None,
        timeout_seconds: float | None = None,
    ) -> None:
        self.tier = tier
        self.model_name = model_name
        self._api_key = api_key if api_key is not None else settings.openai_api_key
        self.timeout_seconds = timeout_seconds if timeout_seconds is not None else settings.backend_timeout_seconds
        self._models: dict[tuple[float, int], ChatOpenAI] = {}

    @property
    def available(self) -> bool:
        return bool(self._api_key)

    def _get_llm(self, request: BackendRequest) -> ChatOpenAI:
        if not self.available:
            raise BackendUnavailableError(self.tier.value, "OPENAI_API_KEY is not set")

        temperature = request.temperature if request.temperature is not None else settings.backend_temperature
        max_tokens = request.max_output_tokens or settings.backend_max_output_tokens
        key = (temperature, max_tokens)
        if key not in self._models:
            self._models[key] = ChatOpenAI(
                model=self.model_name,
                temperature=temperature,
                max_tokens=max_tokens,
                api_key=SecretStr(self._api_key),
            )
        return self._models[key]

    async def generate(self, request: BackendRequest) -> BackendResponse:
        try:
            llm = self._get_llm(request)
            result = await asyncio.wait_for(llm.ainvoke(_to_messages(request)), timeout=self.timeout_seconds)
        except BackendUnavailableError:
            raise
        except TimeoutError as e:
            raise BackendCallError(self.tier.value, f"Backend call timed out after {self.timeout_seconds}s") from e
        except Exception as e:
            logger.error(
                "Backend call failed",
                tier=self.tier.value,
                model=self.model_name,
                error_type=type(e).__name__,
                error=str(e),
            )
            raise BackendCallError(self.tier.value, f"{type(e).__name__}: {e}") from e

        content = _content_to_text(result.content)
        return BackendResponse(success=bool(content.strip()), content=content)

    async def stream(
        self,
        request: BackendRequest,
        on_chunk: ChunkCallback,
        cancel_event: asyncio.Event | None = None,
    ) -> StreamResult:
        parts: list[str] = []

        def _deliver(chunk) -> None:
            text = _content_to_text(chunk.content)
            if text:
                parts.append(text)
                on_chunk(text)

        try:
            llm = self._get_llm(request)
            async with asyncio.timeout(self.timeout_seconds):
                cancelled = await _drain(llm.astream(_to_messages(request)), _deliver, cancel_event)
        except BackendUnavailableError:
            raise
        except TimeoutError as e:
            raise BackendCallError(self.tier.value, f"Streaming timed out after {self.timeout_seconds}s") from e
        except Exception as e:
            raise BackendCallError(self.tier.value, f"{type(e).__name__}: {e}") from e

        return StreamResult(content="".join(parts), cancelled=cancelled)


async def _next_chunk(chunks: AsyncIterator):
    return await anext(chunks, _STREAM_END)


async def _drain(chunks: AsyncIterator, deliver: Callable[[object], None], cancel_event: asyncio.Event | None) -> bool:
    """Hand every chunk to `deliver` until the stream ends or is cancelled.

    The next chunk and the cancel event are awaited together, so setting the
    event stops a stalled stream right away. Returns True when cancelled.
    """
    cancel_wait = asyncio.ensure_future(cancel_event.wait()) if cancel_event is not None else None
    pending: asyncio.Future | None = None
    try:
        while True:
            if cancel_event is not None and cancel_event.is_set():
                return True
            pending = asyncio.ensure_future(_next_chunk(chunks))
            waiters = {pending} if cancel_wait is None else {pending, cancel_wait}
            await asyncio.wait(waiters, return_when=asyncio.FIRST_COMPLETED)
            if not pending.done():
                return True
            chunk = pending.result()
            pending = None
            if chunk is _STREAM_END:
                return False
            deliver(chunk)
    finally:
        if cancel_wait is not None:
            cancel_wait.cancel()
        if pending is not None and not pending.done():
            pending.cancel()
            await asyncio.wait({pending})
        aclose = getattr(chunks, "aclose", None)
        if aclose is not None:
            await aclose()


def build_default_backends() -> dict[Tier, LLMBackend]:
    """Build the fast and capable backends from settings."""
    return {
        Tier.FAST: LangChainBackend(Tier.FAST, settings.fast_model),
        Tier.CAPABLE: LangChainBackend(Tier.CAPABLE, settings.capable_model),
    }
