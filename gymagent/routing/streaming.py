"""Streaming chat replies with cancellation.

A reply is streamed chunk by chunk from the routed tier. If the caller sets
the cancel event mid-stream, whatever text has arrived so far becomes the
final assistant turn and is persisted; it is never discarded.
"""

import asyncio

from loguru import logger

from gymagent.coach.conversation_store import ChatHistoryStore
from gymagent.routing.backends import ChunkCallback
from gymagent.routing.complexity import DEGRADED_RESPONSE, ComplexityRouter
from gymagent.routing.errors import BackendCallError, BackendUnavailableError
from gymagent.routing.types import BackendRequest, StreamResult, Tier

HISTORY_WINDOW = 5


class StreamingChatService:
    def __init__(self, router: ComplexityRouter, store: ChatHistoryStore) -> None:
        self.router = router
        self.store = store

    async def _build_prompt(self, session_id: str, message: str) -> str:
        history = await self.store.get_messages(session_id, limit=HISTORY_WINDOW)
        if not history:
            return message
        lines = "\n".join(f"{msg.role}: {msg.content}" for msg in history)
        return f"Previous conversation:\n{lines}\n\nCurrent request: {message}"

    async def _stream_tier(
        self,
        tier: Tier,
        request: BackendRequest,
        on_chunk: ChunkCallback,
        cancel_event: asyncio.Event | None,
    ) -> StreamResult:
        backend = self.router.backends.get(tier)
        if backend is None or not backend.available:
            raise BackendUnavailableError(tier.value)
        return await backend.stream(request, on_chunk, cancel_event)

    async def stream_reply(
        self,
        session_id: str,
        message: str,
        on_chunk: ChunkCallback,
        cancel_event: asyncio.Event | None = None,
    ) -> StreamResult:
        """Stream an assistant reply and persist both sides of the turn.

        Falls back to the other tier only if the first one fails before any
        chunk was delivered; after that the partial text is kept.
        """
        prompt = await self._build_prompt(session_id, message)
        await self.store.save_message(session_id, "user", message)

        request = BackendRequest(prompt=prompt)
        tier = self.router.select_tier(message)
        delivered: list[str] = []

        def _collect(chunk: str) -> None:
            delivered.append(chunk)
            on_chunk(chunk)

        result: StreamResult | None = None
        for candidate in (tier, tier.other):
            try:
                result = await self._stream_tier(candidate, request, _collect, cancel_event)
                break
            except Exception as e:
                error = e.message if isinstance(e, (BackendUnavailableError, BackendCallError)) else f"{type(e).__name__}: {e}"
                logger.warning("Streaming tier failed", tier=candidate.value, error=error)
                if delivered:
                    result = StreamResult(content="".join(delivered), cancelled=False)
                    break

        if result is None:
            result = StreamResult(content=DEGRADED_RESPONSE)
            on_chunk(DEGRADED_RESPONSE)

        if result.cancelled:
            logger.info("Stream cancelled, keeping partial reply", session_id=session_id, chars=len(result.content))

        await self.store.save_message(session_id, "assistant", result.content)
        return result
