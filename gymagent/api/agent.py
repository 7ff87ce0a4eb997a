"""HTTP surface for the workout coach agent."""

import asyncio
from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import StreamingResponse
from loguru import logger
from pydantic import BaseModel, Field

from gymagent.coach.errors import SessionNotFoundError
from gymagent.coach.quick_action import QuickActionRequest, QuickActionResult, QuickActionService
from gymagent.coach.sessions import SessionRegistry
from gymagent.routing.streaming import StreamingChatService

router = APIRouter(prefix="/agent", tags=["agent"])

# Producers of in-flight streamed replies, kept referenced until they finish
_stream_tasks: set[asyncio.Task] = set()


class CreateSessionRequest(BaseModel):
    user_id: str = Field(min_length=1)


class CreateSessionResponse(BaseModel):
    session_id: str


class SendMessageRequest(BaseModel):
    message: str = Field(min_length=1)


class SendMessageResponse(BaseModel):
    session_id: str
    response: str
    intent: str | None = None
    confidence: float | None = None
    clarification_pending: bool = False
    navigation_target: str | None = None


class CloseSessionResponse(BaseModel):
    session_id: str
    closed: bool


class MessageOut(BaseModel):
    role: str
    content: str
    ts: datetime


class MessageHistoryResponse(BaseModel):
    session_id: str
    messages: list[MessageOut]


def get_session_registry(request: Request) -> SessionRegistry:
    return request.app.state.session_registry


def get_quick_action_service(request: Request) -> QuickActionService:
    return request.app.state.quick_action_service


def get_streaming_chat_service(request: Request) -> StreamingChatService:
    return request.app.state.streaming_chat_service


def _session_not_found(e: SessionNotFoundError) -> HTTPException:
    return HTTPException(status_code=404, detail=e.message)


@router.post("/sessions", response_model=CreateSessionResponse)
async def create_session(
    req: CreateSessionRequest,
    registry: SessionRegistry = Depends(get_session_registry),
):
    session_id = await registry.create_session(req.user_id)
    return CreateSessionResponse(session_id=session_id)


@router.post("/sessions/{session_id}/messages", response_model=SendMessageResponse)
async def send_message(
    session_id: str,
    req: SendMessageRequest,
    registry: SessionRegistry = Depends(get_session_registry),
):
    logger.info("Agent message request", session_id=session_id, message_length=len(req.message))
    try:
        result = await registry.process_message(session_id, req.message)
    except SessionNotFoundError as e:
        raise _session_not_found(e) from e

    return SendMessageResponse(
        session_id=session_id,
        response=result.response,
        intent=result.intent.name if result.intent else None,
        confidence=result.intent.confidence if result.intent else None,
        clarification_pending=result.clarification_pending,
        navigation_target=result.tool_result.navigation_target if result.tool_result else None,
    )


@router.post("/sessions/{session_id}/stream")
async def stream_message(
    session_id: str,
    req: SendMessageRequest,
    registry: SessionRegistry = Depends(get_session_registry),
    service: StreamingChatService = Depends(get_streaming_chat_service),
):
    """Stream the assistant reply as plain text chunks.

    If the client disconnects mid-reply the stream is cancelled and the text
    produced so far is still saved as the assistant turn.
    """
    if session_id not in registry:
        raise _session_not_found(SessionNotFoundError(session_id))
    logger.info("Agent stream request", session_id=session_id, message_length=len(req.message))

    chunks: asyncio.Queue[str | None] = asyncio.Queue()
    cancel_event = asyncio.Event()

    async def _produce() -> None:
        try:
            await service.stream_reply(session_id, req.message, chunks.put_nowait, cancel_event)
        finally:
            chunks.put_nowait(None)

    async def _body():
        task = asyncio.create_task(_produce())
        _stream_tasks.add(task)
        task.add_done_callback(_stream_tasks.discard)
        try:
            while True:
                chunk = await chunks.get()
                if chunk is None:
                    break
                yield chunk
            await task
        finally:
            if not task.done():
                logger.info("Stream client disconnected", session_id=session_id)
                cancel_event.set()

    return StreamingResponse(_body(), media_type="text/plain")


@router.get("/sessions/{session_id}/messages", response_model=MessageHistoryResponse)
async def get_messages(
    session_id: str,
    limit: int = 50,
    registry: SessionRegistry = Depends(get_session_registry),
):
    try:
        messages = await registry.get_history(session_id, limit=limit)
    except SessionNotFoundError as e:
        raise _session_not_found(e) from e

    return MessageHistoryResponse(
        session_id=session_id,
        messages=[MessageOut(role=msg.role, content=msg.content, ts=msg.ts) for msg in messages],
    )


@router.post("/quick-action", response_model=QuickActionResult)
async def quick_action(
    req: QuickActionRequest,
    service: QuickActionService = Depends(get_quick_action_service),
):
    return await service.execute(req)


@router.delete("/sessions/{session_id}", response_model=CloseSessionResponse)
async def close_session(
    session_id: str,
    registry: SessionRegistry = Depends(get_session_registry),
):
    try:
        registry.close_session(session_id)
    except SessionNotFoundError as e:
        raise _session_not_found(e) from e
    return CloseSessionResponse(session_id=session_id, closed=True)
