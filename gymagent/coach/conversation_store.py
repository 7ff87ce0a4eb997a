"""Chat persistence interface and an in-memory implementation.

Durable storage lives outside this package; anything implementing
ChatHistoryStore can be plugged into the session registry and the streaming
chat service.
"""

import uuid
from collections import defaultdict
from datetime import datetime, timezone
from typing import Literal, Protocol, runtime_checkable

from loguru import logger
from pydantic import BaseModel, Field

from gymagent.coach.errors import SessionNotFoundError

Role = Literal["user", "assistant", "system"]


class ChatMessage(BaseModel):
    session_id: str
    role: Role
    content: str
    ts: datetime = Field(default_factory=lambda: datetime.now(tz=timezone.utc))


@runtime_checkable
class ChatHistoryStore(Protocol):
    async def create_session(self, user_id: str) -> str: ...

    async def save_message(self, session_id: str, role: Role, content: str) -> None: ...

    async def get_messages(self, session_id: str, limit: int = 50) -> list[ChatMessage]: ...


class InMemoryChatHistoryStore:
    """Process-local chat history, for development and tests."""

    def __init__(self) -> None:
        self._owners: dict[str, str] = {}
        self._messages: dict[str, list[ChatMessage]] = defaultdict(list)

    async def create_session(self, user_id: str) -> str:
        session_id = f"s_{uuid.uuid4().hex}"
        self._owners[session_id] = user_id
        logger.debug("Chat session created", session_id=session_id, user_id=user_id)
        return session_id

    def owner_of(self, session_id: str) -> str | None:
        return self._owners.get(session_id)

    async def save_message(self, session_id: str, role: Role, content: str) -> None:
        if session_id not in self._owners:
            raise SessionNotFoundError(session_id)
        self._messages[session_id].append(ChatMessage(session_id=session_id, role=role, content=content))

    async def get_messages(self, session_id: str, limit: int = 50) -> list[ChatMessage]:
        if session_id not in self._owners:
            raise SessionNotFoundError(session_id)
        if limit <= 0:
            return []
        return list(self._messages[session_id][-limit:])
