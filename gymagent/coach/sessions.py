"""Session registry.

Owns one WorkoutAgent per session and serializes turns within a session.
Different sessions run concurrently and share no mutable state; backends
are shared since they hold no per-session data.
"""

import asyncio
import uuid
from collections.abc import Callable

from loguru import logger

from gymagent.coach.conversation_store import ChatHistoryStore, ChatMessage
from gymagent.coach.errors import SessionNotFoundError
from gymagent.coach.orchestrator import TurnResult, WorkoutAgent
from gymagent.routing.backends import build_default_backends
from gymagent.routing.complexity import ComplexityRouter
from gymagent.routing.pipeline import ReasoningPipeline
from gymagent.tools.catalog import build_tool_registry

AgentFactory = Callable[[str], WorkoutAgent]


class SessionRegistry:
    def __init__(
        self,
        agent_factory: AgentFactory | None = None,
        store: ChatHistoryStore | None = None,
        router: ComplexityRouter | None = None,
    ) -> None:
        self.store = store
        if agent_factory is None:
            shared_router = router or ComplexityRouter(build_default_backends())

            def agent_factory(session_id: str) -> WorkoutAgent:
                tools = build_tool_registry(ReasoningPipeline(shared_router))
                return WorkoutAgent(session_id, tools=tools)

        self._agent_factory = agent_factory
        self._agents: dict[str, WorkoutAgent] = {}
        self._locks: dict[str, asyncio.Lock] = {}

    def __contains__(self, session_id: str) -> bool:
        return session_id in self._agents

    def __len__(self) -> int:
        return len(self._agents)

    async def create_session(self, user_id: str) -> str:
        if self.store is not None:
            session_id = await self.store.create_session(user_id)
        else:
            session_id = f"s_{uuid.uuid4().hex}"
        self._agents[session_id] = self._agent_factory(session_id)
        self._locks[session_id] = asyncio.Lock()
        logger.info("Session created", session_id=session_id, user_id=user_id)
        return session_id

    def get_agent(self, session_id: str) -> WorkoutAgent:
        """Return the session's agent.

        Raises:
            SessionNotFoundError: If the session was never created or was closed
        """
        agent = self._agents.get(session_id)
        if agent is None:
            raise SessionNotFoundError(session_id)
        return agent

    def close_session(self, session_id: str) -> None:
        if self._agents.pop(session_id, None) is None:
            raise SessionNotFoundError(session_id)
        self._locks.pop(session_id, None)
        logger.info("Session closed", session_id=session_id)

    async def process_message(self, session_id: str, message: str) -> TurnResult:
        """Run one turn for a session, one turn at a time per session."""
        agent = self.get_agent(session_id)
        async with self._locks[session_id]:
            result = await agent.process_turn(message)
            if self.store is not None:
                await self.store.save_message(session_id, "user", message)
                await self.store.save_message(session_id, "assistant", result.response)
        return result

    async def get_history(self, session_id: str, limit: int = 50) -> list[ChatMessage]:
        """Persisted messages if a store is attached, else rebuilt from episodic memory."""
        if self.store is not None:
            return await self.store.get_messages(session_id, limit=limit)

        agent = self.get_agent(session_id)
        if limit <= 0:
            return []
        messages: list[ChatMessage] = []
        for turn in agent.memory.turns:
            messages.append(ChatMessage(session_id=session_id, role="user", content=turn.user_input, ts=turn.timestamp))
            messages.append(ChatMessage(session_id=session_id, role="assistant", content=turn.agent_response, ts=turn.timestamp))
        return messages[-limit:]
