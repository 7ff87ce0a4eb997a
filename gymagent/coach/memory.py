"""Per-session memory store.

Working memory is overwritten in place by field-level updates. Episodic
memory is an append-only log of turns, trimmed to the most recent
`max_turns` entries.
"""

from typing import Any

from loguru import logger

from gymagent.coach.schemas.memory import (
    AgentMemory,
    ClarificationContext,
    ConversationTurn,
    MemorySnapshot,
    Workout,
    WorkingMemory,
)
from gymagent.core.settings import settings


class MemoryStore:
    """Working + episodic memory for exactly one session."""

    def __init__(self, session_id: str, max_turns: int | None = None) -> None:
        self.session_id = session_id
        self.max_turns = max_turns if max_turns is not None else settings.episodic_memory_max_turns
        self._memory = AgentMemory()

    @property
    def memory(self) -> AgentMemory:
        return self._memory

    @property
    def working(self) -> WorkingMemory:
        return self._memory.working_memory

    @property
    def turns(self) -> list[ConversationTurn]:
        return self._memory.episodic_memory.recent_turns

    @property
    def current_workout(self) -> Workout | None:
        return self.working.current_workout

    @property
    def pending_clarification(self) -> ClarificationContext | None:
        return self.working.pending_clarification_context

    def update_working_memory(self, **updates: Any) -> None:
        """Overwrite the named working-memory fields.

        Raises:
            AttributeError: If a field name is not part of WorkingMemory
        """
        for field_name, value in updates.items():
            if field_name not in WorkingMemory.model_fields:
                raise AttributeError(f"Unknown working memory field: {field_name}")
            setattr(self._memory.working_memory, field_name, value)

    def set_current_workout(self, workout: Workout | None) -> None:
        self.update_working_memory(current_workout=workout)

    def clear_pending_clarification(self) -> None:
        if self.working.pending_clarification_context is not None:
            logger.debug("Clearing pending clarification", session_id=self.session_id)
        self.update_working_memory(pending_clarification_context=None, clarification_retries=0)

    def add_conversation_turn(self, user_input: str, agent_response: str) -> ConversationTurn:
        turn = ConversationTurn(user_input=user_input, agent_response=agent_response)
        recent_turns = self._memory.episodic_memory.recent_turns
        recent_turns.append(turn)

        overflow = len(recent_turns) - self.max_turns
        if overflow > 0:
            del recent_turns[:overflow]
            logger.debug(
                "Trimmed episodic memory",
                session_id=self.session_id,
                dropped_turns=overflow,
                max_turns=self.max_turns,
            )
        return turn

    def snapshot(self) -> MemorySnapshot:
        """Return a deep-copied, read-only view of the whole memory."""
        copied = self._memory.model_copy(deep=True)
        return MemorySnapshot(
            working_memory=copied.working_memory,
            episodic_memory=copied.episodic_memory,
        )
