"""Agent memory schemas.

Working memory holds the session's current mutable state, episodic memory the
ordered log of past turns. Tools only ever see a MemorySnapshot: a deep copy
typed as a frozen model.
"""

from datetime import datetime, timezone
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class WorkoutExercise(BaseModel):
    """One exercise entry of a workout."""

    exercise_id: str
    name: str | None = None
    sets: int
    reps: int


class Workout(BaseModel):
    """Workout entity the agent can modify."""

    id: str
    name: str | None = None
    exercises: list[WorkoutExercise] = Field(default_factory=list)


class ModificationType(StrEnum):
    DOUBLE_SETS = "DOUBLE_SETS"
    DOUBLE_REPS = "DOUBLE_REPS"
    DOUBLE_BOTH = "DOUBLE_BOTH"


class ModificationPlan(BaseModel):
    """Validated instruction describing how to transform the current workout.

    `type` also accepts plain strings so the modification engine can report
    unknown plan types itself instead of failing at construction.
    """

    type: ModificationType | str
    target_workout_id: str


class Intent(BaseModel):
    name: str
    confidence: float = Field(ge=0.0, le=1.0)
    slots: dict[str, Any] | None = None


class ClarificationOption(BaseModel):
    text: str
    value: str
    synonyms: list[str] = Field(default_factory=list)


class ClarificationContext(BaseModel):
    """Pending disambiguation question awaiting a matching answer."""

    original_intent_name: str
    clarification_question_text: str
    options: list[ClarificationOption]
    related_data: dict[str, Any] = Field(default_factory=dict)


class ClarificationDetails(BaseModel):
    """Question and options rendered back to the user for one turn."""

    question: str
    options: list[ClarificationOption] = Field(default_factory=list)


class ActionType(StrEnum):
    TOOL_EXECUTION = "TOOL_EXECUTION"
    TOOL_EXECUTION_FAILED = "TOOL_EXECUTION_FAILED"
    TOOL_EXECUTION_EXCEPTION = "TOOL_EXECUTION_EXCEPTION"


class AgentAction(BaseModel):
    type: ActionType
    details: dict[str, Any] = Field(default_factory=dict)


class ConversationTurn(BaseModel):
    user_input: str
    agent_response: str
    timestamp: datetime = Field(default_factory=lambda: datetime.now(tz=timezone.utc))


class WorkingMemory(BaseModel):
    current_workout: Workout | None = None
    last_action: AgentAction | None = None
    user_intent: Intent | None = None
    pending_clarification_context: ClarificationContext | None = None
    clarification_retries: int = 0


class EpisodicMemory(BaseModel):
    recent_turns: list[ConversationTurn] = Field(default_factory=list)


class AgentMemory(BaseModel):
    working_memory: WorkingMemory = Field(default_factory=WorkingMemory)
    episodic_memory: EpisodicMemory = Field(default_factory=EpisodicMemory)


class MemorySnapshot(BaseModel):
    """Read-only view of agent memory handed to tools."""

    model_config = ConfigDict(frozen=True)

    working_memory: WorkingMemory
    episodic_memory: EpisodicMemory

    @property
    def current_workout(self) -> Workout | None:
        return self.working_memory.current_workout
