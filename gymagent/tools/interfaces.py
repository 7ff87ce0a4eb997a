"""Tool contract shared by the orchestrator and every tool implementation.

A tool receives its parameters plus a read-only memory snapshot and reports
all of its effects through the returned ToolResult. It never mutates session
state itself.
"""

from typing import Any, Protocol, runtime_checkable

from pydantic import BaseModel

from gymagent.coach.schemas.memory import MemorySnapshot, ModificationPlan, Workout


class ToolParams(BaseModel):
    """Parameters accepted by the built-in tools (all optional)."""

    modification_plan: ModificationPlan | None = None
    exercise_name: str | None = None
    page: str | None = None
    slots: dict[str, Any] | None = None
    user_input: str | None = None


class ToolResult(BaseModel):
    success: bool
    message: str | None = None
    error: str | None = None
    updated_workout: Workout | None = None
    data: dict[str, Any] | None = None
    navigation_target: str | None = None


@runtime_checkable
class Tool(Protocol):
    """Capability the orchestrator can invoke by name."""

    name: str
    description: str

    async def execute(self, params: ToolParams, memory: MemorySnapshot) -> ToolResult: ...
