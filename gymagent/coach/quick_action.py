"""Single-shot quick actions.

A quick action classifies one message and runs at most one tool against a
throwaway memory. No session, clarification or history is involved.
"""

from typing import Any

from loguru import logger
from pydantic import BaseModel

from gymagent.coach.intent_classifier import IntentClassifier
from gymagent.coach.intents import IntentName
from gymagent.coach.memory import MemoryStore
from gymagent.coach.schemas.memory import Intent
from gymagent.tools.exercise_info import EXERCISE_INFO_TOOL
from gymagent.tools.interfaces import ToolParams
from gymagent.tools.navigation import NAVIGATE_TOOL
from gymagent.tools.registry import ToolRegistry
from gymagent.tools.workout_generator import GENERATE_WORKOUT_TOOL

UNSUPPORTED_QUICK_ACTION = (
    "I can't do that as a quick action. Try asking about an exercise, "
    "creating a workout, or opening a page."
)


class QuickActionRequest(BaseModel):
    message: str
    user_id: str


class QuickActionResult(BaseModel):
    success: bool
    message: str
    navigation_target: str | None = None
    data: dict[str, Any] | None = None


def resolve_tool_call(intent: Intent, message: str) -> tuple[str, ToolParams] | None:
    slots = intent.slots or {}
    if intent.name == IntentName.GET_EXERCISE_INFO and slots.get("exercise_name"):
        return EXERCISE_INFO_TOOL, ToolParams(exercise_name=slots["exercise_name"])
    if intent.name == IntentName.CREATE_WORKOUT:
        return GENERATE_WORKOUT_TOOL, ToolParams(slots=slots, user_input=message)
    if intent.name == IntentName.NAVIGATE:
        return NAVIGATE_TOOL, ToolParams(page=slots.get("page"))
    return None


class QuickActionService:
    def __init__(self, tools: ToolRegistry, classifier: IntentClassifier | None = None) -> None:
        self.tools = tools
        self.classifier = classifier or IntentClassifier()

    async def execute(self, request: QuickActionRequest) -> QuickActionResult:
        memory = MemoryStore(session_id=f"quick_{request.user_id}")
        intent = self.classifier.detect_intent(request.message, memory)

        call = resolve_tool_call(intent, request.message)
        if call is None:
            logger.info("Quick action not supported", user_id=request.user_id, intent=intent.name)
            return QuickActionResult(success=False, message=UNSUPPORTED_QUICK_ACTION)

        tool_name, params = call
        tool = self.tools.get(tool_name)
        if tool is None:
            return QuickActionResult(success=False, message=f"Tool '{tool_name}' not found.")

        try:
            result = await tool.execute(params, memory.snapshot())
        except Exception as e:
            logger.exception("Quick action tool raised", user_id=request.user_id, tool_name=tool_name)
            return QuickActionResult(success=False, message=f"Exception executing tool '{tool_name}': {e}")

        data: dict[str, Any] = {"tool": tool_name, **(result.data or {})}
        if result.updated_workout is not None:
            data["workout"] = result.updated_workout.model_dump(mode="json")

        logger.info(
            "Quick action executed",
            user_id=request.user_id,
            tool_name=tool_name,
            success=result.success,
        )
        text = result.message if result.success else result.error
        return QuickActionResult(
            success=result.success,
            message=text or ("Done." if result.success else "Sorry, I couldn't complete that action."),
            navigation_target=result.navigation_target,
            data=data,
        )
