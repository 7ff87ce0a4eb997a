"""Agent orchestrator - one conversational turn end to end.

A turn goes: answer matching for a pending clarification, otherwise intent
detection; then the intent's action (clarify, execute a tool, or nothing);
then response generation; finally the turn is appended to episodic memory.

Tools only ever receive a read-only snapshot. Their effects reach working
memory through this module, and only on success.
"""

from loguru import logger
from pydantic import BaseModel

from gymagent.coach.clarification import ClarificationManager
from gymagent.coach.intent_classifier import IntentClassifier
from gymagent.coach.intents import HIGH_PRIORITY_INTENTS, IntentName
from gymagent.coach.memory import MemoryStore
from gymagent.coach.responses import generate_response
from gymagent.coach.schemas.memory import (
    ActionType,
    AgentAction,
    AgentMemory,
    ClarificationDetails,
    Intent,
    Workout,
)
from gymagent.routing.backends import build_default_backends
from gymagent.routing.complexity import ComplexityRouter
from gymagent.routing.pipeline import ReasoningPipeline
from gymagent.tools.catalog import build_tool_registry
from gymagent.tools.exercise_info import EXERCISE_INFO_TOOL
from gymagent.tools.interfaces import ToolParams, ToolResult
from gymagent.tools.navigation import NAVIGATE_TOOL
from gymagent.tools.registry import ToolRegistry
from gymagent.tools.workout_generator import GENERATE_WORKOUT_TOOL
from gymagent.tools.workout_modifier import WORKOUT_MODIFIER_TOOL


class TurnResult(BaseModel):
    response: str
    intent: Intent | None = None
    tool_result: ToolResult | None = None
    clarification_pending: bool = False


class WorkoutAgent:
    """Conversational agent for one session."""

    def __init__(
        self,
        session_id: str,
        tools: ToolRegistry | None = None,
        router: ComplexityRouter | None = None,
        classifier: IntentClassifier | None = None,
        clarification: ClarificationManager | None = None,
        memory: MemoryStore | None = None,
    ) -> None:
        self.session_id = session_id
        if tools is not None and router is not None:
            raise ValueError("Pass either tools or a router to build them from, not both")
        if tools is None:
            router = router or ComplexityRouter(build_default_backends())
            tools = build_tool_registry(ReasoningPipeline(router))
        self.tools = tools
        self.classifier = classifier or IntentClassifier()
        self.clarification = clarification or ClarificationManager()
        self.memory = memory or MemoryStore(session_id)

    def get_memory(self) -> AgentMemory:
        return self.memory.memory

    def preset_workout(self, workout: Workout) -> None:
        """Make `workout` the session's current workout."""
        self.memory.set_current_workout(workout.model_copy(deep=True))

    def _record_action(self, action_type: ActionType, **details: object) -> None:
        self.memory.update_working_memory(last_action=AgentAction(type=action_type, details=details))

    async def execute_tool(self, tool_name: str, params: ToolParams) -> ToolResult:
        """Run a registered tool against a snapshot of memory.

        Never raises: unknown tools and tool exceptions become failure results,
        each recorded in working memory under its own action type.
        """
        param_data = params.model_dump(mode="json", exclude_none=True)
        tool = self.tools.get(tool_name)
        if tool is None:
            error = f"Tool '{tool_name}' not found."
            self._record_action(ActionType.TOOL_EXECUTION_FAILED, tool_name=tool_name, params=param_data, error=error)
            logger.warning("Tool not found", tool_name=tool_name)
            return ToolResult(success=False, error=error)

        try:
            result = await tool.execute(params, self.memory.snapshot())
        except Exception as e:
            logger.exception("Tool raised during execution", tool_name=tool_name)
            self._record_action(ActionType.TOOL_EXECUTION_EXCEPTION, tool_name=tool_name, params=param_data, error=str(e))
            return ToolResult(success=False, error=f"Exception executing tool '{tool_name}': {e}")

        if not result.success:
            self._record_action(ActionType.TOOL_EXECUTION_FAILED, tool_name=tool_name, params=param_data, error=result.error)
        else:
            if result.updated_workout is not None:
                self.memory.set_current_workout(result.updated_workout.model_copy(deep=True))
            self._record_action(
                ActionType.TOOL_EXECUTION,
                tool_name=tool_name,
                params=param_data,
                result_message=result.message or "Tool executed successfully without workout update.",
            )

        logger.info(
            "Tool executed",
            tool_name=tool_name,
            success=result.success,
            updated_workout=result.updated_workout is not None,
        )
        return result

    def _drop_pending_clarification(self, intent_name: IntentName) -> None:
        if self.memory.pending_clarification is not None:
            logger.info("Topic change, dropping pending clarification", intent=intent_name)
            self.memory.clear_pending_clarification()

    def _detect(self, user_input: str) -> tuple[Intent, ClarificationDetails | None, str | None]:
        """Resolve the intent for this turn, including clarification answers."""
        awaiting = self.memory.pending_clarification is not None
        if awaiting:
            answer = self.clarification.resolve(user_input, self.memory)
            if answer is not None:
                return answer, None, None

        intent = self.classifier.detect_intent(user_input, self.memory)
        if awaiting and intent.name == IntentName.UNKNOWN_INTENT:
            return self.clarification.mismatch(user_input, self.memory)
        return intent, None, None

    async def process_turn(self, user_input: str) -> TurnResult:
        with logger.contextualize(session_id=self.session_id):
            intent, clarification, error_message = self._detect(user_input)
            tool_result: ToolResult | None = None
            name = intent.name
            slots = intent.slots or {}

            if name == IntentName.USER_PROVIDED_CLARIFICATION:
                plan, error_message = self.clarification.build_plan(intent, self.memory)
                if plan is not None:
                    tool_result = await self.execute_tool(WORKOUT_MODIFIER_TOOL, ToolParams(modification_plan=plan))

            elif name == IntentName.DOUBLE_WORKOUT:
                clarification, error_message = self.clarification.open_double_workout(self.memory)

            elif name in (IntentName.CLARIFICATION_MISMATCH, IntentName.UNKNOWN_INTENT):
                # Mismatch already re-prompted; unknown gets canned text.
                pass

            elif name in HIGH_PRIORITY_INTENTS:
                # Small talk is answered directly and ends any pending question.
                self._drop_pending_clarification(name)

            else:
                self._drop_pending_clarification(name)
                if name == IntentName.GET_EXERCISE_INFO:
                    if slots.get("exercise_name"):
                        tool_result = await self.execute_tool(
                            EXERCISE_INFO_TOOL, ToolParams(exercise_name=slots["exercise_name"])
                        )
                    else:
                        error_message = "Which exercise are you interested in?"
                elif name == IntentName.CREATE_WORKOUT:
                    tool_result = await self.execute_tool(
                        GENERATE_WORKOUT_TOOL, ToolParams(slots=slots, user_input=user_input)
                    )
                elif name == IntentName.NAVIGATE:
                    tool_result = await self.execute_tool(NAVIGATE_TOOL, ToolParams(page=slots.get("page")))

            response = generate_response(intent, clarification, tool_result, error_message)
            self.memory.add_conversation_turn(user_input, response)
            logger.info(
                "Turn processed",
                intent=name,
                confidence=intent.confidence,
                clarification_pending=self.memory.pending_clarification is not None,
            )
            return TurnResult(
                response=response,
                intent=intent,
                tool_result=tool_result,
                clarification_pending=self.memory.pending_clarification is not None,
            )

    async def process_message(self, user_input: str) -> str:
        """Process one user message and return the assistant reply."""
        result = await self.process_turn(user_input)
        return result.response
