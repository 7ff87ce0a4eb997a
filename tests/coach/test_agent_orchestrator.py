"""End-to-end turn tests for WorkoutAgent.

These drive process_message/process_turn exactly as a client would and
assert on working memory, episodic memory and the reply text.
"""

import json

import pytest

from gymagent.coach.clarification import DOUBLE_WORKOUT_QUESTION, EMPTY_WORKOUT_ERROR
from gymagent.coach.intents import IntentName
from gymagent.coach.orchestrator import WorkoutAgent
from gymagent.coach.schemas.memory import ActionType, ModificationPlan, ModificationType, Workout, WorkoutExercise
from gymagent.routing.pipeline import ReasoningPipeline
from gymagent.tools.catalog import build_tool_registry
from gymagent.tools.interfaces import ToolParams, ToolResult
from gymagent.tools.registry import ToolRegistry
from gymagent.tools.workout_modifier import WORKOUT_MODIFIER_TOOL


class ExplodingTool:
    name = "exploding"
    description = "Always raises."

    async def execute(self, params, memory):
        raise RuntimeError("boom")


class MutatingTool:
    """Tries to change the snapshot it was handed."""

    name = "mutating"
    description = "Mutates its snapshot."

    async def execute(self, params, memory):
        memory.current_workout.exercises[0].sets = 100
        return ToolResult(success=True, message="done")


@pytest.mark.asyncio
async def test_double_both_scenario(agent, workout_w1):
    agent.preset_workout(workout_w1)

    first = await agent.process_turn("double it")
    assert first.clarification_pending is True
    assert first.response.startswith(DOUBLE_WORKOUT_QUESTION)

    second = await agent.process_turn("double both")

    memory = agent.get_memory().working_memory
    exercise = memory.current_workout.exercises[0]
    assert (exercise.sets, exercise.reps) == (6, 20)
    assert memory.pending_clarification_context is None
    assert memory.last_action.type == ActionType.TOOL_EXECUTION
    assert second.intent.name == IntentName.USER_PROVIDED_CLARIFICATION
    assert second.response == "Workout modified successfully: DOUBLE_BOTH"


@pytest.mark.asyncio
async def test_no_workout_to_double_scenario(agent):
    response = await agent.process_message("double it")

    assert "no active workout to double" in response
    turns = agent.get_memory().episodic_memory.recent_turns
    assert len(turns) == 1
    assert turns[0].user_input == "double it"
    assert agent.get_memory().working_memory.pending_clarification_context is None
    assert agent.get_memory().working_memory.user_intent.name == IntentName.CANNOT_DOUBLE_NO_WORKOUT


@pytest.mark.asyncio
async def test_double_it_sets_context_without_mutating_workout(agent, workout_w1):
    agent.preset_workout(workout_w1)

    await agent.process_message("double it")

    memory = agent.get_memory().working_memory
    assert memory.pending_clarification_context.related_data["workout_id"] == "w1"
    assert memory.current_workout == workout_w1


@pytest.mark.asyncio
async def test_double_the_sets_twice_quadruples_sets(agent, workout_w1):
    agent.preset_workout(workout_w1)

    await agent.process_message("double it")
    await agent.process_message("double the sets")
    await agent.process_message("double it")
    await agent.process_message("double the sets")

    exercise = agent.get_memory().working_memory.current_workout.exercises[0]
    assert (exercise.sets, exercise.reps) == (12, 10)


@pytest.mark.asyncio
async def test_numeric_index_matches_option_text(router, workout_w1):
    results = []
    for answer in ("2", "double the reps"):
        agent = WorkoutAgent(f"session-{answer}", tools=build_tool_registry(ReasoningPipeline(router)))
        agent.preset_workout(workout_w1)
        await agent.process_message("double it")
        await agent.process_message(answer)
        results.append(agent.get_memory().working_memory.current_workout)

    assert results[0] == results[1]
    assert results[0].exercises[0].reps == 20


@pytest.mark.asyncio
async def test_unmatched_answer_reprompts_with_same_question(agent, workout_w1):
    agent.preset_workout(workout_w1)
    await agent.process_message("double it")
    context_before = agent.get_memory().working_memory.pending_clarification_context.model_copy(deep=True)

    result = await agent.process_turn("purple elephants")

    assert result.intent.name == IntentName.CLARIFICATION_MISMATCH
    assert result.response.splitlines()[0] == DOUBLE_WORKOUT_QUESTION
    assert agent.get_memory().working_memory.pending_clarification_context == context_before
    assert agent.get_memory().working_memory.current_workout == workout_w1


@pytest.mark.asyncio
async def test_topic_change_clears_pending_clarification(agent, workout_w1):
    agent.preset_workout(workout_w1)
    await agent.process_message("double it")

    result = await agent.process_turn("thanks")

    assert result.intent.name == IntentName.THANKS
    assert agent.get_memory().working_memory.pending_clarification_context is None
    assert agent.get_memory().working_memory.current_workout == workout_w1


@pytest.mark.asyncio
async def test_greeting_while_pending_is_answered_directly(agent, workout_w1):
    agent.preset_workout(workout_w1)
    await agent.process_message("double it")

    result = await agent.process_turn("hello")

    assert result.intent.name == IntentName.GREETING
    assert result.tool_result is None
    assert result.clarification_pending is False
    assert agent.get_memory().working_memory.current_workout == workout_w1


@pytest.mark.asyncio
async def test_new_request_while_pending_drops_clarification(agent, workout_w1):
    agent.preset_workout(workout_w1)
    await agent.process_message("double it")

    result = await agent.process_turn("how do I do a squat")

    assert result.intent.name == IntentName.GET_EXERCISE_INFO
    assert result.tool_result.success is True
    assert agent.get_memory().working_memory.pending_clarification_context is None
    assert agent.get_memory().working_memory.current_workout == workout_w1


def test_tools_and_router_are_exclusive(router):
    with pytest.raises(ValueError, match="not both"):
        WorkoutAgent("s-r", tools=ToolRegistry(), router=router)


def test_router_builds_default_tools(router):
    agent = WorkoutAgent("s-r", router=router)

    assert agent.tools.get(WORKOUT_MODIFIER_TOOL) is not None


@pytest.mark.asyncio
async def test_double_it_on_empty_workout(agent):
    agent.preset_workout(Workout(id="w0", exercises=[]))

    response = await agent.process_message("double it")

    assert response == EMPTY_WORKOUT_ERROR
    assert agent.get_memory().working_memory.pending_clarification_context is None


@pytest.mark.asyncio
@pytest.mark.parametrize("plan_type", list(ModificationType))
async def test_mismatched_target_never_mutates(agent, workout_w1, plan_type):
    agent.preset_workout(workout_w1)

    result = await agent.execute_tool(
        WORKOUT_MODIFIER_TOOL,
        ToolParams(modification_plan=ModificationPlan(type=plan_type, target_workout_id="other")),
    )

    assert result.success is False
    assert agent.get_memory().working_memory.current_workout == workout_w1
    assert agent.get_memory().working_memory.last_action.type == ActionType.TOOL_EXECUTION_FAILED


@pytest.mark.asyncio
async def test_unknown_tool_is_recorded_as_failure(agent):
    result = await agent.execute_tool("does_not_exist", ToolParams())

    assert result.success is False
    assert result.error == "Tool 'does_not_exist' not found."
    last_action = agent.get_memory().working_memory.last_action
    assert last_action.type == ActionType.TOOL_EXECUTION_FAILED
    assert last_action.details["tool_name"] == "does_not_exist"


@pytest.mark.asyncio
async def test_tool_exception_is_caught_and_recorded(workout_w1):
    agent = WorkoutAgent("s-x", tools=ToolRegistry([ExplodingTool()]))
    agent.preset_workout(workout_w1)

    result = await agent.execute_tool("exploding", ToolParams())

    assert result.success is False
    assert result.error == "Exception executing tool 'exploding': boom"
    assert agent.get_memory().working_memory.last_action.type == ActionType.TOOL_EXECUTION_EXCEPTION
    assert agent.get_memory().working_memory.current_workout == workout_w1


@pytest.mark.asyncio
async def test_tools_only_see_a_copy_of_memory(workout_w1):
    agent = WorkoutAgent("s-m", tools=ToolRegistry([MutatingTool()]))
    agent.preset_workout(workout_w1)

    result = await agent.execute_tool("mutating", ToolParams())

    assert result.success is True
    assert agent.get_memory().working_memory.current_workout.exercises[0].sets == 3
    assert agent.get_memory().working_memory.last_action.details["result_message"] == "done"


@pytest.mark.asyncio
async def test_exercise_info_turn(agent):
    result = await agent.process_turn("how do I do a squat")

    assert result.intent.name == IntentName.GET_EXERCISE_INFO
    assert result.response.startswith("Here's information on Squat:")
    assert result.tool_result.navigation_target == "/exercises/squat"


@pytest.mark.asyncio
async def test_navigation_turn(agent):
    result = await agent.process_turn("open settings")

    assert result.intent.name == IntentName.NAVIGATE
    assert result.response == "Taking you to settings."
    assert result.tool_result.navigation_target == "/settings"


@pytest.mark.asyncio
async def test_create_workout_turn_replaces_current_workout(agent, fast_backend, capable_backend, workout_w1):
    agent.preset_workout(workout_w1)
    generated = {
        "workout_name": "Leg Day",
        "exercises": [
            {"name": "Back Squat", "sets": 4, "reps": 8},
            {"name": "Romanian Deadlift", "sets": 3, "reps": 10},
        ],
    }
    fast_backend.replies = ['{"intent": "workout_creation"}', "Here's your leg day!"]
    capable_backend.replies = ['{"target_muscles": ["legs"]}', '{"target_muscles": ["legs"]}', json.dumps(generated)]

    result = await agent.process_turn("create a leg workout")

    assert result.intent.name == IntentName.CREATE_WORKOUT
    assert result.response == "Here's your leg day!"
    current = agent.get_memory().working_memory.current_workout
    assert current.id != "w1"
    assert current.name == "Leg Day"
    assert [exercise.exercise_id for exercise in current.exercises] == ["back_squat", "romanian_deadlift"]
    assert agent.get_memory().working_memory.last_action.type == ActionType.TOOL_EXECUTION


@pytest.mark.asyncio
async def test_create_workout_turn_when_backends_fail(agent, fast_backend, capable_backend, workout_w1):
    agent.preset_workout(workout_w1)
    fast_backend.error = "down"
    capable_backend.error = "down"

    result = await agent.process_turn("create a leg workout")

    assert result.tool_result.success is False
    assert "Let me try a simpler approach" in result.response
    assert agent.get_memory().working_memory.current_workout == workout_w1
    assert agent.get_memory().working_memory.last_action.type == ActionType.TOOL_EXECUTION_FAILED


@pytest.mark.asyncio
async def test_every_turn_is_recorded(agent):
    for message in ["hello", "what can you do", "bye"]:
        await agent.process_message(message)

    turns = agent.get_memory().episodic_memory.recent_turns
    assert [turn.user_input for turn in turns] == ["hello", "what can you do", "bye"]
    assert all(turn.agent_response for turn in turns)


def test_preset_workout_sets_current_workout():
    agent = WorkoutAgent("s-p", tools=ToolRegistry())
    workout = Workout(id="w5", exercises=[WorkoutExercise(exercise_id="e", sets=1, reps=1)])

    agent.preset_workout(workout)

    assert agent.get_memory().working_memory.current_workout == workout
