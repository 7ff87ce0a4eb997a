"""Workout generation tool backed by the multi-step reasoning pipeline."""

import json
import re
import uuid

from loguru import logger
from pydantic import ValidationError

from gymagent.coach.schemas.memory import MemorySnapshot, Workout, WorkoutExercise
from gymagent.routing.pipeline import WORKOUT_GENERATION, ReasoningPipeline
from gymagent.tools.interfaces import ToolParams, ToolResult

GENERATE_WORKOUT_TOOL = "generate_workout"

_JSON_OBJECT = re.compile(r"\{.*\}", re.DOTALL)


def _slugify(name: str) -> str:
    return re.sub(r"[^a-z0-9]+", "_", name.lower()).strip("_")


def parse_generated_workout(text: str | None) -> Workout | None:
    """Parse the generation stage output into a Workout, if it is usable JSON."""
    if not text:
        return None
    match = _JSON_OBJECT.search(text)
    if match is None:
        return None
    try:
        payload = json.loads(match.group(0))
    except json.JSONDecodeError:
        logger.debug("Generated workout is not valid JSON")
        return None

    raw_exercises = payload.get("exercises") if isinstance(payload, dict) else None
    if not isinstance(raw_exercises, list) or not raw_exercises:
        return None

    try:
        exercises = [
            WorkoutExercise(
                exercise_id=_slugify(str(item["name"])),
                name=str(item["name"]),
                sets=int(item["sets"]),
                reps=int(item["reps"]),
            )
            for item in raw_exercises
        ]
    except (KeyError, TypeError, ValueError, ValidationError) as e:
        logger.debug(f"Generated workout has malformed exercises: {e}")
        return None

    return Workout(
        id=f"w_{uuid.uuid4().hex[:12]}",
        name=payload.get("workout_name"),
        exercises=exercises,
    )


def describe_request(slots: dict) -> str:
    parts = ["Create a workout"]
    if slots.get("muscle_group"):
        parts.append(f"for {slots['muscle_group']}")
    if slots.get("duration"):
        parts.append(f"lasting about {slots['duration']} minutes")
    if slots.get("experience_level"):
        parts.append(f"for a {slots['experience_level']} lifter")
    return " ".join(parts)


class WorkoutGeneratorTool:
    name = GENERATE_WORKOUT_TOOL
    description = "Generates a new workout from the user's request using multi-step reasoning."

    def __init__(self, pipeline: ReasoningPipeline) -> None:
        self.pipeline = pipeline

    async def execute(self, params: ToolParams, memory: MemorySnapshot) -> ToolResult:
        slots = params.slots or {}
        user_input = params.user_input or describe_request(slots)
        history = [
            message
            for turn in memory.episodic_memory.recent_turns[-2:]
            for message in (
                {"role": "user", "content": turn.user_input},
                {"role": "assistant", "content": turn.agent_response},
            )
        ]

        chain = await self.pipeline.run(user_input, conversation_history=history, slots=slots)
        if not chain.success:
            return ToolResult(success=False, error=chain.final_output, data={"reasoning": chain.reasoning})

        workout = parse_generated_workout(chain.step_output(WORKOUT_GENERATION))
        return ToolResult(
            success=True,
            message=chain.final_output,
            updated_workout=workout,
            data={
                "reasoning": chain.reasoning,
                "confidence": chain.overall_confidence,
                "chain_id": chain.id,
            },
            navigation_target="/workout/new" if workout else None,
        )
