"""Workout modification engine.

Applies a ModificationPlan to the current workout of a memory snapshot and
returns the fully modified copy. Either every exercise is modified or the
whole result fails; partial success is never returned.
"""

from loguru import logger

from gymagent.coach.schemas.memory import MemorySnapshot, ModificationPlan, ModificationType, Workout, WorkoutExercise
from gymagent.tools.interfaces import ToolParams, ToolResult

WORKOUT_MODIFIER_TOOL = "workout_modifier"


def _apply_to_exercise(exercise: WorkoutExercise, plan_type: str) -> WorkoutExercise | None:
    """Return a modified copy of the exercise, or None for an unknown plan type."""
    modified = exercise.model_copy()
    if plan_type == ModificationType.DOUBLE_SETS:
        modified.sets *= 2
    elif plan_type == ModificationType.DOUBLE_REPS:
        modified.reps *= 2
    elif plan_type == ModificationType.DOUBLE_BOTH:
        modified.sets *= 2
        modified.reps *= 2
    else:
        return None
    return modified


def apply_modification(workout: Workout | None, plan: ModificationPlan | None) -> ToolResult:
    """Apply a modification plan to a workout without touching the input.

    Args:
        workout: Current workout, if any
        plan: Modification plan to apply

    Returns:
        ToolResult carrying the modified workout on success, or an error
    """
    if plan is None:
        return ToolResult(success=False, error="No modification plan provided.")

    if workout is None:
        return ToolResult(success=False, error="No current workout in memory to modify.")

    if workout.id != plan.target_workout_id:
        return ToolResult(
            success=False,
            error=(
                f"Modification plan target ID ('{plan.target_workout_id}') "
                f"does not match current workout ID ('{workout.id}')."
            ),
        )

    modified_workout = workout.model_copy(deep=True)
    modification_error: str | None = None
    exercises: list[WorkoutExercise] = []

    for exercise in modified_workout.exercises:
        modified = _apply_to_exercise(exercise, plan.type)
        if modified is None:
            modification_error = f"Unknown modification type: {plan.type}"
            exercises.append(exercise)
            continue
        exercises.append(modified)

    if modification_error:
        logger.warning(
            "Workout modification rejected",
            workout_id=workout.id,
            plan_type=str(plan.type),
        )
        return ToolResult(success=False, error=modification_error)

    modified_workout.exercises = exercises
    return ToolResult(
        success=True,
        message=f"Workout modified successfully: {plan.type}",
        updated_workout=modified_workout,
    )


class WorkoutModifierTool:
    """Tool wrapper around the modification engine."""

    name = WORKOUT_MODIFIER_TOOL
    description = "Modifies the current workout based on a plan (doubles sets, reps, or both)."

    async def execute(self, params: ToolParams, memory: MemorySnapshot) -> ToolResult:
        return apply_modification(memory.current_workout, params.modification_plan)
