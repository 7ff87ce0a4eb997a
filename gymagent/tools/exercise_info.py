from gymagent.coach.schemas.memory import MemorySnapshot
from gymagent.tools.exercise_catalog import ExerciseDetails, find_exercise
from gymagent.tools.interfaces import ToolParams, ToolResult

EXERCISE_INFO_TOOL = "exercise_info"


def format_exercise_details(exercise: ExerciseDetails) -> str:
    lines = [
        f"Here's information on {exercise.name}:",
        f"Description: {exercise.description}",
        f"Target Muscles: {', '.join(exercise.target_muscles)}",
    ]
    if exercise.instructions:
        lines.append("Instructions:")
        lines.extend(f"  {i}. {step}" for i, step in enumerate(exercise.instructions, start=1))
    if exercise.common_mistakes:
        lines.append("Common Mistakes:")
        lines.extend(f"  - {mistake}" for mistake in exercise.common_mistakes)
    if exercise.video_url:
        lines.append(f"You can watch a video here: {exercise.video_url}")
    return "\n".join(lines)


class ExerciseInfoTool:
    """Looks up an exercise in the catalog and describes it."""

    name = EXERCISE_INFO_TOOL
    description = "Provides information about a specific exercise from the exercise catalog."

    async def execute(self, params: ToolParams, memory: MemorySnapshot) -> ToolResult:
        exercise_name = (params.exercise_name or "").strip()
        if not exercise_name:
            return ToolResult(success=False, error="No exercise name provided.")

        exercise = find_exercise(exercise_name)
        if exercise is None:
            return ToolResult(
                success=False,
                error=f'Sorry, I don\'t have information on an exercise called "{exercise_name}".',
            )

        return ToolResult(
            success=True,
            message=format_exercise_details(exercise),
            data={"exercise": exercise.model_dump()},
            navigation_target=f"/exercises/{exercise.id}",
        )
