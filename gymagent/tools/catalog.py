"""Built-in tool catalog.

Single place where the agent's tools are constructed and registered.
"""

from gymagent.routing.pipeline import ReasoningPipeline
from gymagent.tools.exercise_info import ExerciseInfoTool
from gymagent.tools.navigation import NavigateTool
from gymagent.tools.registry import ToolRegistry
from gymagent.tools.workout_generator import WorkoutGeneratorTool
from gymagent.tools.workout_modifier import WorkoutModifierTool


def build_tool_registry(pipeline: ReasoningPipeline) -> ToolRegistry:
    return ToolRegistry([
        WorkoutModifierTool(),
        ExerciseInfoTool(),
        NavigateTool(),
        WorkoutGeneratorTool(pipeline),
    ])
