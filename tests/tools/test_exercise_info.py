import pytest

from gymagent.coach.memory import MemoryStore
from gymagent.tools.exercise_catalog import find_exercise
from gymagent.tools.exercise_info import ExerciseInfoTool
from gymagent.tools.interfaces import ToolParams
from gymagent.tools.navigation import NavigateTool, resolve_page


@pytest.mark.parametrize("name", ["pull-up", "Pull Up", "pull_up", "pull ups", "PULL_UP"])
def test_find_exercise_normalizes_names(name):
    assert find_exercise(name).id == "pull_up"


def test_find_exercise_unknown():
    assert find_exercise("underwater basket weaving") is None
    assert find_exercise("   ") is None


@pytest.mark.asyncio
async def test_exercise_info_success():
    result = await ExerciseInfoTool().execute(ToolParams(exercise_name="bench press"), MemoryStore("s1").snapshot())

    assert result.success is True
    assert result.message.splitlines()[0] == "Here's information on Bench Press:"
    assert "Target Muscles: chest, triceps, shoulders" in result.message
    assert result.data["exercise"]["id"] == "bench_press"
    assert result.navigation_target == "/exercises/bench_press"


@pytest.mark.asyncio
async def test_exercise_info_unknown_exercise():
    result = await ExerciseInfoTool().execute(ToolParams(exercise_name="moonwalk"), MemoryStore("s1").snapshot())

    assert result.success is False
    assert result.error == 'Sorry, I don\'t have information on an exercise called "moonwalk".'


@pytest.mark.asyncio
async def test_exercise_info_requires_name():
    result = await ExerciseInfoTool().execute(ToolParams(), MemoryStore("s1").snapshot())

    assert result.success is False
    assert result.error == "No exercise name provided."


@pytest.mark.parametrize(
    ("page", "route"),
    [("stats", "/stats"), ("my profile", "/profile"), ("the feed", "/feed"), ("log workout", "/log-workout/new")],
)
def test_resolve_page(page, route):
    assert resolve_page(page) == route


@pytest.mark.asyncio
async def test_navigate_tool():
    snapshot = MemoryStore("s1").snapshot()

    ok = await NavigateTool().execute(ToolParams(page="my stats"), snapshot)
    unknown = await NavigateTool().execute(ToolParams(page="mars"), snapshot)

    assert ok.success is True
    assert ok.navigation_target == "/stats"
    assert unknown.success is False
    assert unknown.navigation_target is None
