from gymagent.coach.schemas.memory import MemorySnapshot
from gymagent.tools.interfaces import ToolParams, ToolResult

NAVIGATE_TOOL = "navigate"

# Spoken page name -> app route
PAGE_ROUTES: dict[str, str] = {
    "home": "/",
    "workouts": "/workouts",
    "workout history": "/workouts",
    "history": "/workouts",
    "log workout": "/log-workout/new",
    "stats": "/stats",
    "statistics": "/stats",
    "profile": "/profile",
    "settings": "/settings",
    "feed": "/feed",
    "notifications": "/notifications",
    "exercises": "/exercises",
}


def resolve_page(page: str) -> str | None:
    """Return the route for a spoken page name, ignoring a leading "my"/"the"."""
    words = page.lower().strip().rstrip("?.!").split()
    if words and words[0] in {"my", "the"}:
        words = words[1:]
    return PAGE_ROUTES.get(" ".join(words))


class NavigateTool:
    name = NAVIGATE_TOOL
    description = "Navigates the app to a named page."

    async def execute(self, params: ToolParams, memory: MemorySnapshot) -> ToolResult:
        if not params.page:
            return ToolResult(success=False, error="No page provided.")

        route = resolve_page(params.page)
        if route is None:
            return ToolResult(success=False, error=f"I don't know a page called \"{params.page}\".")

        return ToolResult(
            success=True,
            message=f"Taking you to {params.page.strip()}.",
            navigation_target=route,
        )
