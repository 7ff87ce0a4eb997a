"""Tool registry - name to implementation mapping.

Tools are registered once when an agent is built; lookups are plain dict
access by name. There is no reflection-based dispatch.
"""

from collections.abc import Iterable

from loguru import logger

from gymagent.tools.interfaces import Tool


class ToolRegistry:
    """Registry of tools available to one agent."""

    def __init__(self, tools: Iterable[Tool] = ()) -> None:
        self._tools: dict[str, Tool] = {}
        for tool in tools:
            self.register(tool)

    def register(self, tool: Tool) -> None:
        """Register a tool under its name.

        Raises:
            ValueError: If a tool with the same name is already registered
        """
        if tool.name in self._tools:
            raise ValueError(f"Duplicate tool name detected: {tool.name}")
        self._tools[tool.name] = tool
        logger.debug("Registered tool", tool_name=tool.name)

    def get(self, tool_name: str) -> Tool | None:
        return self._tools.get(tool_name)

    def __contains__(self, tool_name: object) -> bool:
        return tool_name in self._tools

    def list_tools(self) -> list[str]:
        return list(self._tools.keys())

    def describe(self) -> dict[str, str]:
        """Map each tool name to its description."""
        return {name: tool.description for name, tool in self._tools.items()}
