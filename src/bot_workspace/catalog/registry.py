"""Tool catalog: id-keyed registry of research bot descriptors."""

import logging

from bot_workspace.exceptions import UnknownToolError
from bot_workspace.models.tool import ToolDescriptor

logger = logging.getLogger(__name__)


class ToolCatalog:
    """Central registry mapping tool ids to descriptors.

    Populated once at start-up and read-only afterwards.
    """

    def __init__(self, tools: list[ToolDescriptor] | None = None) -> None:
        self._by_id: dict[str, ToolDescriptor] = {}
        self._by_category: dict[str, list[ToolDescriptor]] = {}
        for tool in tools or []:
            self.register(tool)

    def register(self, tool: ToolDescriptor) -> None:
        """Register a tool descriptor."""
        if tool.id in self._by_id:
            raise ValueError(f"Tool '{tool.id}' already registered")
        self._by_id[tool.id] = tool
        self._by_category.setdefault(tool.category.lower(), []).append(tool)
        logger.debug(f"Registered tool {tool.id} ({tool.name} {tool.version})")

    def get(self, tool_id: str) -> ToolDescriptor:
        """Return the descriptor for tool_id, or raise UnknownToolError."""
        tool = self._by_id.get(tool_id)
        if tool is None:
            raise UnknownToolError(tool_id)
        return tool

    def get_by_id(self, tool_id: str) -> ToolDescriptor | None:
        return self._by_id.get(tool_id)

    def get_all(self) -> list[ToolDescriptor]:
        return list(self._by_id.values())

    def by_category(self, category: str) -> list[ToolDescriptor]:
        return list(self._by_category.get(category.lower(), []))

    def categories(self) -> list[str]:
        return list(dict.fromkeys(tool.category for tool in self._by_id.values()))

    def __len__(self) -> int:
        return len(self._by_id)

    def __contains__(self, tool_id: str) -> bool:
        return tool_id in self._by_id
