"""
Tool hosts: where the catalog registers its tools and resources.
"""

from typing import Any, Dict, List, Optional, Protocol

from .exceptions import BridgeError
from .models import CallContext, Resource, Tool, ToolResult


class ToolHost(Protocol):
    """What the catalog builder needs from a tool-hosting server."""

    def register_tool(self, tool: Tool) -> None: ...

    def register_resource(self, resource: Resource) -> None: ...

    def list_tools(self) -> List[Tool]: ...


class UnknownToolError(BridgeError):
    """Raised when calling a tool or reading a resource that was never registered."""

    pass


class ToolRegistry:
    """In-process tool host. A later registration under the same name replaces the earlier one."""

    def __init__(self):
        self._tools: Dict[str, Tool] = {}
        self._resources: Dict[str, Resource] = {}

    def register_tool(self, tool: Tool) -> None:
        self._tools[tool.name] = tool

    def register_resource(self, resource: Resource) -> None:
        self._resources[resource.uri] = resource

    def list_tools(self) -> List[Tool]:
        return list(self._tools.values())

    def list_resources(self) -> List[Resource]:
        return list(self._resources.values())

    def get_tool(self, name: str) -> Tool:
        try:
            return self._tools[name]
        except KeyError:
            raise UnknownToolError(f"Unknown tool: {name}") from None

    async def call_tool(
        self, name: str, arguments: Optional[Dict[str, Any]] = None, context: Optional[CallContext] = None
    ) -> ToolResult:
        """Dispatch one call to the named tool's handler."""
        tool = self.get_tool(name)
        if tool.handler is None:
            raise UnknownToolError(f"Tool {name} has no handler")
        return await tool.handler(context or CallContext(), arguments or {})

    def read_resource(self, uri: str) -> str:
        try:
            resource = self._resources[uri]
        except KeyError:
            raise UnknownToolError(f"Unknown resource: {uri}") from None
        return resource.reader()
