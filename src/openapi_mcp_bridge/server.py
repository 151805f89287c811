"""MCP server adapter: hosts the catalog's tools on a FastMCP server."""

import logging
from typing import Any, Dict, List, Optional

from fastmcp import FastMCP
from fastmcp.exceptions import ToolError
from fastmcp.server.dependencies import get_http_headers
from fastmcp.tools import Tool as FastMCPTool
from fastmcp.tools.tool import ToolResult as FastMCPToolResult
from mcp.types import TextContent, ToolAnnotations
from pydantic import PrivateAttr

from .auth import credentials_from_headers
from .models import CallContext, Credentials, Resource, Tool, ToolResult

logger = logging.getLogger(__name__)


class BridgeTool(FastMCPTool):
    """A raw-schema FastMCP tool that delegates to a catalog tool handler."""

    _tool: Tool = PrivateAttr()
    _fallback: Credentials = PrivateAttr()
    _timeout: Optional[float] = PrivateAttr(default=None)

    @classmethod
    def from_tool(cls, tool: Tool, fallback: Credentials, timeout: Optional[float] = None) -> "BridgeTool":
        bridged = cls(
            name=tool.name,
            description=tool.description,
            parameters=tool.input_schema,
            annotations=ToolAnnotations(**tool.annotations) if tool.annotations else None,
        )
        bridged._tool = tool
        bridged._fallback = fallback
        bridged._timeout = timeout
        return bridged

    async def run(self, arguments: Dict[str, Any]) -> FastMCPToolResult:
        headers = get_http_headers(include_all=True)
        context = CallContext(
            credentials=credentials_from_headers(headers, self._fallback),
            timeout=self._timeout,
        )
        result = await self._tool.handler(context, arguments)
        return to_protocol_result(result)


def to_protocol_result(result: ToolResult) -> FastMCPToolResult:
    """Convert a handler result; error-flagged results become protocol error results."""
    if result.is_error:
        raise ToolError(result.text)

    structured = dict(result.structured) if result.structured else None
    if result.partial:
        structured = {**(structured or {}), "partial": True, "resume_token": result.resume_token}
    return FastMCPToolResult(
        content=[TextContent(type="text", text=result.text)],
        structured_content=structured,
    )


class FastMCPHost:
    """Tool host backed by a ``fastmcp.FastMCP`` server.

    Credentials for each call are read from the inbound HTTP request headers
    when there is one, falling back to the startup credentials.
    """

    def __init__(
        self,
        name: str,
        credentials: Optional[Credentials] = None,
        timeout: Optional[float] = None,
        instructions: Optional[str] = None,
    ):
        self.mcp = FastMCP(name, instructions=instructions)
        self.credentials = credentials or Credentials()
        self.timeout = timeout
        self._tools: Dict[str, Tool] = {}

    def register_tool(self, tool: Tool) -> None:
        if tool.name in self._tools:
            self.mcp.remove_tool(tool.name)
        self._tools[tool.name] = tool
        self.mcp.add_tool(BridgeTool.from_tool(tool, self.credentials, self.timeout))
        logger.debug("Registered tool: %s", tool.name)

    def register_resource(self, resource: Resource) -> None:
        def read() -> str:
            return resource.reader()

        self.mcp.resource(
            resource.uri,
            name=resource.name,
            description=resource.description,
            mime_type=resource.mime_type,
        )(read)

    def list_tools(self) -> List[Tool]:
        return list(self._tools.values())

    def run(self, http_address: Optional[str] = None) -> None:
        """Serve over stdio, or streamable HTTP when ``http_address`` (``host:port``) is given."""
        if not http_address:
            self.mcp.run(transport="stdio")
            return
        host, _, port = http_address.rpartition(":")
        self.mcp.run(transport="http", host=host or "127.0.0.1", port=int(port))
