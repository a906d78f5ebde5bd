"""MCP server binding for the tool dispatcher.

This module provides the MCP server wrapper that:
1. Exposes the fixed tool catalog through ``tools/list``
2. Maps ``tools/call`` to ``ToolDispatcher.call_tool()``
3. Serializes every result, success or failure, into one text block

Architecture:
- MCP client -> transport (stdio | HTTP session) -> BridgeMCPServer -> ToolDispatcher
- A single BridgeMCPServer is shared by every transport and every session

Tool failures are never raised to the protocol layer. The caller always gets
a normal tool response and must read the ``ok`` field of the payload.
"""

import copy
import logging
from typing import Any

from mcp.server import Server
from mcp.types import TextContent, Tool

from catalog_bridge.runtime.dispatcher import ToolDispatcher
from catalog_bridge.runtime.result import ToolResult

logger = logging.getLogger(__name__)


def to_content(result: ToolResult) -> list[TextContent]:
    """Wrap a tool result in a single MCP text content block."""
    return [TextContent(type="text", text=result.to_text())]


class BridgeMCPServer:
    """MCP server backed by a ToolDispatcher.

    Attributes:
        dispatcher: Dispatcher handling every tool call
        server: Low-level MCP server instance
    """

    def __init__(
        self,
        dispatcher: ToolDispatcher,
        server_name: str = "catalog-bridge",
        server_version: str = "0.1.0",
    ) -> None:
        """Initialize the MCP server.

        Args:
            dispatcher: Dispatcher to route tool calls to
            server_name: Name announced during initialization
            server_version: Version announced during initialization
        """
        self.dispatcher = dispatcher
        self.server = Server(server_name, version=server_version)
        logger.info("Created MCP server: %s %s", server_name, server_version)

        self._register_tools()

    def _register_tools(self) -> None:
        """Register the list_tools and call_tool handlers."""

        @self.server.list_tools()
        async def list_tools() -> list[Tool]:
            return self.build_tool_list()

        # Argument checks belong to the dispatcher so that a missing argument
        # yields a failure payload rather than a protocol-level error.
        @self.server.call_tool(validate_input=False)
        async def call_tool(name: str, arguments: dict[str, Any] | None) -> list[TextContent]:
            return await self.handle_tool_call(name, arguments)

    def build_tool_list(self) -> list[Tool]:
        """Build the MCP tool list from the dispatcher catalog."""
        return [
            Tool(
                name=tool.name,
                description=tool.description,
                inputSchema=copy.deepcopy(tool.input_schema),
            )
            for tool in self.dispatcher.list_tools()
        ]

    async def handle_tool_call(
        self,
        name: str,
        arguments: dict[str, Any] | None,
    ) -> list[TextContent]:
        """Run a tool call and wrap its result for MCP."""
        result = await self.dispatcher.call_tool(name, arguments)
        return to_content(result)

    def create_initialization_options(self) -> Any:
        return self.server.create_initialization_options()
