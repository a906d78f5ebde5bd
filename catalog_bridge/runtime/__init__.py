"""
Catalog Bridge runtime: tool dispatch and upstream access.

Example:
    from catalog_bridge.runtime import ToolDispatcher, UpstreamClient

    async with UpstreamClient("https://api.example.com") as upstream:
        dispatcher = ToolDispatcher(upstream)
        result = await dispatcher.call_tool("get_price", {"sku": "A1"})

        if result.ok:
            print(result.payload)
        else:
            print(result.error.message)

Components:
- ToolDispatcher: Maps tool calls to upstream requests
- UpstreamClient: One GET per call, JSON pass-through
- ToolResult, ToolFailure: Result types
- TOOLS, ToolDefinition: The fixed tool catalog
- SkuArguments: Argument validation for the SKU tools
"""

from catalog_bridge.errors import (
    BridgeError,
    ConfigurationError,
    UnknownToolError,
    UpstreamError,
    ValidationError,
)

from .arguments import SkuArguments
from .catalog import TOOLS, ToolDefinition, get_tool
from .dispatcher import ToolDispatcher
from .result import ToolFailure, ToolResult
from .upstream import UpstreamClient

__all__ = [
    "TOOLS",
    "BridgeError",
    "ConfigurationError",
    "SkuArguments",
    "ToolDefinition",
    "ToolDispatcher",
    "ToolFailure",
    "ToolResult",
    "UnknownToolError",
    "UpstreamClient",
    "UpstreamError",
    "ValidationError",
    "get_tool",
]
