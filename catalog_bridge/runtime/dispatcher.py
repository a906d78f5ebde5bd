"""Tool dispatcher.

Maps a tool name and argument mapping to exactly one upstream call and
normalizes the outcome into a ``ToolResult``. The dispatcher holds no mutable
state, so one instance can serve any number of concurrent calls from both
front-ends.

Architecture:
- stdio / HTTP front-end -> BridgeMCPServer -> ToolDispatcher -> UpstreamClient
"""

import logging
import time
from typing import Any

from catalog_bridge.errors import BridgeError, UnknownToolError

from .arguments import SkuArguments
from .catalog import PING_BRIDGE, TOOLS, ToolDefinition, get_tool
from .result import ToolFailure, ToolResult
from .upstream import UpstreamClient

logger = logging.getLogger(__name__)


class ToolDispatcher:
    """Routes tool calls to the upstream REST API.

    Attributes:
        upstream: Client used for every outbound call
    """

    def __init__(self, upstream: UpstreamClient) -> None:
        self.upstream = upstream

    def list_tools(self) -> list[ToolDefinition]:
        """Return the catalog in its fixed order."""
        return list(TOOLS)

    async def call_tool(self, name: str, arguments: dict[str, Any] | None = None) -> ToolResult:
        """Invoke a tool.

        Never raises: unknown tools, missing arguments, upstream failures and
        unexpected exceptions all come back as ``ToolResult`` failures.

        Args:
            name: Tool name
            arguments: Tool arguments (None is treated as empty)

        Returns:
            ToolResult carrying the upstream payload or the failure
        """
        arguments = arguments or {}
        logger.info("Tool call: %s", name, extra={"tool": name})
        started = time.perf_counter()

        try:
            path = self._resolve_path(name, arguments)
            payload = await self.upstream.fetch_json(path)
        except BridgeError as e:
            logger.warning("Tool %s failed: %s", name, e.message, extra={"tool": name})
            return ToolResult.failure(ToolFailure.from_exception(e))
        except Exception as e:
            logger.exception("Unexpected error in tool %s", name, extra={"tool": name})
            return ToolResult.failure(ToolFailure.from_exception(e))

        duration_ms = (time.perf_counter() - started) * 1000
        logger.debug(
            "Tool %s completed in %.2fms",
            name,
            duration_ms,
            extra={"tool": name, "duration_ms": round(duration_ms, 2)},
        )
        return ToolResult.success(payload)

    def _resolve_path(self, name: str, arguments: dict[str, Any]) -> str:
        """Build the upstream path for a tool call.

        Raises:
            UnknownToolError: If the tool is not in the catalog
            ValidationError: If a required argument is missing
        """
        tool = get_tool(name)
        if tool is None:
            raise UnknownToolError(name)

        if tool.name == PING_BRIDGE:
            return tool.path_template

        args = SkuArguments.from_arguments(arguments)
        return tool.path_template.format(sku=args.encoded_sku)
