"""
stdio transport for MCP.

Binds one BridgeMCPServer to the process's stdin/stdout for the life of the
process. There is exactly one caller and no session concept; shutdown is
process exit.
"""

import asyncio
import logging

from mcp.server.stdio import stdio_server

from catalog_bridge.runtime.dispatcher import ToolDispatcher
from catalog_bridge.runtime.upstream import UpstreamClient

from .config import Config
from .mcp_server import BridgeMCPServer

logger = logging.getLogger(__name__)


async def serve_stdio(bridge: BridgeMCPServer) -> None:
    """Serve MCP over stdin/stdout until the peer closes the stream."""
    logger.info("Starting MCP stdio transport")

    async with stdio_server() as (read, write):
        await bridge.server.run(read, write, bridge.create_initialization_options())

    logger.info("MCP stdio transport closed")


async def _run(config: Config) -> None:
    async with UpstreamClient(
        config.upstream.base_url,
        timeout_s=config.upstream.timeout_seconds,
    ) as upstream:
        bridge = BridgeMCPServer(
            ToolDispatcher(upstream),
            server_name=config.server_name,
            server_version=config.server_version,
        )
        await serve_stdio(bridge)


def run(config: Config) -> None:  # pragma: no cover - exercised in real runtime
    """Entry point to start the stdio transport."""
    asyncio.run(_run(config))
