"""
Catalog Bridge: MCP tools for an upstream product/price REST API.

Exposes three tools (``ping_bridge``, ``get_product``, ``get_price``) over the
Model Context Protocol. Each tool call is fulfilled by a single GET against
the upstream API and the JSON response is forwarded to the caller.

Public API modules:
- catalog_bridge.runtime: Dispatcher, upstream client, result types
- catalog_bridge.server: MCP server, stdio and HTTP transports, configuration
"""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("catalog-bridge")
except PackageNotFoundError:
    # Development checkout, not installed via pip
    __version__ = "0.1.0"

__all__ = ["__version__"]
