"""MCP server and transports.

This package contains the protocol-facing side of the bridge:
- mcp_server.py: Binds the tool dispatcher to an MCP server
- stdio_transport.py: stdio transport for a process-embedded client
- http_transport.py: HTTP transport with session continuity
- session_store.py: Thread-safe session store with idle eviction
- schemas.py: Error body schemas for the HTTP boundary
- config.py: Server configuration
"""
