"""Tests for the MCP server binding."""

import json

import pytest
from mcp.types import TextContent

from catalog_bridge.runtime.dispatcher import ToolDispatcher
from catalog_bridge.server.mcp_server import BridgeMCPServer

from .conftest import RecordingUpstream


@pytest.fixture
def bridge(dispatcher: ToolDispatcher) -> BridgeMCPServer:
    return BridgeMCPServer(dispatcher, server_name="catalog-bridge-test", server_version="9.9.9")


class TestBridgeMCPServer:
    """Test BridgeMCPServer."""

    def test_tool_list_mirrors_catalog(self, bridge: BridgeMCPServer) -> None:
        tools = bridge.build_tool_list()

        assert [tool.name for tool in tools] == ["ping_bridge", "get_product", "get_price"]
        assert tools[0].description == "Call /ping"
        assert tools[1].inputSchema["required"] == ["sku"]

    def test_tool_schemas_are_copies(self, bridge: BridgeMCPServer) -> None:
        tools = bridge.build_tool_list()
        tools[1].inputSchema["required"].append("extra")

        assert bridge.build_tool_list()[1].inputSchema["required"] == ["sku"]

    def test_initialization_options_carry_identity(self, bridge: BridgeMCPServer) -> None:
        options = bridge.create_initialization_options()

        assert options.server_name == "catalog-bridge-test"
        assert options.server_version == "9.9.9"
        assert options.capabilities.tools is not None

    @pytest.mark.asyncio
    async def test_success_is_single_text_block(
        self, bridge: BridgeMCPServer, recorder: RecordingUpstream
    ) -> None:
        recorder.respond("/endpoint-REST/prices/A1", json={"sku": "A1", "price": 9.5})

        content = await bridge.handle_tool_call("get_price", {"sku": "A1"})

        assert len(content) == 1
        assert isinstance(content[0], TextContent)
        assert content[0].type == "text"
        assert json.loads(content[0].text) == {"sku": "A1", "price": 9.5}

    @pytest.mark.asyncio
    async def test_failure_is_single_text_block(self, bridge: BridgeMCPServer) -> None:
        content = await bridge.handle_tool_call("get_product", None)

        assert len(content) == 1
        assert json.loads(content[0].text) == {
            "ok": False,
            "error": "Missing argument: sku",
            "details": None,
        }
