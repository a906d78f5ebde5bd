"""Tests for the tool dispatcher."""

import json
import logging
from unittest.mock import AsyncMock

import pytest

from catalog_bridge.runtime.dispatcher import ToolDispatcher
from catalog_bridge.runtime.result import ToolFailure, ToolResult

from .conftest import RecordingUpstream


class TestListTools:
    """Test the tool catalog."""

    def test_exactly_three_tools_in_stable_order(self, dispatcher: ToolDispatcher) -> None:
        names = [tool.name for tool in dispatcher.list_tools()]
        assert names == ["ping_bridge", "get_product", "get_price"]

        # Order is stable across calls
        assert [tool.name for tool in dispatcher.list_tools()] == names

    def test_sku_tools_require_string_sku(self, dispatcher: ToolDispatcher) -> None:
        tools = {tool.name: tool for tool in dispatcher.list_tools()}

        for name in ("get_product", "get_price"):
            schema = tools[name].input_schema
            assert schema["properties"]["sku"] == {"type": "string"}
            assert schema["required"] == ["sku"]

        assert tools["ping_bridge"].required_arguments == []

    def test_returned_list_does_not_alias_catalog(self, dispatcher: ToolDispatcher) -> None:
        tools = dispatcher.list_tools()
        tools.clear()
        assert len(dispatcher.list_tools()) == 3  # noqa: PLR2004


class TestCallTool:
    """Test ToolDispatcher.call_tool."""

    @pytest.mark.asyncio
    async def test_ping_calls_ping_path(
        self, dispatcher: ToolDispatcher, recorder: RecordingUpstream
    ) -> None:
        recorder.respond("/endpoint-REST/ping", json={"status": "ok"})

        result = await dispatcher.call_tool("ping_bridge", {})

        assert result.ok
        assert result.payload == {"status": "ok"}
        assert recorder.raw_paths == ["/endpoint-REST/ping"]

    @pytest.mark.asyncio
    async def test_get_product_passes_upstream_json_through(
        self, dispatcher: ToolDispatcher, recorder: RecordingUpstream
    ) -> None:
        product = {"sku": "ABC-1", "name": "Widget", "tags": ["a", "b"]}
        recorder.respond("/endpoint-REST/products/ABC-1", json=product)

        result = await dispatcher.call_tool("get_product", {"sku": "ABC-1"})

        assert result.ok
        # Success text is the upstream JSON itself, not re-wrapped
        assert json.loads(result.to_text()) == product

    @pytest.mark.asyncio
    async def test_missing_sku_fails_without_network_call(
        self, dispatcher: ToolDispatcher, recorder: RecordingUpstream
    ) -> None:
        result = await dispatcher.call_tool("get_product", {})

        assert not result.ok
        assert result.to_payload() == {
            "ok": False,
            "error": "Missing argument: sku",
            "details": None,
        }
        assert recorder.requests == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize("arguments", [None, {"sku": ""}, {"sku": None}, {"other": "x"}])
    async def test_falsy_sku_is_missing(
        self, dispatcher: ToolDispatcher, recorder: RecordingUpstream, arguments: dict | None
    ) -> None:
        result = await dispatcher.call_tool("get_price", arguments)

        assert result.error is not None
        assert result.error.message == "Missing argument: sku"
        assert recorder.requests == []

    @pytest.mark.asyncio
    async def test_sku_is_percent_encoded(
        self, dispatcher: ToolDispatcher, recorder: RecordingUpstream
    ) -> None:
        recorder.respond("/endpoint-REST/prices/A%2FB", json={"price": 10})

        result = await dispatcher.call_tool("get_price", {"sku": "A/B"})

        assert result.ok
        assert recorder.raw_paths == ["/endpoint-REST/prices/A%2FB"]

    @pytest.mark.asyncio
    async def test_special_characters_cannot_alter_path(
        self, dispatcher: ToolDispatcher, recorder: RecordingUpstream
    ) -> None:
        await dispatcher.call_tool("get_product", {"sku": "../admin?x=1#frag"})

        assert recorder.raw_paths == ["/endpoint-REST/products/..%2Fadmin%3Fx%3D1%23frag"]

    @pytest.mark.asyncio
    async def test_numeric_sku_is_stringified(
        self, dispatcher: ToolDispatcher, recorder: RecordingUpstream
    ) -> None:
        recorder.respond("/endpoint-REST/prices/123", json={"price": 1})

        result = await dispatcher.call_tool("get_price", {"sku": 123})

        assert result.ok
        assert recorder.raw_paths == ["/endpoint-REST/prices/123"]

    @pytest.mark.asyncio
    async def test_upstream_404_becomes_failure_envelope(
        self, dispatcher: ToolDispatcher, recorder: RecordingUpstream
    ) -> None:
        recorder.respond("/endpoint-REST/products/NOPE", status_code=404, json={"msg": "not found"})

        result = await dispatcher.call_tool("get_product", {"sku": "NOPE"})

        assert not result.ok
        assert json.loads(result.to_text()) == {
            "ok": False,
            "error": "HTTP 404",
            "details": {"msg": "not found"},
        }

    @pytest.mark.asyncio
    async def test_unknown_tool(self, dispatcher: ToolDispatcher, recorder: RecordingUpstream) -> None:
        result = await dispatcher.call_tool("frobnicate", {})

        assert result.to_payload() == {
            "ok": False,
            "error": "Unknown tool: frobnicate",
            "details": None,
        }
        assert recorder.requests == []

    @pytest.mark.asyncio
    async def test_non_json_success_still_ok(
        self, dispatcher: ToolDispatcher, recorder: RecordingUpstream
    ) -> None:
        recorder.respond("/endpoint-REST/ping", text="not valid json")

        result = await dispatcher.call_tool("ping_bridge", {})

        assert result.ok
        assert result.to_text() == '{"raw":"not valid json"}'

    @pytest.mark.asyncio
    async def test_unexpected_exception_is_contained(self) -> None:
        upstream = AsyncMock()
        upstream.fetch_json.side_effect = KeyError("boom")
        dispatcher = ToolDispatcher(upstream)

        result = await dispatcher.call_tool("ping_bridge", {})

        assert not result.ok
        assert result.error == ToolFailure(kind="KeyError", message="'boom'")
        assert result.to_payload()["details"] is None

    @pytest.mark.asyncio
    async def test_completion_logs_duration_field(
        self,
        dispatcher: ToolDispatcher,
        recorder: RecordingUpstream,
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        recorder.respond("/endpoint-REST/ping", json={"status": "ok"})

        with caplog.at_level(logging.DEBUG, logger="catalog_bridge.runtime.dispatcher"):
            await dispatcher.call_tool("ping_bridge", {})

        (completed,) = [r for r in caplog.records if "completed" in r.getMessage()]
        assert completed.tool == "ping_bridge"
        assert completed.duration_ms >= 0


class TestToolResult:
    """Test result serialization."""

    def test_failure_text_is_compact_json(self) -> None:
        result = ToolResult.failure(ToolFailure(kind="ValidationError", message="Missing argument: sku"))
        assert result.to_text() == '{"ok":false,"error":"Missing argument: sku","details":null}'

    def test_success_payload_may_be_a_list(self) -> None:
        result = ToolResult.success([1, 2, 3])
        assert result.to_text() == "[1,2,3]"

    def test_non_ascii_preserved(self) -> None:
        result = ToolResult.success({"name": "Café"})
        assert json.loads(result.to_text()) == {"name": "Café"}

    def test_failure_without_error_cannot_serialize(self) -> None:
        with pytest.raises(ValueError, match="carries no error"):
            ToolResult(ok=False).to_text()
