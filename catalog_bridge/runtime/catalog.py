"""The fixed tool catalog exposed by the bridge."""

from dataclasses import dataclass, field
from typing import Any

PING_BRIDGE = "ping_bridge"
GET_PRODUCT = "get_product"
GET_PRICE = "get_price"


def _sku_schema() -> dict[str, Any]:
    return {
        "type": "object",
        "properties": {"sku": {"type": "string"}},
        "required": ["sku"],
    }


@dataclass(frozen=True)
class ToolDefinition:
    """A named, schema-described operation.

    Attributes:
        name: Tool name, unique within the catalog
        description: Human-readable description
        input_schema: JSON schema for the tool arguments
        path_template: Upstream path; ``{sku}`` is replaced with the encoded SKU
    """

    name: str
    description: str
    input_schema: dict[str, Any] = field(
        default_factory=lambda: {"type": "object", "properties": {}}
    )
    path_template: str = ""

    @property
    def required_arguments(self) -> list[str]:
        return list(self.input_schema.get("required", []))


TOOLS: tuple[ToolDefinition, ...] = (
    ToolDefinition(
        name=PING_BRIDGE,
        description="Call /ping",
        path_template="/ping",
    ),
    ToolDefinition(
        name=GET_PRODUCT,
        description="Get product by SKU",
        input_schema=_sku_schema(),
        path_template="/products/{sku}",
    ),
    ToolDefinition(
        name=GET_PRICE,
        description="Get price by SKU",
        input_schema=_sku_schema(),
        path_template="/prices/{sku}",
    ),
)


def get_tool(name: str) -> ToolDefinition | None:
    """Find a tool definition by name."""
    for tool in TOOLS:
        if tool.name == name:
            return tool
    return None
