"""Tool argument models.

Example:
    from catalog_bridge.runtime.arguments import SkuArguments

    args = SkuArguments.from_arguments({"sku": "A/B"})
    args.encoded_sku  # "A%2FB"
"""

from typing import Any
from urllib.parse import quote

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic import ValidationError as PydanticValidationError

from catalog_bridge.errors import ValidationError

# Characters left unescaped by URI-component encoding besides [A-Za-z0-9_.-~]
_URI_COMPONENT_SAFE = "!*'()"


def encode_path_segment(value: str) -> str:
    """Percent-encode a value for use as a single URL path segment."""
    return quote(value, safe=_URI_COMPONENT_SAFE)


class SkuArguments(BaseModel):
    """Arguments for the SKU-based tools (``get_product``, ``get_price``).

    Constraints:
    - sku: required and truthy; non-string values are converted with ``str()``
    """

    # An absent sku validates the empty default and is rejected below
    sku: str = Field(
        default="",
        validate_default=True,
        description="Stock keeping unit identifier",
        examples=["ABC-123"],
    )

    model_config = ConfigDict(extra="allow")

    @field_validator("sku", mode="before")
    @classmethod
    def require_sku(cls, value: Any) -> str:
        if not value:
            msg = "Missing argument: sku"
            raise ValueError(msg)
        return value if isinstance(value, str) else str(value)

    @classmethod
    def from_arguments(cls, arguments: dict[str, Any]) -> "SkuArguments":
        """Validate raw tool arguments.

        Raises:
            ValidationError: If ``sku`` is missing or falsy
        """
        try:
            return cls.model_validate(arguments)
        except PydanticValidationError as e:
            msg = "Missing argument: sku"
            raise ValidationError(msg) from e

    @property
    def encoded_sku(self) -> str:
        return encode_path_segment(self.sku)
