"""Tests for tool argument validation."""

import pytest

from catalog_bridge.errors import ValidationError
from catalog_bridge.runtime.arguments import SkuArguments, encode_path_segment


class TestSkuArguments:
    """Test SkuArguments."""

    def test_valid_sku(self) -> None:
        args = SkuArguments.from_arguments({"sku": "ABC-1", "extra": True})

        assert args.sku == "ABC-1"
        assert args.encoded_sku == "ABC-1"

    @pytest.mark.parametrize("arguments", [{}, {"sku": ""}, {"sku": None}, {"sku": 0}])
    def test_missing_or_falsy_sku(self, arguments: dict) -> None:
        with pytest.raises(ValidationError, match="Missing argument: sku"):
            SkuArguments.from_arguments(arguments)

    def test_non_string_sku_is_stringified(self) -> None:
        args = SkuArguments.from_arguments({"sku": 42})

        assert args.sku == "42"
        assert isinstance(args.sku, str)


class TestEncodePathSegment:
    """Test URI-component encoding of path segments."""

    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            ("A/B", "A%2FB"),
            ("a b", "a%20b"),
            ("x?y#z&w=1", "x%3Fy%23z%26w%3D1"),
            ("it's(ok)!*~", "it's(ok)!*~"),
            ("Café", "Caf%C3%A9"),
        ],
    )
    def test_encoding(self, value: str, expected: str) -> None:
        assert encode_path_segment(value) == expected
