"""Tool result envelope.

A tool call ends in exactly one of two variants:

    # Success: the upstream JSON, passed through untouched
    result = ToolResult.success({"sku": "A1", "price": 9.5})

    # Failure: kind, message and optional structured details
    result = ToolResult.failure(ToolFailure(kind="ValidationError", message="Missing argument: sku"))

Both variants serialize to a single text block. Callers inspect the ``ok``
field embedded in a failure payload rather than a transport-level error.
"""

import json
from dataclasses import dataclass
from typing import Any

from catalog_bridge.errors import BridgeError


@dataclass(frozen=True)
class ToolFailure:
    """Structured failure information.

    Attributes:
        kind: Error category (e.g. "ValidationError", "UpstreamError")
        message: Human-readable error message
        details: Structured detail (upstream body, timeout) or None
    """

    kind: str
    message: str
    details: Any = None

    @classmethod
    def from_exception(cls, exc: Exception) -> "ToolFailure":
        """Build a failure from any exception.

        Bridge errors keep their type and details; anything else keeps its
        message and carries no details.
        """
        if isinstance(exc, BridgeError):
            return cls(kind=exc.error_type, message=exc.message, details=exc.details)
        return cls(kind=exc.__class__.__name__, message=str(exc) or exc.__class__.__name__)


@dataclass(frozen=True)
class ToolResult:
    """Outcome of one tool call.

    Attributes:
        ok: True if the upstream call succeeded
        payload: Upstream JSON (success only)
        error: Failure information (failure only)
    """

    ok: bool
    payload: Any = None
    error: ToolFailure | None = None

    @classmethod
    def success(cls, payload: Any) -> "ToolResult":
        return cls(ok=True, payload=payload)

    @classmethod
    def failure(cls, error: ToolFailure) -> "ToolResult":
        return cls(ok=False, error=error)

    def to_payload(self) -> Any:
        """Return the JSON value carried in the text block.

        Success returns the upstream payload as is; failure returns the
        ``{ok: false, error, details}`` envelope.
        """
        if self.ok:
            return self.payload

        error = self.error
        if error is None:
            msg = "Failure result carries no error"
            raise ValueError(msg)
        return {"ok": False, "error": error.message, "details": error.details}

    def to_text(self) -> str:
        """Serialize to compact JSON text."""
        return json.dumps(self.to_payload(), separators=(",", ":"), ensure_ascii=False)
