"""Error types for the bridge runtime.

Every failure the bridge knows how to describe derives from ``BridgeError``.
The dispatcher catches these and turns them into failure results, so none of
them reach a transport as an exception.

Example:
    # Validation error
    raise ValidationError("Missing argument: sku")

    # Upstream error
    raise UpstreamError("HTTP 404", status=404, details={"msg": "not found"})
"""

from typing import Any


class BridgeError(Exception):
    """Base class for all bridge errors.

    Attributes:
        message: Error message
        details: Structured context (JSON-serializable) or None
        error_type: Error type string (defaults to class name)
    """

    def __init__(
        self,
        message: str,
        details: Any = None,
        error_type: str | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.details = details
        self.error_type = error_type or self.__class__.__name__

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging."""
        return {
            "error_type": self.error_type,
            "message": self.message,
            "details": self.details,
        }


class ConfigurationError(BridgeError):
    """Raised when required configuration is missing or invalid.

    This is fatal at startup: the CLI exits before any transport is bound.
    """


class ValidationError(BridgeError):
    """Raised when a tool call is missing a required argument."""


class UnknownToolError(BridgeError):
    """Raised when a tool name is not in the catalog."""

    def __init__(self, name: str) -> None:
        super().__init__(f"Unknown tool: {name}")
        self.name = name


class UpstreamError(BridgeError):
    """Raised when the upstream REST API call fails.

    Covers non-2xx responses (``status`` set, ``details`` holds the parsed or
    raw body) as well as timeouts and connection failures (``status`` is None).
    """

    def __init__(
        self,
        message: str,
        status: int | None = None,
        details: Any = None,
    ) -> None:
        super().__init__(message, details=details)
        self.status = status
