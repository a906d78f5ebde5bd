"""Logging setup for the bridge.

All output goes to stderr: the stdio front-end owns stdout for protocol
frames, and a stray log line there would corrupt the stream.
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any, TextIO

PLAIN_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# Optional record attributes copied into structured output
_EXTRA_FIELDS = ("tool", "session_id", "status_code", "duration_ms")


class JSONFormatter(logging.Formatter):
    """ELK/Datadog style JSON formatter."""

    def format(self, record: logging.LogRecord) -> str:
        log_data: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        for name in _EXTRA_FIELDS:
            value = getattr(record, name, None)
            if value is not None:
                log_data[name] = value

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, default=str)


def configure_logging(
    level: str = "INFO",
    structured: bool = False,
    stream: TextIO | None = None,
) -> logging.Handler:
    """Install a single stderr handler on the root logger.

    Calling this again replaces the handler installed by the previous call.

    Args:
        level: Log level name
        structured: Emit JSON lines instead of plain text
        stream: Output stream (default: sys.stderr)

    Returns:
        The installed handler
    """
    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(JSONFormatter() if structured else logging.Formatter(PLAIN_FORMAT))
    handler.set_name("catalog_bridge")

    root = logging.getLogger()
    for existing in list(root.handlers):
        if existing.get_name() == "catalog_bridge":
            root.removeHandler(existing)
    root.addHandler(handler)
    root.setLevel(getattr(logging, level.upper()))

    # Keep uvicorn in step with the configured level
    for name in ("uvicorn", "uvicorn.error"):
        logging.getLogger(name).setLevel(root.level)

    return handler
