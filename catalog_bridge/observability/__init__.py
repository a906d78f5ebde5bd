"""
Logging utilities for the bridge.

Exports the JSON formatter and the stderr logging setup shared by the stdio
and HTTP front-ends.
"""

from .logging import JSONFormatter, configure_logging

__all__ = [
    "JSONFormatter",
    "configure_logging",
]
