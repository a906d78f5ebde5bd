"""Catalog Bridge CLI - start the MCP bridge on stdio or HTTP.

Example:
    # Local process-embedded caller (stdin/stdout)
    BASE_URL=https://api.example.com catalog-bridge stdio

    # Network-reachable caller (HTTP with sessions)
    BASE_URL=https://api.example.com PORT=3000 catalog-bridge http
"""

import argparse
import logging
import sys
from dataclasses import replace
from pathlib import Path

from catalog_bridge import __version__
from catalog_bridge.errors import ConfigurationError
from catalog_bridge.observability import configure_logging
from catalog_bridge.server.config import Config, load_config

logger = logging.getLogger(__name__)


def _load(args: argparse.Namespace) -> Config:
    """Load configuration and apply command-line overrides.

    Raises:
        ConfigurationError: If configuration is missing or invalid
    """
    config = load_config(Path(args.config) if args.config else None)

    overrides = {}
    if getattr(args, "host", None):
        overrides["http_host"] = args.host
    if getattr(args, "port", None):
        overrides["http_port"] = args.port
    if args.log_level:
        overrides["log_level"] = args.log_level
    if overrides:
        try:
            config.server = replace(config.server, **overrides)
        except ValueError as e:
            msg = f"Invalid configuration: {e}"
            raise ConfigurationError(msg) from e

    config.validate()
    return config


def stdio_serve(config: Config) -> int:
    """Start the stdio transport.

    Returns:
        Exit code (0 for success, 1 for failure)
    """
    from catalog_bridge.server import stdio_transport

    try:
        # This will block until the peer closes stdin
        stdio_transport.run(config)
        return 0

    except KeyboardInterrupt:
        return 0
    except Exception:
        logger.exception("MCP stdio server error")
        return 1


def http_serve(config: Config) -> int:
    """Start the HTTP transport.

    Returns:
        Exit code (0 for success, 1 for failure)
    """
    from catalog_bridge.server import http_transport

    try:
        # This will block until the server is stopped
        http_transport.run(config)
        return 0

    except KeyboardInterrupt:
        return 0
    except Exception:
        logger.exception("MCP HTTP server error")
        return 1


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser for the CLI.

    Returns:
        Configured ArgumentParser
    """
    parser = argparse.ArgumentParser(
        prog="catalog-bridge",
        description="MCP bridge to an upstream product/price REST API",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Serve a local MCP client over stdin/stdout
  BASE_URL=https://api.example.com catalog-bridge stdio

  # Serve MCP over HTTP on port 3000
  BASE_URL=https://api.example.com catalog-bridge http --port 3000

  # Use a config file
  catalog-bridge --config catalog_bridge.yml http

Environment:
  BASE_URL    Upstream REST API base URL (required)
  PORT        HTTP port (default: 3000)
        """,
    )

    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")

    parser.add_argument(
        "--config",
        "-c",
        help="Path to YAML config file (default: ./catalog_bridge.yml if present)",
    )

    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=None,
        help="Set logging level (default: from config, INFO)",
    )

    subparsers = parser.add_subparsers(dest="command", help="Transport to serve")

    stdio_parser = subparsers.add_parser("stdio", help="Serve MCP over stdin/stdout")
    stdio_parser.set_defaults(func=stdio_serve)

    http_parser = subparsers.add_parser("http", help="Serve MCP over HTTP with sessions")
    http_parser.add_argument("--host", help="Host address to bind to (default: 0.0.0.0)")
    http_parser.add_argument("--port", "-p", type=int, help="Port to listen on (default: 3000)")
    http_parser.set_defaults(func=http_serve)

    return parser


def main(argv: list[str] | None = None) -> int:
    """Main entry point for the CLI.

    Returns:
        Exit code (0 for success, non-zero for failure)
    """
    parser = create_parser()
    args = parser.parse_args(argv)

    # Log to stderr before config is known so startup errors are visible
    configure_logging(args.log_level or "INFO")

    if not args.command:
        parser.print_help(sys.stderr)
        return 1

    try:
        config = _load(args)
    except ConfigurationError as e:
        logger.error("%s", e.message)  # noqa: TRY400
        return 1

    configure_logging(config.server.log_level, structured=config.server.structured_logging)
    return args.func(config)


if __name__ == "__main__":
    sys.exit(main())
