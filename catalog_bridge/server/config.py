"""Configuration management with validation.

This module provides centralized configuration for the bridge with:
- YAML file support (catalog_bridge.yml)
- Environment variable overrides
- Validation in frozen dataclasses

Configuration precedence (highest to lowest):
1. Environment variables
2. YAML config file
3. Default values

Example catalog_bridge.yml:
    upstream:
      base_url: "https://api.example.com/endpoint-REST"
      timeout_seconds: 10

    server:
      http_host: "0.0.0.0"
      http_port: 3000
      log_level: "INFO"
      session_idle_timeout_seconds: 1800
      max_body_bytes: 2097152

Usage:
    config = load_config()
    config.upstream.base_url
"""

import logging
import os
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any
from urllib.parse import urlparse

import yaml

from catalog_bridge.errors import ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path("catalog_bridge.yml")

_VALID_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
_TRUE_VALUES = ("1", "true", "yes", "on")
DEFAULT_MAX_BODY_BYTES = 2 * 1024 * 1024


@dataclass(frozen=True)
class UpstreamConfig:
    """Upstream REST API configuration.

    Attributes:
        base_url: Base URL every tool path is appended to (required)
        timeout_seconds: Timeout applied to each upstream GET
    """

    base_url: str = ""
    timeout_seconds: float = 10.0

    def __post_init__(self) -> None:
        """Validate configuration."""
        # Strip trailing slash so "{base_url}/ping" never contains "//"
        object.__setattr__(self, "base_url", (self.base_url or "").strip().rstrip("/"))

        if self.timeout_seconds <= 0:
            msg = f"timeout_seconds must be > 0, got {self.timeout_seconds}"
            raise ValueError(msg)

    def validate(self) -> None:
        """Check that the upstream is usable.

        Raises:
            ConfigurationError: If base_url is missing or not an http(s) URL
        """
        if not self.base_url:
            msg = "Missing BASE_URL env var"
            raise ConfigurationError(msg)

        parsed = urlparse(self.base_url)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            msg = f"BASE_URL must be an http(s) URL, got '{self.base_url}'"
            raise ConfigurationError(msg)


@dataclass(frozen=True)
class ServerConfig:
    """Server configuration.

    Attributes:
        http_host: HTTP server bind address
        http_port: HTTP server port
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        structured_logging: Emit JSON log lines instead of plain text
        json_response: Answer POSTs with plain JSON instead of SSE streams
        session_idle_timeout_seconds: Idle time after which a session is evicted
        session_sweep_interval_seconds: Interval between eviction sweeps
        max_body_bytes: Largest request body the HTTP front-end will read
    """

    http_host: str = "0.0.0.0"  # noqa: S104
    http_port: int = 3000
    log_level: str = "INFO"
    structured_logging: bool = False
    json_response: bool = False
    session_idle_timeout_seconds: float = 1800.0
    session_sweep_interval_seconds: float = 60.0
    max_body_bytes: int = DEFAULT_MAX_BODY_BYTES

    def __post_init__(self) -> None:
        """Validate configuration."""
        object.__setattr__(self, "log_level", self.log_level.upper())
        if self.log_level not in _VALID_LOG_LEVELS:
            msg = f"log_level must be one of {list(_VALID_LOG_LEVELS)}, got '{self.log_level}'"
            raise ValueError(msg)

        if not (0 < self.http_port < 65536):
            msg = f"http_port must be 1-65535, got {self.http_port}"
            raise ValueError(msg)

        if self.session_idle_timeout_seconds <= 0:
            msg = (
                "session_idle_timeout_seconds must be > 0, "
                f"got {self.session_idle_timeout_seconds}"
            )
            raise ValueError(msg)

        if self.session_sweep_interval_seconds <= 0:
            msg = (
                "session_sweep_interval_seconds must be > 0, "
                f"got {self.session_sweep_interval_seconds}"
            )
            raise ValueError(msg)

        if self.max_body_bytes <= 0:
            msg = f"max_body_bytes must be > 0, got {self.max_body_bytes}"
            raise ValueError(msg)


@dataclass
class Config:
    """Root configuration object.

    Attributes:
        upstream: Upstream REST API configuration
        server: Server configuration
        server_name: Name announced to MCP clients
        server_version: Version announced to MCP clients
    """

    upstream: UpstreamConfig = field(default_factory=UpstreamConfig)
    server: ServerConfig = field(default_factory=ServerConfig)
    server_name: str = "catalog-bridge"
    server_version: str = "0.1.0"

    def validate(self) -> None:
        """Validate settings that have no usable default.

        Raises:
            ConfigurationError: If the upstream base URL is missing or invalid
        """
        self.upstream.validate()

    def to_dict(self) -> dict[str, Any]:
        """Convert config to dictionary."""
        return {
            "upstream": {
                "base_url": self.upstream.base_url,
                "timeout_seconds": self.upstream.timeout_seconds,
            },
            "server": {
                "http_host": self.server.http_host,
                "http_port": self.server.http_port,
                "log_level": self.server.log_level,
                "structured_logging": self.server.structured_logging,
                "json_response": self.server.json_response,
                "session_idle_timeout_seconds": self.server.session_idle_timeout_seconds,
                "session_sweep_interval_seconds": self.server.session_sweep_interval_seconds,
                "max_body_bytes": self.server.max_body_bytes,
            },
            "server_name": self.server_name,
            "server_version": self.server_version,
        }


def _parse_bool(value: str) -> bool:
    return value.strip().lower() in _TRUE_VALUES


def _read_yaml(config_path: Path) -> dict[str, Any]:
    with open(config_path) as f:
        data = yaml.safe_load(f) or {}

    if not isinstance(data, dict):
        msg = f"{config_path} must contain a mapping, got {type(data).__name__}"
        raise ConfigurationError(msg)
    return data


def _apply_env_overrides(config: Config, environ: dict[str, str]) -> Config:
    """Apply environment variable overrides (highest precedence)."""
    upstream_overrides: dict[str, Any] = {}
    server_overrides: dict[str, Any] = {}

    if environ.get("BASE_URL"):
        upstream_overrides["base_url"] = environ["BASE_URL"]

    if environ.get("BRIDGE_UPSTREAM_TIMEOUT"):
        upstream_overrides["timeout_seconds"] = float(environ["BRIDGE_UPSTREAM_TIMEOUT"])

    if environ.get("HOST"):
        server_overrides["http_host"] = environ["HOST"]

    if environ.get("PORT"):
        server_overrides["http_port"] = int(environ["PORT"])

    if environ.get("BRIDGE_LOG_LEVEL"):
        server_overrides["log_level"] = environ["BRIDGE_LOG_LEVEL"]

    if environ.get("BRIDGE_STRUCTURED_LOGS"):
        server_overrides["structured_logging"] = _parse_bool(environ["BRIDGE_STRUCTURED_LOGS"])

    if environ.get("BRIDGE_JSON_RESPONSE"):
        server_overrides["json_response"] = _parse_bool(environ["BRIDGE_JSON_RESPONSE"])

    if environ.get("BRIDGE_SESSION_IDLE_TIMEOUT"):
        server_overrides["session_idle_timeout_seconds"] = float(
            environ["BRIDGE_SESSION_IDLE_TIMEOUT"]
        )

    if environ.get("BRIDGE_MAX_BODY_BYTES"):
        server_overrides["max_body_bytes"] = int(environ["BRIDGE_MAX_BODY_BYTES"])

    if upstream_overrides:
        config.upstream = replace(config.upstream, **upstream_overrides)
    if server_overrides:
        config.server = replace(config.server, **server_overrides)
    return config


def load_config(
    config_path: Path | None = None,
    environ: dict[str, str] | None = None,
) -> Config:
    """Load configuration from YAML file and environment variables.

    Precedence (highest to lowest):
    1. Environment variables
    2. YAML config file
    3. Default values

    The result is not validated for a base URL here; call
    ``Config.validate()`` before starting a transport.

    Args:
        config_path: Optional path to config YAML file (default: ./catalog_bridge.yml)
        environ: Environment mapping (default: os.environ)

    Returns:
        Config object

    Raises:
        ConfigurationError: If the YAML file is malformed or a value is invalid

    Environment variables:
        BASE_URL: Upstream REST API base URL (required)
        PORT: HTTP server port (default 3000)
        HOST: HTTP server bind address
        BRIDGE_LOG_LEVEL: Log level (DEBUG/INFO/WARNING/ERROR/CRITICAL)
        BRIDGE_STRUCTURED_LOGS: Emit JSON log lines (true/false)
        BRIDGE_UPSTREAM_TIMEOUT: Upstream timeout in seconds
        BRIDGE_SESSION_IDLE_TIMEOUT: Session idle timeout in seconds
        BRIDGE_JSON_RESPONSE: Answer POSTs with JSON instead of SSE (true/false)
        BRIDGE_MAX_BODY_BYTES: Request body limit for the HTTP front-end (default 2 MiB)
    """
    environ = dict(os.environ) if environ is None else environ
    config = Config()

    explicit_path = config_path is not None
    config_path = config_path or DEFAULT_CONFIG_PATH

    try:
        if config_path.exists():
            logger.info("Loading configuration from %s", config_path)
            yaml_config = _read_yaml(config_path)

            if "upstream" in yaml_config:
                config.upstream = UpstreamConfig(**yaml_config["upstream"])
            if "server" in yaml_config:
                config.server = ServerConfig(**yaml_config["server"])
            config.server_name = yaml_config.get("server_name", config.server_name)
            config.server_version = yaml_config.get("server_version", config.server_version)
        elif explicit_path:
            msg = f"Config file not found: {config_path}"
            raise ConfigurationError(msg)

        config = _apply_env_overrides(config, environ)
    except (TypeError, ValueError, yaml.YAMLError) as e:
        msg = f"Invalid configuration: {e}"
        raise ConfigurationError(msg) from e

    return config
