"""Configuration loading and logging setup for the M2Web client.

Logging is left to the application: call :func:`configure_logging` with the
loaded ``log_level`` and ``log_format`` before creating the client.
"""

import logging
import os
import pathlib
from typing import Literal

import httpx
import pydantic
import structlog

from . import m2webapi

CONFIG_ENV_VAR = "M2WEB_CLIENT_CONFIG_PATH"
DEFAULT_CONFIG_PATH = "/config.json"
logger = structlog.get_logger(__name__)

LogFormat = Literal["logfmt", "json"]


class AppConfig(m2webapi.ClientConfig):
    """Client configuration as read from a JSON file."""

    log_level: str = pydantic.Field("INFO", description="Logging level")
    log_format: LogFormat = pydantic.Field(
        "logfmt",
        description="Log line rendering, logfmt or json",
    )


def configure_logging(log_level_name: str, log_format: LogFormat = "logfmt") -> None:
    """Configure structlog output for an application using the client.

    Args:
        log_level_name: Minimum level to emit, e.g. "DEBUG". Unknown names
            fall back to INFO.
        log_format: "logfmt" for key=value lines, "json" for one JSON object
            per line.
    """
    level = getattr(logging, log_level_name.upper(), logging.INFO)
    if log_format == "json":
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.processors.LogfmtRenderer(
            key_order=("timestamp", "level", "msg"),
            drop_missing=True,
        )

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.EventRenamer("msg"),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        logger_factory=structlog.PrintLoggerFactory(),
    )


def resolve_config_path(config_path: str | pathlib.Path | None = None) -> pathlib.Path:
    """Return the explicit path, else M2WEB_CLIENT_CONFIG_PATH, else /config.json."""
    return pathlib.Path(
        config_path or os.environ.get(CONFIG_ENV_VAR, DEFAULT_CONFIG_PATH),
    )


def load_config(config_path: str | pathlib.Path | None = None) -> AppConfig:
    """Load the client configuration from a JSON file.

    Keys missing from the file fall back to the client defaults.

    Raises:
        FileNotFoundError: If the file does not exist.
        pydantic.ValidationError: If the file is not JSON or a value has the
            wrong type.
    """
    path = resolve_config_path(config_path)
    if not path.is_file():
        msg = f"Configuration file not found: {path}"
        raise FileNotFoundError(msg)

    return AppConfig.model_validate_json(path.read_bytes())


def create_client(
    config_path: str | pathlib.Path | None = None,
    http_client: httpx.Client | None = None,
) -> m2webapi.M2WebClient:
    """Create a client from a JSON configuration file.

    Args:
        config_path: Path of the configuration file, resolved with
            :func:`resolve_config_path`.
        http_client: Optional transport handed to the client.

    Returns:
        Configured M2WebClient.
    """
    config = load_config(config_path)
    client = m2webapi.M2WebClient(config=config, http_client=http_client)
    logger.info(
        "Created M2Web client",
        base_url=client.base_url,
        stateful_auth=config.stateful_auth,
    )
    return client
