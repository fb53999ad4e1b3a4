"""M2Web REST API client package.

Provides a typed HTTP client for the Talk2M M2Web API that authenticates
statelessly or with a session, returns validated eWON records and raises
typed errors for every failure.

Exports:
    M2WebClient: HTTP client with authentication and error handling.
    ClientConfig: Connection and authentication parameters.
    errors: Module containing the error taxonomy.
    types: Module containing Pydantic models for API responses.
    DEFAULT_URL: Default M2Web API base URL.
"""

from . import errors, types
from .client import DEFAULT_URL, ClientConfig, M2WebClient
from .errors import M2WebError
from .types import Device, DeviceStatus

__all__ = [
    "DEFAULT_URL",
    "ClientConfig",
    "Device",
    "DeviceStatus",
    "M2WebClient",
    "M2WebError",
    "errors",
    "types",
]
