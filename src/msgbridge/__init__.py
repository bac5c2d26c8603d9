"""msgbridge: Messages-protocol calls served by Gemini ``generateContent``.

Public API:
    - create_client() / create_async_client(): httpx clients with interception
    - InterceptingTransport / AsyncInterceptingTransport: transport wrappers
    - Config: Configuration dataclass
    - get_last_api_error(): Pop the most recent upstream error
"""

from __future__ import annotations

import logging

from msgbridge.client import create_async_client, create_client
from msgbridge.config import Config
from msgbridge.error_cache import (
    ErrorCache,
    StoredApiError,
    clear_last_api_error,
    get_last_api_error,
)
from msgbridge.errors import (
    BridgeError,
    ConfigurationError,
    MissingCredentialError,
    TranslationError,
    UpstreamError,
)
from msgbridge.interceptor import (
    AsyncInterceptingTransport,
    InterceptingTransport,
    Interceptor,
)

try:
    from importlib.metadata import PackageNotFoundError, version

    __version__ = version("msgbridge")
except PackageNotFoundError:
    __version__ = "0.0.0+unknown"

# Library-level NullHandler: stay silent unless the consumer configures logging.
logging.getLogger("msgbridge").addHandler(logging.NullHandler())

__all__ = [
    "AsyncInterceptingTransport",
    "BridgeError",
    "Config",
    "ConfigurationError",
    "ErrorCache",
    "InterceptingTransport",
    "Interceptor",
    "MissingCredentialError",
    "StoredApiError",
    "TranslationError",
    "UpstreamError",
    "clear_last_api_error",
    "create_async_client",
    "create_client",
    "get_last_api_error",
]
