"""Factories for httpx clients with the interceptor installed.

Pass the result to an SDK (``Anthropic(http_client=create_client())``) or use
it directly; every request flows through ``InterceptingTransport``.
"""

from __future__ import annotations

from typing import Any

import httpx

from msgbridge.config import Config
from msgbridge.interceptor import AsyncInterceptingTransport, InterceptingTransport


def create_client(
    config: Config | None = None,
    *,
    transport: httpx.BaseTransport | None = None,
    **kwargs: Any,
) -> httpx.Client:
    """Return an ``httpx.Client`` whose transport is intercepted.

    ``transport`` is the real network transport to wrap; remaining keyword
    arguments are passed to ``httpx.Client``.
    """
    return httpx.Client(transport=InterceptingTransport(transport, config=config), **kwargs)


def create_async_client(
    config: Config | None = None,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
    **kwargs: Any,
) -> httpx.AsyncClient:
    """Async counterpart of ``create_client``."""
    return httpx.AsyncClient(
        transport=AsyncInterceptingTransport(transport, config=config), **kwargs
    )
