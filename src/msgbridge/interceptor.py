"""Messages-protocol interception as an httpx transport.

``InterceptingTransport`` (and its async twin) wraps the real transport of
an httpx client. Every outbound call passes through it:

- calls that are not a POST with a body to the configured ``/messages``
  endpoint go straight to the wrapped transport;
- matching calls to a provider that needs translation (Gemini) are rewritten
  into a ``generateContent`` call and the reply is converted back, as JSON or
  as a synthesized SSE stream;
- other matching calls get MCP tool metadata injected and are forwarded.

Failures anywhere on the rewritten path, including network errors on the
native call, never reach the caller: the original request is sent
unmodified instead. Errors from that pass-through call propagate. Every
response on the watched endpoint with status >= 400 is recorded in the
error cache.
"""

from __future__ import annotations

from dataclasses import dataclass
import json
import logging
import time
from typing import Any

import httpx

from msgbridge._http import JSON_HEADERS, SSE_HEADERS
from msgbridge.config import Config
from msgbridge.debug_log import DebugLog
from msgbridge.error_cache import ErrorCache
from msgbridge.errors import MissingCredentialError, UpstreamError
from msgbridge.presets import needs_translation
from msgbridge.providers.gemini import GeminiAdapter
from msgbridge.providers.models import NativeRequest
from msgbridge.tools import add_metadata_to_mcp_tools

log = logging.getLogger(__name__)

_KEPT_EXTENSIONS = ("http_version", "reason_phrase")


@dataclass(frozen=True)
class Translation:
    """A matching call rewritten for a native provider."""

    adapter: GeminiAdapter
    native: NativeRequest
    upstream: httpx.Request


Route = httpx.Request | httpx.Response | Translation | None


def extract_error_message(text: str | None, fallback: str) -> str:
    """Pull a message out of a JSON error envelope, else raw text, else fallback."""
    if not text:
        return fallback
    try:
        payload = json.loads(text)
    except ValueError:
        return text
    match payload:
        case {"error": {"message": str(message)}} if message:
            return message
        case {"message": str(message)} if message:
            return message
    return fallback


def error_response(error: UpstreamError, request: httpx.Request) -> httpx.Response:
    """Build a Messages-protocol error response."""
    return httpx.Response(
        error.status_code, headers=JSON_HEADERS, json=error.to_body(), request=request
    )


def _request_body(request: httpx.Request) -> bytes:
    try:
        return request.content
    except httpx.RequestNotRead:
        # Streaming uploads are never rewritten.
        return b""


def _with_body(request: httpx.Request, body: dict[str, Any]) -> httpx.Request:
    headers = request.headers.copy()
    headers.pop("content-length", None)
    return httpx.Request(
        request.method,
        request.url,
        headers=headers,
        content=json.dumps(body).encode("utf-8"),
        extensions=request.extensions,
    )


def _rewrap(response: httpx.Response, raw: bytes, request: httpx.Request) -> httpx.Response:
    """Return a re-readable copy of ``response`` holding ``raw`` bytes."""
    return httpx.Response(
        response.status_code,
        headers=response.headers,
        content=raw,
        request=request,
        extensions={k: v for k, v in response.extensions.items() if k in _KEPT_EXTENSIONS},
    )


def _is_event_stream(response: httpx.Response) -> bool:
    return "text/event-stream" in response.headers.get("content-type", "")


class Interceptor:
    """Routing and bookkeeping shared by the sync and async transports.

    Configuration is resolved per call (``Config.from_env()``) unless an
    explicit ``config`` is given, so credentials set after client
    construction are honored.
    """

    def __init__(
        self,
        config: Config | None = None,
        *,
        error_cache: ErrorCache | None = None,
        debug_log: DebugLog | None = None,
    ) -> None:
        """Create an interceptor; defaults derive from the initial config."""
        self._config = config
        initial = self.config
        self.error_cache = error_cache or ErrorCache.from_config(initial)
        self.debug_log = debug_log or DebugLog(initial.log_file, enabled=initial.debug)
        self.debug_log.write("Interceptor installed")

    @property
    def config(self) -> Config:
        """The effective configuration for the current call."""
        return self._config or Config.from_env()

    def is_messages_url(self, url: str) -> bool:
        """Whether ``url`` is the configured provider's messages endpoint."""
        return url.startswith(self.config.base_url) and "/messages" in url

    def route(self, request: httpx.Request) -> Route:
        """Decide how to handle ``request``; None means forward it unmodified.

        Raises on malformed bodies; callers treat any exception as a reason
        to forward the original request.
        """
        if request.method.upper() != "POST" or not self.is_messages_url(str(request.url)):
            return None
        raw = _request_body(request)
        if not raw:
            return None
        body = json.loads(raw)

        config = self.config
        if needs_translation(config.base_url):
            adapter = GeminiAdapter(config.base_url, config.api_key)
            try:
                native, upstream = adapter.build_request(body)
            except MissingCredentialError as e:
                log.debug("%s", e)
                return httpx.Response(
                    e.status_code, headers=JSON_HEADERS, json=e.to_body(), request=request
                )
            log.debug("Translating %s call to %s", native.model, upstream.url)
            return Translation(adapter=adapter, native=native, upstream=upstream)

        if isinstance(body, dict) and add_metadata_to_mcp_tools(body):
            return _with_body(request, body)
        return None

    def adapt(
        self, translation: Translation, upstream: httpx.Response, request: httpx.Request
    ) -> httpx.Response:
        """Convert a fully read upstream response into the caller's response."""
        text = upstream.text
        if not upstream.is_success:
            log.warning(
                "%s upstream returned %s for %s",
                translation.adapter.name,
                upstream.status_code,
                translation.native.model,
            )
            # The raw upstream body is the error detail.
            error = UpstreamError(
                text or upstream.reason_phrase,
                status_code=upstream.status_code,
                provider=translation.adapter.name,
            )
            return error_response(error, request)

        message, stream = translation.adapter.parse_response(translation.native, text)
        if stream is not None:
            return httpx.Response(
                200, headers=SSE_HEADERS, content=stream.encode("utf-8"), request=request
            )
        return httpx.Response(200, headers=JSON_HEADERS, json=message.to_wire(), request=request)

    def wants_body(self, request: httpx.Request, response: httpx.Response) -> bool:
        """Whether ``finish`` needs a buffered copy of the response body."""
        if self.captures_error(request, response):
            return True
        return self.debug_log.enabled and not _is_event_stream(response)

    def captures_error(self, request: httpx.Request, response: httpx.Response) -> bool:
        """Whether this response is recorded in the error cache."""
        return response.status_code >= 400 and self.is_messages_url(str(request.url))

    def finish(
        self,
        request: httpx.Request,
        response: httpx.Response,
        started: float,
        *,
        readable: bool = True,
    ) -> None:
        """Record errors and trace the response.

        ``readable`` is False when the body could not be buffered; errors are
        then recorded with the status text as message.
        """
        body: str | None = None
        if readable and response.is_stream_consumed:
            body = response.text
        streamed = _is_event_stream(response)

        if self.captures_error(request, response):
            message = extract_error_message(body, response.reason_phrase)
            self.error_cache.record(response.status_code, response.reason_phrase, message)

        duration_ms = (time.monotonic() - started) * 1000
        self.debug_log.response(
            response,
            str(request.url),
            duration_ms,
            None if streamed else body,
            streamed=streamed,
        )


class InterceptingTransport(httpx.BaseTransport):
    """Sync transport wrapper installing the interceptor into an httpx.Client."""

    def __init__(
        self,
        wrapped: httpx.BaseTransport | None = None,
        *,
        config: Config | None = None,
        interceptor: Interceptor | None = None,
    ) -> None:
        """Wrap ``wrapped`` (default: a fresh ``httpx.HTTPTransport``)."""
        self._wrapped = wrapped or httpx.HTTPTransport()
        self.interceptor = interceptor or Interceptor(config)

    def __getattr__(self, name: str) -> Any:
        """Delegate unknown attributes to the wrapped transport."""
        if name == "_wrapped":
            raise AttributeError(name)
        return getattr(self._wrapped, name)

    def handle_request(self, request: httpx.Request) -> httpx.Response:
        """Route, call upstream once, and post-process the response."""
        started = time.monotonic()
        self.interceptor.debug_log.request(request)

        response: httpx.Response | None = None
        try:
            response = self._intercept(request)
        except Exception:
            log.debug("Request modification failed; forwarding unmodified", exc_info=True)

        if response is None:
            response = self._wrapped.handle_request(request)
        return self._finish(request, response, started)

    def _intercept(self, request: httpx.Request) -> httpx.Response | None:
        route = self.interceptor.route(request)
        match route:
            case httpx.Response():
                return route
            case httpx.Request():
                return self._wrapped.handle_request(route)
            case Translation():
                upstream = self._wrapped.handle_request(route.upstream)
                try:
                    upstream.read()
                finally:
                    upstream.close()
                return self.interceptor.adapt(route, upstream, request)
        return None

    def _finish(
        self, request: httpx.Request, response: httpx.Response, started: float
    ) -> httpx.Response:
        if not self.interceptor.wants_body(request, response) or response.is_stream_consumed:
            self.interceptor.finish(request, response, started)
            return response
        try:
            raw = b"".join(response.iter_raw())
        except httpx.HTTPError as e:
            log.debug("Could not read response body: %s", e)
            self.interceptor.finish(request, response, started, readable=False)
            return response
        finally:
            response.close()
        copy = _rewrap(response, raw, request)
        self.interceptor.finish(request, copy, started)
        return copy

    def close(self) -> None:
        """Close the wrapped transport."""
        self._wrapped.close()


class AsyncInterceptingTransport(httpx.AsyncBaseTransport):
    """Async transport wrapper installing the interceptor into an httpx.AsyncClient."""

    def __init__(
        self,
        wrapped: httpx.AsyncBaseTransport | None = None,
        *,
        config: Config | None = None,
        interceptor: Interceptor | None = None,
    ) -> None:
        """Wrap ``wrapped`` (default: a fresh ``httpx.AsyncHTTPTransport``)."""
        self._wrapped = wrapped or httpx.AsyncHTTPTransport()
        self.interceptor = interceptor or Interceptor(config)

    def __getattr__(self, name: str) -> Any:
        """Delegate unknown attributes to the wrapped transport."""
        if name == "_wrapped":
            raise AttributeError(name)
        return getattr(self._wrapped, name)

    async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
        """Route, call upstream once, and post-process the response."""
        started = time.monotonic()
        self.interceptor.debug_log.request(request)

        response: httpx.Response | None = None
        try:
            response = await self._intercept(request)
        except Exception:
            log.debug("Request modification failed; forwarding unmodified", exc_info=True)

        if response is None:
            response = await self._wrapped.handle_async_request(request)
        return await self._finish(request, response, started)

    async def _intercept(self, request: httpx.Request) -> httpx.Response | None:
        route = self.interceptor.route(request)
        match route:
            case httpx.Response():
                return route
            case httpx.Request():
                return await self._wrapped.handle_async_request(route)
            case Translation():
                upstream = await self._wrapped.handle_async_request(route.upstream)
                try:
                    await upstream.aread()
                finally:
                    await upstream.aclose()
                return self.interceptor.adapt(route, upstream, request)
        return None

    async def _finish(
        self, request: httpx.Request, response: httpx.Response, started: float
    ) -> httpx.Response:
        if not self.interceptor.wants_body(request, response) or response.is_stream_consumed:
            self.interceptor.finish(request, response, started)
            return response
        try:
            raw = b"".join([chunk async for chunk in response.aiter_raw()])
        except httpx.HTTPError as e:
            log.debug("Could not read response body: %s", e)
            self.interceptor.finish(request, response, started, readable=False)
            return response
        finally:
            await response.aclose()
        copy = _rewrap(response, raw, request)
        self.interceptor.finish(request, copy, started)
        return copy

    async def aclose(self) -> None:
        """Close the wrapped transport."""
        await self._wrapped.aclose()
