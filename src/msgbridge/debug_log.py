"""Human-readable request/response trace written to an append-only file.

Active only when ``Config.debug`` is set. Write failures are swallowed so
tracing can never change a request's outcome.
"""

from __future__ import annotations

import hashlib
import logging
from pathlib import Path

import httpx

from msgbridge._http import SENSITIVE_HEADERS

TRACE_LOGGER = "msgbridge.trace"
MAX_BODY_CHARS = 5000

_FORMAT = "%(asctime)s [interceptor] %(message)s"


class _QuietFileHandler(logging.FileHandler):
    """FileHandler that drops records it cannot write."""

    def handleError(self, record: logging.LogRecord) -> None:  # noqa: N802 - inherited name
        return


def redact_headers(headers: httpx.Headers) -> dict[str, str]:
    """Copy headers, masking credential-bearing values."""
    return {
        key: "[REDACTED]" if key.lower() in SENSITIVE_HEADERS else value
        for key, value in headers.items()
    }


def to_curl(request: httpx.Request) -> str:
    """Render a request as a shell-safe cURL command with redacted headers."""
    lines = [f"curl -X {request.method.upper()}"]
    for key, value in redact_headers(request.headers).items():
        lines.append(f"-H '{key}: {value}'")
    try:
        body = request.content
    except httpx.RequestNotRead:
        body = b""
    if body:
        text = body.decode("utf-8", errors="replace").replace("'", "'\\''")
        lines.append(f"-d '{text}'")
    lines.append(f"'{request.url}'")
    return " \\\n  ".join(lines)


def trace_logger_name(path: Path) -> str:
    """Name of the ``msgbridge.trace`` child logger that owns ``path``."""
    digest = hashlib.sha1(str(path.resolve()).encode("utf-8")).hexdigest()[:12]
    return f"{TRACE_LOGGER}.{digest}"


class DebugLog:
    """Trace sink writing to one file through its own ``msgbridge.trace.*`` logger.

    Each file gets its own non-propagating logger.
    """

    def __init__(self, path: Path | None, *, enabled: bool = True) -> None:
        """Attach a file handler for ``path`` when enabled."""
        self.enabled = enabled and path is not None
        self._logger = logging.getLogger(TRACE_LOGGER)
        if not self.enabled or path is None:
            return
        self._logger = logging.getLogger(trace_logger_name(path))
        self._logger.propagate = False
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
        except OSError:
            self.enabled = False
            return
        if not any(
            isinstance(h, _QuietFileHandler) and Path(h.baseFilename) == path.resolve()
            for h in self._logger.handlers
        ):
            handler = _QuietFileHandler(path, encoding="utf-8", delay=True)
            handler.setFormatter(logging.Formatter(_FORMAT))
            self._logger.addHandler(handler)
        self._logger.setLevel(logging.DEBUG)

    def write(self, message: str, *args: object) -> None:
        """Append one trace entry."""
        if self.enabled:
            self._logger.debug(message, *args)

    def request(self, request: httpx.Request) -> None:
        """Trace an outbound request as a cURL command."""
        if not self.enabled:
            return
        self.write("%s\n→ REQUEST\n%s", "=" * 80, to_curl(request))

    def response(
        self,
        response: httpx.Response,
        url: str,
        duration_ms: float,
        body: str | None,
        *,
        streamed: bool = False,
    ) -> None:
        """Trace a response; ``body`` is None when it was not or could not be read."""
        if not self.enabled:
            return
        self.write(
            "← RESPONSE %s %s (%dms)\n  URL: %s\n  Headers: %s",
            response.status_code,
            response.reason_phrase,
            duration_ms,
            url,
            redact_headers(response.headers),
        )
        if streamed:
            self.write("  Body: [SSE stream - not logged]")
        elif body is None:
            self.write("  Body: [failed to read]")
        elif len(body) > MAX_BODY_CHARS:
            self.write(
                "  Body (truncated to %d chars):\n%s...", MAX_BODY_CHARS, body[:MAX_BODY_CHARS]
            )
        else:
            self.write("  Body:\n%s", body)
