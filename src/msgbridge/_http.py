"""Small HTTP-related constants shared across msgbridge.

This module is intentionally tiny to avoid circular imports and drift.
"""

from __future__ import annotations

JSON_HEADERS: dict[str, str] = {"Content-Type": "application/json"}

SSE_HEADERS: dict[str, str] = {
    "Content-Type": "text/event-stream",
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
}

# Header names whose values never reach the debug trace.
SENSITIVE_HEADERS: frozenset[str] = frozenset(
    {"x-api-key", "x-goog-api-key", "authorization", "cookie"}
)

# Messages-protocol error types keyed by HTTP status.
ERROR_TYPES: dict[int, str] = {
    400: "invalid_request_error",
    401: "authentication_error",
    403: "permission_error",
    404: "not_found_error",
    413: "request_too_large",
    429: "rate_limit_error",
    529: "overloaded_error",
}


def error_type_for_status(status_code: int) -> str:
    """Map an HTTP status onto the Messages-protocol error type."""
    return ERROR_TYPES.get(status_code, "api_error")
