"""Debug trace tests: cURL rendering, redaction and the file sink."""

from __future__ import annotations

import logging
from pathlib import Path

import httpx
import pytest

from msgbridge.debug_log import (
    MAX_BODY_CHARS,
    DebugLog,
    redact_headers,
    to_curl,
    trace_logger_name,
)

pytestmark = pytest.mark.unit


def test_redact_headers_masks_credentials() -> None:
    headers = httpx.Headers(
        {"x-api-key": "a", "X-Goog-Api-Key": "b", "Authorization": "c", "accept": "json"}
    )

    redacted = redact_headers(headers)

    assert redacted["x-api-key"] == "[REDACTED]"
    assert redacted["x-goog-api-key"] == "[REDACTED]"
    assert redacted["authorization"] == "[REDACTED]"
    assert redacted["accept"] == "json"


def test_to_curl_escapes_quotes_and_hides_keys() -> None:
    request = httpx.Request(
        "post",
        "https://api.example.com/v1/messages",
        headers={"x-api-key": "secret"},
        content=b'{"text": "it\'s"}',
    )

    curl = to_curl(request)

    assert curl.startswith("curl -X POST")
    assert "secret" not in curl
    assert "-H 'x-api-key: [REDACTED]'" in curl
    assert "-d '{\"text\": \"it'\\''s\"}'" in curl
    assert curl.endswith("'https://api.example.com/v1/messages'")


def test_disabled_log_writes_nothing(tmp_path: Path) -> None:
    path = tmp_path / "logs" / "interceptor.log"
    trace = DebugLog(path, enabled=False)

    trace.write("hello")

    assert not path.exists()


def test_request_and_response_are_traced(tmp_path: Path) -> None:
    path = tmp_path / "logs" / "interceptor.log"
    trace = DebugLog(path)
    request = httpx.Request("GET", "https://api.example.com/v1/models")
    response = httpx.Response(200, text="x" * (MAX_BODY_CHARS + 10), request=request)

    trace.request(request)
    trace.response(response, str(request.url), 12.5, response.text)
    trace.response(response, str(request.url), 1.0, None, streamed=True)
    trace.response(response, str(request.url), 1.0, None)

    text = path.read_text(encoding="utf-8")
    assert "→ REQUEST" in text
    assert "curl -X GET" in text
    assert "← RESPONSE 200 OK (12ms)" in text
    assert f"Body (truncated to {MAX_BODY_CHARS} chars)" in text
    assert "x" * (MAX_BODY_CHARS + 1) not in text
    assert "[SSE stream - not logged]" in text
    assert "[failed to read]" in text


def test_unwritable_directory_disables_tracing(tmp_path: Path) -> None:
    blocker = tmp_path / "file"
    blocker.write_text("x", encoding="utf-8")

    trace = DebugLog(blocker / "logs" / "interceptor.log")

    assert trace.enabled is False
    trace.write("ignored")


def test_trace_does_not_reach_host_logging(
    tmp_path: Path, caplog: pytest.LogCaptureFixture
) -> None:
    path = tmp_path / "logs" / "interceptor.log"
    caplog.set_level(logging.DEBUG)

    DebugLog(path).write("curl -X POST secret-body")

    assert "secret-body" in path.read_text(encoding="utf-8")
    assert "secret-body" not in caplog.text
    assert logging.getLogger(trace_logger_name(path)).propagate is False


def test_sinks_with_different_files_stay_separate(tmp_path: Path) -> None:
    first_path = tmp_path / "a" / "interceptor.log"
    second_path = tmp_path / "b" / "interceptor.log"
    first = DebugLog(first_path)
    second = DebugLog(second_path)

    first.write("only-in-a")
    second.write("only-in-b")

    assert "only-in-b" not in first_path.read_text(encoding="utf-8")
    assert "only-in-a" not in second_path.read_text(encoding="utf-8")
