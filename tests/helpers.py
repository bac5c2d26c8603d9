"""Test helpers (small, reusable doubles).

Keep this file tiny: a scripted upstream for ``httpx.MockTransport`` and a
couple of request builders.
"""

from __future__ import annotations

from dataclasses import dataclass, field
import json
from typing import Any

import httpx

GEMINI_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"
ANTHROPIC_BASE_URL = "https://api.anthropic.com"


@dataclass
class Upstream:
    """Scripted network double; records every request it receives."""

    status_code: int = 200
    body: Any = field(default_factory=dict)
    headers: dict[str, str] = field(default_factory=dict)
    #: Serve the body as an unread stream, like a real network response.
    streamed: bool = False
    requests: list[httpx.Request] = field(default_factory=list)

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if isinstance(self.body, str):
            content = self.body.encode("utf-8")
            headers = {"Content-Type": "text/plain", **self.headers}
        else:
            content = json.dumps(self.body).encode("utf-8")
            headers = {"Content-Type": "application/json", **self.headers}
        if self.streamed:
            return httpx.Response(
                self.status_code, headers=headers, stream=httpx.ByteStream(content)
            )
        return httpx.Response(self.status_code, headers=headers, content=content)

    @property
    def last_json(self) -> Any:
        return json.loads(self.requests[-1].content)

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self)

    def async_transport(self) -> httpx.MockTransport:
        async def handler(request: httpx.Request) -> httpx.Response:
            return self(request)

        return httpx.MockTransport(handler)


def gemini_reply(
    *parts: dict[str, Any],
    finish_reason: str = "STOP",
    prompt_tokens: int = 7,
    output_tokens: int = 3,
) -> dict[str, Any]:
    """A ``generateContent`` success body with one candidate."""
    return {
        "candidates": [
            {"content": {"role": "model", "parts": list(parts)}, "finishReason": finish_reason}
        ],
        "usageMetadata": {
            "promptTokenCount": prompt_tokens,
            "candidatesTokenCount": output_tokens,
        },
    }


def messages_body(**overrides: Any) -> dict[str, Any]:
    """A minimal Messages-protocol request body."""
    body: dict[str, Any] = {
        "model": "gemini-2.0-flash",
        "max_tokens": 256,
        "messages": [{"role": "user", "content": "Hello"}],
    }
    body.update(overrides)
    return body
