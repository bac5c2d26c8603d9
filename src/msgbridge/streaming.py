"""Server-Sent-Events synthesis for non-streaming upstream replies.

The upstream call is a single ``generateContent`` request, so a stream is
fabricated from the assembled message: one ``message_start``, one
start/delta/stop triple per content block, then ``message_delta`` and
``message_stop``. Consumers drive a state machine off this exact order.
"""

from __future__ import annotations

from collections.abc import Iterable
import json
from typing import Any

from msgbridge.errors import TranslationError
from msgbridge.providers.models import AssembledMessage, TextBlock


def frame(event: str, data: dict[str, Any]) -> str:
    """Render one ``event:``/``data:`` pair."""
    return f"event: {event}\ndata: {json.dumps(data)}\n\n"


def synthesize(message: AssembledMessage) -> list[str]:
    """Return the ordered SSE frames reproducing ``message``."""
    start_message = message.to_wire()
    start_message["content"] = []
    start_message["stop_reason"] = None

    frames = [frame("message_start", {"type": "message_start", "message": start_message})]

    for index, block in enumerate(message.content):
        if isinstance(block, TextBlock):
            placeholder: dict[str, Any] = {"type": "text", "text": ""}
            delta: dict[str, Any] = {"type": "text_delta", "text": block.text}
        else:
            placeholder = {"type": "tool_use", "id": block.id, "name": block.name, "input": {}}
            delta = {"type": "input_json_delta", "partial_json": json.dumps(block.input)}
        frames.append(
            frame(
                "content_block_start",
                {"type": "content_block_start", "index": index, "content_block": placeholder},
            )
        )
        frames.append(
            frame(
                "content_block_delta",
                {"type": "content_block_delta", "index": index, "delta": delta},
            )
        )
        frames.append(
            frame("content_block_stop", {"type": "content_block_stop", "index": index})
        )

    frames.append(
        frame(
            "message_delta",
            {
                "type": "message_delta",
                "delta": {"stop_reason": message.stop_reason, "stop_sequence": None},
                "usage": {"output_tokens": message.usage.output_tokens},
            },
        )
    )
    frames.append(frame("message_stop", {"type": "message_stop"}))
    return frames


def render_sse(frames: Iterable[str]) -> str:
    """Concatenate frames into a ``text/event-stream`` body."""
    return "".join(frames)


def parse_sse(payload: str) -> list[tuple[str, dict[str, Any]]]:
    """Split an event-stream body into ``(event, data)`` pairs."""
    events: list[tuple[str, dict[str, Any]]] = []
    for chunk in payload.split("\n\n"):
        if not chunk.strip():
            continue
        event = "message"
        data_lines: list[str] = []
        for line in chunk.splitlines():
            if line.startswith("event:"):
                event = line[len("event:") :].strip()
            elif line.startswith("data:"):
                data_lines.append(line[len("data:") :].strip())
        if not data_lines:
            continue
        try:
            data = json.loads("\n".join(data_lines))
        except ValueError as e:
            raise TranslationError(f"Malformed SSE data for event {event!r}") from e
        events.append((event, data))
    return events


def reassemble(events: Iterable[tuple[str, dict[str, Any]]]) -> AssembledMessage:
    """Rebuild a message from synthesized events (inverse of ``synthesize``)."""
    message: dict[str, Any] | None = None
    blocks: dict[int, dict[str, Any]] = {}
    partial_json: dict[int, list[str]] = {}

    for event, data in events:
        match event:
            case "message_start":
                message = dict(data["message"])
            case "content_block_start":
                blocks[data["index"]] = dict(data["content_block"])
            case "content_block_delta":
                index = data["index"]
                delta = data["delta"]
                if delta.get("type") == "text_delta":
                    blocks[index]["text"] = blocks[index].get("text", "") + delta["text"]
                elif delta.get("type") == "input_json_delta":
                    partial_json.setdefault(index, []).append(delta["partial_json"])
            case "message_delta":
                if message is None:
                    raise TranslationError("message_delta received before message_start")
                message["stop_reason"] = data["delta"].get("stop_reason")
                message["stop_sequence"] = data["delta"].get("stop_sequence")
                output_tokens = data.get("usage", {}).get("output_tokens")
                if output_tokens is not None:
                    message.setdefault("usage", {})["output_tokens"] = output_tokens

    if message is None:
        raise TranslationError("Stream did not contain a message_start event")

    for index, chunks in partial_json.items():
        blocks[index]["input"] = json.loads("".join(chunks)) if chunks else {}
    message["content"] = [blocks[index] for index in sorted(blocks)]
    return AssembledMessage.model_validate(message)

