"""Gemini ``generateContent`` translation.

Rewrites Messages-protocol request bodies into the native Gemini shape and
native replies back into Messages-protocol ``message`` objects. Every
function here is pure; the HTTP call itself belongs to the interceptor.
"""

from __future__ import annotations

import json
from typing import Any
import uuid

import httpx

from msgbridge.errors import MissingCredentialError, TranslationError
from msgbridge.presets import normalize_gemini_base_url, normalize_gemini_model_id
from msgbridge.providers.models import (
    AssembledMessage,
    ContentBlock,
    NativeRequest,
    StopReason,
    TextBlock,
    ToolUseBlock,
    Usage,
)
from msgbridge.schema import translate
from msgbridge.streaming import render_sse, synthesize

PROVIDER = "Gemini"

_GENERATION_FIELDS: tuple[tuple[str, str], ...] = (
    ("max_tokens", "maxOutputTokens"),
    ("temperature", "temperature"),
    ("top_p", "topP"),
    ("top_k", "topK"),
)

_TOOL_CHOICE_MODES: dict[str, str] = {"auto": "AUTO", "any": "ANY", "none": "NONE"}


# --- Content mapping ---


def build_contents(
    messages: Any,
) -> tuple[list[dict[str, Any]], dict[str, str]]:
    """Convert Messages-protocol turns into Gemini ``contents``.

    Returns the native turns and the tool-call correlation table. The table is
    filled in document order, so a ``tool_result`` only resolves calls that
    appeared earlier in the history; unresolved results are dropped. Turns
    that end up with no parts are omitted.
    """
    contents: list[dict[str, Any]] = []
    correlation: dict[str, str] = {}

    if not isinstance(messages, list):
        return contents, correlation

    for message in messages:
        if not isinstance(message, dict):
            continue
        role = "model" if message.get("role") == "assistant" else "user"
        parts: list[dict[str, Any]] = []

        match message.get("content"):
            case str() as text:
                _append_text(parts, text)
            case list() as blocks:
                for block in blocks:
                    _append_block(parts, block, correlation)

        if parts:
            contents.append({"role": role, "parts": parts})

    return contents, correlation


def _append_text(parts: list[dict[str, Any]], text: str) -> None:
    stripped = text.strip()
    if stripped:
        parts.append({"text": stripped})


def _append_block(
    parts: list[dict[str, Any]], block: Any, correlation: dict[str, str]
) -> None:
    match block:
        case {"type": "text", "text": str(text)}:
            _append_text(parts, text)
        case {
            "type": "image",
            "source": {"type": "base64", "media_type": str(mime), "data": str(data)},
        }:
            parts.append({"inlineData": {"mimeType": mime, "data": data}})
        case {"type": "tool_use", "name": str(name)} if name:
            call_id = block.get("id")
            if isinstance(call_id, str) and call_id:
                correlation[call_id] = name
            args = block.get("input")
            parts.append(
                {"functionCall": {"name": name, "args": args if isinstance(args, dict) else {}}}
            )
        case {"type": "tool_result", "tool_use_id": str(call_id)} if call_id in correlation:
            response: dict[str, Any] = {}
            if block.get("is_error"):
                response["error"] = True
            if "content" in block:
                response["content"] = block["content"]
            parts.append(
                {"functionResponse": {"name": correlation[call_id], "response": response}}
            )


# --- Request building ---


def extract_system_text(system: Any) -> str | None:
    """Join the text items of a string or list-of-blocks ``system`` field."""
    match system:
        case str() as text:
            return text.strip() or None
        case list() as items:
            chunks: list[str] = []
            for item in items:
                match item:
                    case str() as text:
                        chunks.append(text)
                    case {"type": "text", "text": str(text)}:
                        chunks.append(text)
            return "\n".join(chunks).strip() or None
        case _:
            return None


def build_tool_declarations(tools: Any) -> list[dict[str, Any]] | None:
    """Build the native ``tools`` array; None when nothing is declarable."""
    if not isinstance(tools, list):
        return None

    declarations: list[dict[str, Any]] = []
    for tool in tools:
        if not isinstance(tool, dict):
            continue
        name = tool.get("name")
        if not isinstance(name, str) or not name:
            continue
        declaration: dict[str, Any] = {"name": name}
        description = tool.get("description")
        if isinstance(description, str) and description:
            declaration["description"] = description
        # Untranslatable schemas degrade to a parameterless declaration.
        parameters = translate(tool.get("input_schema"))
        if parameters is not None:
            declaration["parameters"] = parameters
        declarations.append(declaration)

    if not declarations:
        return None
    return [{"functionDeclarations": declarations}]


def build_tool_config(tool_choice: Any) -> dict[str, Any]:
    """Map a Messages ``tool_choice`` onto ``functionCallingConfig``."""
    config: dict[str, Any] = {"mode": "AUTO"}
    match tool_choice:
        case {"type": "tool", "name": str(name)} if name:
            config = {"mode": "ANY", "allowedFunctionNames": [name]}
        case {"type": str(kind)} if kind in _TOOL_CHOICE_MODES:
            config = {"mode": _TOOL_CHOICE_MODES[kind]}
    return {"functionCallingConfig": config}


def build_generation_config(body: dict[str, Any]) -> dict[str, Any]:
    """Forward numeric sampling parameters that are present; never default."""
    config: dict[str, Any] = {}
    for source, target in _GENERATION_FIELDS:
        value = body.get(source)
        if isinstance(value, int | float) and not isinstance(value, bool):
            config[target] = value
    stop_sequences = body.get("stop_sequences")
    if isinstance(stop_sequences, list):
        sequences = [s for s in stop_sequences if isinstance(s, str) and s]
        if sequences:
            config["stopSequences"] = sequences
    return config


def build_native_request(body: Any) -> NativeRequest:
    """Assemble a full ``generateContent`` request from a Messages body."""
    if not isinstance(body, dict):
        raise TranslationError("Messages request body must be a JSON object")

    model = normalize_gemini_model_id(str(body.get("model") or ""))
    contents, correlation = build_contents(body.get("messages"))

    payload: dict[str, Any] = {"contents": contents}

    system_text = extract_system_text(body.get("system"))
    if system_text:
        payload["systemInstruction"] = {"parts": [{"text": system_text}]}

    tools = build_tool_declarations(body.get("tools"))
    if tools:
        payload["tools"] = tools
        payload["toolConfig"] = build_tool_config(body.get("tool_choice"))

    generation_config = build_generation_config(body)
    if generation_config:
        payload["generationConfig"] = generation_config

    return NativeRequest(
        model=model,
        payload=payload,
        stream=bool(body.get("stream")),
        correlation=correlation,
    )


# --- Response assembly ---


def finish_reason_to_stop_reason(reason: Any, *, has_tool_use: bool) -> StopReason:
    """Derive the Messages stop reason; tool use always wins."""
    if has_tool_use:
        return "tool_use"
    normalized = reason.upper() if isinstance(reason, str) else ""
    if normalized == "MAX_TOKENS":
        return "max_tokens"
    if normalized == "SAFETY":
        return "stop_sequence"
    return "end_turn"


def to_content_blocks(content: Any) -> list[ContentBlock]:
    """Convert a native candidate ``content`` into Messages content blocks."""
    blocks: list[ContentBlock] = []
    parts = content.get("parts") if isinstance(content, dict) else None
    if not isinstance(parts, list):
        return blocks

    for part in parts:
        match part:
            case {"thought": True}:
                # Reasoning summaries are not part of the answer.
                continue
            case {"text": str(text)}:
                blocks.append(TextBlock(text=text))
            case {"functionCall": {"name": str(name)} as call}:
                args = call.get("args")
                blocks.append(
                    ToolUseBlock(
                        id=f"toolu_{uuid.uuid4()}",
                        name=name,
                        input=args if isinstance(args, dict) else {},
                    )
                )
    return blocks


def _token_count(usage: Any, key: str) -> int:
    value = usage.get(key) if isinstance(usage, dict) else None
    if isinstance(value, int | float) and not isinstance(value, bool):
        return int(value)
    return 0


def assemble(
    native: Any,
    requested_model: str,
    stream_requested: bool = False,
) -> tuple[AssembledMessage, str | None]:
    """Convert a native reply into a message and, if streaming, SSE frames.

    Only the first candidate is considered. Missing or non-numeric usage
    counters become 0.
    """
    candidates = native.get("candidates") if isinstance(native, dict) else None
    candidate = candidates[0] if isinstance(candidates, list) and candidates else None
    if not isinstance(candidate, dict):
        candidate = {}

    blocks = to_content_blocks(candidate.get("content"))
    has_tool_use = any(isinstance(block, ToolUseBlock) for block in blocks)
    usage = native.get("usageMetadata") if isinstance(native, dict) else None

    message = AssembledMessage(
        id=f"msg_{uuid.uuid4()}",
        model=requested_model,
        content=blocks,
        stop_reason=finish_reason_to_stop_reason(
            candidate.get("finishReason"), has_tool_use=has_tool_use
        ),
        usage=Usage(
            input_tokens=_token_count(usage, "promptTokenCount"),
            output_tokens=_token_count(usage, "candidatesTokenCount"),
        ),
    )

    if not stream_requested:
        return message, None
    return message, render_sse(synthesize(message))


# --- HTTP glue ---


class GeminiAdapter:
    """Binds the pure translation functions to a configured endpoint."""

    name = PROVIDER

    def __init__(self, base_url: str, api_key: str | None) -> None:
        """Create an adapter for ``base_url`` using ``api_key``."""
        self.base_url = normalize_gemini_base_url(base_url)
        self.api_key = api_key

    def endpoint(self, model: str) -> str:
        """Return the ``generateContent`` URL for a normalized model id."""
        return f"{self.base_url}/{model}:generateContent"

    def build_request(self, body: Any) -> tuple[NativeRequest, httpx.Request]:
        """Translate ``body`` and build the upstream HTTP request.

        Raises:
            MissingCredentialError: No API key is configured; checked first so
                that no translation work or network access happens.
        """
        if not self.api_key:
            raise MissingCredentialError(self.name)
        native = build_native_request(body)
        request = httpx.Request(
            "POST",
            self.endpoint(native.model),
            headers={
                "Content-Type": "application/json",
                "x-goog-api-key": self.api_key,
            },
            content=json.dumps(native.payload).encode("utf-8"),
        )
        return native, request

    def parse_response(
        self, native: NativeRequest, text: str
    ) -> tuple[AssembledMessage, str | None]:
        """Parse a successful upstream body and assemble the reply."""
        try:
            payload = json.loads(text) if text else {}
        except ValueError as e:
            raise TranslationError(f"{self.name} returned a non-JSON body") from e
        return assemble(payload, native.model, native.stream)
