"""Metadata parameters injected into externally-contributed (MCP) tools.

MCP tool names carry the ``mcp__`` prefix. Each such tool gets two required
string parameters the UI reads back from tool calls: ``_intent`` (what the
call is for) and ``_displayName`` (a short action label).
"""

from __future__ import annotations

import logging
from typing import Any

log = logging.getLogger(__name__)

MCP_TOOL_PREFIX = "mcp__"

METADATA_PROPERTIES: dict[str, dict[str, str]] = {
    "_intent": {
        "type": "string",
        "description": (
            "REQUIRED: Describe what you are trying to accomplish with this "
            "tool call (1-2 sentences)"
        ),
    },
    "_displayName": {
        "type": "string",
        "description": (
            "REQUIRED: Human-friendly name for this action (2-4 words, e.g., "
            '"List Folders", "Search Documents", "Create Task")'
        ),
    },
}


def add_metadata_to_mcp_tools(body: dict[str, Any]) -> int:
    """Mutate ``body["tools"]`` in place; return how many tools changed."""
    tools = body.get("tools")
    if not isinstance(tools, list):
        return 0

    modified_count = 0
    for tool in tools:
        if not isinstance(tool, dict):
            continue
        name = tool.get("name")
        schema = tool.get("input_schema")
        if not (isinstance(name, str) and name.startswith(MCP_TOOL_PREFIX)):
            continue
        if not isinstance(schema, dict) or not isinstance(schema.get("properties"), dict):
            continue

        properties = schema["properties"]
        modified = False
        for key, definition in METADATA_PROPERTIES.items():
            if key not in properties:
                properties[key] = dict(definition)
                modified = True
        if not modified:
            continue

        current = schema.get("required")
        required = list(current) if isinstance(current, list) else []
        for key in METADATA_PROPERTIES:
            if key not in required:
                required.append(key)
        schema["required"] = required
        modified_count += 1

    if modified_count:
        log.debug("Added _intent and _displayName to %d MCP tools", modified_count)
    return modified_count
