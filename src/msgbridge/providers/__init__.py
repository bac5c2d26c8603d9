"""Provider translation layers.

Only the shared models are re-exported here; import provider modules
directly (``msgbridge.providers.gemini``).
"""

from msgbridge.providers.models import (
    AssembledMessage,
    ContentBlock,
    NativeRequest,
    StopReason,
    TextBlock,
    ToolUseBlock,
    Usage,
)

__all__ = [
    "AssembledMessage",
    "ContentBlock",
    "NativeRequest",
    "StopReason",
    "TextBlock",
    "ToolUseBlock",
    "Usage",
]
