"""Domain models for the translation layer.

Messages-protocol output shapes are pydantic models so they serialize to
the exact wire JSON; native requests are plain frozen dataclasses.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Annotated, Any, Literal

from pydantic import BaseModel, Field

StopReason = Literal["end_turn", "max_tokens", "tool_use", "stop_sequence"]


class TextBlock(BaseModel):
    """A text content block."""

    type: Literal["text"] = "text"
    text: str


class ToolUseBlock(BaseModel):
    """A tool invocation requested by the model."""

    type: Literal["tool_use"] = "tool_use"
    id: str
    name: str
    input: dict[str, Any] = Field(default_factory=dict)


ContentBlock = Annotated[TextBlock | ToolUseBlock, Field(discriminator="type")]


class Usage(BaseModel):
    """Token accounting for one assembled message."""

    input_tokens: int = 0
    output_tokens: int = 0


class AssembledMessage(BaseModel):
    """A Messages-protocol ``message`` object rebuilt from a native reply."""

    id: str
    type: Literal["message"] = "message"
    role: Literal["assistant"] = "assistant"
    model: str
    content: list[ContentBlock] = Field(default_factory=list)
    stop_reason: StopReason | None = None
    stop_sequence: str | None = None
    usage: Usage = Field(default_factory=Usage)

    @property
    def has_tool_use(self) -> bool:
        """Whether any block is a tool invocation."""
        return any(isinstance(block, ToolUseBlock) for block in self.content)

    def to_wire(self) -> dict[str, Any]:
        """Return the JSON-ready dict sent to the caller."""
        return self.model_dump(mode="json")


@dataclass(frozen=True)
class NativeRequest:
    """A fully built ``generateContent`` call."""

    #: ``models/``-prefixed id; also echoed back as the message's model.
    model: str
    payload: dict[str, Any]
    stream: bool = False
    #: Tool-call id → tool name, scoped to this one request.
    correlation: dict[str, str] = field(default_factory=dict)
