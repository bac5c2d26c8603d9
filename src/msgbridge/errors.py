"""Exception hierarchy for msgbridge."""

from __future__ import annotations

from typing import Any

from msgbridge._http import error_type_for_status


class BridgeError(Exception):
    """Base exception for all msgbridge errors."""

    def __init__(self, message: str, *, hint: str | None = None) -> None:
        super().__init__(message)
        self.hint = hint


class ConfigurationError(BridgeError):
    """Configuration validation or resolution failed."""


class TranslationError(BridgeError):
    """A Messages-protocol request or native response could not be translated.

    The dispatch layer never surfaces this to callers; it degrades to an
    unmodified pass-through call.
    """


class MissingCredentialError(BridgeError):
    """No API key is configured for a provider that needs translation."""

    status_code = 401

    def __init__(self, provider: str) -> None:
        super().__init__(
            f"Missing API key for {provider} provider",
            hint="Set ANTHROPIC_API_KEY to the provider's API key.",
        )
        self.provider = provider

    def to_body(self) -> dict[str, Any]:
        """Return the fixed JSON error body sent in place of an upstream call."""
        return {"error": {"message": str(self)}}


class UpstreamError(BridgeError):
    """The native provider answered with a non-2xx status."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int,
        provider: str | None = None,
        hint: str | None = None,
    ) -> None:
        super().__init__(message, hint=hint)
        self.status_code = status_code
        self.provider = provider

    def to_body(self) -> dict[str, Any]:
        """Return the Messages-protocol error envelope for this failure."""
        return {
            "type": "error",
            "error": {"type": error_type_for_status(self.status_code), "message": str(self)},
        }
