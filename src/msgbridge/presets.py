"""Known provider base URLs and Gemini endpoint detection."""

from __future__ import annotations

from dataclasses import dataclass

import httpx

GEMINI_HOST = "generativelanguage.googleapis.com"
DEFAULT_GEMINI_MODEL = "models/gemini-2.0-flash"


@dataclass(frozen=True)
class ProviderPreset:
    """A selectable Messages-compatible endpoint."""

    key: str
    label: str
    url: str
    #: Model pre-filled when the preset is chosen; None clears the override.
    recommended_model: str | None = None


PRESETS: tuple[ProviderPreset, ...] = (
    ProviderPreset("anthropic", "Anthropic", "https://api.anthropic.com"),
    ProviderPreset("openrouter", "OpenRouter", "https://openrouter.ai/api"),
    ProviderPreset("vercel", "Vercel AI Gateway", "https://ai-gateway.vercel.sh"),
    ProviderPreset("ollama", "Ollama", "http://localhost:11434"),
    ProviderPreset(
        "gemini",
        "Google Gemini",
        f"https://{GEMINI_HOST}/v1beta",
        recommended_model=DEFAULT_GEMINI_MODEL,
    ),
)

CUSTOM_PRESET = "custom"


def preset_for_url(url: str) -> str:
    """Return the key of the preset whose URL matches exactly, else ``custom``."""
    candidate = url.strip()
    for preset in PRESETS:
        if preset.url == candidate:
            return preset.key
    return CUSTOM_PRESET


def get_preset(key: str) -> ProviderPreset | None:
    """Look up a preset by key."""
    for preset in PRESETS:
        if preset.key == key:
            return preset
    return None


def is_gemini_base_url(base_url: str) -> bool:
    """Whether the configured base URL points at a Gemini-style endpoint."""
    try:
        url = httpx.URL(base_url.strip())
    except (httpx.InvalidURL, TypeError):
        return False
    if not url.scheme or not url.host:
        return False
    if url.host.lower() == GEMINI_HOST:
        return True
    return "v1beta" in url.path.split("/")


def needs_translation(base_url: str) -> bool:
    """Whether calls to ``base_url`` must be rewritten into the native shape."""
    return is_gemini_base_url(base_url)


def normalize_gemini_base_url(base_url: str) -> str:
    """Strip trailing slashes and a trailing ``/models`` segment."""
    trimmed = base_url.strip().rstrip("/")
    try:
        url = httpx.URL(trimmed)
    except (httpx.InvalidURL, TypeError):
        return trimmed.removesuffix("/models")
    path = url.path.rstrip("/")
    path = path.removesuffix("/models")
    return str(url.copy_with(path=path or "/")).rstrip("/")


def normalize_gemini_model_id(model: str) -> str:
    """Return a ``models/``-prefixed model id, defaulting when blank."""
    trimmed = model.strip()
    if not trimmed:
        return DEFAULT_GEMINI_MODEL
    if trimmed.startswith("models/"):
        return trimmed
    return f"models/{trimmed}"
