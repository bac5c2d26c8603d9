"""Configuration: frozen Config resolved from the environment at request time."""

from __future__ import annotations

from dataclasses import dataclass, field
import os
from pathlib import Path

DEFAULT_BASE_URL = "https://api.anthropic.com"

BASE_URL_ENV = "ANTHROPIC_BASE_URL"
API_KEY_ENV = "ANTHROPIC_API_KEY"
DEBUG_ENV = "MSGBRIDGE_DEBUG"
HOME_ENV = "MSGBRIDGE_HOME"

_TRUTHY = frozenset({"1", "true", "yes", "on"})

_DOTENV_LOADED = False


def _try_load_dotenv() -> None:
    """Load a .env file once using python-dotenv.

    Errors during loading are ignored so that configuration resolution
    remains predictable in minimal environments.
    """
    global _DOTENV_LOADED
    if _DOTENV_LOADED:
        return
    _DOTENV_LOADED = True
    try:
        from dotenv import load_dotenv

        load_dotenv()
    except Exception:
        return


def get_configured_base_url() -> str:
    """Return the configured Messages-protocol base URL."""
    _try_load_dotenv()
    value = os.environ.get(BASE_URL_ENV, "").strip()
    return value or DEFAULT_BASE_URL


def get_api_key() -> str | None:
    """Return the configured API key, or None when unset or blank."""
    _try_load_dotenv()
    value = os.environ.get(API_KEY_ENV, "").strip()
    return value or None


def _default_home() -> Path:
    raw = os.environ.get(HOME_ENV, "").strip()
    return Path(raw).expanduser() if raw else Path.home() / ".msgbridge"


@dataclass(frozen=True)
class Config:
    """Immutable adapter configuration.

    Example:
        config = Config(
            base_url="https://generativelanguage.googleapis.com/v1beta",
            api_key="...",
        )
    """

    base_url: str = DEFAULT_BASE_URL
    api_key: str | None = None
    #: Mirror requests/responses into ``log_file``.
    debug: bool = False
    #: Holds the error cache file and the debug log directory.
    home_dir: Path = field(default_factory=_default_home)

    def __post_init__(self) -> None:
        """Normalize string fields."""
        object.__setattr__(self, "base_url", self.base_url.strip() or DEFAULT_BASE_URL)
        if self.api_key is not None:
            object.__setattr__(self, "api_key", self.api_key.strip() or None)
        object.__setattr__(self, "home_dir", Path(self.home_dir))

    @classmethod
    def from_env(cls) -> Config:
        """Resolve configuration from environment variables (and .env)."""
        debug_raw = os.environ.get(DEBUG_ENV, "").strip().lower()
        return cls(
            base_url=get_configured_base_url(),
            api_key=get_api_key(),
            debug=debug_raw in _TRUTHY,
            home_dir=_default_home(),
        )

    @property
    def error_file(self) -> Path:
        """Well-known path of the last-API-error cache."""
        return self.home_dir / "api-error.json"

    @property
    def log_file(self) -> Path:
        """Append-only debug trace file."""
        return self.home_dir / "logs" / "interceptor.log"

    def __str__(self) -> str:
        """Return a redacted, developer-friendly representation."""
        return (
            f"Config(base_url={self.base_url!r}, "
            f"api_key={'[REDACTED]' if self.api_key else None}, debug={self.debug})"
        )

    __repr__ = __str__
