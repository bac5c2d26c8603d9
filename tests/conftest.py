"""Pytest configuration and fixtures.

Provides environment isolation, logging configuration and the shared
configuration fixtures. Isolation fixtures are autouse.
"""

from __future__ import annotations

from contextlib import suppress
import logging
import os
from pathlib import Path

import pytest

from msgbridge.config import Config
from msgbridge.debug_log import TRACE_LOGGER
from tests.helpers import ANTHROPIC_BASE_URL, GEMINI_BASE_URL

# =============================================================================
# Environment Isolation (Autouse)
# =============================================================================


@pytest.fixture(autouse=True)
def block_dotenv(request, monkeypatch):
    """Prevent python-dotenv from loading project .env files during tests.

    Opt-out: @pytest.mark.allow_dotenv
    """
    if request.node.get_closest_marker("allow_dotenv"):
        return
    with suppress(Exception):
        monkeypatch.setattr(
            "dotenv.load_dotenv", lambda *_args, **_kwargs: False, raising=False
        )


@pytest.fixture(autouse=True)
def isolate_env(monkeypatch, tmp_path):
    """Clear ANTHROPIC_* and MSGBRIDGE_* and point the home dir at tmp_path."""
    for key in list(os.environ.keys()):
        if key.startswith(("ANTHROPIC_", "MSGBRIDGE_")):
            monkeypatch.delenv(key, raising=False)
    monkeypatch.setenv("MSGBRIDGE_HOME", str(tmp_path / "home"))


@pytest.fixture(autouse=True)
def reset_trace_logger():
    """Detach debug trace file handlers added during a test."""
    yield
    for name in list(logging.Logger.manager.loggerDict):
        if not name.startswith(TRACE_LOGGER):
            continue
        logger = logging.getLogger(name)
        for handler in list(logger.handlers):
            logger.removeHandler(handler)
            handler.close()


# =============================================================================
# Configuration Fixtures
# =============================================================================


@pytest.fixture
def home_dir(tmp_path: Path) -> Path:
    """Per-test home directory holding the error cache and debug log."""
    return tmp_path / "home"


@pytest.fixture
def gemini_config(home_dir: Path) -> Config:
    """Config pointing at the Gemini endpoint with a key set."""
    return Config(base_url=GEMINI_BASE_URL, api_key="test-key", home_dir=home_dir)


@pytest.fixture
def anthropic_config(home_dir: Path) -> Config:
    """Config pointing at a native Messages-protocol endpoint."""
    return Config(base_url=ANTHROPIC_BASE_URL, api_key="sk-test", home_dir=home_dir)
