"""Single-slot, file-backed cache of the most recent upstream API error.

SDKs wrap HTTP failures in generic exceptions, which hides the provider's
status code (e.g. 402 Payment Required) from the UI. The interceptor records
each error response here and a consumer pops it later, possibly from
another OS process sharing the same home directory.

Contract: last write wins, reads are destructive, and entries older than
``max_age_s`` are treated as absent. No locking is used; each write replaces
the whole file atomically via temp file rename, so a racing delete can lose
an error but never corrupt one.
"""

from __future__ import annotations

from contextlib import suppress
import logging
import os
from pathlib import Path
import time
from typing import TYPE_CHECKING
import uuid

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from msgbridge.config import Config

if TYPE_CHECKING:
    from collections.abc import Callable

log = logging.getLogger(__name__)

MAX_ERROR_AGE_S = 5 * 60


class StoredApiError(BaseModel):
    """One captured upstream error; ``timestamp`` is epoch milliseconds."""

    model_config = ConfigDict(populate_by_name=True)

    status: int
    status_text: str = Field(default="", alias="statusText")
    message: str = ""
    timestamp: int


class ErrorCache:
    """Pop-on-read store for the last upstream error at a fixed path."""

    def __init__(
        self,
        path: str | os.PathLike[str],
        *,
        max_age_s: float = MAX_ERROR_AGE_S,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """Initialize the cache pointing at a JSON file path."""
        self._path = Path(path)
        self.max_age_s = max_age_s
        self._clock = clock

    @classmethod
    def from_config(cls, config: Config) -> ErrorCache:
        """Build a cache at the configured well-known location."""
        return cls(config.error_file)

    @property
    def path(self) -> Path:
        """The backing file."""
        return self._path

    def record(self, status: int, status_text: str, message: str) -> None:
        """Replace the stored error. Write failures are logged, never raised."""
        error = StoredApiError(
            status=status,
            status_text=status_text,
            message=message,
            timestamp=int(self._clock() * 1000),
        )
        try:
            self._write(error)
        except OSError as e:
            log.debug("Failed to write API error cache %s: %s", self._path, e)
            return
        log.debug("Recorded API error %s: %s", status, message)

    def peek_and_clear(self) -> StoredApiError | None:
        """Return the stored error at most once; expired entries read as None."""
        try:
            raw = self._path.read_text(encoding="utf-8")
        except OSError:
            return None

        # Delete unconditionally so no second consumer sees this error.
        with suppress(OSError):
            self._path.unlink()

        try:
            error = StoredApiError.model_validate_json(raw)
        except ValidationError:
            log.debug("Discarding unreadable API error cache %s", self._path)
            return None

        age_s = self._clock() - error.timestamp / 1000
        if age_s >= self.max_age_s:
            log.debug("API error too old (%.1fs > %ss)", age_s, self.max_age_s)
            return None
        return error

    def clear(self) -> None:
        """Drop any stored error."""
        try:
            self._path.unlink()
        except FileNotFoundError:
            return
        except OSError as e:
            log.debug("Failed to clear API error cache %s: %s", self._path, e)

    def _write(self, error: StoredApiError) -> None:
        """Persist atomically via temp file rename."""
        self._path.parent.mkdir(parents=True, exist_ok=True)
        # Unique temp name so concurrent writers in other processes don't collide.
        tmp = self._path.with_name(f"{self._path.name}.{uuid.uuid4().hex}.tmp")
        try:
            tmp.write_text(error.model_dump_json(by_alias=True), encoding="utf-8")
            tmp.replace(self._path)
        finally:
            if tmp.exists():
                tmp.unlink()


def get_last_api_error(config: Config | None = None) -> StoredApiError | None:
    """Pop the last recorded error from the configured location."""
    return ErrorCache.from_config(config or Config.from_env()).peek_and_clear()


def clear_last_api_error(config: Config | None = None) -> None:
    """Discard the last recorded error at the configured location."""
    ErrorCache.from_config(config or Config.from_env()).clear()
