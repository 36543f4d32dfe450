"""Persistent JSON cache with atomic replacement.

Every file this package persists (premium credentials, offline tokens, JWKS)
goes through AtomicJsonCache:
- read() never raises: missing, unreadable, unparseable or invalid files read as None
- write() never raises: it either replaces the whole file or leaves the old one

Writes serialize first, then go through a same-directory temp file and
os.replace, so a reader sees either the previous or the new document.
"""

from __future__ import annotations

__all__ = ["AtomicJsonCache"]

import json
import logging
from pathlib import Path
from typing import Generic, TypeVar

from pydantic import BaseModel, ValidationError

from launcher_auth.constants import APP_NAME
from launcher_auth.telemetry.system.system_logger import get_system_logger
from launcher_auth.utils.file_helpers import atomic_write_json
from launcher_auth.utils.logging.logging_helpers import extract_error_metadata

T = TypeVar("T", bound=BaseModel)

_logger = logging.getLogger(f"{APP_NAME}.security.auth.cache")
_system_logger = get_system_logger()


class AtomicJsonCache(Generic[T]):
    """Typed JSON document stored in a single file.

    Usage:
        cache = AtomicJsonCache(path, OfflineTokenFile, label="offline tokens")
        document = cache.read() or OfflineTokenFile()
        cache.write(document)
    """

    def __init__(self, path: Path, model: type[T], *, label: str) -> None:
        """Initialize the cache.

        Args:
            path: File holding the document.
            model: Pydantic model the document is validated against.
            label: Human-readable name used in log messages.
        """
        self._path = path
        self._model = model
        self._label = label

    @property
    def path(self) -> Path:
        """File holding the document."""
        return self._path

    @property
    def exists(self) -> bool:
        """Whether the cache file is present."""
        return self._path.exists()

    def read(self) -> T | None:
        """Load and validate the document.

        Returns:
            The validated document, or None if it is absent or unusable.
        """
        try:
            with open(self._path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except FileNotFoundError:
            return None
        except (OSError, ValueError) as e:
            _logger.debug(
                {
                    "event": "cache_read_failed",
                    "message": f"Ignoring unreadable {self._label} cache at {self._path}",
                    **extract_error_metadata(e),
                }
            )
            return None

        try:
            return self._model.model_validate(data)
        except ValidationError as e:
            _logger.debug(
                {
                    "event": "cache_invalid",
                    "message": f"Ignoring invalid {self._label} cache at {self._path}",
                    "error_type": type(e).__name__,
                    "error_count": e.error_count(),
                }
            )
            return None

    def write(self, value: T) -> bool:
        """Atomically replace the document.

        Args:
            value: Document to persist.

        Returns:
            True if the file now holds value, False if the write failed
            (the previous file is left untouched).
        """
        try:
            data = value.model_dump(mode="json", by_alias=True, exclude_none=True)
            atomic_write_json(self._path, data)
        except (OSError, TypeError, ValueError) as e:
            _system_logger.warning(
                {
                    "event": "cache_write_failed",
                    "message": f"Failed to write {self._label} cache at {self._path}: {e}",
                    **extract_error_metadata(e),
                }
            )
            return False
        return True

    def delete(self) -> bool:
        """Remove the cache file.

        Returns:
            True if a file was removed, False if none existed or removal failed.
        """
        try:
            self._path.unlink()
        except FileNotFoundError:
            return False
        except OSError as e:
            _system_logger.warning(
                {
                    "event": "cache_delete_failed",
                    "message": f"Failed to delete {self._label} cache at {self._path}: {e}",
                    **extract_error_metadata(e),
                }
            )
            return False
        return True
