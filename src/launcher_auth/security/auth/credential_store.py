"""Premium credential file (premium-auth.json).

The file is created by the login flow (outside this package) and holds:
- token: the OAuth credential bundle (access/refresh token + timestamps)
- profile: the cached launcher profile (username, uuid)
- obtainedAt: ISO-8601 time of the last token write

Fields this package does not know about are preserved on every write, at the
top level and inside token. Wrongly-typed known fields read as absent.
"""

from __future__ import annotations

__all__ = [
    "CachedProfile",
    "CredentialBundle",
    "CredentialFile",
    "PremiumCredentialStore",
    "iso_timestamp",
]

import math
import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from launcher_auth.security.auth.cache import AtomicJsonCache
from launcher_auth.utils.validation import non_blank, normalize_uuid


# One lock per resolved credential file path, shared by every store in the process.
# Reentrant: a refresh holds it across its request and the bundle write.
_file_locks: dict[str, threading.RLock] = {}
_file_locks_guard = threading.Lock()


def _lock_for(path: Path) -> threading.RLock:
    key = str(path.expanduser().resolve())
    with _file_locks_guard:
        lock = _file_locks.get(key)
        if lock is None:
            lock = threading.RLock()
            _file_locks[key] = lock
        return lock


def iso_timestamp(epoch_seconds: float) -> str:
    """Format epoch seconds as UTC ISO-8601 with milliseconds and a Z suffix."""
    moment = datetime.fromtimestamp(epoch_seconds, tz=timezone.utc)
    return moment.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _epoch_or_none(value: Any) -> int | None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    if not math.isfinite(value):
        return None
    return int(math.floor(value))


class CredentialBundle(BaseModel):
    """OAuth credential bundle for one premium account.

    Attributes:
        access_token: Bearer token for provider calls.
        refresh_token: Token for the refresh grant.
        expires_at: Access token expiry (epoch seconds).
        obtained_at: When the access token was obtained (epoch seconds).
        expires_in: Access token lifetime in seconds.
    """

    model_config = ConfigDict(extra="allow")

    access_token: str | None = None
    refresh_token: str | None = None
    expires_at: int | None = None
    obtained_at: int | None = None
    expires_in: int | None = None

    @field_validator("access_token", "refresh_token", mode="before")
    @classmethod
    def _string_or_none(cls, value: Any) -> str | None:
        return value if isinstance(value, str) else None

    @field_validator("expires_at", "obtained_at", "expires_in", mode="before")
    @classmethod
    def _number_or_none(cls, value: Any) -> int | None:
        return _epoch_or_none(value)

    @property
    def access(self) -> str | None:
        """Trimmed access token, or None if missing or blank."""
        return non_blank(self.access_token)

    @property
    def refresh(self) -> str | None:
        """Trimmed refresh token, or None if missing or blank."""
        return non_blank(self.refresh_token)

    @property
    def effective_expires_at(self) -> int | None:
        """Explicit expiry, else obtained_at + expires_in, else None."""
        if self.expires_at:
            return self.expires_at
        if self.obtained_at and self.expires_in:
            return self.obtained_at + self.expires_in
        return None

    def is_access_valid(self, now: float, skew_seconds: int) -> bool:
        """Whether the access token can be used without refreshing."""
        expires_at = self.effective_expires_at
        return bool(self.access) and expires_at is not None and expires_at - skew_seconds > now


class CachedProfile(BaseModel):
    """Launcher-visible identity of a premium account.

    Attributes:
        username: Non-empty display name.
        uuid: Canonical lowercase 8-4-4-4-12 profile UUID.
    """

    username: str = Field(min_length=1)
    uuid: str

    @field_validator("username", mode="before")
    @classmethod
    def _trim_username(cls, value: Any) -> Any:
        return value.strip() if isinstance(value, str) else value

    @field_validator("uuid", mode="before")
    @classmethod
    def _canonical_uuid(cls, value: Any) -> str:
        normalized = normalize_uuid(value)
        if normalized is None:
            raise ValueError("uuid must be a UUID")
        return normalized


class CredentialFile(BaseModel):
    """Top-level document of the premium credential file."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    token: CredentialBundle | None = None
    profile: CachedProfile | None = None
    obtained_at: str | None = Field(default=None, alias="obtainedAt")

    @field_validator("token", mode="before")
    @classmethod
    def _token_object_only(cls, value: Any) -> Any:
        return value if isinstance(value, dict) else None

    @field_validator("profile", mode="before")
    @classmethod
    def _usable_profile_only(cls, value: Any) -> CachedProfile | None:
        if not isinstance(value, dict):
            return None
        try:
            return CachedProfile.model_validate(value)
        except ValidationError:
            return None

    @field_validator("obtained_at", mode="before")
    @classmethod
    def _obtained_at_string(cls, value: Any) -> str | None:
        return value if isinstance(value, str) else None


class PremiumCredentialStore:
    """Reads and updates the premium credential file.

    Writes only update an existing, parseable file: creating it is the login
    flow's job, and a missing file means the player logged out.

    Every write is a read-modify-write under the per-path lock, so a profile
    write never puts back a token that a concurrent refresh replaced.
    """

    def __init__(self, path: Path) -> None:
        self._cache = AtomicJsonCache(path, CredentialFile, label="premium credentials")
        self._lock = _lock_for(path)

    @property
    def path(self) -> Path:
        """Location of the credential file."""
        return self._cache.path

    @property
    def lock(self) -> threading.RLock:
        """Process-wide lock serializing read-modify-write of this file."""
        return self._lock

    @property
    def exists(self) -> bool:
        return self._cache.exists

    def load(self) -> CredentialFile | None:
        return self._cache.read()

    def load_bundle(self) -> CredentialBundle | None:
        """Credential bundle, or None if the file or its token is absent."""
        document = self._cache.read()
        if document is None:
            return None
        return document.token

    def read_access_token(self) -> str | None:
        bundle = self.load_bundle()
        return bundle.access if bundle is not None else None

    def read_profile(self) -> CachedProfile | None:
        document = self._cache.read()
        if document is None:
            return None
        return document.profile

    def save_bundle(self, bundle: CredentialBundle, *, now: float) -> bool:
        """Replace the token and stamp obtainedAt.

        Returns:
            True if the file was rewritten.
        """
        with self._lock:
            document = self._cache.read()
            if document is None:
                return False
            updated = document.model_copy(update={"token": bundle, "obtained_at": iso_timestamp(now)})
            return self._cache.write(updated)

    def save_profile(self, profile: CachedProfile) -> bool:
        """Cache a resolved profile next to the token.

        Returns:
            True if the file was rewritten.
        """
        with self._lock:
            document = self._cache.read()
            if document is None:
                return False
            return self._cache.write(document.model_copy(update={"profile": profile}))

    def delete(self) -> bool:
        """Remove the credential file (logout)."""
        with self._lock:
            return self._cache.delete()
