"""Offline token store (offline-tokens.json).

Maps (issuer, account uuid) to an offline token:

    {
      "updatedAt": "2026-02-14T10:00:00.000Z",
      "tokensByIssuer": {"https://sessions.butter.lat": {"<uuid>": "<token>"}},
      "tokens": {"<uuid>": "<token>"}
    }

"tokens" is the issuer-less map older launchers wrote; every store mirrors
into it so those launchers keep working. UUID keys are lowercased (and the
compact 32-hex form dashed) on read and write. Entries are only replaced,
never deleted.
"""

from __future__ import annotations

__all__ = [
    "OfflineTokenFile",
    "OfflineTokenStore",
    "normalize_account_key",
]

import time
from collections.abc import Callable
from pathlib import Path
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from launcher_auth.security.auth.cache import AtomicJsonCache
from launcher_auth.security.auth.credential_store import iso_timestamp
from launcher_auth.utils.validation import non_blank, normalize_uuid

if TYPE_CHECKING:
    from launcher_auth.config import IssuerConfig


def normalize_account_key(value: Any) -> str | None:
    """Store key for an account uuid: canonical UUID form, else trimmed lowercase."""
    canonical = normalize_uuid(value)
    if canonical is not None:
        return canonical
    text = non_blank(value)
    return text.lower() if text is not None else None


def _token_map(value: Any) -> dict[str, str]:
    """Keep string tokens under normalized keys; drop anything else."""
    if not isinstance(value, dict):
        return {}
    result: dict[str, str] = {}
    for raw_key, raw_token in value.items():
        key = normalize_account_key(raw_key)
        token = non_blank(raw_token)
        if key is not None and token is not None:
            result[key] = token
    return result


class OfflineTokenFile(BaseModel):
    """Top-level document of the offline token file."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    updated_at: str | None = Field(default=None, alias="updatedAt")
    tokens_by_issuer: dict[str, dict[str, str]] = Field(default_factory=dict, alias="tokensByIssuer")
    tokens: dict[str, str] = Field(default_factory=dict)

    @field_validator("updated_at", mode="before")
    @classmethod
    def _updated_at_string(cls, value: Any) -> str | None:
        return value if isinstance(value, str) else None

    @field_validator("tokens_by_issuer", mode="before")
    @classmethod
    def _issuer_buckets(cls, value: Any) -> dict[str, dict[str, str]]:
        if not isinstance(value, dict):
            return {}
        return {
            str(issuer).strip().rstrip("/"): _token_map(bucket)
            for issuer, bucket in value.items()
            if isinstance(bucket, dict) and str(issuer).strip()
        }

    @field_validator("tokens", mode="before")
    @classmethod
    def _legacy_tokens(cls, value: Any) -> dict[str, str]:
        return _token_map(value)


class OfflineTokenStore:
    """Per-issuer offline token persistence.

    Usage:
        store = OfflineTokenStore(paths.offline_token_path, config.issuers)
        store.store(uuid, config.issuers.community, token)
        store.read(uuid)  # community, then first-party, then legacy
    """

    def __init__(
        self,
        path: Path,
        issuers: "IssuerConfig",
        clock: Callable[[], float] = time.time,
    ) -> None:
        """Initialize the store.

        Args:
            path: Offline token file.
            issuers: Issuer URLs defining the no-issuer read precedence.
            clock: Source of epoch seconds for updatedAt.
        """
        self._cache = AtomicJsonCache(path, OfflineTokenFile, label="offline tokens")
        self._issuers = issuers
        self._clock = clock

    @property
    def path(self) -> Path:
        return self._cache.path

    def load(self) -> OfflineTokenFile:
        """Current document (empty when the file is absent or unusable)."""
        return self._cache.read() or OfflineTokenFile()

    def read(self, uuid: str, issuer: str | None = None) -> str | None:
        """Look up the offline token for an account.

        Args:
            uuid: Account uuid (any case, dashed or compact).
            issuer: Issuer namespace; None applies the precedence
                community issuer, first-party issuer, legacy map.

        Returns:
            The token, or None if not stored.
        """
        key = normalize_account_key(uuid)
        if key is None:
            return None
        document = self.load()

        wanted = non_blank(issuer)
        if wanted is not None:
            return document.tokens_by_issuer.get(wanted.rstrip("/"), {}).get(key)

        for namespace in (self._issuers.community, self._issuers.official):
            token = document.tokens_by_issuer.get(namespace, {}).get(key)
            if token is not None:
                return token
        return document.tokens.get(key)

    def find_issuer(self, uuid: str, token: str) -> str | None:
        """Issuer namespace holding exactly this token for an account.

        Namespaces are searched in read precedence, then any others in file
        order. A token found only in the legacy map has no known issuer.
        """
        key = normalize_account_key(uuid)
        if key is None:
            return None
        document = self.load()
        namespaces = [self._issuers.community, self._issuers.official]
        namespaces += [name for name in document.tokens_by_issuer if name not in namespaces]
        for namespace in namespaces:
            if document.tokens_by_issuer.get(namespace, {}).get(key) == token:
                return namespace
        return None

    def store(self, uuid: str, issuer: str, token: str) -> bool:
        """Save a token under an issuer namespace and the legacy map.

        Blank uuid, issuer or token values are ignored.

        Returns:
            True if the file was written.
        """
        key = normalize_account_key(uuid)
        namespace = non_blank(issuer)
        value = non_blank(token)
        if key is None or namespace is None or value is None:
            return False
        namespace = namespace.rstrip("/")

        current = self.load()
        tokens_by_issuer = {name: dict(bucket) for name, bucket in current.tokens_by_issuer.items()}
        tokens_by_issuer.setdefault(namespace, {})[key] = value

        updated = current.model_copy(
            update={
                "updated_at": iso_timestamp(self._clock()),
                "tokens_by_issuer": tokens_by_issuer,
                "tokens": {**current.tokens, key: value},
            }
        )
        return self._cache.write(updated)
