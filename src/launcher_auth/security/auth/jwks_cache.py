"""JWKS cache for one trust issuer.

The key set is served from disk by default and fetched from
{issuer}/.well-known/jwks.json on demand. A fetch that yields zero keys is a
failure: an empty key set is never persisted, so a good cache is never
replaced by one that would make every signature check fail.

Each issuer gets its own JwksCache instance and file; instances share no state.
"""

from __future__ import annotations

__all__ = [
    "Jwks",
    "JwksCache",
]

import logging
from pathlib import Path
from typing import Any

import httpx
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from launcher_auth.constants import JWKS_FETCH_TIMEOUT_SECONDS
from launcher_auth.exceptions import LauncherAuthError, MalformedResponseError, ProviderRejectedError
from launcher_auth.security.auth.cache import AtomicJsonCache
from launcher_auth.security.auth.http import is_success, parse_json_body, send_request
from launcher_auth.telemetry.debug.http_logger import HttpDebugLogger
from launcher_auth.telemetry.system.system_logger import get_system_logger
from launcher_auth.utils.logging.logging_helpers import extract_error_metadata, log_snippet

_system_logger = get_system_logger()


class Jwks(BaseModel):
    """JSON Web Key Set with at least one key.

    Entries that are not JSON objects are dropped; the set stays valid as
    long as one key remains.
    """

    model_config = ConfigDict(extra="allow")

    keys: list[dict[str, Any]] = Field(min_length=1)

    @field_validator("keys", mode="before")
    @classmethod
    def _object_entries_only(cls, value: Any) -> Any:
        if isinstance(value, list):
            return [key for key in value if isinstance(key, dict)]
        return value


class JwksCache:
    """Signing keys of one issuer, cached in one file.

    Usage:
        cache = JwksCache("https://sessions.butter.lat", meta_dir / "butter-jwks.json")
        jwks = cache.ensure()                    # cached, else fetched
        jwks = cache.ensure(force_refresh=True)  # fetched, else cached
    """

    def __init__(
        self,
        issuer: str,
        path: Path,
        http_client: httpx.Client | None = None,
        http_log: HttpDebugLogger | None = None,
    ) -> None:
        """Initialize the cache.

        Args:
            issuer: Issuer base URL.
            path: Cache file for this issuer's key set.
            http_client: Optional httpx client (for testing or sharing).
            http_log: Request/response logger.
        """
        self._issuer = issuer.rstrip("/")
        self._cache = AtomicJsonCache(path, Jwks, label=f"JWKS ({self._issuer})")
        self._client = http_client or httpx.Client()
        self._owns_client = http_client is None
        self._http_log = http_log or HttpDebugLogger()

    @property
    def issuer(self) -> str:
        return self._issuer

    @property
    def jwks_url(self) -> str:
        return f"{self._issuer}/.well-known/jwks.json"

    def read(self) -> Jwks | None:
        """Cached key set, or None."""
        return self._cache.read()

    def refresh(self) -> Jwks:
        """Fetch, validate and persist the issuer's key set.

        Returns:
            The fetched key set.

        Raises:
            AuthTimeoutError: If the fetch exceeded the timeout.
            ProviderUnreachableError: If the issuer could not be reached.
            ProviderRejectedError: If the issuer answered non-2xx.
            MalformedResponseError: If the body is not a non-empty key set.
        """
        url = self.jwks_url
        headers = {"Accept": "application/json"}
        response = send_request(
            self._client,
            "GET",
            url,
            timeout=JWKS_FETCH_TIMEOUT_SECONDS,
            label=f"JWKS fetch for {self._issuer}",
            headers=headers,
        )
        request_log = {"method": "GET", "url": url, "headers": headers}

        if not is_success(response):
            self._http_log.exchange(
                logging.WARNING,
                "jwks_fetch_rejected",
                f"JWKS fetch for {self._issuer} failed (HTTP {response.status_code})",
                request=request_log,
                response={"status": response.status_code, "body": log_snippet(response.text)},
            )
            raise ProviderRejectedError(
                f"Failed to fetch JWKS for {self._issuer} (HTTP {response.status_code})",
                status_code=response.status_code,
                body=log_snippet(response.text),
            )

        self._http_log.exchange(
            logging.INFO,
            "jwks_fetched",
            f"JWKS fetch for {self._issuer}",
            request=request_log,
            response={"status": response.status_code},
        )

        data = parse_json_body(response, f"JWKS endpoint for {self._issuer}")
        try:
            jwks = Jwks.model_validate(data)
        except ValidationError as e:
            raise MalformedResponseError(f"JWKS for {self._issuer} is invalid or empty") from e

        self._cache.write(jwks)
        return jwks

    def ensure(self, force_refresh: bool = False) -> Jwks | None:
        """Return a usable key set.

        Args:
            force_refresh: Fetch even if a cached set exists.

        Returns:
            Cached set (unless forced), else the fetched set, else whatever is
            cached when the fetch fails; None if nothing is available.
        """
        if not force_refresh:
            cached = self._cache.read()
            if cached is not None:
                return cached

        try:
            return self.refresh()
        except LauncherAuthError as e:
            _system_logger.warning(
                {
                    "event": "jwks_refresh_failed",
                    "message": f"JWKS refresh for {self._issuer} failed, using cache: {e}",
                    "issuer": self._issuer,
                    **extract_error_metadata(e),
                }
            )
            return self._cache.read()

    def clear(self) -> bool:
        """Remove the cached key set."""
        return self._cache.delete()

    def close(self) -> None:
        """Close the HTTP client if this cache created it."""
        if self._owns_client:
            self._client.close()
