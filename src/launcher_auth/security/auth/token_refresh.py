"""Premium access token refresh (OAuth refresh_token grant).

ensure_access_token() decides whether the cached access token is still
usable and refreshes it when not:

1. No credential bundle -> None (login required)
2. No refresh_token -> the current access token as-is (may be None)
3. Access token valid for more than the 90 s skew -> returned, no network call
4. Otherwise POST the refresh grant (HTTP Basic with the public launcher
   client id and an empty secret)
5. Success -> merge new fields over the old bundle and persist atomically
6. Any failure -> the previous access token (degrade, never raise)

Refreshes hold the credential file's process-wide lock, which profile writes
share, so concurrent callers perform at most one refresh and then take the
fast path.
"""

from __future__ import annotations

__all__ = [
    "TokenRefreshEngine",
]

import base64
import logging
import time
from collections.abc import Callable
from typing import TYPE_CHECKING

import httpx

from launcher_auth.constants import (
    ACCESS_TOKEN_EXPIRY_SKEW_SECONDS,
    DEFAULT_EXPIRES_IN_SECONDS,
    OAUTH_CLIENT_ID,
)
from launcher_auth.exceptions import LauncherAuthError
from launcher_auth.security.auth.credential_store import CredentialBundle, PremiumCredentialStore
from launcher_auth.security.auth.http import is_success, parse_json_body, send_request
from launcher_auth.security.auth.token_parser import RefreshTokenResponse, parse_refresh_response
from launcher_auth.telemetry.debug.http_logger import HttpDebugLogger
from launcher_auth.telemetry.system.system_logger import get_system_logger
from launcher_auth.utils.logging.logging_helpers import extract_error_metadata, log_snippet

if TYPE_CHECKING:
    from launcher_auth.config import PremiumClientConfig

_system_logger = get_system_logger()

# Logged in place of the form body; the refresh token never reaches a log
_REDACTED_REFRESH_BODY = "grant_type=refresh_token&refresh_token=<redacted>"


def _basic_client_auth() -> str:
    credentials = base64.b64encode(f"{OAUTH_CLIENT_ID}:".encode()).decode("ascii")
    return f"Basic {credentials}"


class TokenRefreshEngine:
    """Keeps the premium access token fresh.

    Usage:
        engine = TokenRefreshEngine(store, config.premium)
        access_token = engine.ensure_access_token()
        if access_token is None:
            ...  # login required
    """

    def __init__(
        self,
        store: PremiumCredentialStore,
        config: "PremiumClientConfig",
        http_client: httpx.Client | None = None,
        clock: Callable[[], float] = time.time,
        http_log: HttpDebugLogger | None = None,
    ) -> None:
        """Initialize the engine.

        Args:
            store: Premium credential file.
            config: Token endpoint and official-client headers.
            http_client: Optional httpx client (for testing or sharing).
            clock: Source of epoch seconds.
            http_log: Request/response logger.
        """
        self._store = store
        self._config = config
        self._client = http_client or httpx.Client()
        self._owns_client = http_client is None
        self._clock = clock
        self._http_log = http_log or HttpDebugLogger()

    def ensure_access_token(self) -> str | None:
        """Return a usable access token, refreshing it if needed.

        Returns:
            Access token (fresh, cached, or the previous one after a failed
            refresh), or None when no token is available.
        """
        with self._store.lock:
            bundle = self._store.load_bundle()
            if bundle is None:
                return None

            access = bundle.access
            refresh = bundle.refresh
            if refresh is None:
                return access

            if bundle.is_access_valid(self._clock(), ACCESS_TOKEN_EXPIRY_SKEW_SECONDS):
                return access

            try:
                refreshed = self._request_refresh(refresh)
            except LauncherAuthError as e:
                _system_logger.warning(
                    {
                        "event": "token_refresh_failed",
                        "message": f"Premium token refresh failed, using previous token: {e}",
                        "failure_type": e.failure_type,
                        **extract_error_metadata(e),
                    }
                )
                return access

            if refreshed is None:
                return access

            self._persist(bundle, refreshed)
            return refreshed.access_token

    def _request_refresh(self, refresh_token: str) -> RefreshTokenResponse | None:
        """POST the refresh grant.

        Returns:
            Parsed response, or None if the provider rejected the grant.

        Raises:
            LauncherAuthError: On transport failure or an unusable 2xx body.
        """
        headers = {
            "Content-Type": "application/x-www-form-urlencoded",
            "Accept": "application/json",
            "User-Agent": self._config.oauth_user_agent,
            "Authorization": _basic_client_auth(),
        }
        if self._config.oauth_launcher_branch:
            headers["X-Hytale-Launcher-Branch"] = self._config.oauth_launcher_branch
        if self._config.oauth_launcher_version:
            headers["X-Hytale-Launcher-Version"] = self._config.oauth_launcher_version

        url = self._config.token_url
        response = send_request(
            self._client,
            "POST",
            url,
            timeout=self._config.timeout_seconds,
            label="Premium token refresh",
            headers=headers,
            data={"grant_type": "refresh_token", "refresh_token": refresh_token},
        )
        request_log = {"method": "POST", "url": url, "headers": headers, "body": _REDACTED_REFRESH_BODY}

        if not is_success(response):
            self._http_log.exchange(
                logging.WARNING,
                "token_refresh_rejected",
                "Premium HTTP refresh_token response",
                request=request_log,
                response={"status": response.status_code, "body": log_snippet(response.text)},
            )
            return None

        self._http_log.exchange(
            logging.INFO,
            "token_refreshed",
            "Premium HTTP refresh_token",
            request=request_log,
            response={"status": response.status_code},
        )
        return parse_refresh_response(parse_json_body(response, "Premium token refresh"))

    def _persist(self, previous: CredentialBundle, refreshed: RefreshTokenResponse) -> None:
        """Merge the refresh response over the previous bundle and save it."""
        obtained_at = int(self._clock())
        expires_in = refreshed.expires_in if refreshed.expires_in is not None else DEFAULT_EXPIRES_IN_SECONDS

        merged = {
            **previous.model_dump(exclude_none=True),
            **refreshed.model_dump(exclude_none=True),
            "access_token": refreshed.access_token,
            "refresh_token": refreshed.refresh_token or previous.refresh_token,
            "obtained_at": obtained_at,
            "expires_in": expires_in,
            "expires_at": obtained_at + max(1, expires_in),
        }
        if not self._store.save_bundle(CredentialBundle.model_validate(merged), now=self._clock()):
            _system_logger.warning(
                {
                    "event": "token_refresh_not_persisted",
                    "message": f"Refreshed premium token could not be saved to {self._store.path}",
                }
            )

    def close(self) -> None:
        """Close the HTTP client if this engine created it."""
        if self._owns_client:
            self._client.close()
