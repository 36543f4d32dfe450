"""Premium profile resolution.

Maps the premium access token to the launcher-visible identity (username,
uuid). The profile cached in the credential file is authoritative until a
caller forces a network resolution; a network result replaces the cache.

The launcher-data endpoint expects the official launcher's headers and the
platform's os/arch query parameters.
"""

from __future__ import annotations

__all__ = [
    "ProfileResolver",
    "official_os_arch",
]

import logging
import platform
import sys
from typing import TYPE_CHECKING

import httpx

from launcher_auth.constants import ERROR_SNIPPET_CHARS
from launcher_auth.exceptions import LoginRequiredError, ProviderRejectedError
from launcher_auth.security.auth.credential_store import CachedProfile, PremiumCredentialStore
from launcher_auth.security.auth.http import (
    is_success,
    official_launcher_headers,
    parse_json_body,
    send_request,
)
from launcher_auth.security.auth.token_parser import select_primary_profile
from launcher_auth.telemetry.debug.http_logger import HttpDebugLogger
from launcher_auth.utils.logging.logging_helpers import log_snippet, mask_uuid, snippet

if TYPE_CHECKING:
    from launcher_auth.config import PremiumClientConfig
    from launcher_auth.security.auth.token_refresh import TokenRefreshEngine

_ARCH_ALIASES: dict[str, str] = {
    "x86_64": "amd64",
    "amd64": "amd64",
    "x64": "amd64",
    "aarch64": "arm64",
    "arm64": "arm64",
}


def official_os_arch() -> tuple[str, str]:
    """os/arch query values the launcher-data endpoint expects for this machine."""
    if sys.platform == "win32":
        os_name = "windows"
    elif sys.platform == "darwin":
        os_name = "macos"
    else:
        os_name = "linux"
    machine = platform.machine().lower()
    return os_name, _ARCH_ALIASES.get(machine, machine)


class ProfileResolver:
    """Resolves the premium account's primary game profile.

    Usage:
        resolver = ProfileResolver(store, refresh_engine, config.premium)
        profile = resolver.resolve_primary_profile()
        fresh = resolver.resolve_primary_profile(force_network=True)
    """

    def __init__(
        self,
        store: PremiumCredentialStore,
        refresh_engine: "TokenRefreshEngine",
        config: "PremiumClientConfig",
        http_client: httpx.Client | None = None,
        http_log: HttpDebugLogger | None = None,
    ) -> None:
        self._store = store
        self._refresh_engine = refresh_engine
        self._config = config
        self._client = http_client or httpx.Client()
        self._owns_client = http_client is None
        self._http_log = http_log or HttpDebugLogger()

    def resolve_primary_profile(self, force_network: bool = False) -> CachedProfile:
        """Return the account's primary profile.

        Args:
            force_network: Ignore the cached profile and ask the provider.

        Returns:
            The profile (cached, or fetched and then cached).

        Raises:
            LoginRequiredError: If no access token is available.
            ProviderRejectedError: If launcher data answered non-2xx.
            MalformedResponseError: If launcher data is not JSON.
            NoValidProfileError: If no profile has a username and valid uuid.
            ProviderUnreachableError: On network failure or timeout.
        """
        if not force_network:
            cached = self._store.read_profile()
            if cached is not None:
                return cached

        access_token = self._refresh_engine.ensure_access_token()
        if not access_token:
            raise LoginRequiredError("Premium login required (missing access token)")

        profile = self._fetch_launcher_profile(access_token)
        self._store.save_profile(profile)
        return profile

    def _fetch_launcher_profile(self, access_token: str) -> CachedProfile:
        os_name, arch = official_os_arch()
        url = f"{self._config.account_data_base.rstrip('/')}/my-account/get-launcher-data"
        params = {"arch": arch, "os": os_name}
        headers = official_launcher_headers(self._config, access_token)

        response = send_request(
            self._client,
            "GET",
            url,
            timeout=self._config.timeout_seconds,
            label="get-launcher-data",
            headers=headers,
            params=params,
        )
        request_log = {"method": "GET", "url": url, "params": params, "headers": headers}

        if not is_success(response):
            body = response.text
            self._http_log.exchange(
                logging.WARNING,
                "launcher_data_rejected",
                "Premium HTTP get-launcher-data response",
                request=request_log,
                response={"status": response.status_code, "body": snippet(body, 800)},
            )
            detail = f": {snippet(body, ERROR_SNIPPET_CHARS)}" if body else ""
            raise ProviderRejectedError(
                f"get-launcher-data failed (HTTP {response.status_code}){detail}",
                status_code=response.status_code,
                body=snippet(body, 800),
            )

        self._http_log.exchange(
            logging.INFO,
            "launcher_data_fetched",
            "Premium HTTP get-launcher-data body",
            request=request_log,
            response={"status": response.status_code, "body": log_snippet(response.text)},
        )

        profile = select_primary_profile(parse_json_body(response, "get-launcher-data"))
        self._http_log.exchange(
            logging.INFO,
            "launcher_profile_resolved",
            f"Resolved premium profile {profile.username} ({mask_uuid(profile.uuid)})",
        )
        return profile

    def close(self) -> None:
        """Close the HTTP client if this resolver created it."""
        if self._owns_client:
            self._client.close()
