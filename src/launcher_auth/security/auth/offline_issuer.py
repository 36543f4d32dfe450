"""Offline token issuance.

An offline token lets the game client run without a live session handshake.
Tokens are cached per (issuer, uuid) in the offline token store.

- Premium accounts: POST {official}/game-session/offline with the official
  launcher headers; the token is stored under the first-party issuer.
- Non-premium accounts: obtain identity tokens from the fallback provider,
  then POST {community}/game-session/offline bearer-authenticated with the
  identity token. The answer may carry tokens for both namespaces
  (offlineTokens and offlineTokensOfficialIssuer); every token present is
  stored, and the one for the requested issuer is returned.
"""

from __future__ import annotations

__all__ = [
    "AccountType",
    "OfflineTokenIssuer",
]

import logging
from enum import Enum
from typing import TYPE_CHECKING

import httpx

from launcher_auth.exceptions import (
    InvalidRequestError,
    LoginRequiredError,
    MalformedResponseError,
    ProviderRejectedError,
)
from launcher_auth.security.auth.http import official_launcher_headers, send_request
from launcher_auth.security.auth.offline_store import OfflineTokenStore, normalize_account_key
from launcher_auth.security.auth.token_parser import OfflineTokenResponse, parse_offline_token_response
from launcher_auth.telemetry.debug.http_logger import HttpDebugLogger
from launcher_auth.utils.logging.logging_helpers import log_snippet, mask_uuid, snippet
from launcher_auth.utils.validation import non_blank

if TYPE_CHECKING:
    from launcher_auth.config import IssuerConfig, PremiumClientConfig
    from launcher_auth.security.auth.fallback_auth import FallbackAuthClient
    from launcher_auth.security.auth.token_refresh import TokenRefreshEngine

# Response characters kept in community issuer error messages
_COMMUNITY_ERROR_SNIPPET_CHARS = 800


class AccountType(str, Enum):
    """Kind of account an offline token is requested for."""

    PREMIUM = "premium"
    NOPREMIUM = "nopremium"


def _parse_body(response: httpx.Response) -> OfflineTokenResponse:
    try:
        data = response.json()
    except ValueError:
        data = None
    return parse_offline_token_response(data)


class OfflineTokenIssuer:
    """Issues and caches offline tokens.

    Usage:
        issuer = OfflineTokenIssuer(store, refresh_engine, fallback_auth, config.premium, config.issuers)
        token = issuer.ensure_offline_token(AccountType.NOPREMIUM, "Player", uuid)
    """

    def __init__(
        self,
        store: OfflineTokenStore,
        refresh_engine: "TokenRefreshEngine",
        fallback_auth: "FallbackAuthClient",
        config: "PremiumClientConfig",
        issuers: "IssuerConfig",
        http_client: httpx.Client | None = None,
        http_log: HttpDebugLogger | None = None,
    ) -> None:
        """Initialize the issuer.

        Args:
            store: Offline token store.
            refresh_engine: Premium access token source.
            fallback_auth: Fallback identity provider (non-premium accounts).
            config: Official-client headers and timeout.
            issuers: Community and first-party issuer URLs.
            http_client: Optional httpx client (for testing or sharing).
            http_log: Request/response logger.
        """
        self._store = store
        self._refresh_engine = refresh_engine
        self._fallback_auth = fallback_auth
        self._config = config
        self._issuers = issuers
        self._client = http_client or httpx.Client()
        self._owns_client = http_client is None
        self._http_log = http_log or HttpDebugLogger()

    def ensure_offline_token(
        self,
        account_type: AccountType | str,
        username: str | None,
        uuid: str | None,
        issuer: str | None = None,
        force_refresh: bool = False,
    ) -> str:
        """Return a stored offline token, issuing one if needed.

        Args:
            account_type: premium or nopremium.
            username: Player name (required for non-premium accounts).
            uuid: Account uuid.
            issuer: Issuer namespace; None reads community, then first-party,
                then legacy, and issues from the community issuer.
            force_refresh: Skip the store and always issue.

        Returns:
            The offline token.

        Raises:
            InvalidRequestError: If uuid (or a non-premium username) is missing.
            LauncherAuthError: If issuance fails (see refresh_offline_token).
        """
        key = normalize_account_key(uuid)
        if key is None:
            raise InvalidRequestError("Missing uuid")

        wanted = self._issuers.resolve(issuer)
        if not force_refresh:
            cached = self._store.read(key, wanted)
            if cached is not None:
                return cached

        return self.refresh_offline_token(account_type, username, key, wanted)

    def refresh_offline_token(
        self,
        account_type: AccountType | str,
        username: str | None,
        uuid: str | None,
        issuer: str | None = None,
    ) -> str:
        """Issue a new offline token and store it.

        Raises:
            InvalidRequestError: If uuid (or a non-premium username) is missing.
            LoginRequiredError: Premium account without an access token.
            ProviderRejectedError: Issuer answered anything but 200.
            MalformedResponseError: Requested namespace missing from the answer.
            ProviderUnreachableError: On network failure or timeout.
        """
        try:
            kind = AccountType(account_type)
        except ValueError as e:
            raise InvalidRequestError(f"Unknown account type '{account_type}'") from e

        key = normalize_account_key(uuid)
        if key is None:
            raise InvalidRequestError("Missing uuid")
        name = non_blank(username)

        if kind is AccountType.PREMIUM:
            return self._issue_premium(key)
        if name is None:
            raise InvalidRequestError("Missing username")
        return self._issue_community(name, key, non_blank(issuer))

    def _issue_premium(self, uuid: str) -> str:
        access_token = self._refresh_engine.ensure_access_token()
        if not access_token:
            raise LoginRequiredError("Premium login required (missing access token)")

        url = f"{self._issuers.official}/game-session/offline"
        headers = {
            **official_launcher_headers(self._config, access_token),
            "Content-Type": "application/json",
        }
        request_log = {"method": "POST", "url": url, "headers": headers, "body": {"uuid": mask_uuid(uuid)}}
        self._http_log.exchange(
            logging.INFO, "premium_offline_request", "Premium HTTP game-session/offline", request=request_log
        )

        response = send_request(
            self._client,
            "POST",
            url,
            timeout=self._config.timeout_seconds,
            label="game-session/offline",
            headers=headers,
            json={"uuid": uuid},
        )
        if response.status_code != 200:
            self._http_log.exchange(
                logging.WARNING,
                "premium_offline_rejected",
                "Premium HTTP game-session/offline response",
                request=request_log,
                response={"status": response.status_code, "body": log_snippet(response.text)},
            )
            raise ProviderRejectedError(
                f"game-session/offline failed (HTTP {response.status_code})",
                status_code=response.status_code,
                body=log_snippet(response.text),
            )

        token = _parse_body(response).token_for(uuid)
        if token is None:
            self._http_log.exchange(
                logging.WARNING,
                "premium_offline_missing_token",
                "Premium HTTP game-session/offline missing token",
                response={"status": response.status_code, "body": log_snippet(response.text)},
            )
            raise MalformedResponseError("game-session/offline returned missing offline token")

        self._store.store(uuid, self._issuers.official, token)
        return token

    def _issue_community(self, username: str, uuid: str, issuer: str | None) -> str:
        tokens = self._fallback_auth.fetch_auth_tokens(username, uuid)

        url = f"{self._issuers.community}/game-session/offline"
        headers = {
            "Accept": "application/json",
            "Content-Type": "application/json",
            "Authorization": f"Bearer {tokens.identity_token}",
        }
        response = send_request(
            self._client,
            "POST",
            url,
            timeout=self._config.timeout_seconds,
            label="Community game-session/offline",
            headers=headers,
            json={"uuid": uuid},
        )
        request_log = {"method": "POST", "url": url, "headers": headers, "body": {"uuid": mask_uuid(uuid)}}

        if response.status_code != 200:
            excerpt = snippet(response.text, _COMMUNITY_ERROR_SNIPPET_CHARS)
            self._http_log.exchange(
                logging.WARNING,
                "community_offline_rejected",
                "Community game-session/offline response",
                request=request_log,
                response={"status": response.status_code, "body": excerpt},
            )
            detail = f": {excerpt}" if excerpt else ""
            raise ProviderRejectedError(
                f"Community game-session/offline failed (HTTP {response.status_code}){detail}",
                status_code=response.status_code,
                body=excerpt,
            )

        body = _parse_body(response)
        community_token = body.token_for(uuid)
        official_token = body.token_for(uuid, official_issuer=True)

        if community_token is not None:
            self._store.store(uuid, self._issuers.community, community_token)
        if official_token is not None:
            self._store.store(uuid, self._issuers.official, official_token)

        wanted = self._issuers.resolve(issuer)
        if wanted == self._issuers.official:
            if official_token is not None:
                return official_token
            raise MalformedResponseError(
                "Community game-session/offline missing official-issuer offline token"
            )

        if community_token is not None:
            return community_token
        raise MalformedResponseError("Community game-session/offline returned missing offline token")

    def close(self) -> None:
        """Close the HTTP client if this issuer created it."""
        if self._owns_client:
            self._client.close()
