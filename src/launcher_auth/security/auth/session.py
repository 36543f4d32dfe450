"""Premium game-session negotiation.

Exchanges the resolved premium profile for short-lived game-session tokens
(identityToken + sessionToken) at the first-party session endpoint.

When the provider rejects the session with "invalid game account for user",
the cached profile no longer matches the account's linkage. fetch_launch_auth()
then re-resolves the profile from the network and retries exactly once; every
other failure, and a second failure, propagates unchanged.
"""

from __future__ import annotations

__all__ = [
    "SessionNegotiator",
    "is_stale_profile_message",
]

import logging
from typing import TYPE_CHECKING

import httpx

from launcher_auth.constants import ERROR_SNIPPET_CHARS, STALE_PROFILE_ERROR_PATTERN
from launcher_auth.exceptions import LoginRequiredError, ProviderRejectedError, StaleProfileError
from launcher_auth.security.auth.http import is_success, official_launcher_headers, send_request
from launcher_auth.security.auth.token_parser import LaunchAuth, SessionTokens, parse_session_tokens
from launcher_auth.telemetry.debug.http_logger import HttpDebugLogger
from launcher_auth.telemetry.system.system_logger import get_system_logger
from launcher_auth.utils.logging.logging_helpers import log_snippet, mask_uuid

if TYPE_CHECKING:
    from launcher_auth.config import PremiumClientConfig
    from launcher_auth.security.auth.profile_resolver import ProfileResolver
    from launcher_auth.security.auth.token_refresh import TokenRefreshEngine

_system_logger = get_system_logger()


def is_stale_profile_message(text: str) -> bool:
    """Whether a provider error says the profile is not linked to the account."""
    return STALE_PROFILE_ERROR_PATTERN in text.lower()


class SessionNegotiator:
    """Creates premium game sessions.

    Usage:
        negotiator = SessionNegotiator(resolver, refresh_engine, config.premium, config.issuers.official)
        auth = negotiator.fetch_launch_auth()
    """

    def __init__(
        self,
        resolver: "ProfileResolver",
        refresh_engine: "TokenRefreshEngine",
        config: "PremiumClientConfig",
        sessions_base: str,
        http_client: httpx.Client | None = None,
        http_log: HttpDebugLogger | None = None,
    ) -> None:
        """Initialize the negotiator.

        Args:
            resolver: Premium profile resolver.
            refresh_engine: Source of the bearer access token.
            config: Official-client headers and timeout.
            sessions_base: First-party session service base URL.
            http_client: Optional httpx client (for testing or sharing).
            http_log: Request/response logger.
        """
        self._resolver = resolver
        self._refresh_engine = refresh_engine
        self._config = config
        self._sessions_base = sessions_base.rstrip("/")
        self._client = http_client or httpx.Client()
        self._owns_client = http_client is None
        self._http_log = http_log or HttpDebugLogger()

    def create_game_session(self, uuid: str) -> SessionTokens:
        """Create a game session for a profile.

        Args:
            uuid: Profile uuid.

        Returns:
            Identity and session tokens.

        Raises:
            LoginRequiredError: If no access token is available.
            StaleProfileError: If the provider rejected the profile for this account.
            ProviderRejectedError: For any other non-2xx answer.
            MalformedResponseError: If either token is missing.
            ProviderUnreachableError: On network failure or timeout.
        """
        access_token = self._refresh_engine.ensure_access_token()
        if not access_token:
            raise LoginRequiredError("Premium login required (missing access token)")

        url = f"{self._sessions_base}/game-session/new"
        headers = {
            **official_launcher_headers(self._config, access_token),
            "Content-Type": "application/json",
        }
        request_log = {
            "method": "POST",
            "url": url,
            "headers": headers,
            "body": {"uuid": mask_uuid(uuid)},
        }
        self._http_log.exchange(
            logging.INFO, "game_session_request", "Premium HTTP game-session/new", request=request_log
        )

        response = send_request(
            self._client,
            "POST",
            url,
            timeout=self._config.timeout_seconds,
            label="game-session/new",
            headers=headers,
            json={"uuid": uuid},
        )
        text = response.text

        if not is_success(response):
            self._http_log.exchange(
                logging.WARNING,
                "game_session_rejected",
                "Premium HTTP game-session/new response",
                request=request_log,
                response={"status": response.status_code, "body": log_snippet(text)},
            )
            detail = f": {text[:ERROR_SNIPPET_CHARS]}" if text else ""
            message = f"game-session/new failed (HTTP {response.status_code}){detail}"
            error_class = StaleProfileError if is_stale_profile_message(text) else ProviderRejectedError
            raise error_class(message, status_code=response.status_code, body=text[:ERROR_SNIPPET_CHARS])

        self._http_log.exchange(
            logging.INFO,
            "game_session_created",
            "Premium HTTP game-session/new body",
            response={"status": response.status_code, "body": log_snippet(text)},
        )

        try:
            data = response.json()
        except ValueError:
            data = None
        return parse_session_tokens(data, "game-session/new returned missing identityToken/sessionToken")

    def fetch_launch_auth(self) -> LaunchAuth:
        """Resolve the profile and create a game session for it.

        Retries once with a network-resolved profile if the cached one is stale.

        Returns:
            Profile identity plus session tokens.
        """
        profile = self._resolver.resolve_primary_profile()
        try:
            tokens = self.create_game_session(profile.uuid)
        except StaleProfileError as e:
            _system_logger.warning(
                {
                    "event": "stale_profile_retry",
                    "message": "Cached premium profile rejected, re-resolving from network",
                    "uuid": mask_uuid(profile.uuid),
                    "status_code": e.status_code,
                }
            )
            profile = self._resolver.resolve_primary_profile(force_network=True)
            tokens = self.create_game_session(profile.uuid)

        return LaunchAuth(
            username=profile.username,
            uuid=profile.uuid,
            identity_token=tokens.identity_token,
            session_token=tokens.session_token,
        )

    def fetch_auth_tokens_premium(
        self, username: str | None = None, uuid: str | None = None
    ) -> SessionTokens:
        """Session tokens for the premium account.

        The arguments are accepted for call-site symmetry with the fallback
        provider and ignored: the provider determines the premium identity.
        """
        auth = self.fetch_launch_auth()
        return SessionTokens(identity_token=auth.identity_token, session_token=auth.session_token)

    def close(self) -> None:
        """Close the HTTP client if this negotiator created it."""
        if self._owns_client:
            self._client.close()
