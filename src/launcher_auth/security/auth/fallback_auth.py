"""Fallback ("offline") identity provider client.

POST {auth_url} {"username", "uuid"} -> {"identityToken", "sessionToken"}

TLS certificate verification can be disabled for self-hosted providers. It is
opt-in only and every call made that way logs a warning.
"""

from __future__ import annotations

__all__ = ["FallbackAuthClient"]

import logging
from typing import TYPE_CHECKING

import httpx

from launcher_auth.exceptions import MalformedResponseError, ProviderRejectedError
from launcher_auth.security.auth.http import send_request
from launcher_auth.security.auth.token_parser import SessionTokens, parse_session_tokens
from launcher_auth.telemetry.debug.http_logger import HttpDebugLogger
from launcher_auth.telemetry.system.system_logger import get_system_logger
from launcher_auth.utils.logging.logging_helpers import mask_uuid, snippet

if TYPE_CHECKING:
    from launcher_auth.config import FallbackAuthConfig

_system_logger = get_system_logger()

# Response characters kept in fallback auth error messages
_AUTH_ERROR_SNIPPET_CHARS = 400


class FallbackAuthClient:
    """Client for the fallback identity provider.

    Usage:
        client = FallbackAuthClient(config.fallback)
        tokens = client.fetch_auth_tokens("Player", "0f2c...")
    """

    def __init__(
        self,
        config: "FallbackAuthConfig",
        http_client: httpx.Client | None = None,
        http_log: HttpDebugLogger | None = None,
    ) -> None:
        """Initialize the client.

        TLS verification is a client-level setting in httpx, so without an
        injected client this creates its own, honoring config.insecure.

        Args:
            config: Provider URL, timeout and TLS setting.
            http_client: Optional httpx client (for testing).
            http_log: Request/response logger.
        """
        self._config = config
        self._client = http_client or httpx.Client(verify=not config.insecure)
        self._owns_client = http_client is None
        self._http_log = http_log or HttpDebugLogger()

    def fetch_auth_tokens(self, username: str, uuid: str) -> SessionTokens:
        """Exchange username and uuid for identity/session tokens.

        Returns:
            Identity and session tokens.

        Raises:
            AuthTimeoutError: If the provider did not answer within the timeout.
            ProviderUnreachableError: On network failure.
            ProviderRejectedError: If the provider answered anything but 200.
            MalformedResponseError: If the body is not JSON or lacks a token.
        """
        if self._config.insecure:
            _system_logger.warning(
                {
                    "event": "auth_tls_verification_disabled",
                    "message": "VITE_AUTH_INSECURE enabled: TLS certificate verification is "
                    "disabled for auth requests.",
                    "url": self._config.url,
                }
            )

        url = self._config.url
        headers = {"Content-Type": "application/json", "Accept": "application/json"}
        timeout_ms = self._config.timeout_ms
        response = send_request(
            self._client,
            "POST",
            url,
            timeout=timeout_ms / 1000,
            label="Auth request",
            timeout_message=f"Auth request timed out after {timeout_ms}ms.",
            headers=headers,
            json={"username": username, "uuid": uuid},
        )
        text = response.text
        request_log = {
            "method": "POST",
            "url": url,
            "headers": headers,
            "body": {"username": username, "uuid": mask_uuid(uuid)},
        }

        if response.status_code != 200:
            self._http_log.exchange(
                logging.WARNING,
                "fallback_auth_rejected",
                "Fallback auth response",
                request=request_log,
                response={"status": response.status_code, "body": snippet(text, _AUTH_ERROR_SNIPPET_CHARS)},
            )
            excerpt = text[:_AUTH_ERROR_SNIPPET_CHARS]
            detail = f" Response: {excerpt}" if excerpt else ""
            raise ProviderRejectedError(
                f"Auth server error ({response.status_code}).{detail}",
                status_code=response.status_code,
                body=excerpt,
            )

        self._http_log.exchange(
            logging.INFO,
            "fallback_auth_succeeded",
            "Fallback auth",
            request=request_log,
            response={"status": response.status_code},
        )

        try:
            data = response.json()
        except ValueError as e:
            excerpt = text[:_AUTH_ERROR_SNIPPET_CHARS]
            detail = f" Response: {excerpt}" if excerpt else ""
            raise MalformedResponseError(f"Auth server did not return valid JSON.{detail}") from e

        return parse_session_tokens(data, "Auth server JSON missing identityToken/sessionToken.")

    def close(self) -> None:
        """Close the HTTP client if this client created it."""
        if self._owns_client:
            self._client.close()
