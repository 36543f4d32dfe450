"""Shared HTTP plumbing for provider calls.

- send_request: one request with an explicit timeout, transport errors mapped
  to ProviderUnreachableError / AuthTimeoutError
- parse_json_body: JSON body or MalformedResponseError
- official_launcher_headers: headers the first-party provider expects from
  the official launcher client
"""

from __future__ import annotations

__all__ = [
    "is_success",
    "official_launcher_headers",
    "parse_json_body",
    "send_request",
]

from typing import TYPE_CHECKING, Any

import httpx

from launcher_auth.exceptions import AuthTimeoutError, MalformedResponseError, ProviderUnreachableError

if TYPE_CHECKING:
    from launcher_auth.config import PremiumClientConfig


def send_request(
    client: httpx.Client,
    method: str,
    url: str,
    *,
    timeout: float,
    label: str,
    headers: dict[str, str] | None = None,
    timeout_message: str | None = None,
    **kwargs: Any,
) -> httpx.Response:
    """Send one request, mapping transport failures to auth errors.

    Args:
        client: HTTP client to send with.
        method: HTTP method.
        url: Request URL.
        timeout: Timeout in seconds for the whole request.
        label: Short operation name used in error messages.
        headers: Request headers.
        timeout_message: Message for AuthTimeoutError (default derived from label).
        **kwargs: Passed through to httpx (json=, data=, params=).

    Returns:
        The response, whatever its status.

    Raises:
        AuthTimeoutError: If the provider did not answer in time.
        ProviderUnreachableError: For connection, TLS and protocol failures, and
            URLs httpx cannot send to.
    """
    try:
        return client.request(method, url, headers=headers, timeout=timeout, **kwargs)
    except httpx.TimeoutException as e:
        raise AuthTimeoutError(timeout_message or f"{label} timed out after {timeout:g}s.") from e
    except (httpx.HTTPError, httpx.InvalidURL) as e:
        raise ProviderUnreachableError(f"{label} failed: could not reach {url} ({e})") from e


def is_success(response: httpx.Response) -> bool:
    """Whether the response has a 2xx status."""
    return 200 <= response.status_code < 300


def parse_json_body(response: httpx.Response, label: str) -> Any:
    """Decode a JSON response body.

    Raises:
        MalformedResponseError: If the body is not JSON.
    """
    try:
        return response.json()
    except ValueError as e:
        raise MalformedResponseError(f"{label} returned non-JSON response") from e


def official_launcher_headers(config: "PremiumClientConfig", access_token: str) -> dict[str, str]:
    """Headers for account-data and game-session calls.

    The launcher version header is omitted when no version is configured
    and none can be derived from the user agent.
    """
    headers = {
        "Accept": "application/json",
        "User-Agent": config.launcher_user_agent,
        "Authorization": f"Bearer {access_token}",
        "X-Hytale-Launcher-Branch": config.launcher_branch,
    }
    version = config.effective_launcher_version
    if version:
        headers["X-Hytale-Launcher-Version"] = version
    headers["Accept-Encoding"] = "gzip"
    return headers
