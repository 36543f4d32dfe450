"""Custom exceptions for launcher-auth.

All errors raised across the public operation boundary derive from
LauncherAuthError. Messages are written to be shown to the player as-is.

Error kinds:
    - LoginRequiredError: No usable premium access token
    - ProviderUnreachableError: Network failure talking to a provider
    - AuthTimeoutError: Provider did not answer within the request timeout
    - ProviderRejectedError: Provider answered with a non-2xx status
    - StaleProfileError: Provider rejected the cached game profile
    - MalformedResponseError: 2xx answer that is unparseable or incomplete
    - NoValidProfileError: Launcher data holds no usable profile
    - TokenVerificationError: Offline token failed signature/claim checks
    - InvalidRequestError: Caller passed unusable arguments
    - ConfigurationError: Configuration file is missing or invalid

Usage:
    from launcher_auth.exceptions import LoginRequiredError, ProviderRejectedError
"""

from __future__ import annotations

__all__ = [
    "AuthTimeoutError",
    "ConfigurationError",
    "InvalidRequestError",
    "LauncherAuthError",
    "LoginRequiredError",
    "MalformedResponseError",
    "NoValidProfileError",
    "ProviderRejectedError",
    "ProviderUnreachableError",
    "StaleProfileError",
    "TokenVerificationError",
]


class LauncherAuthError(Exception):
    """Base exception for token and session failures.

    Attributes:
        exit_code: Process exit code used by the CLI.
        failure_type: Category string for structured logs.
    """

    exit_code: int = 1
    failure_type: str = "unknown"


class LoginRequiredError(LauncherAuthError):
    """No premium access token is available; the player must log in again."""

    exit_code = 10
    failure_type = "login_required"


class ProviderUnreachableError(LauncherAuthError):
    """The provider could not be reached (DNS, connect, TLS, reset)."""

    exit_code = 11
    failure_type = "provider_unreachable"


class AuthTimeoutError(ProviderUnreachableError):
    """The provider did not respond before the request timeout elapsed."""

    exit_code = 12
    failure_type = "timeout"


class ProviderRejectedError(LauncherAuthError):
    """The provider answered with a non-2xx status.

    Attributes:
        status_code: HTTP status returned by the provider.
        body: Truncated response body for diagnostics.
    """

    exit_code = 13
    failure_type = "provider_rejected"

    def __init__(self, message: str, *, status_code: int, body: str = "") -> None:
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class StaleProfileError(ProviderRejectedError):
    """The session endpoint rejected the cached profile for this account.

    Raised when the provider reports an invalid game account for the user,
    meaning the cached profile no longer matches the account's linkage.
    """

    failure_type = "stale_profile"


class MalformedResponseError(LauncherAuthError):
    """The provider answered 2xx but the body is unparseable or incomplete."""

    exit_code = 14
    failure_type = "malformed_response"


class NoValidProfileError(MalformedResponseError):
    """Launcher data contained no profile with a usable username and uuid."""

    failure_type = "no_valid_profile"


class TokenVerificationError(LauncherAuthError):
    """An offline token failed signature, issuer or expiry verification."""

    exit_code = 15
    failure_type = "token_verification_failure"


class InvalidRequestError(LauncherAuthError, ValueError):
    """The caller passed arguments the operation cannot work with."""

    exit_code = 2
    failure_type = "invalid_request"


class ConfigurationError(LauncherAuthError):
    """Configuration is invalid or incomplete.

    Raised when:
    - A config file was given but does not exist
    - Config file contains invalid JSON
    - Config file fails Pydantic validation
    """

    exit_code = 16
    failure_type = "configuration_failure"
