"""Configuration for launcher-auth.

Defines configuration models for trust issuers, the premium (first-party)
client, the fallback auth provider, logging and persisted file locations.

Configuration is built from environment variables (every value optional, with
documented defaults) or loaded from a JSON file. File locations are an
explicit StoragePaths value so tests can point every cache at a temporary
directory.

Example usage:
    # From environment (launcher default)
    config = AuthConfig.from_env()

    # From a JSON file
    config = AuthConfig.load_from_file(Path("launcher-auth.json"))

    paths = config.storage_paths()
"""

from __future__ import annotations

__all__ = [
    "AuthConfig",
    "FallbackAuthConfig",
    "IssuerConfig",
    "LoggingConfig",
    "PremiumClientConfig",
    "StoragePaths",
]

import os
from collections.abc import Mapping
from pathlib import Path

from pydantic import BaseModel, Field, field_validator

from launcher_auth.constants import (
    COMMUNITY_ISSUER,
    COMMUNITY_JWKS_FILENAME,
    DEFAULT_AUTH_TIMEOUT_MS,
    DEFAULT_AUTH_URL,
    DEFAULT_LAUNCHER_BRANCH,
    DEFAULT_LAUNCHER_USER_AGENT,
    DEFAULT_META_DIR,
    DEFAULT_OAUTH_TOKEN_URL,
    DEFAULT_OAUTH_USER_AGENT,
    OFFICIAL_ACCOUNT_DATA_BASE,
    OFFICIAL_ISSUER,
    OFFICIAL_JWKS_FILENAME,
    OFFLINE_TOKENS_FILENAME,
    PREMIUM_AUTH_FILENAME,
    PROVIDER_TIMEOUT_SECONDS,
)
from launcher_auth.exceptions import ConfigurationError
from launcher_auth.utils.file_helpers import load_validated_json, require_file_exists
from launcher_auth.utils.validation import parse_env_bool

# =============================================================================
# Trust Issuers
# =============================================================================


class IssuerConfig(BaseModel):
    """Base URLs of the two trust issuers.

    The URL doubles as the namespace key for offline tokens, so the same
    value must be used for storing and reading.

    Attributes:
        community: Fallback issuer serving non-premium accounts.
        official: First-party issuer (game sessions, premium offline tokens).
    """

    community: str = Field(default=COMMUNITY_ISSUER, min_length=1)
    official: str = Field(default=OFFICIAL_ISSUER, min_length=1)

    @field_validator("community", "official")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        return value.strip().rstrip("/")

    def resolve(self, issuer: str | None) -> str | None:
        """Resolve "community"/"official" aliases to issuer URLs.

        Args:
            issuer: Alias, URL, or None.

        Returns:
            Issuer URL, or None when no issuer was requested.
        """
        if issuer is None or not issuer.strip():
            return None
        value = issuer.strip()
        if value.lower() == "community":
            return self.community
        if value.lower() == "official":
            return self.official
        return value.rstrip("/")


# =============================================================================
# Premium (first-party) client
# =============================================================================


class PremiumClientConfig(BaseModel):
    """Endpoints and official-client headers for the first-party provider.

    The user agent and launcher branch/version headers are part of the
    provider's access-control contract.

    Attributes:
        token_url: OAuth token endpoint used for the refresh grant.
        account_data_base: Base URL of the launcher-data endpoint.
        launcher_user_agent: User-Agent for account-data and session calls.
        launcher_branch: X-Hytale-Launcher-Branch for account-data and session calls.
        launcher_version: X-Hytale-Launcher-Version; derived from the user agent if unset.
        oauth_user_agent: User-Agent for the refresh grant.
        oauth_launcher_branch: Launcher branch header for the refresh grant.
        oauth_launcher_version: Launcher version header for the refresh grant.
        timeout_seconds: Timeout for every first-party call.
    """

    token_url: str = Field(default=DEFAULT_OAUTH_TOKEN_URL, min_length=1)
    account_data_base: str = Field(default=OFFICIAL_ACCOUNT_DATA_BASE, min_length=1)
    launcher_user_agent: str = DEFAULT_LAUNCHER_USER_AGENT
    launcher_branch: str = DEFAULT_LAUNCHER_BRANCH
    launcher_version: str | None = None
    oauth_user_agent: str = DEFAULT_OAUTH_USER_AGENT
    oauth_launcher_branch: str = DEFAULT_LAUNCHER_BRANCH
    oauth_launcher_version: str = DEFAULT_OAUTH_USER_AGENT.split("/", 1)[1]
    timeout_seconds: float = Field(default=PROVIDER_TIMEOUT_SECONDS, gt=0)

    @property
    def effective_launcher_version(self) -> str:
        """Launcher version header value ("" means omit the header)."""
        if self.launcher_version:
            return self.launcher_version
        _, _, version = self.launcher_user_agent.partition("/")
        return version


# =============================================================================
# Fallback auth provider
# =============================================================================


class FallbackAuthConfig(BaseModel):
    """Fallback ("offline") identity provider.

    Attributes:
        url: Login endpoint returning identity/session tokens.
        timeout_ms: Request timeout in milliseconds.
        insecure: Disable TLS certificate verification (opt-in, logged).
    """

    url: str = Field(default=DEFAULT_AUTH_URL, min_length=1)
    timeout_ms: int = Field(default=DEFAULT_AUTH_TIMEOUT_MS, gt=0)
    insecure: bool = False


# =============================================================================
# Logging
# =============================================================================


class LoggingConfig(BaseModel):
    """Logging configuration.

    Attributes:
        log_dir: Directory for system.jsonl and debug/http.jsonl (None = stderr only).
        http_debug: Log full provider request/response pairs (Authorization redacted).
    """

    log_dir: str | None = None
    http_debug: bool = False


# =============================================================================
# Persisted files
# =============================================================================


class StoragePaths(BaseModel):
    """Locations of every persisted file.

    Attributes:
        credential_path: Premium credential file (token + cached profile).
        offline_token_path: Offline token store.
        jwks_path_by_issuer: JWKS cache file per issuer URL.
    """

    credential_path: Path
    offline_token_path: Path
    jwks_path_by_issuer: dict[str, Path]

    @classmethod
    def in_directory(cls, meta_dir: Path, issuers: IssuerConfig) -> "StoragePaths":
        """Standard file names inside one directory."""
        return cls(
            credential_path=meta_dir / PREMIUM_AUTH_FILENAME,
            offline_token_path=meta_dir / OFFLINE_TOKENS_FILENAME,
            jwks_path_by_issuer={
                issuers.community: meta_dir / COMMUNITY_JWKS_FILENAME,
                issuers.official: meta_dir / OFFICIAL_JWKS_FILENAME,
            },
        )


# =============================================================================
# Top-level configuration
# =============================================================================


class AuthConfig(BaseModel):
    """Complete configuration for the token and session manager.

    Attributes:
        issuers: Trust issuer URLs.
        premium: First-party client settings.
        fallback: Fallback auth provider settings.
        logging: Logging settings.
        meta_dir: Directory for persisted files when paths is not given.
        paths: Explicit file locations (overrides meta_dir).
    """

    issuers: IssuerConfig = Field(default_factory=IssuerConfig)
    premium: PremiumClientConfig = Field(default_factory=PremiumClientConfig)
    fallback: FallbackAuthConfig = Field(default_factory=FallbackAuthConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    meta_dir: str | None = None
    paths: StoragePaths | None = None

    def storage_paths(self) -> StoragePaths:
        """File locations, defaulting to the standard names in meta_dir."""
        if self.paths is not None:
            return self.paths
        meta_dir = Path(os.path.expanduser(self.meta_dir or DEFAULT_META_DIR))
        return StoragePaths.in_directory(meta_dir, self.issuers)

    @classmethod
    def load_from_file(cls, path: Path) -> "AuthConfig":
        """Load and validate configuration from a JSON file.

        Raises:
            ConfigurationError: If the file is missing, not JSON, or invalid.
        """
        try:
            require_file_exists(path, file_type="configuration")
            return load_validated_json(path, cls, file_type="configuration")
        except (FileNotFoundError, ValueError) as e:
            raise ConfigurationError(str(e)) from e

    @classmethod
    def from_env(
        cls,
        env: Mapping[str, str] | None = None,
        meta_dir: Path | None = None,
    ) -> "AuthConfig":
        """Build configuration from environment variables.

        For each setting the first non-empty variable wins; unset settings keep
        their defaults.

        Args:
            env: Environment mapping (defaults to os.environ).
            meta_dir: Directory for persisted files (overrides LAUNCHER_META_DIR).

        Returns:
            AuthConfig with all defaults filled in.
        """
        source: Mapping[str, str] = os.environ if env is None else env

        def first(*names: str) -> str | None:
            for name in names:
                value = (source.get(name) or "").strip()
                if value:
                    return value
            return None

        def first_bool(*names: str) -> bool | None:
            for name in names:
                parsed = parse_env_bool(source.get(name))
                if parsed is not None:
                    return parsed
            return None

        issuers = IssuerConfig(
            community=first("BUTTER_SESSIONS_BASE", "VITE_BUTTER_SESSIONS_BASE") or COMMUNITY_ISSUER,
        )

        premium_values: dict[str, str] = {}
        for field_name, names in (
            ("token_url", ("HYTALE_OAUTH_TOKEN_URL",)),
            ("launcher_user_agent", ("HYTALE_LAUNCHER_USER_AGENT", "HYTALE_CLIENT_USER_AGENT")),
            ("launcher_branch", ("HYTALE_LAUNCHER_BRANCH", "HYTALE_OAUTH_LAUNCHER_BRANCH")),
            ("launcher_version", ("HYTALE_LAUNCHER_VERSION", "HYTALE_OAUTH_LAUNCHER_VERSION")),
            ("oauth_user_agent", ("HYTALE_OAUTH_USER_AGENT", "HYTALE_LAUNCHER_USER_AGENT")),
            ("oauth_launcher_branch", ("HYTALE_OAUTH_LAUNCHER_BRANCH", "HYTALE_LAUNCHER_BRANCH")),
            ("oauth_launcher_version", ("HYTALE_OAUTH_LAUNCHER_VERSION", "HYTALE_LAUNCHER_VERSION")),
        ):
            value = first(*names)
            if value is not None:
                premium_values[field_name] = value

        fallback = FallbackAuthConfig(
            url=first("VITE_AUTH_URL", "AUTH_URL") or DEFAULT_AUTH_URL,
            timeout_ms=_parse_timeout_ms(first("VITE_AUTH_TIMEOUT_MS", "AUTH_TIMEOUT_MS")),
            insecure=first_bool("VITE_AUTH_INSECURE", "AUTH_INSECURE") or False,
        )

        logging_config = LoggingConfig(
            log_dir=first("LAUNCHER_AUTH_LOG_DIR"),
            http_debug=bool(first_bool("HYTALE_PREMIUM_HTTP_DEBUG", "PREMIUM_HTTP_DEBUG")),
        )

        resolved_meta_dir = str(meta_dir) if meta_dir is not None else first("LAUNCHER_META_DIR")

        return cls(
            issuers=issuers,
            premium=PremiumClientConfig(**premium_values),
            fallback=fallback,
            logging=logging_config,
            meta_dir=resolved_meta_dir,
        )


def _parse_timeout_ms(raw: str | None) -> int:
    """Parse a millisecond timeout, falling back to the default when unusable."""
    if raw is None:
        return DEFAULT_AUTH_TIMEOUT_MS
    try:
        value = float(raw)
    except ValueError:
        return DEFAULT_AUTH_TIMEOUT_MS
    if value != value or value <= 0 or value == float("inf"):
        return DEFAULT_AUTH_TIMEOUT_MS
    return int(value)
