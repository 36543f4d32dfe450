"""Application-wide constants for launcher-auth.

Constants that define application behavior.
For user-configurable settings (endpoints, user agents, paths), see config.py.
"""

import os

__all__ = [
    # Application identity
    "APP_NAME",
    "DEFAULT_META_DIR",
    # Trust issuers
    "COMMUNITY_ISSUER",
    "OFFICIAL_ISSUER",
    # Provider endpoints
    "DEFAULT_AUTH_URL",
    "DEFAULT_OAUTH_TOKEN_URL",
    "OFFICIAL_ACCOUNT_DATA_BASE",
    # Official client mimicry
    "OAUTH_CLIENT_ID",
    "DEFAULT_LAUNCHER_USER_AGENT",
    "DEFAULT_OAUTH_USER_AGENT",
    "DEFAULT_LAUNCHER_BRANCH",
    "BASE_GAME_ENTITLEMENT",
    # Timeouts
    "DEFAULT_AUTH_TIMEOUT_MS",
    "PROVIDER_TIMEOUT_SECONDS",
    "JWKS_FETCH_TIMEOUT_SECONDS",
    # Token lifecycle
    "ACCESS_TOKEN_EXPIRY_SKEW_SECONDS",
    "DEFAULT_EXPIRES_IN_SECONDS",
    "STALE_PROFILE_ERROR_PATTERN",
    # Persisted files
    "PREMIUM_AUTH_FILENAME",
    "OFFLINE_TOKENS_FILENAME",
    "COMMUNITY_JWKS_FILENAME",
    "OFFICIAL_JWKS_FILENAME",
    "HTTP_DEBUG_LOG_FILENAME",
    "SYSTEM_LOG_FILENAME",
    # Diagnostics
    "ERROR_SNIPPET_CHARS",
    "LOG_SNIPPET_CHARS",
]

from platformdirs import user_data_dir

# ============================================================================
# Application Identity
# ============================================================================

APP_NAME: str = "launcher-auth"

# Directory holding the credential, offline-token and JWKS cache files.
# - macOS: ~/Library/Application Support/launcher-auth/
# - Linux: ~/.local/share/launcher-auth/
# - Windows: %LOCALAPPDATA%\launcher-auth\
DEFAULT_META_DIR: str = os.path.realpath(user_data_dir(APP_NAME))

# ============================================================================
# Trust Issuers
# ============================================================================

# Community (fallback) issuer: issues offline tokens for non-premium accounts.
COMMUNITY_ISSUER: str = "https://sessions.butter.lat"

# First-party issuer: game sessions and offline tokens for premium accounts.
OFFICIAL_ISSUER: str = "https://sessions.hytale.com"

# ============================================================================
# Provider Endpoints
# ============================================================================

DEFAULT_AUTH_URL: str = "https://butter.lat/auth/login"
DEFAULT_OAUTH_TOKEN_URL: str = "https://oauth.accounts.hytale.com/oauth2/token"
OFFICIAL_ACCOUNT_DATA_BASE: str = "https://account-data.hytale.com"

# ============================================================================
# Official Client Mimicry
# ============================================================================

# Public client of the official launcher. Sent as HTTP Basic with an empty
# secret, matching the documented public-client refresh flow.
OAUTH_CLIENT_ID: str = "hytale-launcher"

DEFAULT_LAUNCHER_USER_AGENT: str = "hytale-launcher/2026.02.12-54e579b"
DEFAULT_OAUTH_USER_AGENT: str = "hytale-launcher/2026.02.06-b95ae53"
DEFAULT_LAUNCHER_BRANCH: str = "release"

# Profiles holding this entitlement are preferred by the profile resolver.
BASE_GAME_ENTITLEMENT: str = "game.base"

# ============================================================================
# Timeouts
# ============================================================================

# Fallback auth provider request timeout (milliseconds, env-configurable).
DEFAULT_AUTH_TIMEOUT_MS: int = 5_000

# First-party and community issuer calls (refresh, launcher data, sessions).
PROVIDER_TIMEOUT_SECONDS: float = 8.0

JWKS_FETCH_TIMEOUT_SECONDS: float = 8.0

# ============================================================================
# Token Lifecycle
# ============================================================================

# An access token is used only while now < expires_at - skew.
ACCESS_TOKEN_EXPIRY_SKEW_SECONDS: int = 90

# Assumed lifetime when a refresh response omits expires_in.
DEFAULT_EXPIRES_IN_SECONDS: int = 3600

# Provider message (matched case-insensitively) meaning the cached profile no
# longer belongs to the logged-in account.
STALE_PROFILE_ERROR_PATTERN: str = "invalid game account for user"

# ============================================================================
# Persisted Files
# ============================================================================

PREMIUM_AUTH_FILENAME: str = "premium-auth.json"
OFFLINE_TOKENS_FILENAME: str = "offline-tokens.json"
COMMUNITY_JWKS_FILENAME: str = "butter-jwks.json"
OFFICIAL_JWKS_FILENAME: str = "official-jwks.json"

HTTP_DEBUG_LOG_FILENAME: str = "http.jsonl"
SYSTEM_LOG_FILENAME: str = "system.jsonl"

# ============================================================================
# Diagnostics
# ============================================================================

# Response body characters kept in user-facing error messages.
ERROR_SNIPPET_CHARS: int = 200

# Response body characters kept in debug log entries.
LOG_SNIPPET_CHARS: int = 1200
