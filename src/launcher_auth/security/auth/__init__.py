"""Token and session infrastructure.

This module provides:
- Atomic JSON caches for credentials, offline tokens and JWKS
- Premium access token refresh with expiry skew
- Profile resolution and game-session negotiation (one stale-profile retry)
- Offline token issuance per issuer, and offline token verification

These are the primitives TokenSessionManager wires together.
"""

from launcher_auth.security.auth.cache import AtomicJsonCache
from launcher_auth.security.auth.credential_store import (
    CachedProfile,
    CredentialBundle,
    CredentialFile,
    PremiumCredentialStore,
)
from launcher_auth.security.auth.fallback_auth import FallbackAuthClient
from launcher_auth.security.auth.jwks_cache import Jwks, JwksCache
from launcher_auth.security.auth.offline_issuer import AccountType, OfflineTokenIssuer
from launcher_auth.security.auth.offline_store import OfflineTokenFile, OfflineTokenStore
from launcher_auth.security.auth.profile_resolver import ProfileResolver
from launcher_auth.security.auth.session import SessionNegotiator
from launcher_auth.security.auth.token_parser import LaunchAuth, SessionTokens
from launcher_auth.security.auth.token_refresh import TokenRefreshEngine
from launcher_auth.security.auth.token_verifier import VerifiedOfflineToken, verify_offline_token

__all__ = [
    # Caches and stores
    "AtomicJsonCache",
    "CachedProfile",
    "CredentialBundle",
    "CredentialFile",
    "PremiumCredentialStore",
    "OfflineTokenFile",
    "OfflineTokenStore",
    "Jwks",
    "JwksCache",
    # Token exchanges
    "TokenRefreshEngine",
    "ProfileResolver",
    "SessionNegotiator",
    "FallbackAuthClient",
    "OfflineTokenIssuer",
    "AccountType",
    # Results
    "LaunchAuth",
    "SessionTokens",
    # Verification
    "VerifiedOfflineToken",
    "verify_offline_token",
]
