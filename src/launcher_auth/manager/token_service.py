"""Token and session manager facade.

TokenSessionManager builds every auth component from one AuthConfig and is
the only object launcher code talks to:

    Session Negotiator -> Profile Resolver -> Token Refresh Engine -> credential file
    Offline Token Issuer -> Refresh Engine (premium) / Fallback auth (non-premium)
                         -> offline token store
    JWKS caches (one per issuer) -> offline token verification

It owns the httpx.Client it creates and closes it on close() or when used as
a context manager.
"""

from __future__ import annotations

__all__ = [
    "AuthStatus",
    "TokenSessionManager",
]

import logging
import time
from collections.abc import Callable
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any

import httpx

from launcher_auth.config import AuthConfig
from launcher_auth.constants import (
    ACCESS_TOKEN_EXPIRY_SKEW_SECONDS,
    APP_NAME,
    HTTP_DEBUG_LOG_FILENAME,
    SYSTEM_LOG_FILENAME,
)
from launcher_auth.exceptions import InvalidRequestError, TokenVerificationError
from launcher_auth.security.auth.credential_store import CachedProfile, PremiumCredentialStore
from launcher_auth.security.auth.fallback_auth import FallbackAuthClient
from launcher_auth.security.auth.jwks_cache import Jwks, JwksCache
from launcher_auth.security.auth.offline_issuer import AccountType, OfflineTokenIssuer
from launcher_auth.security.auth.offline_store import OfflineTokenStore
from launcher_auth.security.auth.profile_resolver import ProfileResolver
from launcher_auth.security.auth.session import SessionNegotiator
from launcher_auth.security.auth.token_parser import LaunchAuth, SessionTokens
from launcher_auth.security.auth.token_refresh import TokenRefreshEngine
from launcher_auth.security.auth.token_verifier import VerifiedOfflineToken, verify_offline_token
from launcher_auth.telemetry.debug.http_logger import HttpDebugLogger
from launcher_auth.telemetry.system.system_logger import (
    configure_system_logger_file,
    set_console_level,
)

_logger = logging.getLogger(f"{APP_NAME}.manager.token_service")


@dataclass
class AuthStatus:
    """Snapshot of the persisted auth state (no network calls).

    Attributes:
        credential_path: Location of the premium credential file.
        logged_in: Credential file holds an access or refresh token.
        has_refresh_token: A refresh token is stored.
        access_token_valid: Access token usable without refreshing.
        expires_at: Access token expiry (epoch seconds), if known.
        profile: Cached premium profile, if any.
        offline_tokens: Number of stored offline tokens per issuer.
        jwks_keys: Number of cached signing keys per issuer (0 = none).
    """

    credential_path: str
    logged_in: bool
    has_refresh_token: bool
    access_token_valid: bool
    expires_at: int | None
    profile: dict[str, str] | None
    offline_tokens: dict[str, int] = field(default_factory=dict)
    jwks_keys: dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


class TokenSessionManager:
    """Facade over credential refresh, sessions, offline tokens and JWKS.

    Usage:
        with TokenSessionManager(AuthConfig.from_env()) as manager:
            auth = manager.fetch_premium_launch_auth()
            token = manager.ensure_offline_token("nopremium", "Player", uuid)
    """

    def __init__(
        self,
        config: AuthConfig,
        http_client: httpx.Client | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """Build all components.

        Args:
            config: Complete configuration.
            http_client: Shared httpx client (for testing). When given it is
                also used for the fallback provider, so config.fallback.insecure
                must be applied by the caller.
            clock: Source of epoch seconds.
        """
        self._config = config
        self._paths = config.storage_paths()
        self._clock = clock
        self._client = http_client or httpx.Client()
        self._owns_client = http_client is None

        http_log = self._configure_logging()

        self._credentials = PremiumCredentialStore(self._paths.credential_path)
        self._offline_store = OfflineTokenStore(self._paths.offline_token_path, config.issuers, clock=clock)
        self._refresh_engine = TokenRefreshEngine(
            self._credentials, config.premium, http_client=self._client, clock=clock, http_log=http_log
        )
        self._resolver = ProfileResolver(
            self._credentials,
            self._refresh_engine,
            config.premium,
            http_client=self._client,
            http_log=http_log,
        )
        self._negotiator = SessionNegotiator(
            self._resolver,
            self._refresh_engine,
            config.premium,
            config.issuers.official,
            http_client=self._client,
            http_log=http_log,
        )
        self._fallback_auth = FallbackAuthClient(config.fallback, http_client=http_client, http_log=http_log)
        self._offline_issuer = OfflineTokenIssuer(
            self._offline_store,
            self._refresh_engine,
            self._fallback_auth,
            config.premium,
            config.issuers,
            http_client=self._client,
            http_log=http_log,
        )
        self._jwks_caches = {
            issuer.rstrip("/"): JwksCache(issuer, path, http_client=self._client, http_log=http_log)
            for issuer, path in self._paths.jwks_path_by_issuer.items()
        }

    def _configure_logging(self) -> HttpDebugLogger:
        logging_config = self._config.logging
        debug_log_path: Path | None = None
        if logging_config.log_dir:
            log_dir = Path(logging_config.log_dir).expanduser()
            configure_system_logger_file(log_dir / SYSTEM_LOG_FILENAME)
            if logging_config.http_debug:
                debug_log_path = log_dir / "debug" / HTTP_DEBUG_LOG_FILENAME
        if logging_config.http_debug:
            set_console_level(logging.INFO)
        return HttpDebugLogger(enabled=logging_config.http_debug, log_path=debug_log_path)

    @property
    def config(self) -> AuthConfig:
        return self._config

    # -------------------------------------------------------------------------
    # Premium
    # -------------------------------------------------------------------------

    def ensure_access_token(self) -> str | None:
        """Usable premium access token, refreshed if needed; None = login required."""
        return self._refresh_engine.ensure_access_token()

    def fetch_premium_launcher_primary_profile(self, force_network: bool = False) -> CachedProfile:
        return self._resolver.resolve_primary_profile(force_network=force_network)

    def create_premium_game_session(self, uuid: str) -> SessionTokens:
        return self._negotiator.create_game_session(uuid)

    def fetch_premium_launch_auth(self) -> LaunchAuth:
        """Profile plus game-session tokens, with one stale-profile retry."""
        return self._negotiator.fetch_launch_auth()

    def fetch_auth_tokens_premium(
        self, username: str | None = None, uuid: str | None = None
    ) -> SessionTokens:
        return self._negotiator.fetch_auth_tokens_premium(username, uuid)

    # -------------------------------------------------------------------------
    # Fallback provider
    # -------------------------------------------------------------------------

    def fetch_auth_tokens(self, username: str, uuid: str) -> SessionTokens:
        """Identity/session tokens from the fallback provider."""
        return self._fallback_auth.fetch_auth_tokens(username, uuid)

    # -------------------------------------------------------------------------
    # Offline tokens
    # -------------------------------------------------------------------------

    def ensure_offline_token(
        self,
        account_type: AccountType | str,
        username: str | None,
        uuid: str | None,
        issuer: str | None = None,
        force_refresh: bool = False,
    ) -> str:
        return self._offline_issuer.ensure_offline_token(
            account_type, username, uuid, issuer=issuer, force_refresh=force_refresh
        )

    def refresh_offline_token(
        self,
        account_type: AccountType | str,
        username: str | None,
        uuid: str | None,
        issuer: str | None = None,
    ) -> str:
        return self._offline_issuer.refresh_offline_token(
            account_type, username, uuid, issuer=self._config.issuers.resolve(issuer)
        )

    def read_stored_offline_token(self, uuid: str, issuer: str | None = None) -> str | None:
        """Stored offline token without any network call."""
        return self._offline_store.read(uuid, self._config.issuers.resolve(issuer))

    def stored_offline_token_issuer(self, uuid: str, token: str) -> str | None:
        """Issuer under which this exact token is stored, or None if only the legacy map has it."""
        return self._offline_store.find_issuer(uuid, token)

    # -------------------------------------------------------------------------
    # JWKS and verification
    # -------------------------------------------------------------------------

    def _jwks_cache(self, issuer: str | None) -> JwksCache:
        resolved = self._config.issuers.resolve(issuer) or self._config.issuers.community
        cache = self._jwks_caches.get(resolved)
        if cache is None:
            raise InvalidRequestError(f"No JWKS cache configured for issuer {resolved}")
        return cache

    def ensure_jwks(self, issuer: str | None = None, force_refresh: bool = False) -> Jwks | None:
        """Issuer key set (cached unless forced; cache fallback on fetch failure)."""
        return self._jwks_cache(issuer).ensure(force_refresh=force_refresh)

    def verify_offline_token(
        self,
        token: str,
        issuer: str | None = None,
        force_jwks_refresh: bool = False,
    ) -> VerifiedOfflineToken:
        """Verify an offline token against its issuer's key set.

        Raises:
            TokenVerificationError: If no keys are available or verification fails.
        """
        cache = self._jwks_cache(issuer)
        jwks = cache.ensure(force_refresh=force_jwks_refresh)
        if jwks is None:
            raise TokenVerificationError(f"No signing keys available for {cache.issuer}")
        return verify_offline_token(token, jwks, issuer=cache.issuer)

    # -------------------------------------------------------------------------
    # State
    # -------------------------------------------------------------------------

    def logout(self) -> bool:
        """Delete the premium credential file.

        Offline tokens and key sets stay: they remain valid for offline play.

        Returns:
            True if a credential file was removed.
        """
        removed = self._credentials.delete()
        _logger.info(
            {
                "event": "premium_logout",
                "message": "Premium credentials removed" if removed else "No premium credentials stored",
                "path": str(self._credentials.path),
            }
        )
        return removed

    def status(self) -> AuthStatus:
        """Persisted auth state, read from disk only."""
        document = self._credentials.load()
        bundle = document.token if document is not None else None
        profile = document.profile if document is not None else None

        offline_document = self._offline_store.load()
        return AuthStatus(
            credential_path=str(self._credentials.path),
            logged_in=bundle is not None and bool(bundle.access or bundle.refresh),
            has_refresh_token=bundle is not None and bundle.refresh is not None,
            access_token_valid=bundle is not None
            and bundle.is_access_valid(self._clock(), ACCESS_TOKEN_EXPIRY_SKEW_SECONDS),
            expires_at=bundle.effective_expires_at if bundle is not None else None,
            profile=profile.model_dump() if profile is not None else None,
            offline_tokens={
                issuer: len(bucket) for issuer, bucket in offline_document.tokens_by_issuer.items()
            },
            jwks_keys={
                issuer: len(jwks.keys) if (jwks := cache.read()) is not None else 0
                for issuer, cache in self._jwks_caches.items()
            },
        )

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    def close(self) -> None:
        """Release HTTP connections."""
        self._fallback_auth.close()
        if self._owns_client:
            self._client.close()

    def __enter__(self) -> "TokenSessionManager":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()
