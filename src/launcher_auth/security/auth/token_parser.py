"""Provider response parsing.

Each provider response is validated once, here, into a typed result. Call
sites never re-check field types; a response that does not validate raises
MalformedResponseError (or NoValidProfileError for launcher data).

Responses handled:
- OAuth refresh grant (access_token, refresh_token, expires_in, extras kept)
- Launcher data (profiles with entitlements)
- Game-session and fallback auth tokens (identityToken, sessionToken)
- Offline-session tokens (offlineTokens, offlineTokensOfficialIssuer)
"""

from __future__ import annotations

__all__ = [
    "LaunchAuth",
    "LauncherData",
    "LauncherProfile",
    "OfflineTokenResponse",
    "RefreshTokenResponse",
    "SessionTokens",
    "parse_offline_token_response",
    "parse_refresh_response",
    "parse_session_tokens",
    "select_primary_profile",
]

import math
from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from launcher_auth.constants import BASE_GAME_ENTITLEMENT
from launcher_auth.exceptions import MalformedResponseError, NoValidProfileError
from launcher_auth.security.auth.credential_store import CachedProfile
from launcher_auth.utils.validation import non_blank


@dataclass(frozen=True)
class SessionTokens:
    """Short-lived game-session credentials. Never persisted."""

    identity_token: str
    session_token: str


@dataclass(frozen=True)
class LaunchAuth:
    """Everything the game client needs for a premium launch."""

    username: str
    uuid: str
    identity_token: str
    session_token: str


# =============================================================================
# OAuth refresh grant
# =============================================================================


class RefreshTokenResponse(BaseModel):
    """Successful refresh-grant response.

    Provider-specific fields are kept as extras and merged into the
    credential bundle.
    """

    model_config = ConfigDict(extra="allow")

    access_token: str = Field(min_length=1)
    refresh_token: str | None = None
    expires_in: int | None = None

    @field_validator("access_token", mode="before")
    @classmethod
    def _trim_access_token(cls, value: Any) -> Any:
        return value.strip() if isinstance(value, str) else value

    @field_validator("refresh_token", mode="before")
    @classmethod
    def _optional_refresh_token(cls, value: Any) -> str | None:
        return non_blank(value)

    @field_validator("expires_in", mode="before")
    @classmethod
    def _finite_seconds(cls, value: Any) -> int | None:
        if isinstance(value, bool) or not isinstance(value, (int, float)) or not math.isfinite(value):
            return None
        return int(math.floor(value))


def parse_refresh_response(data: Any) -> RefreshTokenResponse:
    """Validate a refresh-grant response body.

    Raises:
        MalformedResponseError: If the body has no usable access_token.
    """
    if not isinstance(data, dict):
        raise MalformedResponseError("Token refresh returned a non-object JSON body")
    try:
        return RefreshTokenResponse.model_validate(data)
    except ValidationError as e:
        raise MalformedResponseError("Token refresh response is missing access_token") from e


# =============================================================================
# Launcher data
# =============================================================================


class LauncherProfile(BaseModel):
    """One game profile linked to the account. Fields are validated on selection."""

    model_config = ConfigDict(extra="ignore")

    username: Any = None
    uuid: Any = None
    entitlements: list[str] = Field(default_factory=list)

    @field_validator("entitlements", mode="before")
    @classmethod
    def _string_entitlements(cls, value: Any) -> list[str]:
        if not isinstance(value, list):
            return []
        return [item for item in value if isinstance(item, str)]


class LauncherData(BaseModel):
    """Launcher-data response (only the profile list is used)."""

    model_config = ConfigDict(extra="ignore")

    profiles: list[LauncherProfile] = Field(default_factory=list)

    @field_validator("profiles", mode="before")
    @classmethod
    def _profile_objects(cls, value: Any) -> list[Any]:
        if not isinstance(value, list):
            return []
        return [item if isinstance(item, dict) else {} for item in value]


def select_primary_profile(data: Any) -> CachedProfile:
    """Pick the launch profile from a launcher-data body.

    The first profile holding the base-game entitlement wins, else the first
    profile.

    Raises:
        NoValidProfileError: If the chosen profile lacks a username or a valid uuid.
    """
    launcher_data = LauncherData.model_validate(data if isinstance(data, dict) else {})
    profiles = launcher_data.profiles
    best = next(
        (p for p in profiles if BASE_GAME_ENTITLEMENT in p.entitlements),
        profiles[0] if profiles else None,
    )
    if best is None:
        raise NoValidProfileError("get-launcher-data returned no valid profile username/uuid")

    try:
        return CachedProfile.model_validate({"username": best.username, "uuid": best.uuid})
    except ValidationError as e:
        raise NoValidProfileError("get-launcher-data returned no valid profile username/uuid") from e


# =============================================================================
# Session tokens
# =============================================================================


class _SessionTokenBody(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    identity_token: str = Field(alias="identityToken", min_length=1)
    session_token: str = Field(alias="sessionToken", min_length=1)

    @field_validator("identity_token", "session_token", mode="before")
    @classmethod
    def _trim(cls, value: Any) -> Any:
        return value.strip() if isinstance(value, str) else value


def parse_session_tokens(data: Any, error_message: str) -> SessionTokens:
    """Extract identityToken/sessionToken, both required and non-blank.

    Args:
        data: Decoded JSON body (anything).
        error_message: Message for the MalformedResponseError.

    Raises:
        MalformedResponseError: If either token is missing or blank.
    """
    if not isinstance(data, dict):
        raise MalformedResponseError(error_message)
    try:
        body = _SessionTokenBody.model_validate(data)
    except ValidationError as e:
        raise MalformedResponseError(error_message) from e
    return SessionTokens(identity_token=body.identity_token, session_token=body.session_token)


# =============================================================================
# Offline tokens
# =============================================================================


class OfflineTokenResponse(BaseModel):
    """Offline-session response.

    Attributes:
        offline_tokens: uuid -> token issued by the called issuer.
        offline_tokens_official_issuer: uuid -> token in the first-party
            namespace (community issuer only).
    """

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    offline_tokens: dict[str, Any] = Field(default_factory=dict, alias="offlineTokens")
    offline_tokens_official_issuer: dict[str, Any] = Field(
        default_factory=dict, alias="offlineTokensOfficialIssuer"
    )

    @field_validator("offline_tokens", "offline_tokens_official_issuer", mode="before")
    @classmethod
    def _mapping_or_empty(cls, value: Any) -> dict[str, Any]:
        return value if isinstance(value, dict) else {}

    def token_for(self, uuid: str, *, official_issuer: bool = False) -> str | None:
        """Token for uuid (lowercased key first, then as given), trimmed."""
        mapping = self.offline_tokens_official_issuer if official_issuer else self.offline_tokens
        token = mapping.get(uuid.lower())
        if token is None:
            token = mapping.get(uuid)
        return non_blank(token)


def parse_offline_token_response(data: Any) -> OfflineTokenResponse:
    """Parse an offline-session body; non-object bodies carry no tokens."""
    return OfflineTokenResponse.model_validate(data if isinstance(data, dict) else {})
