"""Offline token signature verification.

Offline tokens are JWTs signed by their issuer. Verification selects the
signing key by kid from the issuer's cached JWKS and checks signature,
issuer and expiry. Audience is not checked (offline tokens carry the game
client's audience, not ours).

Verification never fetches keys: callers pass the key set (see JwksCache).
"""

from __future__ import annotations

__all__ = [
    "ALLOWED_ALGORITHMS",
    "VerifiedOfflineToken",
    "verify_offline_token",
]

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any

import jwt

from launcher_auth.exceptions import TokenVerificationError

if TYPE_CHECKING:
    from launcher_auth.security.auth.jwks_cache import Jwks

ALLOWED_ALGORITHMS: tuple[str, ...] = ("EdDSA", "RS256", "ES256")


@dataclass
class VerifiedOfflineToken:
    """Result of successful offline token verification.

    Attributes:
        subject: The 'sub' claim (account uuid), if present.
        issuer: The 'iss' claim.
        key_id: kid of the key that verified the signature.
        expires_at: When the token expires (from 'exp').
        claims: All token claims.
    """

    subject: str | None
    issuer: str
    key_id: str | None
    expires_at: datetime
    claims: dict[str, Any] = field(default_factory=dict)


def _select_key(jwks: "Jwks", kid: str | None) -> jwt.PyJWK:
    try:
        key_set = jwt.PyJWKSet.from_dict(jwks.model_dump(mode="json", exclude_none=True))
    except jwt.PyJWTError as e:
        raise TokenVerificationError(f"Issuer key set has no usable keys: {e}") from e

    if kid is not None:
        for key in key_set.keys:
            if key.key_id == kid:
                return key
        raise TokenVerificationError(f"No signing key with kid '{kid}' in the issuer key set")

    if len(key_set.keys) == 1:
        return key_set.keys[0]
    raise TokenVerificationError("Offline token has no kid and the issuer key set has several keys")


def verify_offline_token(token: str, jwks: "Jwks", *, issuer: str) -> VerifiedOfflineToken:
    """Verify an offline token against an issuer's key set.

    Args:
        token: Offline token (compact JWS).
        jwks: Key set of the issuer.
        issuer: Expected 'iss' claim.

    Returns:
        VerifiedOfflineToken with the decoded claims.

    Raises:
        TokenVerificationError: If the token is malformed, signed with an
            unknown key or disallowed algorithm, expired, or from another issuer.
    """
    try:
        header = jwt.get_unverified_header(token)
    except jwt.PyJWTError as e:
        raise TokenVerificationError(f"Offline token is not a valid JWT: {e}") from e

    algorithm = header.get("alg")
    if algorithm not in ALLOWED_ALGORITHMS:
        raise TokenVerificationError(f"Offline token uses unsupported algorithm '{algorithm}'")

    kid = header.get("kid")
    signing_key = _select_key(jwks, kid if isinstance(kid, str) else None)

    try:
        claims = jwt.decode(
            token,
            signing_key.key,
            algorithms=[algorithm],
            issuer=issuer,
            options={
                "require": ["exp", "iss"],
                "verify_exp": True,
                "verify_iss": True,
                "verify_aud": False,
            },
        )
    except jwt.ExpiredSignatureError as e:
        raise TokenVerificationError("Offline token has expired") from e
    except jwt.InvalidIssuerError as e:
        raise TokenVerificationError(f"Offline token issuer mismatch: expected {issuer}") from e
    except jwt.InvalidSignatureError as e:
        raise TokenVerificationError("Offline token signature is invalid") from e
    except jwt.PyJWTError as e:
        raise TokenVerificationError(f"Offline token verification failed: {e}") from e

    subject = claims.get("sub")
    return VerifiedOfflineToken(
        subject=subject if isinstance(subject, str) else None,
        issuer=claims["iss"],
        key_id=signing_key.key_id,
        expires_at=datetime.fromtimestamp(claims["exp"], tz=timezone.utc),
        claims=claims,
    )
