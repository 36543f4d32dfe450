"""Shared fixtures for launcher-auth tests.

Provides issuer/client configuration pointing at test hosts, a mocked
httpx.Client, and a writer for premium credential files in tmp_path.
"""

from __future__ import annotations

import json
from collections.abc import Callable
from pathlib import Path
from typing import Any
from unittest.mock import MagicMock

import httpx
import pytest

from launcher_auth.config import AuthConfig, FallbackAuthConfig, IssuerConfig, PremiumClientConfig

# Fixed clock for token lifetime tests
NOW = 1_770_000_000

PROFILE_UUID = "0f2c8a4e-3b1d-4c5e-9a7b-6d8e9f0a1b2c"


@pytest.fixture
def issuers() -> IssuerConfig:
    """Community and first-party issuers on test hosts."""
    return IssuerConfig(community="https://community.test", official="https://official.test")


@pytest.fixture
def premium_config() -> PremiumClientConfig:
    """First-party client configuration on test hosts."""
    return PremiumClientConfig(
        token_url="https://oauth.test/oauth2/token",
        account_data_base="https://account-data.test",
        launcher_user_agent="hytale-launcher/2026.02.12-54e579b",
        launcher_branch="release",
        oauth_user_agent="hytale-launcher/2026.02.06-b95ae53",
        oauth_launcher_branch="release",
        oauth_launcher_version="2026.02.06-b95ae53",
    )


@pytest.fixture
def fallback_config() -> FallbackAuthConfig:
    """Fallback auth provider on a test host."""
    return FallbackAuthConfig(url="https://fallback.test/auth/login")


@pytest.fixture
def auth_config(
    tmp_path: Path,
    issuers: IssuerConfig,
    premium_config: PremiumClientConfig,
    fallback_config: FallbackAuthConfig,
) -> AuthConfig:
    """Complete configuration with every file under tmp_path."""
    return AuthConfig(
        issuers=issuers,
        premium=premium_config,
        fallback=fallback_config,
        meta_dir=str(tmp_path),
    )


@pytest.fixture
def mock_client() -> MagicMock:
    """httpx.Client double; set request.return_value / side_effect per test."""
    return MagicMock(spec=httpx.Client)


@pytest.fixture
def profile_uuid() -> str:
    """UUID of the cached premium profile."""
    return PROFILE_UUID


@pytest.fixture
def now() -> int:
    return NOW


@pytest.fixture
def clock() -> Callable[[], float]:
    """Clock frozen at NOW."""
    return lambda: float(NOW)


@pytest.fixture
def credential_path(tmp_path: Path) -> Path:
    return tmp_path / "premium-auth.json"


@pytest.fixture
def write_credentials(credential_path: Path) -> Callable[[dict[str, Any]], Path]:
    """Write a premium credential document and return its path."""

    def _write(document: dict[str, Any]) -> Path:
        credential_path.write_text(json.dumps(document), encoding="utf-8")
        return credential_path

    return _write


@pytest.fixture
def valid_credentials(write_credentials: Callable[[dict[str, Any]], Path]) -> Path:
    """Credential file with an access token valid for an hour and a cached profile."""
    return write_credentials(
        {
            "token": {
                "access_token": "access-valid",
                "refresh_token": "refresh-1",
                "expires_at": NOW + 3600,
            },
            "profile": {"username": "Player", "uuid": PROFILE_UUID},
            "obtainedAt": "2026-02-01T00:00:00.000Z",
        }
    )
