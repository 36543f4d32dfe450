"""Tests for ProfileResolver.

Tests cover:
- Cached profile served without network calls
- Launcher-data request shape and primary profile selection
- Network result written back to the credential file
- Error mapping (login required, rejection, malformed body, no valid profile)
"""

from __future__ import annotations

import json
import logging
from collections.abc import Callable
from pathlib import Path
from typing import Any
from unittest.mock import MagicMock

import httpx
import pytest

from launcher_auth.config import PremiumClientConfig
from launcher_auth.exceptions import (
    LoginRequiredError,
    MalformedResponseError,
    NoValidProfileError,
    ProviderRejectedError,
)
from launcher_auth.security.auth.credential_store import PremiumCredentialStore
from launcher_auth.security.auth.profile_resolver import ProfileResolver, official_os_arch
from launcher_auth.security.auth.token_refresh import TokenRefreshEngine
from launcher_auth.telemetry.debug.http_logger import HttpDebugLogger

BASE_UUID = "11111111-2222-4333-8444-555555555555"
EXTRA_UUID = "66666666-7777-4888-9999-aaaaaaaaaaaa"


@pytest.fixture
def resolver(
    credential_path: Path,
    premium_config: PremiumClientConfig,
    mock_client: MagicMock,
    clock: Callable[[], float],
) -> ProfileResolver:
    store = PremiumCredentialStore(credential_path)
    engine = TokenRefreshEngine(store, premium_config, http_client=mock_client, clock=clock)
    return ProfileResolver(store, engine, premium_config, http_client=mock_client)


@pytest.fixture
def token_only_credentials(write_credentials: Callable[[dict[str, Any]], Path], now: int) -> Path:
    """Valid access token, no cached profile."""
    return write_credentials({"token": {"access_token": "access-valid", "expires_at": now + 3600}})


def _launcher_data(*profiles: dict[str, Any]) -> httpx.Response:
    return httpx.Response(200, json={"profiles": list(profiles), "owner": "ignored"})


class TestCachedProfile:
    """Tests for the cached-profile path."""

    def test_cached_profile_returned_without_request(
        self, resolver: ProfileResolver, mock_client: MagicMock, valid_credentials: Path, profile_uuid: str
    ) -> None:
        """Given a cached profile, it is returned without any network call."""
        # Act
        profile = resolver.resolve_primary_profile()

        # Assert
        assert profile.username == "Player"
        assert profile.uuid == profile_uuid
        mock_client.request.assert_not_called()

    def test_force_network_ignores_cache(
        self, resolver: ProfileResolver, mock_client: MagicMock, valid_credentials: Path
    ) -> None:
        """Given force_network, launcher data is fetched even with a cached profile."""
        # Arrange
        mock_client.request.return_value = _launcher_data(
            {"username": "Fresh", "uuid": BASE_UUID, "entitlements": ["game.base"]}
        )

        # Act
        profile = resolver.resolve_primary_profile(force_network=True)

        # Assert
        assert profile.username == "Fresh"
        mock_client.request.assert_called_once()


class TestLauncherData:
    """Tests for fetching and selecting the primary profile."""

    def test_request_uses_official_headers_and_platform_params(
        self,
        resolver: ProfileResolver,
        mock_client: MagicMock,
        token_only_credentials: Path,
        premium_config: PremiumClientConfig,
    ) -> None:
        """Given a fetch, GETs launcher data with bearer auth, launcher headers and os/arch."""
        # Arrange
        mock_client.request.return_value = _launcher_data({"username": "Player", "uuid": BASE_UUID})

        # Act
        resolver.resolve_primary_profile()

        # Assert
        args, kwargs = mock_client.request.call_args
        assert args == ("GET", "https://account-data.test/my-account/get-launcher-data")
        os_name, arch = official_os_arch()
        assert kwargs["params"] == {"arch": arch, "os": os_name}
        headers = kwargs["headers"]
        assert headers["Authorization"] == "Bearer access-valid"
        assert headers["User-Agent"] == premium_config.launcher_user_agent
        assert headers["X-Hytale-Launcher-Branch"] == "release"
        assert headers["X-Hytale-Launcher-Version"] == "2026.02.12-54e579b"

    def test_base_game_profile_preferred(
        self, resolver: ProfileResolver, mock_client: MagicMock, token_only_credentials: Path
    ) -> None:
        """Given several profiles, the one entitled to game.base wins."""
        # Arrange
        mock_client.request.return_value = _launcher_data(
            {"username": "Alt", "uuid": EXTRA_UUID, "entitlements": ["cosmetics"]},
            {"username": "Main", "uuid": BASE_UUID, "entitlements": ["cosmetics", "game.base"]},
        )

        # Act
        profile = resolver.resolve_primary_profile()

        # Assert
        assert profile.username == "Main"
        assert profile.uuid == BASE_UUID

    def test_first_profile_used_without_base_entitlement(
        self, resolver: ProfileResolver, mock_client: MagicMock, token_only_credentials: Path
    ) -> None:
        """Given no game.base entitlement, the first profile is chosen."""
        # Arrange
        mock_client.request.return_value = _launcher_data(
            {"username": "First", "uuid": BASE_UUID},
            {"username": "Second", "uuid": EXTRA_UUID},
        )

        # Act
        profile = resolver.resolve_primary_profile()

        # Assert
        assert profile.username == "First"

    def test_network_profile_is_cached(
        self,
        resolver: ProfileResolver,
        mock_client: MagicMock,
        token_only_credentials: Path,
    ) -> None:
        """Given a fetched profile, it is written to the credential file."""
        # Arrange
        mock_client.request.return_value = _launcher_data(
            {"username": "Player", "uuid": BASE_UUID.upper(), "entitlements": ["game.base"]}
        )

        # Act
        resolver.resolve_primary_profile()

        # Assert
        saved = json.loads(token_only_credentials.read_text(encoding="utf-8"))
        assert saved["profile"] == {"username": "Player", "uuid": BASE_UUID}
        assert saved["token"]["access_token"] == "access-valid"

    @pytest.mark.parametrize(
        "profiles",
        [
            [],
            [{"username": "", "uuid": BASE_UUID}],
            [{"username": "Player", "uuid": "not-a-uuid"}],
            [{"username": "Player", "uuid": "not-a-uuid", "entitlements": ["game.base"]}],
        ],
    )
    def test_no_valid_profile_raises(
        self,
        resolver: ProfileResolver,
        mock_client: MagicMock,
        token_only_credentials: Path,
        profiles: list[dict[str, Any]],
    ) -> None:
        """Given no usable username/uuid on the chosen profile, raises NoValidProfileError."""
        # Arrange
        mock_client.request.return_value = _launcher_data(*profiles)

        # Act & Assert
        with pytest.raises(NoValidProfileError, match="no valid profile"):
            resolver.resolve_primary_profile()


class TestErrors:
    """Tests for error mapping."""

    def test_no_access_token_requires_login(
        self, resolver: ProfileResolver, mock_client: MagicMock
    ) -> None:
        """Given no credentials, raises LoginRequiredError without a request."""
        # Act & Assert
        with pytest.raises(LoginRequiredError, match="missing access token"):
            resolver.resolve_primary_profile()
        mock_client.request.assert_not_called()

    def test_non_2xx_raises_rejected_with_status_and_body(
        self, resolver: ProfileResolver, mock_client: MagicMock, token_only_credentials: Path
    ) -> None:
        """Given a 403, raises ProviderRejectedError naming the status and body."""
        # Arrange
        mock_client.request.return_value = httpx.Response(403, text="forbidden for this client")

        # Act & Assert
        with pytest.raises(ProviderRejectedError) as exc_info:
            resolver.resolve_primary_profile()
        assert exc_info.value.status_code == 403
        assert str(exc_info.value) == "get-launcher-data failed (HTTP 403): forbidden for this client"

    def test_rejection_is_logged_even_without_debug(
        self,
        credential_path: Path,
        premium_config: PremiumClientConfig,
        mock_client: MagicMock,
        clock: Callable[[], float],
        token_only_credentials: Path,
    ) -> None:
        """Given a rejection, a warning entry is logged with Authorization redacted."""
        # Arrange
        logger = MagicMock()
        store = PremiumCredentialStore(credential_path)
        engine = TokenRefreshEngine(store, premium_config, http_client=mock_client, clock=clock)
        resolver = ProfileResolver(
            store, engine, premium_config, http_client=mock_client, http_log=HttpDebugLogger(logger=logger)
        )
        mock_client.request.return_value = httpx.Response(500, text="boom")

        # Act
        with pytest.raises(ProviderRejectedError):
            resolver.resolve_primary_profile()

        # Assert
        level, entry = logger.log.call_args[0]
        assert level == logging.WARNING
        assert entry["event"] == "launcher_data_rejected"
        assert entry["request"]["headers"]["Authorization"] == "<redacted>"

    def test_non_json_body_raises_malformed(
        self, resolver: ProfileResolver, mock_client: MagicMock, token_only_credentials: Path
    ) -> None:
        """Given a 200 that is not JSON, raises MalformedResponseError."""
        # Arrange
        mock_client.request.return_value = httpx.Response(200, text="<html></html>")

        # Act & Assert
        with pytest.raises(MalformedResponseError, match="non-JSON"):
            resolver.resolve_primary_profile()
