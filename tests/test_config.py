"""Tests for configuration models and loading.

Tests cover:
- Defaults and environment variable precedence
- Issuer aliases and URL normalization
- Fallback timeout parsing
- Storage paths
- Loading from a JSON file
"""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from launcher_auth.config import AuthConfig, IssuerConfig, PremiumClientConfig, StoragePaths
from launcher_auth.constants import (
    COMMUNITY_ISSUER,
    DEFAULT_AUTH_TIMEOUT_MS,
    DEFAULT_AUTH_URL,
    OFFICIAL_ISSUER,
)
from launcher_auth.exceptions import ConfigurationError


class TestIssuerConfig:
    """Tests for IssuerConfig."""

    def test_trailing_slashes_stripped(self) -> None:
        """Given issuer URLs with trailing slashes, they are stored without them."""
        # Act
        issuers = IssuerConfig(community="https://community.test/", official=" https://official.test// ")

        # Assert
        assert issuers.community == "https://community.test"
        assert issuers.official == "https://official.test"

    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            ("community", "https://community.test"),
            ("OFFICIAL", "https://official.test"),
            ("https://other.test/", "https://other.test"),
            (None, None),
            ("  ", None),
        ],
    )
    def test_resolve_aliases(self, issuers: IssuerConfig, value: str | None, expected: str | None) -> None:
        """Given an alias, URL or nothing, resolve returns the issuer URL or None."""
        # Act & Assert
        assert issuers.resolve(value) == expected


class TestPremiumClientConfig:
    """Tests for PremiumClientConfig."""

    def test_launcher_version_derived_from_user_agent(self) -> None:
        """Given no explicit version, it is the part of the user agent after '/'."""
        # Act
        config = PremiumClientConfig(launcher_user_agent="hytale-launcher/1.2.3")

        # Assert
        assert config.effective_launcher_version == "1.2.3"

    def test_explicit_launcher_version_wins(self) -> None:
        """Given an explicit version, it overrides the user agent."""
        # Act
        config = PremiumClientConfig(launcher_user_agent="hytale-launcher/1.2.3", launcher_version="9.9")

        # Assert
        assert config.effective_launcher_version == "9.9"

    def test_user_agent_without_version(self) -> None:
        """Given a user agent with no '/', the version is empty."""
        # Act
        config = PremiumClientConfig(launcher_user_agent="custom-client")

        # Assert
        assert config.effective_launcher_version == ""


class TestFromEnv:
    """Tests for AuthConfig.from_env."""

    def test_defaults_with_empty_environment(self) -> None:
        """Given no variables, every setting has its default."""
        # Act
        config = AuthConfig.from_env({})

        # Assert
        assert config.issuers.community == COMMUNITY_ISSUER
        assert config.issuers.official == OFFICIAL_ISSUER
        assert config.fallback.url == DEFAULT_AUTH_URL
        assert config.fallback.timeout_ms == DEFAULT_AUTH_TIMEOUT_MS
        assert config.fallback.insecure is False
        assert config.premium.launcher_branch == "release"
        assert config.premium.oauth_launcher_version == "2026.02.06-b95ae53"
        assert config.logging.http_debug is False
        assert config.meta_dir is None

    def test_first_non_empty_variable_wins(self) -> None:
        """Given a blank primary variable, the alternate one is used."""
        # Act
        config = AuthConfig.from_env(
            {
                "BUTTER_SESSIONS_BASE": "  ",
                "VITE_BUTTER_SESSIONS_BASE": "https://sessions.example/",
                "VITE_AUTH_URL": "",
                "AUTH_URL": "https://auth.example/login",
            }
        )

        # Assert
        assert config.issuers.community == "https://sessions.example"
        assert config.fallback.url == "https://auth.example/login"

    def test_premium_header_overrides(self) -> None:
        """Given launcher variables, they fill both header sets in order of precedence."""
        # Act
        config = AuthConfig.from_env(
            {
                "HYTALE_LAUNCHER_USER_AGENT": "hytale-launcher/3.0",
                "HYTALE_OAUTH_LAUNCHER_BRANCH": "beta",
                "HYTALE_LAUNCHER_VERSION": "3.0-custom",
            }
        )

        # Assert
        premium = config.premium
        assert premium.launcher_user_agent == "hytale-launcher/3.0"
        assert premium.oauth_user_agent == "hytale-launcher/3.0"
        assert premium.launcher_branch == "beta"
        assert premium.oauth_launcher_branch == "beta"
        assert premium.effective_launcher_version == "3.0-custom"
        assert premium.oauth_launcher_version == "3.0-custom"

    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("1500", 1500),
            ("2500.9", 2500),
            ("abc", 5000),
            ("0", 5000),
            ("-10", 5000),
            ("nan", 5000),
            ("inf", 5000),
        ],
    )
    def test_fallback_timeout_parsing(self, raw: str, expected: int) -> None:
        """Given a timeout value, unusable ones fall back to 5000 ms."""
        # Act
        config = AuthConfig.from_env({"VITE_AUTH_TIMEOUT_MS": raw})

        # Assert
        assert config.fallback.timeout_ms == expected

    @pytest.mark.parametrize(
        ("env", "expected"),
        [
            ({"VITE_AUTH_INSECURE": "true"}, True),
            ({"VITE_AUTH_INSECURE": "1"}, True),
            ({"AUTH_INSECURE": "yes"}, True),
            ({"VITE_AUTH_INSECURE": "off", "AUTH_INSECURE": "1"}, False),
            ({"VITE_AUTH_INSECURE": "maybe"}, False),
        ],
    )
    def test_insecure_flag(self, env: dict[str, str], expected: bool) -> None:
        """Given boolean spellings, insecure mode is opt-in only."""
        # Act & Assert
        assert AuthConfig.from_env(env).fallback.insecure is expected

    def test_http_debug_and_log_dir(self, tmp_path: Path) -> None:
        """Given debug variables, logging settings are filled in."""
        # Act
        config = AuthConfig.from_env(
            {"PREMIUM_HTTP_DEBUG": "on", "LAUNCHER_AUTH_LOG_DIR": str(tmp_path)}
        )

        # Assert
        assert config.logging.http_debug is True
        assert config.logging.log_dir == str(tmp_path)

    def test_meta_dir_argument_overrides_env(self, tmp_path: Path) -> None:
        """Given both a meta_dir argument and LAUNCHER_META_DIR, the argument wins."""
        # Act
        config = AuthConfig.from_env({"LAUNCHER_META_DIR": "/elsewhere"}, meta_dir=tmp_path)

        # Assert
        assert config.meta_dir == str(tmp_path)


class TestStoragePaths:
    """Tests for persisted file locations."""

    def test_standard_names_in_meta_dir(self, auth_config: AuthConfig, tmp_path: Path) -> None:
        """Given a meta_dir, every file lives inside it under its standard name."""
        # Act
        paths = auth_config.storage_paths()

        # Assert
        assert paths.credential_path == tmp_path / "premium-auth.json"
        assert paths.offline_token_path == tmp_path / "offline-tokens.json"
        assert paths.jwks_path_by_issuer == {
            "https://community.test": tmp_path / "butter-jwks.json",
            "https://official.test": tmp_path / "official-jwks.json",
        }

    def test_explicit_paths_override_meta_dir(self, auth_config: AuthConfig, tmp_path: Path) -> None:
        """Given explicit paths, they are used instead of meta_dir."""
        # Arrange
        explicit = StoragePaths.in_directory(tmp_path / "other", auth_config.issuers)
        config = auth_config.model_copy(update={"paths": explicit})

        # Act & Assert
        assert config.storage_paths() is explicit


class TestLoadFromFile:
    """Tests for AuthConfig.load_from_file."""

    def test_valid_file(self, tmp_path: Path) -> None:
        """Given a valid JSON file, returns the configuration with defaults filled in."""
        # Arrange
        path = tmp_path / "launcher-auth.json"
        path.write_text(
            json.dumps({"fallback": {"url": "https://auth.example/login", "timeout_ms": 2000}}),
            encoding="utf-8",
        )

        # Act
        config = AuthConfig.load_from_file(path)

        # Assert
        assert config.fallback.url == "https://auth.example/login"
        assert config.fallback.timeout_ms == 2000
        assert config.issuers.community == COMMUNITY_ISSUER

    def test_missing_file(self, tmp_path: Path) -> None:
        """Given no file, raises ConfigurationError."""
        # Act & Assert
        with pytest.raises(ConfigurationError, match="Configuration file not found"):
            AuthConfig.load_from_file(tmp_path / "missing.json")

    def test_invalid_json(self, tmp_path: Path) -> None:
        """Given malformed JSON, raises ConfigurationError."""
        # Arrange
        path = tmp_path / "launcher-auth.json"
        path.write_text("{not json", encoding="utf-8")

        # Act & Assert
        with pytest.raises(ConfigurationError, match="Invalid JSON"):
            AuthConfig.load_from_file(path)

    def test_invalid_values(self, tmp_path: Path) -> None:
        """Given a non-positive timeout, raises ConfigurationError naming the field."""
        # Arrange
        path = tmp_path / "launcher-auth.json"
        path.write_text(json.dumps({"fallback": {"timeout_ms": 0}}), encoding="utf-8")

        # Act & Assert
        with pytest.raises(ConfigurationError, match="fallback.timeout_ms"):
            AuthConfig.load_from_file(path)
