"""Tests for the premium credential file.

Tests cover:
- CredentialBundle expiry arithmetic and tolerance of wrongly-typed fields
- CachedProfile uuid normalization
- PremiumCredentialStore reads, update-only writes and field preservation
"""

from __future__ import annotations

import json
import threading
from collections.abc import Callable
from pathlib import Path
from typing import Any
from unittest.mock import patch

import pytest

from launcher_auth.security.auth.credential_store import (
    CachedProfile,
    CredentialBundle,
    CredentialFile,
    PremiumCredentialStore,
    iso_timestamp,
)

SKEW = 90


class TestCredentialBundle:
    """Tests for CredentialBundle."""

    def test_explicit_expiry_wins(self) -> None:
        """Given expires_at and obtained_at + expires_in, expires_at is used."""
        # Arrange
        bundle = CredentialBundle(access_token="a", expires_at=5000, obtained_at=1000, expires_in=60)

        # Act & Assert
        assert bundle.effective_expires_at == 5000

    def test_expiry_derived_from_obtained_at(self) -> None:
        """Given no expires_at, expiry is obtained_at + expires_in."""
        # Arrange
        bundle = CredentialBundle(access_token="a", obtained_at=1000, expires_in=60)

        # Act & Assert
        assert bundle.effective_expires_at == 1060

    def test_expiry_unknown_without_timestamps(self) -> None:
        """Given no timestamps, expiry is None and the token is not valid."""
        # Arrange
        bundle = CredentialBundle(access_token="a")

        # Act & Assert
        assert bundle.effective_expires_at is None
        assert bundle.is_access_valid(0, SKEW) is False

    @pytest.mark.parametrize(
        ("seconds_left", "expected"),
        [(91, True), (90, False), (89, False)],
    )
    def test_validity_respects_skew(self, seconds_left: int, expected: bool) -> None:
        """Given expiry relative to now, the token is valid only beyond the 90 s skew."""
        # Arrange
        now = 1_000_000
        bundle = CredentialBundle(access_token="a", expires_at=now + seconds_left)

        # Act & Assert
        assert bundle.is_access_valid(now, SKEW) is expected

    def test_blank_access_token_is_not_valid(self) -> None:
        """Given a whitespace access token, access is None and not valid."""
        # Arrange
        bundle = CredentialBundle(access_token="   ", expires_at=10_000)

        # Act & Assert
        assert bundle.access is None
        assert bundle.is_access_valid(0, SKEW) is False

    def test_wrongly_typed_fields_read_as_absent(self) -> None:
        """Given non-string tokens and non-numeric timestamps, they become None."""
        # Act
        bundle = CredentialBundle.model_validate(
            {"access_token": 42, "refresh_token": ["x"], "expires_at": "soon", "expires_in": True}
        )

        # Assert
        assert bundle.access_token is None
        assert bundle.refresh_token is None
        assert bundle.expires_at is None
        assert bundle.expires_in is None

    def test_fractional_timestamps_are_floored(self) -> None:
        """Given float timestamps, they are floored to whole seconds."""
        # Act
        bundle = CredentialBundle.model_validate({"expires_at": 1234.9})

        # Assert
        assert bundle.expires_at == 1234


class TestCachedProfile:
    """Tests for CachedProfile."""

    def test_uuid_normalized_to_lowercase_dashed(self) -> None:
        """Given an uppercase compact uuid, it is stored canonical."""
        # Act
        profile = CachedProfile(username=" Player ", uuid="0F2C8A4E3B1D4C5E9A7B6D8E9F0A1B2C")

        # Assert
        assert profile.username == "Player"
        assert profile.uuid == "0f2c8a4e-3b1d-4c5e-9a7b-6d8e9f0a1b2c"

    def test_invalid_profile_in_file_reads_as_none(self) -> None:
        """Given a cached profile with a bad uuid, the file loads without a profile."""
        # Act
        document = CredentialFile.model_validate({"profile": {"username": "Player", "uuid": "nope"}})

        # Assert
        assert document.profile is None


class TestIsoTimestamp:
    """Tests for iso_timestamp."""

    def test_formats_utc_with_milliseconds(self) -> None:
        """Given epoch seconds, returns ISO-8601 UTC with ms and Z suffix."""
        # Act & Assert
        assert iso_timestamp(0) == "1970-01-01T00:00:00.000Z"


class TestPremiumCredentialStore:
    """Tests for PremiumCredentialStore."""

    def test_missing_file_reads_as_nothing(self, credential_path: Path) -> None:
        """Given no file, bundle, access token and profile are None."""
        # Arrange
        store = PremiumCredentialStore(credential_path)

        # Act & Assert
        assert store.load_bundle() is None
        assert store.read_access_token() is None
        assert store.read_profile() is None

    def test_reads_trimmed_access_token_and_profile(
        self, write_credentials: Callable[[dict[str, Any]], Path], profile_uuid: str
    ) -> None:
        """Given a credential file, access token and profile are returned."""
        # Arrange
        path = write_credentials(
            {
                "token": {"access_token": "  abc  "},
                "profile": {"username": "Player", "uuid": profile_uuid.upper()},
            }
        )
        store = PremiumCredentialStore(path)

        # Act
        profile = store.read_profile()

        # Assert
        assert store.read_access_token() == "abc"
        assert profile is not None
        assert profile.uuid == profile_uuid

    def test_save_bundle_does_not_create_missing_file(self, credential_path: Path) -> None:
        """Given no credential file (logged out), save_bundle writes nothing."""
        # Arrange
        store = PremiumCredentialStore(credential_path)

        # Act
        saved = store.save_bundle(CredentialBundle(access_token="a"), now=0)

        # Assert
        assert saved is False
        assert not credential_path.exists()

    def test_save_bundle_preserves_unknown_fields_and_stamps_obtained_at(
        self, write_credentials: Callable[[dict[str, Any]], Path]
    ) -> None:
        """Given unknown top-level fields, save_bundle keeps them and sets obtainedAt."""
        # Arrange
        path = write_credentials(
            {
                "token": {"access_token": "old"},
                "accountEmail": "player@example.com",
                "settings": {"theme": "dark"},
            }
        )
        store = PremiumCredentialStore(path)

        # Act
        store.save_bundle(CredentialBundle(access_token="new", expires_at=100), now=0)

        # Assert
        document = json.loads(path.read_text(encoding="utf-8"))
        assert document["token"] == {"access_token": "new", "expires_at": 100}
        assert document["accountEmail"] == "player@example.com"
        assert document["settings"] == {"theme": "dark"}
        assert document["obtainedAt"] == "1970-01-01T00:00:00.000Z"

    def test_save_profile_updates_cached_profile(
        self, write_credentials: Callable[[dict[str, Any]], Path], profile_uuid: str
    ) -> None:
        """Given an existing file, save_profile replaces the cached profile only."""
        # Arrange
        path = write_credentials({"token": {"access_token": "abc"}})
        store = PremiumCredentialStore(path)

        # Act
        store.save_profile(CachedProfile(username="Player", uuid=profile_uuid))

        # Assert
        document = json.loads(path.read_text(encoding="utf-8"))
        assert document["profile"] == {"username": "Player", "uuid": profile_uuid}
        assert document["token"] == {"access_token": "abc"}

    def test_delete_removes_file(self, valid_credentials: Path) -> None:
        """Given a credential file, delete removes it."""
        # Arrange
        store = PremiumCredentialStore(valid_credentials)

        # Act
        removed = store.delete()

        # Assert
        assert removed is True
        assert not valid_credentials.exists()


class TestCredentialFileLocking:
    """Tests for serialized read-modify-write of one credential file."""

    def test_stores_on_one_path_share_a_lock(self, credential_path: Path) -> None:
        """Given two stores on the same file, they hold the same lock."""
        # Act & Assert
        assert PremiumCredentialStore(credential_path).lock is PremiumCredentialStore(credential_path).lock

    def test_profile_write_keeps_concurrently_rotated_token(
        self, write_credentials: Callable[[dict[str, Any]], Path], profile_uuid: str
    ) -> None:
        """Given a token rotation racing a profile write, neither update is lost."""
        # Arrange
        path = write_credentials({"token": {"access_token": "a-old", "refresh_token": "r-old"}})
        profile_store = PremiumCredentialStore(path)
        refresh_store = PremiumCredentialStore(path)
        rotated = CredentialBundle(access_token="a-new", refresh_token="r-new")
        rotation = threading.Thread(target=lambda: refresh_store.save_bundle(rotated, now=0))
        original_read = profile_store._cache.read

        def read_then_race() -> CredentialFile | None:
            document = original_read()
            rotation.start()
            # Blocked on the file lock until the profile write finishes
            rotation.join(timeout=0.2)
            return document

        # Act
        with patch.object(profile_store._cache, "read", side_effect=read_then_race):
            profile_store.save_profile(CachedProfile(username="Player", uuid=profile_uuid))
        rotation.join()

        # Assert
        document = json.loads(path.read_text(encoding="utf-8"))
        assert document["token"]["refresh_token"] == "r-new"
        assert document["token"]["access_token"] == "a-new"
        assert document["profile"] == {"username": "Player", "uuid": profile_uuid}
