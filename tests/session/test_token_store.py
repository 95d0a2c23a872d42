"""
Tests for the secure token store.

Covers persistence on header-credential platforms, encryption at rest and
the no-op behaviour on cookie-credential platforms.
"""
from datetime import datetime, timezone

import pytest
from cryptography.fernet import Fernet

from speech_client.core.platform import HeaderCredentials
from speech_client.domain.schemas.auth import TokenPair
from speech_client.infrastructure.storage import AUTH_STORAGE_ID, KeyValueStore
from speech_client.services.session.token_store import (
    ACCESS_TOKEN_EXPIRY_KEY,
    ACCESS_TOKEN_KEY,
    SecureTokenStore,
)


class TestHeaderCredentialTokenStore:
    """Token store on iOS/Android."""

    @pytest.mark.asyncio
    async def test_save_and_read_pair(self, header_token_store):
        """Test a saved pair is returned by every getter."""
        # Arrange
        expiry = datetime(2030, 1, 1, tzinfo=timezone.utc)
        pair = TokenPair(access_token="a1", refresh_token="r1", access_token_expiry=expiry)

        # Act
        await header_token_store.save(pair)

        # Assert
        assert await header_token_store.get_access() == "a1"
        assert await header_token_store.get_refresh() == "r1"
        stored = await header_token_store.get_all()
        assert stored.access_token == "a1"
        assert stored.refresh_token == "r1"
        assert stored.access_token_expiry == expiry
        assert stored.refresh_token_expiry is None
        assert await header_token_store.has_valid() is True

    @pytest.mark.asyncio
    async def test_has_valid_false_after_clear(self, header_token_store):
        """Test clear removes the pair."""
        await header_token_store.save(TokenPair(access_token="a1", refresh_token="r1"))

        await header_token_store.clear()

        assert await header_token_store.has_valid() is False
        assert await header_token_store.get_all() is None
        assert await header_token_store.get_access() is None

    @pytest.mark.asyncio
    async def test_clear_is_idempotent(self, header_token_store):
        """Test clearing an empty store twice is safe."""
        await header_token_store.clear()
        await header_token_store.clear()

        assert await header_token_store.has_valid() is False

    @pytest.mark.asyncio
    async def test_partial_pair_is_not_valid(self, header_token_store):
        """Test a lone access token does not count as a session."""
        await header_token_store.storage.set(ACCESS_TOKEN_KEY, "a1")

        assert await header_token_store.get_access() == "a1"
        assert await header_token_store.get_all() is None
        assert await header_token_store.has_valid() is False

    @pytest.mark.asyncio
    async def test_save_without_expiry_removes_stale_expiry(self, header_token_store):
        """Test a new pair without expiry drops the previous one."""
        expiry = datetime(2030, 1, 1, tzinfo=timezone.utc)
        await header_token_store.save(
            TokenPair(access_token="a1", refresh_token="r1", access_token_expiry=expiry)
        )

        await header_token_store.save(TokenPair(access_token="a2", refresh_token="r2"))

        assert await header_token_store.storage.get_string(ACCESS_TOKEN_EXPIRY_KEY) is None
        assert (await header_token_store.get_all()).access_token == "a2"

    @pytest.mark.asyncio
    async def test_tokens_encrypted_at_rest(self, header_token_store):
        """Test the namespace file never contains tokens in clear text."""
        await header_token_store.save(
            TokenPair(access_token="secret-access", refresh_token="secret-refresh")
        )

        raw = header_token_store.storage.path.read_bytes()

        assert header_token_store.storage.is_encrypted
        assert b"secret-access" not in raw
        assert b"secret-refresh" not in raw
        assert header_token_store.storage.path.stat().st_mode & 0o777 == 0o600

    @pytest.mark.asyncio
    async def test_tokens_survive_restart(self, header_token_store, storage_dir, encryption_key):
        """Test a new store with the same key reads the persisted pair."""
        await header_token_store.save(TokenPair(access_token="a1", refresh_token="r1"))

        reopened = SecureTokenStore(
            HeaderCredentials(),
            KeyValueStore(AUTH_STORAGE_ID, storage_dir, encryption_key=encryption_key),
        )

        assert (await reopened.get_all()).access_token == "a1"

    @pytest.mark.asyncio
    async def test_rotated_key_reads_as_empty(self, header_token_store, storage_dir):
        """Test data written with another key is treated as no session."""
        await header_token_store.save(TokenPair(access_token="a1", refresh_token="r1"))

        reopened = SecureTokenStore(
            HeaderCredentials(),
            KeyValueStore(AUTH_STORAGE_ID, storage_dir, encryption_key=Fernet.generate_key()),
        )

        assert await reopened.has_valid() is False


class TestCookieCredentialTokenStore:
    """Token store on the web."""

    @pytest.mark.asyncio
    async def test_save_is_noop(self, cookie_token_store):
        """Test nothing is written when cookies carry the session."""
        await cookie_token_store.save(TokenPair(access_token="a1", refresh_token="r1"))

        assert not cookie_token_store.storage.path.exists()
        assert await cookie_token_store.get_access() is None
        assert await cookie_token_store.get_refresh() is None
        assert await cookie_token_store.get_all() is None

    @pytest.mark.asyncio
    async def test_has_valid_always_false(self, cookie_token_store):
        """Test tokens are never locally observable."""
        await cookie_token_store.storage.set(ACCESS_TOKEN_KEY, "a1")

        assert cookie_token_store.is_locally_observable is False
        assert await cookie_token_store.has_valid() is False

    @pytest.mark.asyncio
    async def test_clear_is_noop(self, cookie_token_store):
        """Test clear succeeds without touching storage."""
        await cookie_token_store.clear()

        assert not cookie_token_store.storage.path.exists()
