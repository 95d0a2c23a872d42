"""
End-to-end tests for the authentication facade.
"""
from unittest.mock import AsyncMock

import pytest

from speech_client.domain.schemas.auth import AuthErrorKind, TokenPair
from tests.fixtures.session import SessionTestData, make_user
from tests.mocks.google_sdk import SdkError


class TestAuthServiceSignIn:
    """Test provider sign-in through the whole stack."""

    @pytest.mark.asyncio
    async def test_mobile_sign_in(self, runtime_factory, backend, google_sdk):
        """Test iOS sign-in stores the pair and the user."""
        # Arrange
        runtime = await runtime_factory("ios")
        backend.queue("POST", "/auth/oauth", body=SessionTestData.auth_response())

        # Act
        result = await runtime.auth_service.handle_oauth_sign_in("google")

        # Assert
        assert result.success is True
        assert runtime.session_store.user.id == "u1"
        assert await runtime.auth_service.is_authenticated() is True
        tokens = await runtime.auth_service.get_current_tokens()
        assert (tokens.access_token, tokens.refresh_token) == ("a1", "r1")
        assert runtime.auth_service.is_loading is False

    @pytest.mark.asyncio
    async def test_web_sign_in(self, runtime_factory, backend, auth_prompt):
        """Test web sign-in relies on the session state, not tokens."""
        runtime = await runtime_factory("web")
        backend.queue(
            "POST",
            "/auth/oauth",
            body=SessionTestData.auth_response(user=SessionTestData.USER_U2, access_token="", refresh_token=""),
        )

        result = await runtime.auth_service.handle_oauth_sign_in("google")

        assert result.success is True
        assert runtime.session_store.is_authenticated() is True
        # Tokens live in a cookie the client cannot read
        assert await runtime.auth_service.is_authenticated() is False
        assert await runtime.auth_service.get_current_tokens() is None
        assert len(auth_prompt.prompts) == 1

    @pytest.mark.asyncio
    async def test_cancelled_sign_in(self, runtime_factory, backend, google_sdk):
        """Test a cancelled attempt leaves no trace."""
        runtime = await runtime_factory("android")
        google_sdk.sign_in_error = SdkError("SIGN_IN_CANCELLED")

        result = await runtime.auth_service.handle_oauth_sign_in("google")

        assert result.success is False
        assert result.error == "Sign in cancelled"
        assert backend.requests == []
        assert runtime.session_store.user is None

    @pytest.mark.asyncio
    async def test_unreadable_token_storage_returns_failure(self, runtime_factory, backend, google_sdk):
        """Test sign-in reports a storage failure instead of raising."""
        # Arrange
        runtime = await runtime_factory("ios")
        runtime.token_store.storage.path.mkdir(parents=True)

        # Act
        result = await runtime.auth_service.handle_oauth_sign_in("google")

        # Assert
        assert result.success is False
        assert result.error_kind == AuthErrorKind.TOKEN_EXCHANGE_FAILED
        assert google_sdk.count("sign_in") == 1
        assert backend.requests == []
        assert runtime.auth_service.is_loading is False


class TestAuthServiceSignOut:
    """Test sign-out and local clearing."""

    @pytest.mark.asyncio
    async def test_sign_out(self, runtime_factory, backend):
        """Test sign-out reports success and clears the session."""
        runtime = await runtime_factory("ios")
        await runtime.token_store.save(TokenPair(access_token="a1", refresh_token="r1"))
        runtime.session_store.set_user(make_user())
        backend.queue("POST", "/auth/signout", status=204)

        result = await runtime.auth_service.sign_out()

        assert result.success is True
        assert result.error is None
        assert runtime.session_store.user is None
        assert await runtime.auth_service.is_authenticated() is False

    @pytest.mark.asyncio
    async def test_sign_out_unexpected_failure_still_clears(self, runtime_factory):
        """Test an unexpected teardown failure still clears local state."""
        runtime = await runtime_factory("ios")
        await runtime.token_store.save(TokenPair(access_token="a1", refresh_token="r1"))
        runtime.session_store.set_user(make_user())
        runtime.exchange_client.end_session = AsyncMock(side_effect=RuntimeError("teardown bug"))

        result = await runtime.auth_service.sign_out()

        assert result.success is False
        assert result.error == "teardown bug"
        assert runtime.session_store.user is None
        assert await runtime.token_store.has_valid() is False

    @pytest.mark.asyncio
    async def test_clear_auth_is_local_only(self, runtime_factory, backend):
        """Test clear_auth never calls the backend."""
        runtime = await runtime_factory("ios")
        await runtime.token_store.save(TokenPair(access_token="a1", refresh_token="r1"))
        runtime.session_store.set_user(make_user())

        await runtime.auth_service.clear_auth()

        assert backend.requests == []
        assert runtime.session_store.user is None
        assert await runtime.auth_service.is_authenticated() is False
