"""
Tests for the OAuth strategy selector.
"""
from unittest.mock import AsyncMock, Mock

import pytest

from speech_client.core.platform import Platform
from speech_client.domain.schemas.auth import AuthErrorKind, ExchangeResult, OAuthProviderName
from speech_client.services.auth.oauth import (
    AppleStrategy,
    IOSGoogleStrategy,
    OAuthStrategySelector,
    WebGoogleStrategy,
    build_strategies,
)
from tests.fixtures.session import make_user
from tests.mocks.google_sdk import MockGoogleSignInSdk, SdkError


@pytest.fixture
def exchange_client():
    client = Mock()
    client.exchange = AsyncMock(return_value=ExchangeResult.ok(make_user()))
    return client


@pytest.fixture
def sdk():
    return MockGoogleSignInSdk()


@pytest.fixture
def selector(make_settings, sdk, exchange_client):
    strategies = build_strategies(make_settings("ios"), Platform.IOS, google_sdk=sdk)
    return OAuthStrategySelector(Platform.IOS, strategies, exchange_client)


class TestBuildStrategies:
    """Test strategy construction per platform."""

    def test_ios(self, make_settings, sdk):
        strategies = build_strategies(make_settings("ios"), Platform.IOS, google_sdk=sdk)

        assert [type(s) for s in strategies] == [IOSGoogleStrategy, AppleStrategy]

    def test_web(self, make_settings, auth_prompt):
        """Test the web strategy uses the configured endpoint and redirect."""
        strategies = build_strategies(make_settings("web"), Platform.WEB, auth_prompt=auth_prompt)

        google = strategies[0]
        assert isinstance(google, WebGoogleStrategy)
        assert google.redirect_uri == "http://localhost:8081"
        assert google.authorization_endpoint == "https://accounts.google.com/o/oauth2/v2/auth"

    def test_selector_rejects_foreign_strategy(self, make_settings, auth_prompt, exchange_client):
        """Test strategies must match the runtime platform."""
        strategies = build_strategies(make_settings("web"), Platform.WEB, auth_prompt=auth_prompt)

        with pytest.raises(ValueError):
            OAuthStrategySelector(Platform.IOS, strategies, exchange_client)


class TestOAuthStrategySelector:
    """Test sign-in routing and normalization."""

    @pytest.mark.asyncio
    async def test_success_hands_token_to_exchange(self, selector, exchange_client):
        """Test a provider success is exchanged with the backend."""
        # Act
        result = await selector.sign_in("google")

        # Assert
        assert result.success is True
        assert result.user.id == "u1"
        exchange_client.exchange.assert_awaited_once_with(OAuthProviderName.GOOGLE, "google-id-token")

    @pytest.mark.asyncio
    async def test_provider_name_case_insensitive(self, selector, exchange_client):
        """Test enum members and upper-case names are accepted."""
        assert (await selector.sign_in(OAuthProviderName.GOOGLE)).success
        assert (await selector.sign_in("GOOGLE")).success
        assert exchange_client.exchange.await_count == 2

    @pytest.mark.asyncio
    async def test_cancel_not_exchanged(self, selector, sdk, exchange_client):
        """Test a cancelled attempt never reaches the backend."""
        sdk.sign_in_error = SdkError("SIGN_IN_CANCELLED")

        result = await selector.sign_in("google")

        assert result.success is False
        assert result.error == "Sign in cancelled"
        assert result.error_kind == AuthErrorKind.PROVIDER_CANCELLED
        exchange_client.exchange.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_exchange_failure_returned(self, selector, exchange_client):
        """Test exchange failures become the sign-in result."""
        exchange_client.exchange.return_value = ExchangeResult.fail(
            "Failed to get tokens from backend",
            AuthErrorKind.TOKEN_EXCHANGE_FAILED,
        )

        result = await selector.sign_in("google")

        assert result.success is False
        assert result.error == "Failed to get tokens from backend"
        assert result.error_kind == AuthErrorKind.TOKEN_EXCHANGE_FAILED

    @pytest.mark.asyncio
    async def test_apple_not_implemented(self, selector, exchange_client):
        """Test Apple reports it is not available yet."""
        result = await selector.sign_in("apple")

        assert result.success is False
        assert result.error == "Apple OAuth not implemented yet"
        assert result.error_kind == AuthErrorKind.PROVIDER_UNAVAILABLE
        exchange_client.exchange.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_unsupported_provider(self, selector):
        """Test unknown providers are rejected without raising."""
        result = await selector.sign_in("facebook")

        assert result.success is False
        assert result.error == "Unsupported OAuth provider"

    @pytest.mark.asyncio
    async def test_platform_hint_ignored(self, selector, sdk):
        """Test the runtime platform wins over a mismatching hint."""
        result = await selector.sign_in("google", platform_hint="web")

        assert result.success is True
        assert sdk.count("sign_in") == 1

    @pytest.mark.asyncio
    async def test_strategy_exception_normalized(self, exchange_client):
        """Test a strategy that raises still yields a failure result."""
        strategy = AppleStrategy(Platform.IOS)
        strategy.authenticate = AsyncMock(side_effect=RuntimeError("sdk crashed"))
        selector = OAuthStrategySelector(Platform.IOS, [strategy], exchange_client)

        result = await selector.sign_in("apple")

        assert result.success is False
        assert result.error == "sdk crashed"
        assert result.error_kind == AuthErrorKind.PROVIDER_ERROR
