"""
OAuth Strategy Selector

Picks the sign-in strategy for a provider on the running platform, runs it
and hands a successful identity token to the exchange client.
"""
from typing import TYPE_CHECKING, Dict, Iterable, List, Optional, Union

import structlog

from speech_client.core.config import Settings
from speech_client.core.errors import ErrorMessages
from speech_client.core.platform import Platform
from speech_client.domain.schemas.auth import AuthErrorKind, OAuthProviderName, SignInResult
from .apple import AppleStrategy
from .base import OAuthStrategy, ProviderOutcome
from .native import AndroidGoogleStrategy, GoogleSignInSdk, IOSGoogleStrategy
from .web import AuthSessionPrompt, WebGoogleStrategy

if TYPE_CHECKING:
    from speech_client.services.auth.exchange import SessionExchangeClient

logger = structlog.get_logger(__name__)


def build_strategies(
    settings: Settings,
    platform: Platform,
    google_sdk: Optional[GoogleSignInSdk] = None,
    auth_prompt: Optional[AuthSessionPrompt] = None,
) -> List[OAuthStrategy]:
    """
    Build the strategies available on a platform, one per provider.

    Args:
        settings: Client settings
        platform: Runtime platform
        google_sdk: Native Google Sign-In SDK (iOS, Android)
        auth_prompt: Browser auth prompt (web)

    Returns:
        Strategies
    """
    if platform == Platform.IOS:
        google: OAuthStrategy = IOSGoogleStrategy(
            google_sdk,
            web_client_id=settings.GOOGLE_CLIENT_ID_WEB,
            ios_client_id=settings.GOOGLE_CLIENT_ID_IOS,
        )
    elif platform == Platform.ANDROID:
        google = AndroidGoogleStrategy(google_sdk, web_client_id=settings.GOOGLE_CLIENT_ID_WEB)
    else:
        google = WebGoogleStrategy(
            auth_prompt,
            web_client_id=settings.GOOGLE_CLIENT_ID_WEB,
            redirect_uri=settings.oauth_redirect_uri,
            authorization_endpoint=settings.GOOGLE_AUTHORIZATION_ENDPOINT,
        )
    return [google, AppleStrategy(platform)]


class OAuthStrategySelector:
    """Entry point for provider sign-in."""

    def __init__(
        self,
        platform: Platform,
        strategies: Iterable[OAuthStrategy],
        exchange_client: "SessionExchangeClient",
    ):
        self.platform = platform
        self.exchange_client = exchange_client
        self._strategies: Dict[OAuthProviderName, OAuthStrategy] = {}
        for strategy in strategies:
            if strategy.platform != platform:
                raise ValueError(f"{strategy!r} does not run on {platform.value}")
            self._strategies[strategy.provider] = strategy

    def strategy_for(self, provider: Union[OAuthProviderName, str]) -> Optional[OAuthStrategy]:
        """Strategy registered for a provider, or None."""
        try:
            provider = OAuthProviderName(str(getattr(provider, "value", provider)).upper())
        except ValueError:
            return None
        return self._strategies.get(provider)

    async def sign_in(
        self,
        provider: Union[OAuthProviderName, str],
        platform_hint: Optional[Union[Platform, str]] = None,
    ) -> SignInResult:
        """
        Sign in with a provider.

        The strategy is chosen by the runtime platform; a hint naming another
        platform is logged and ignored.

        Args:
            provider: Provider name (``google``/``apple``, any case)
            platform_hint: Platform the caller believes it runs on

        Returns:
            Sign-in result; never raises
        """
        hint = str(getattr(platform_hint, "value", platform_hint)).lower() if platform_hint else None
        if hint and hint != self.platform.value:
            logger.warning(
                "oauth_platform_hint_ignored",
                hint=hint,
                platform=self.platform.value,
            )

        strategy = self.strategy_for(provider)
        if strategy is None:
            logger.error("oauth_provider_unsupported", provider=str(provider))
            return SignInResult(
                success=False,
                error=ErrorMessages.UNSUPPORTED_PROVIDER,
                error_kind=AuthErrorKind.PROVIDER_ERROR,
            )

        logger.info("oauth_sign_in_started", provider=strategy.provider.value, platform=self.platform.value)

        try:
            outcome = await strategy.authenticate()
        except Exception as e:
            logger.error("oauth_strategy_failed", strategy=repr(strategy), error=str(e))
            outcome = ProviderOutcome.failed(str(e) or ErrorMessages.get(AuthErrorKind.PROVIDER_ERROR))

        if not outcome.is_success:
            logger.info(
                "oauth_sign_in_not_completed",
                provider=strategy.provider.value,
                status=outcome.status.value,
            )
            return outcome.to_result()

        result = await self.exchange_client.exchange(strategy.provider, outcome.id_token)
        return SignInResult(
            success=result.success,
            user=result.user,
            error=result.error,
            error_kind=result.error_kind,
        )
