"""
Authentication facade used by the UI layer.
"""
from typing import Optional, Union

import structlog

from speech_client.core.errors import ErrorMessages
from speech_client.core.platform import Platform
from speech_client.domain.schemas.auth import OAuthProviderName, SignInResult, SignOutResult, TokenPair
from speech_client.services.auth.exchange import SessionExchangeClient
from speech_client.services.auth.oauth.selector import OAuthStrategySelector
from speech_client.services.session.state import SessionStore
from speech_client.services.session.token_store import SecureTokenStore

logger = structlog.get_logger(__name__)


class AuthService:
    """Sign-in, sign-out and credential queries in one place."""

    def __init__(
        self,
        selector: OAuthStrategySelector,
        exchange_client: SessionExchangeClient,
        token_store: SecureTokenStore,
        session_store: SessionStore,
    ):
        self.selector = selector
        self.exchange_client = exchange_client
        self.token_store = token_store
        self.session_store = session_store
        self.is_loading = False

    async def handle_oauth_sign_in(
        self,
        provider: Union[OAuthProviderName, str],
        platform_hint: Optional[Union[Platform, str]] = None,
    ) -> SignInResult:
        """Sign in with an OAuth provider."""
        self.is_loading = True
        try:
            return await self.selector.sign_in(provider, platform_hint)
        finally:
            self.is_loading = False

    async def sign_out(self) -> SignOutResult:
        """
        Sign out of the backend and the provider, then clear local state.

        Local state is cleared even when the teardown itself fails.
        """
        self.is_loading = True
        try:
            await self.exchange_client.end_session()
            return SignOutResult(success=True)
        except Exception as e:
            logger.error("sign_out_failed", error=str(e))
            await self.clear_auth()
            return SignOutResult(success=False, error=str(e) or ErrorMessages.SIGN_OUT_FAILED)
        finally:
            self.is_loading = False

    async def clear_auth(self) -> None:
        """Clear local credentials and the session without calling the backend."""
        await self.exchange_client.clear_local_session()

    async def is_authenticated(self) -> bool:
        """
        Whether usable tokens are stored locally.

        Always False on cookie-credential platforms, where tokens are not
        observable; use ``SessionStore.is_authenticated()`` there.
        """
        return await self.token_store.has_valid()

    async def get_current_tokens(self) -> Optional[TokenPair]:
        return await self.token_store.get_all()
