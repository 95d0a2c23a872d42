"""
Session Exchange Client

Trades a provider identity token for a first-party session and tears the
session down again.
"""
import asyncio
from typing import Optional, Sequence

import structlog
from pydantic import ValidationError

from speech_client.core.errors import ErrorMessages
from speech_client.core.exceptions import ApiError, NetworkError, SpeechClientException, TokenStoreError
from speech_client.core.platform import CredentialPolicy
from speech_client.domain.schemas.auth import (
    AuthErrorKind,
    AuthResponse,
    ExchangeResult,
    OAuthProviderName,
    OAuthSignInRequest,
    TokenPair,
)
from speech_client.infrastructure.http import ApiClient
from speech_client.services.auth.oauth.base import OAuthStrategy
from speech_client.services.session.state import SessionStore
from speech_client.services.session.token_store import SecureTokenStore

logger = structlog.get_logger(__name__)

OAUTH_SIGN_IN_PATH = "/auth/oauth"
SIGN_OUT_PATH = "/auth/signout"


class SessionExchangeClient:
    """Backend side of sign-in and sign-out."""

    def __init__(
        self,
        api_client: ApiClient,
        policy: CredentialPolicy,
        token_store: SecureTokenStore,
        session_store: SessionStore,
        providers: Sequence[OAuthStrategy] = (),
    ):
        self.api_client = api_client
        self.policy = policy
        self.token_store = token_store
        self.session_store = session_store
        self.providers = list(providers)
        self._teardown: Optional[asyncio.Task] = None

    async def exchange(self, provider: OAuthProviderName, identity_token: str) -> ExchangeResult:
        """
        Verify an identity token with the backend and establish the session.

        On header-credential platforms the response must carry both tokens;
        a 2xx without them is a failure and nothing is persisted. On
        cookie-credential platforms the tokens arrive as cookies and the
        body carries empty strings.

        Args:
            provider: Identity provider that issued the token
            identity_token: Provider identity token

        Returns:
            Exchange result; never raises
        """
        if not identity_token:
            logger.error("exchange_missing_identity_token", provider=provider.value)
            return ExchangeResult.fail(ErrorMessages.MISSING_ID_TOKEN, AuthErrorKind.PROVIDER_ERROR)

        request = OAuthSignInRequest(provider=provider, id_token=identity_token)

        try:
            data = await self.api_client.post(
                OAUTH_SIGN_IN_PATH,
                json=request.model_dump(mode="json", by_alias=True),
                # The body tokens are validated and saved below
                refresh_tokens=False,
            )
            auth = AuthResponse.model_validate(data)
        except NetworkError as e:
            logger.warning("exchange_no_response", provider=provider.value, error=e.message)
            return ExchangeResult.fail(e.message, AuthErrorKind.NETWORK_ERROR)
        except ApiError as e:
            logger.warning(
                "exchange_rejected",
                provider=provider.value,
                status=e.status_code,
                code=e.code,
            )
            message = e.error.message if e.error and e.error.message else ErrorMessages.VERIFY_FAILED
            return ExchangeResult.fail(message, AuthErrorKind.TOKEN_EXCHANGE_FAILED)
        except ValidationError as e:
            logger.error("exchange_response_invalid", provider=provider.value, error=str(e))
            return ExchangeResult.fail(ErrorMessages.VERIFY_FAILED, AuthErrorKind.TOKEN_EXCHANGE_FAILED)
        except SpeechClientException as e:
            logger.error("exchange_failed", provider=provider.value, error=e.message)
            return ExchangeResult.fail(e.message, AuthErrorKind.TOKEN_EXCHANGE_FAILED)

        logger.info(
            "exchange_response_received",
            provider=provider.value,
            has_user=auth.user is not None,
            has_access_token=bool(auth.access_token),
            has_refresh_token=bool(auth.refresh_token),
            policy=self.policy.name,
        )

        if self.policy.persists_tokens:
            if not auth.access_token or not auth.refresh_token:
                logger.error("exchange_missing_backend_tokens", provider=provider.value)
                return ExchangeResult.fail(
                    ErrorMessages.MISSING_BACKEND_TOKENS,
                    AuthErrorKind.TOKEN_EXCHANGE_FAILED,
                )
            try:
                await self.token_store.save(
                    TokenPair(access_token=auth.access_token, refresh_token=auth.refresh_token)
                )
            except TokenStoreError as e:
                logger.error("exchange_token_persist_failed", error=e.message)
                return ExchangeResult.fail(e.message, AuthErrorKind.TOKEN_EXCHANGE_FAILED)

        if auth.user is not None:
            self.session_store.set_user(auth.user)

        return ExchangeResult.ok(auth.user)

    async def end_session(self) -> None:
        """
        Sign out everywhere and clear local state.

        Backend and provider sign-out are attempted independently and their
        failures only logged. Clearing the token store and the session state
        always happens, last. A call made while a teardown is running waits
        for that teardown instead of starting another.
        """
        if self._teardown is None or self._teardown.done():
            self._teardown = asyncio.ensure_future(self._end_session())
        else:
            logger.debug("end_session_joined_in_flight_teardown")
        await asyncio.shield(self._teardown)

    async def _end_session(self) -> None:
        try:
            try:
                await self.api_client.post(SIGN_OUT_PATH, expire_session=False)
            except SpeechClientException as e:
                logger.warning("backend_sign_out_failed", error=e.message, status=e.status_code)

            await self.sign_out_providers()
        finally:
            await self.clear_local_session()
            logger.info("session_ended")

    async def sign_out_providers(self) -> None:
        """Sign out of every configured provider; failures are logged."""
        for provider in self.providers:
            try:
                await provider.sign_out()
            except Exception as e:
                logger.warning("provider_sign_out_failed", strategy=repr(provider), error=str(e))

    async def clear_local_session(self) -> None:
        """Clear the token store and reset session state."""
        try:
            await self.token_store.clear()
        except TokenStoreError as e:
            logger.error("token_clear_failed", error=e.message)
        self.session_store.clear_user()
