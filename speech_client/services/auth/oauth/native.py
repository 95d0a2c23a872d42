"""
Native Google Sign-In strategies (iOS, Android).

Both drive the platform Google Sign-In SDK. The SDK itself lives outside
this package and is reached only through the GoogleSignInSdk protocol.
"""
from abc import abstractmethod
from typing import Any, Dict, Mapping, Optional, Protocol

import structlog

from speech_client.core.errors import GOOGLE_SDK_ERROR_TABLE, ErrorMessages, sdk_error_code
from speech_client.core.logging import log_error_details
from speech_client.core.platform import Platform
from speech_client.domain.schemas.auth import AuthErrorKind, OAuthProviderName
from .base import OAuthStrategy, ProviderOutcome

logger = structlog.get_logger(__name__)


class GoogleSignInSdk(Protocol):
    """Subset of the native Google Sign-In SDK used by the client.

    Failures are raised as exceptions carrying a ``code`` attribute
    (``SIGN_IN_CANCELLED``, ``IN_PROGRESS``, ``PLAY_SERVICES_NOT_AVAILABLE``).
    """

    def configure(self, **options: Any) -> None:
        ...

    async def has_play_services(self) -> bool:
        ...

    async def sign_in(self) -> Optional[Mapping[str, Any]]:
        """Returns ``{"data": {"user": {...}, ...}}`` or None."""
        ...

    async def get_tokens(self) -> Optional[Mapping[str, Any]]:
        """Returns ``{"idToken": ..., "accessToken": ...}`` or None."""
        ...

    async def sign_out(self) -> None:
        ...


def _has_user(sign_in_result: Optional[Mapping[str, Any]]) -> bool:
    if not sign_in_result:
        return False
    data = sign_in_result.get("data")
    return bool(data) and bool(data.get("user"))


class NativeGoogleStrategy(OAuthStrategy):
    """Shared flow of the native Google strategies."""

    provider = OAuthProviderName.GOOGLE

    def __init__(self, sdk: Optional[GoogleSignInSdk], web_client_id: Optional[str]):
        self.sdk = sdk
        self.web_client_id = web_client_id

    @abstractmethod
    def missing_configuration(self) -> Optional[str]:
        """Message naming the missing settings, or None when configured."""
        pass

    @abstractmethod
    def sdk_options(self) -> Dict[str, Any]:
        pass

    async def preflight(self) -> None:
        """Platform checks run before the sign-in request."""
        return None

    async def sign_out(self) -> None:
        if self.sdk is not None:
            await self.sdk.sign_out()

    async def _quiet_sign_out(self) -> None:
        try:
            await self.sign_out()
        except Exception as e:
            logger.debug("google_sdk_sign_out_ignored", platform=self.platform.value, error=str(e))

    async def authenticate(self) -> ProviderOutcome:
        missing = self.missing_configuration()
        if missing:
            logger.warning("google_oauth_not_configured", platform=self.platform.value)
            return ProviderOutcome.unavailable(missing)
        if self.sdk is None:
            return ProviderOutcome.unavailable(
                f"Google Sign-In SDK not available on {self.platform.value}"
            )

        try:
            self.sdk.configure(**self.sdk_options())
            await self.preflight()

            # Forces the account chooser; a cached session must not resolve silently
            await self._quiet_sign_out()

            sign_in_result = await self.sdk.sign_in()
            if not _has_user(sign_in_result):
                await self._quiet_sign_out()
                logger.info("google_sign_in_cancelled", platform=self.platform.value)
                return ProviderOutcome.cancelled()

            tokens = await self.sdk.get_tokens()
            id_token = tokens.get("idToken") if tokens else None
            if not id_token:
                await self._quiet_sign_out()
                logger.info("google_id_token_missing", platform=self.platform.value)
                return ProviderOutcome.cancelled()

            logger.info("google_sign_in_succeeded", platform=self.platform.value)
            return ProviderOutcome.success(id_token)

        except Exception as e:
            return await self._map_error(e)

    async def _map_error(self, error: Exception) -> ProviderOutcome:
        code = sdk_error_code(error)
        mapped = GOOGLE_SDK_ERROR_TABLE.get(code) if code else None

        if mapped is None:
            logger.error(
                "google_sign_in_failed",
                **log_error_details(error, platform=self.platform.value, code=code),
            )
            message = getattr(error, "message", None) or str(error)
            return ProviderOutcome.failed(
                message or f"Failed to sign in with Google on {self.platform.value}"
            )

        kind, message = mapped
        if kind == AuthErrorKind.PROVIDER_CANCELLED:
            # Lets the user pick another account on the next attempt
            await self._quiet_sign_out()

        logger.info("google_sign_in_not_completed", platform=self.platform.value, code=code)
        return ProviderOutcome.from_kind(kind, message)


class IOSGoogleStrategy(NativeGoogleStrategy):
    """Google Sign-In on iOS."""

    platform = Platform.IOS

    def __init__(
        self,
        sdk: Optional[GoogleSignInSdk],
        web_client_id: Optional[str],
        ios_client_id: Optional[str],
    ):
        super().__init__(sdk, web_client_id)
        self.ios_client_id = ios_client_id

    def missing_configuration(self) -> Optional[str]:
        if not self.ios_client_id or not self.web_client_id:
            return (
                "Google OAuth not configured for iOS. "
                "Please set GOOGLE_CLIENT_ID_IOS and GOOGLE_CLIENT_ID_WEB"
            )
        return None

    def sdk_options(self) -> Dict[str, Any]:
        return {
            "iosClientId": self.ios_client_id,
            "webClientId": self.web_client_id,
            "offlineAccess": True,
            "forceCodeForRefreshToken": True,
        }


class AndroidGoogleStrategy(NativeGoogleStrategy):
    """Google Sign-In on Android."""

    platform = Platform.ANDROID

    def missing_configuration(self) -> Optional[str]:
        if not self.web_client_id:
            return "Google OAuth not configured for Android. Please set GOOGLE_CLIENT_ID_WEB"
        return None

    def sdk_options(self) -> Dict[str, Any]:
        # The web client id is what makes the SDK issue a backend-verifiable ID token
        return {
            "webClientId": self.web_client_id,
            "offlineAccess": True,
            "forceCodeForRefreshToken": True,
        }

    async def preflight(self) -> None:
        if not await self.sdk.has_play_services():
            raise PlayServicesUnavailable()


class PlayServicesUnavailable(Exception):
    """Raised when the SDK reports Play Services missing without raising itself."""

    code = "PLAY_SERVICES_NOT_AVAILABLE"

    def __init__(self):
        super().__init__(ErrorMessages.PLAY_SERVICES_NOT_AVAILABLE)
