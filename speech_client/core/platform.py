"""
Platform credential policies.

A CredentialPolicy decides how first-party session tokens travel between the
client and the backend. It is selected once at startup from the runtime
platform and injected into every component that touches credentials:

- HeaderCredentials (iOS, Android): the client stores the token pair and
  sends it in request headers.
- CookieCredentials (web): the backend keeps the tokens in an httpOnly
  cookie the client never sees.
"""
from abc import ABC, abstractmethod
from enum import Enum
from typing import TYPE_CHECKING, Dict

import aiohttp
from aiohttp.abc import AbstractCookieJar
import structlog

from speech_client.domain.schemas.auth import RefreshedTokens, TokenPair

if TYPE_CHECKING:
    from speech_client.services.session.token_store import SecureTokenStore

logger = structlog.get_logger(__name__)


class Platform(str, Enum):
    """Client runtime platforms."""
    IOS = "ios"
    ANDROID = "android"
    WEB = "web"

    @property
    def is_native(self) -> bool:
        return self in (Platform.IOS, Platform.ANDROID)


class AuthHeaders:
    """Header names exchanged with the backend."""
    AUTHORIZATION = "Authorization"
    REFRESH_TOKEN = "x-refresh-token"
    LANGUAGE = "x-language"
    CLIENT_TYPE = "x-client-type"

    # Response-only
    ACCESS_TOKEN = "x-access-token"
    ACCESS_TOKEN_EXPIRY = "x-access-token-expiry"
    REFRESH_TOKEN_EXPIRY = "x-refresh-token-expiry"


class CredentialPolicy(ABC):
    """Strategy describing where session credentials live."""

    name: str = "abstract"

    @property
    @abstractmethod
    def persists_tokens(self) -> bool:
        """True when the client itself owns the token pair."""
        pass

    @abstractmethod
    async def apply_request_headers(
        self,
        headers: Dict[str, str],
        token_store: "SecureTokenStore",
    ) -> None:
        """Attach credentials to an outgoing request."""
        pass

    @abstractmethod
    async def persist_refreshed_tokens(
        self,
        refreshed: RefreshedTokens,
        token_store: "SecureTokenStore",
    ) -> bool:
        """
        Handle tokens re-issued in response headers.

        Returns:
            True if the stored pair was updated
        """
        pass

    @abstractmethod
    async def can_attempt_profile_fetch(self, token_store: "SecureTokenStore") -> bool:
        """Whether a startup profile fetch may succeed with local knowledge."""
        pass

    @abstractmethod
    def create_cookie_jar(self) -> AbstractCookieJar:
        """Cookie jar for the HTTP session."""
        pass


class HeaderCredentials(CredentialPolicy):
    """Tokens travel in headers; the client persists them."""

    name = "header"

    @property
    def persists_tokens(self) -> bool:
        return True

    async def apply_request_headers(
        self,
        headers: Dict[str, str],
        token_store: "SecureTokenStore",
    ) -> None:
        access_token = await token_store.get_access()
        refresh_token = await token_store.get_refresh()

        # Missing tokens are tolerated: the call goes out unauthenticated
        if access_token:
            headers[AuthHeaders.AUTHORIZATION] = f"Bearer {access_token}"
        if refresh_token:
            headers[AuthHeaders.REFRESH_TOKEN] = refresh_token

    async def persist_refreshed_tokens(
        self,
        refreshed: RefreshedTokens,
        token_store: "SecureTokenStore",
    ) -> bool:
        if refreshed.is_empty:
            return False

        current = await token_store.get_all()

        if refreshed.access_token:
            access_token = refreshed.access_token
            access_expiry = refreshed.access_token_expiry
        else:
            access_token = current.access_token if current else None
            access_expiry = current.access_token_expiry if current else None

        if refreshed.refresh_token:
            refresh_token = refreshed.refresh_token
            refresh_expiry = refreshed.refresh_token_expiry
        else:
            refresh_token = current.refresh_token if current else None
            refresh_expiry = current.refresh_token_expiry if current else None

        if not access_token or not refresh_token:
            logger.warning(
                "refreshed_tokens_incomplete",
                has_access_token=bool(access_token),
                has_refresh_token=bool(refresh_token),
            )
            return False

        await token_store.save(
            TokenPair(
                access_token=access_token,
                refresh_token=refresh_token,
                access_token_expiry=access_expiry,
                refresh_token_expiry=refresh_expiry,
            )
        )
        logger.info(
            "tokens_refreshed_from_headers",
            access_rotated=bool(refreshed.access_token),
            refresh_rotated=bool(refreshed.refresh_token),
        )
        return True

    async def can_attempt_profile_fetch(self, token_store: "SecureTokenStore") -> bool:
        return await token_store.has_valid()

    def create_cookie_jar(self) -> AbstractCookieJar:
        return aiohttp.DummyCookieJar()


class CookieCredentials(CredentialPolicy):
    """Tokens travel in a server-managed httpOnly cookie."""

    name = "cookie"
    client_type = "web"

    @property
    def persists_tokens(self) -> bool:
        return False

    async def apply_request_headers(
        self,
        headers: Dict[str, str],
        token_store: "SecureTokenStore",
    ) -> None:
        headers[AuthHeaders.CLIENT_TYPE] = self.client_type

    async def persist_refreshed_tokens(
        self,
        refreshed: RefreshedTokens,
        token_store: "SecureTokenStore",
    ) -> bool:
        # Cookie rotation already happened in the transport
        return False

    async def can_attempt_profile_fetch(self, token_store: "SecureTokenStore") -> bool:
        # The cookie is invisible but may be valid
        return True

    def create_cookie_jar(self) -> AbstractCookieJar:
        # unsafe: keep cookies from IP-addressed hosts such as 10.0.2.2 or a LAN backend
        return aiohttp.CookieJar(unsafe=True)


def credential_policy_for(platform: Platform | str) -> CredentialPolicy:
    """
    Select the credential policy for a runtime platform.

    Args:
        platform: Platform enum member or its string value

    Returns:
        Credential policy instance

    Raises:
        ValueError: If the platform is unknown
    """
    platform = Platform(platform)
    if platform.is_native:
        return HeaderCredentials()
    return CookieCredentials()
