"""
Request/response interceptor pipeline.

Every call made through ApiClient passes through an ordered list of
interceptors. Request interceptors decorate outgoing headers; response
interceptors observe successful responses; error interceptors observe
failures before they are raised to the caller. Interceptors never retry.
"""
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence

import structlog

from speech_client.core.errors import SESSION_TERMINATING_CODES
from speech_client.core.exceptions import AuthenticationError, SpeechClientException, TokenStoreError
from speech_client.core.platform import AuthHeaders, CredentialPolicy
from speech_client.domain.schemas.auth import RefreshedTokens
from speech_client.services.session.invalidation import SessionInvalidator
from speech_client.services.session.token_store import SecureTokenStore

logger = structlog.get_logger(__name__)


@dataclass
class RequestContext:
    """Outgoing request as seen by request interceptors."""
    method: str
    path: str
    headers: Dict[str, str] = field(default_factory=dict)
    params: Optional[Dict[str, Any]] = None
    json: Any = None
    # Persist tokens re-issued in response headers
    refresh_tokens: bool = True
    # Let a terminating 401 invalidate the session
    expire_session: bool = True


@dataclass
class ApiResponse:
    """Successful response as seen by response interceptors."""
    method: str
    path: str
    status: int
    headers: Mapping[str, str]
    data: Any = None
    request: Optional[RequestContext] = None


class Interceptor:
    """Base interceptor; every hook is a no-op by default."""

    async def on_request(self, request: RequestContext) -> None:
        pass

    async def on_response(self, response: ApiResponse) -> None:
        pass

    async def on_error(
        self,
        error: SpeechClientException,
        request: Optional[RequestContext] = None,
    ) -> None:
        pass


class InterceptorPipeline:
    """Ordered interceptor chain."""

    def __init__(self, interceptors: Optional[Sequence[Interceptor]] = None):
        self.interceptors: List[Interceptor] = list(interceptors or [])

    def add(self, interceptor: Interceptor) -> None:
        self.interceptors.append(interceptor)

    async def run_request(self, request: RequestContext) -> None:
        for interceptor in self.interceptors:
            await interceptor.on_request(request)

    async def run_response(self, response: ApiResponse) -> None:
        for interceptor in self.interceptors:
            await interceptor.on_response(response)

    async def run_error(
        self,
        error: SpeechClientException,
        request: Optional[RequestContext] = None,
    ) -> None:
        for interceptor in self.interceptors:
            await interceptor.on_error(error, request)


class LanguageHeaderInterceptor(Interceptor):
    """Attaches the user's language to every request."""

    def __init__(self, language_provider: Callable[[], str]):
        self.language_provider = language_provider

    async def on_request(self, request: RequestContext) -> None:
        request.headers[AuthHeaders.LANGUAGE] = self.language_provider()


class CredentialHeaderInterceptor(Interceptor):
    """Attaches credentials the way the platform policy prescribes."""

    def __init__(self, policy: CredentialPolicy, token_store: SecureTokenStore):
        self.policy = policy
        self.token_store = token_store

    async def on_request(self, request: RequestContext) -> None:
        await self.policy.apply_request_headers(request.headers, self.token_store)


def _parse_expiry_header(name: str, value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        logger.warning("token_expiry_header_invalid", header=name, value=value)
        return None


class TokenRefreshInterceptor(Interceptor):
    """
    Opportunistic refresh: persists tokens re-issued in response headers.

    No dedicated refresh call is ever made; cookie-credential platforms
    ignore the headers because the cookie already rotated.
    """

    def __init__(self, policy: CredentialPolicy, token_store: SecureTokenStore):
        self.policy = policy
        self.token_store = token_store

    async def on_response(self, response: ApiResponse) -> None:
        if response.request is not None and not response.request.refresh_tokens:
            return

        headers = response.headers
        refreshed = RefreshedTokens(
            access_token=headers.get(AuthHeaders.ACCESS_TOKEN) or None,
            refresh_token=headers.get(AuthHeaders.REFRESH_TOKEN) or None,
            access_token_expiry=_parse_expiry_header(
                AuthHeaders.ACCESS_TOKEN_EXPIRY, headers.get(AuthHeaders.ACCESS_TOKEN_EXPIRY)
            ),
            refresh_token_expiry=_parse_expiry_header(
                AuthHeaders.REFRESH_TOKEN_EXPIRY, headers.get(AuthHeaders.REFRESH_TOKEN_EXPIRY)
            ),
        )
        if refreshed.is_empty:
            return

        try:
            await self.policy.persist_refreshed_tokens(refreshed, self.token_store)
        except TokenStoreError as e:
            logger.error("token_refresh_persist_failed", path=response.path, error=str(e))


class SessionExpiryInterceptor(Interceptor):
    """
    Reacts to 401 responses carrying a session-terminating code.

    Any other 401 is left to the caller untouched.
    """

    def __init__(self, invalidator: SessionInvalidator):
        self.invalidator = invalidator

    async def on_error(
        self,
        error: SpeechClientException,
        request: Optional[RequestContext] = None,
    ) -> None:
        if not isinstance(error, AuthenticationError):
            return
        if request is not None and not request.expire_session:
            logger.info("session_expiry_ignored", code=error.code, path=error.path)
            return

        if error.code in SESSION_TERMINATING_CODES:
            await self.invalidator.invalidate(reason=error.code)
        else:
            logger.info("unrecognized_auth_error", code=error.code, path=error.path)


def build_auth_pipeline(
    policy: CredentialPolicy,
    token_store: SecureTokenStore,
    invalidator: SessionInvalidator,
    language_provider: Callable[[], str],
) -> InterceptorPipeline:
    """
    Assemble the standard pipeline used by every authenticated call.

    Args:
        policy: Platform credential policy
        token_store: Secure token store
        invalidator: Session invalidator
        language_provider: Returns the current language code

    Returns:
        Interceptor pipeline
    """
    return InterceptorPipeline([
        LanguageHeaderInterceptor(language_provider),
        CredentialHeaderInterceptor(policy, token_store),
        TokenRefreshInterceptor(policy, token_store),
        SessionExpiryInterceptor(invalidator),
    ])
