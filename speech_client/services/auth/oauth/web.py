"""
Google sign-in on the web via the OAuth implicit flow.

The flow runs entirely in the browser, so there is no client secret and no
PKCE: the authorization endpoint returns the ID token directly in the
redirect. The browser prompt is reached through the AuthSessionPrompt
protocol.
"""
import secrets
from typing import Dict, Optional, Protocol
from urllib.parse import urlencode

import structlog
from pydantic import BaseModel, Field

from speech_client.core.errors import ErrorMessages
from speech_client.core.platform import Platform
from speech_client.domain.schemas.auth import OAuthProviderName
from .base import OAuthStrategy, ProviderOutcome

logger = structlog.get_logger(__name__)

GOOGLE_SCOPES = ("openid", "profile", "email")


class AuthSessionResult(BaseModel):
    """Result reported by the browser auth prompt."""
    type: str  # success | cancel | dismiss | error | locked | ...
    params: Dict[str, str] = Field(default_factory=dict)
    error: Optional[str] = None


class AuthSessionPrompt(Protocol):
    """Opens the authorization URL and waits for the redirect."""

    async def prompt(self, authorization_url: str, redirect_uri: str) -> AuthSessionResult:
        ...


def generate_nonce() -> str:
    """Random nonce binding the ID token to this request."""
    return secrets.token_urlsafe(16)


def build_authorization_url(
    endpoint: str,
    client_id: str,
    redirect_uri: str,
    nonce: str,
) -> str:
    """
    Build the implicit-flow authorization URL.

    Args:
        endpoint: Provider authorization endpoint
        client_id: Web OAuth client id
        redirect_uri: Redirect URI registered for the web client
        nonce: Request nonce

    Returns:
        Authorization URL
    """
    params = {
        "client_id": client_id,
        "redirect_uri": redirect_uri,
        "response_type": "id_token",
        "scope": " ".join(GOOGLE_SCOPES),
        # Always show the account chooser so users can switch accounts
        "prompt": "select_account",
        "nonce": nonce,
    }
    return f"{endpoint}?{urlencode(params)}"


class WebGoogleStrategy(OAuthStrategy):
    """Google sign-in through the browser auth prompt."""

    provider = OAuthProviderName.GOOGLE
    platform = Platform.WEB

    def __init__(
        self,
        prompt: Optional[AuthSessionPrompt],
        web_client_id: Optional[str],
        redirect_uri: str,
        authorization_endpoint: str = "https://accounts.google.com/o/oauth2/v2/auth",
    ):
        self.prompt = prompt
        self.web_client_id = web_client_id
        self.redirect_uri = redirect_uri
        self.authorization_endpoint = authorization_endpoint

    async def authenticate(self) -> ProviderOutcome:
        if not self.web_client_id:
            logger.warning("google_oauth_not_configured", platform=self.platform.value)
            return ProviderOutcome.unavailable(
                "Google OAuth not configured for Web. Please set GOOGLE_CLIENT_ID_WEB"
            )
        if self.prompt is None:
            return ProviderOutcome.unavailable("Browser auth prompt not available")

        url = build_authorization_url(
            self.authorization_endpoint,
            self.web_client_id,
            self.redirect_uri,
            generate_nonce(),
        )

        try:
            result = await self.prompt.prompt(url, self.redirect_uri)
        except Exception as e:
            logger.error("google_web_prompt_failed", error=str(e))
            return ProviderOutcome.failed(str(e) or "Failed to sign in with Google on web")

        if result.type in ("cancel", "dismiss"):
            logger.info("google_sign_in_cancelled", platform=self.platform.value, result=result.type)
            return ProviderOutcome.cancelled()

        if result.type == "error":
            logger.warning("google_web_sign_in_error", error=result.error)
            return ProviderOutcome.failed(result.error or ErrorMessages.WEB_SIGN_IN_FAILED)

        if result.type == "success":
            id_token = result.params.get("id_token")
            if not id_token:
                logger.error("google_id_token_missing", platform=self.platform.value)
                return ProviderOutcome.failed(ErrorMessages.MISSING_ID_TOKEN)
            logger.info("google_sign_in_succeeded", platform=self.platform.value)
            return ProviderOutcome.success(id_token)

        logger.warning("google_web_unexpected_result", result=result.type)
        return ProviderOutcome.failed(ErrorMessages.UNEXPECTED_OAUTH_RESULT)
