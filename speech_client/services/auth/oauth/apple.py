"""
Sign in with Apple.
"""
from speech_client.core.errors import ErrorMessages
from speech_client.core.platform import Platform
from speech_client.domain.schemas.auth import OAuthProviderName
from .base import OAuthStrategy, ProviderOutcome


class AppleStrategy(OAuthStrategy):
    """Placeholder until the backend accepts Apple identity tokens."""

    provider = OAuthProviderName.APPLE

    def __init__(self, platform: Platform):
        self.platform = platform

    async def authenticate(self) -> ProviderOutcome:
        return ProviderOutcome.unavailable(ErrorMessages.APPLE_NOT_IMPLEMENTED)
