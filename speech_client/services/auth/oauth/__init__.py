"""
Provider sign-in strategies.

Google is supported natively on iOS and Android through the Google Sign-In
SDK and on the web through the OAuth implicit flow. Apple is registered but
not yet available.
"""

from .apple import AppleStrategy
from .base import OAuthStrategy, ProviderOutcome, ProviderStatus
from .native import (
    AndroidGoogleStrategy,
    GoogleSignInSdk,
    IOSGoogleStrategy,
    NativeGoogleStrategy,
)
from .selector import OAuthStrategySelector, build_strategies
from .web import (
    AuthSessionPrompt,
    AuthSessionResult,
    WebGoogleStrategy,
    build_authorization_url,
)

__all__ = [
    # Base classes and types
    "OAuthStrategy",
    "ProviderOutcome",
    "ProviderStatus",

    # Strategies
    "AndroidGoogleStrategy",
    "AppleStrategy",
    "IOSGoogleStrategy",
    "NativeGoogleStrategy",
    "WebGoogleStrategy",

    # Collaborator contracts
    "AuthSessionPrompt",
    "AuthSessionResult",
    "GoogleSignInSdk",

    # Selection
    "OAuthStrategySelector",
    "build_authorization_url",
    "build_strategies",
]
