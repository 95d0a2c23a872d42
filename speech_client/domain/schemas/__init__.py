"""
Domain schemas for the speech client.
"""

from .auth import *
from .user import *

__all__ = [
    # Auth schemas
    "AppErrorResponse",
    "AuthErrorKind",
    "AuthResponse",
    "ExchangeResult",
    "OAuthProviderName",
    "OAuthSignInRequest",
    "RefreshedTokens",
    "SignInResult",
    "SignOutResult",
    "TokenPair",

    # User schemas
    "UpdateUserRequest",
    "User",
]
