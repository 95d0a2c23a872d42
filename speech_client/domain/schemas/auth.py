"""
Authentication schemas.
"""
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field

from .user import CamelModel, User


class OAuthProviderName(str, Enum):
    """Identity providers accepted by POST /auth/oauth."""
    GOOGLE = "GOOGLE"
    APPLE = "APPLE"


class AuthErrorKind(str, Enum):
    """Kinds of authentication failure reported to callers."""
    PROVIDER_CANCELLED = "provider_cancelled"
    PROVIDER_IN_PROGRESS = "provider_in_progress"
    PROVIDER_UNAVAILABLE = "provider_unavailable"
    PROVIDER_ERROR = "provider_error"
    TOKEN_EXCHANGE_FAILED = "token_exchange_failed"
    SESSION_EXPIRED = "session_expired"
    UNAUTHORIZED = "unauthorized"
    UNRECOGNIZED_AUTH_ERROR = "unrecognized_auth_error"
    NETWORK_ERROR = "network_error"
    BACKEND_ERROR = "backend_error"


class TokenPair(BaseModel):
    """First-party access and refresh token pair."""
    access_token: str
    refresh_token: str
    access_token_expiry: Optional[datetime] = None
    refresh_token_expiry: Optional[datetime] = None


class RefreshedTokens(BaseModel):
    """Tokens re-issued by the backend in ordinary response headers."""
    access_token: Optional[str] = None
    refresh_token: Optional[str] = None
    access_token_expiry: Optional[datetime] = None
    refresh_token_expiry: Optional[datetime] = None

    @property
    def is_empty(self) -> bool:
        return not self.access_token and not self.refresh_token


class OAuthSignInRequest(CamelModel):
    """Body of POST /auth/oauth."""
    provider: OAuthProviderName
    id_token: str


class AuthResponse(CamelModel):
    """Body returned by POST /auth/oauth.

    Tokens are empty strings when the backend delivered them as cookies.
    """
    user: Optional[User] = None
    access_token: str = ""
    refresh_token: str = ""


class AppErrorResponse(CamelModel):
    """Error body returned by the backend for every non-2xx response."""
    status_code: Optional[int] = None
    code: Optional[str] = None
    message: Optional[str] = None
    timestamp: Optional[str] = None
    path: Optional[str] = None
    reason: Optional[str] = None
    field: Optional[str] = None
    severity: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None


class ExchangeResult(BaseModel):
    """Outcome of trading a provider identity token for a session."""
    success: bool
    user: Optional[User] = None
    error: Optional[str] = None
    error_kind: Optional[AuthErrorKind] = None

    @classmethod
    def ok(cls, user: Optional[User]) -> "ExchangeResult":
        return cls(success=True, user=user)

    @classmethod
    def fail(cls, error: str, kind: AuthErrorKind) -> "ExchangeResult":
        return cls(success=False, error=error, error_kind=kind)


class SignInResult(ExchangeResult):
    """Outcome of a complete provider sign-in attempt."""


class SignOutResult(BaseModel):
    """Outcome of a sign-out request."""
    success: bool
    error: Optional[str] = Field(default=None)
