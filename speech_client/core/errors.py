"""
Authentication error taxonomy and message catalog.

Every failure that leaves the session controller is described by one
AuthErrorKind. Provider SDK exceptions are mapped through fixed tables here
so that no provider-specific exception type crosses the controller boundary.
"""
from enum import Enum
from typing import Dict, Optional

from speech_client.core.exceptions import ApiError, NetworkError
from speech_client.domain.schemas.auth import AuthErrorKind


class BackendErrorCode(str, Enum):
    """Backend error codes the session controller reacts to."""

    SESSION_EXPIRED = "SESSION_EXPIRED"
    UNAUTHORIZED = "UNAUTHORIZED"


# 401 codes that terminate the local session
SESSION_TERMINATING_CODES = frozenset(
    {BackendErrorCode.SESSION_EXPIRED.value, BackendErrorCode.UNAUTHORIZED.value}
)


class GoogleSignInStatusCode(str, Enum):
    """Status codes raised by the native Google Sign-In SDK."""

    SIGN_IN_CANCELLED = "SIGN_IN_CANCELLED"
    IN_PROGRESS = "IN_PROGRESS"
    PLAY_SERVICES_NOT_AVAILABLE = "PLAY_SERVICES_NOT_AVAILABLE"


class ErrorMessages:
    """Centralized user-facing messages."""

    SIGN_IN_CANCELLED = "Sign in cancelled"
    SIGN_IN_IN_PROGRESS = "Sign in already in progress"
    PLAY_SERVICES_NOT_AVAILABLE = "Google Play Services not available"
    MISSING_ID_TOKEN = "Failed to get ID token from Google"
    MISSING_BACKEND_TOKENS = "Failed to get tokens from backend"
    VERIFY_FAILED = "Failed to verify OAuth token"
    WEB_SIGN_IN_FAILED = "Failed to sign in with Google"
    UNEXPECTED_OAUTH_RESULT = "Unexpected OAuth result"
    UNSUPPORTED_PROVIDER = "Unsupported OAuth provider"
    APPLE_NOT_IMPLEMENTED = "Apple OAuth not implemented yet"
    SIGN_OUT_FAILED = "Failed to sign out"
    LOAD_USER_FAILED = "Failed to load user"

    _defaults: Dict[AuthErrorKind, str] = {
        AuthErrorKind.PROVIDER_CANCELLED: SIGN_IN_CANCELLED,
        AuthErrorKind.PROVIDER_IN_PROGRESS: SIGN_IN_IN_PROGRESS,
        AuthErrorKind.PROVIDER_UNAVAILABLE: "Sign in provider is not available",
        AuthErrorKind.PROVIDER_ERROR: "Failed to sign in with OAuth",
        AuthErrorKind.TOKEN_EXCHANGE_FAILED: MISSING_BACKEND_TOKENS,
        AuthErrorKind.SESSION_EXPIRED: "Your session has expired. Please sign in again",
        AuthErrorKind.UNAUTHORIZED: "Please sign in to continue",
        AuthErrorKind.UNRECOGNIZED_AUTH_ERROR: "Authentication failed",
        AuthErrorKind.NETWORK_ERROR: "Network request failed",
        AuthErrorKind.BACKEND_ERROR: "Request failed",
    }

    @classmethod
    def get(cls, kind: AuthErrorKind) -> str:
        """Default message for an error kind."""
        return cls._defaults[kind]


# Native SDK status code -> (kind, message)
GOOGLE_SDK_ERROR_TABLE: Dict[str, tuple[AuthErrorKind, str]] = {
    GoogleSignInStatusCode.SIGN_IN_CANCELLED.value: (
        AuthErrorKind.PROVIDER_CANCELLED,
        ErrorMessages.SIGN_IN_CANCELLED,
    ),
    GoogleSignInStatusCode.IN_PROGRESS.value: (
        AuthErrorKind.PROVIDER_IN_PROGRESS,
        ErrorMessages.SIGN_IN_IN_PROGRESS,
    ),
    GoogleSignInStatusCode.PLAY_SERVICES_NOT_AVAILABLE.value: (
        AuthErrorKind.PROVIDER_UNAVAILABLE,
        ErrorMessages.PLAY_SERVICES_NOT_AVAILABLE,
    ),
}


def classify_api_failure(error: Exception) -> AuthErrorKind:
    """
    Map a transport/backend exception to an error kind.

    Args:
        error: Exception raised by the API client

    Returns:
        Matching AuthErrorKind
    """
    if isinstance(error, NetworkError):
        return AuthErrorKind.NETWORK_ERROR
    if isinstance(error, ApiError):
        if error.status_code == 401:
            if error.code == BackendErrorCode.SESSION_EXPIRED.value:
                return AuthErrorKind.SESSION_EXPIRED
            if error.code == BackendErrorCode.UNAUTHORIZED.value:
                return AuthErrorKind.UNAUTHORIZED
            return AuthErrorKind.UNRECOGNIZED_AUTH_ERROR
        return AuthErrorKind.BACKEND_ERROR
    return AuthErrorKind.PROVIDER_ERROR


def sdk_error_code(error: BaseException) -> Optional[str]:
    """Extract the status code carried by a provider SDK exception."""
    code = getattr(error, "code", None)
    if code is None:
        return None
    return str(getattr(code, "value", code))
