"""
Custom exceptions for the client.
"""
from typing import Any, Dict, Optional

from speech_client.domain.schemas.auth import AppErrorResponse


class SpeechClientException(Exception):
    """Base exception for all client exceptions."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)


class ConfigurationError(SpeechClientException):
    """Missing or invalid client configuration."""

    def __init__(self, message: str, setting: Optional[str] = None):
        details = {"setting": setting} if setting else {}
        super().__init__(message, details=details)


class NetworkError(SpeechClientException):
    """The request never produced a response (offline, DNS, timeout)."""

    def __init__(self, message: str = "Network request failed", method: Optional[str] = None, path: Optional[str] = None):
        details = {}
        if method:
            details["method"] = method
        if path:
            details["path"] = path
        super().__init__(message, details=details)


class ApiError(SpeechClientException):
    """Backend answered with a non-2xx status."""

    def __init__(
        self,
        status_code: int,
        error: Optional[AppErrorResponse] = None,
        message: Optional[str] = None,
        path: Optional[str] = None,
    ):
        self.error = error
        self.path = path
        message = message or (error.message if error and error.message else f"Request failed with status {status_code}")
        details = {"code": error.code} if error and error.code else {}
        super().__init__(message, status_code=status_code, details=details)

    @property
    def code(self) -> Optional[str]:
        """Backend error code, if the body carried one."""
        return self.error.code if self.error else None


class AuthenticationError(ApiError):
    """401 response from the backend."""


class TokenStoreError(SpeechClientException):
    """Local token persistence failed."""

    def __init__(self, message: str, operation: Optional[str] = None):
        details = {"operation": operation} if operation else {}
        super().__init__(message, details=details)
