"""
Mock sign-in collaborators for testing.

Provides fakes for the native Google Sign-In SDK and the browser auth
prompt so provider flows can be tested without a device or a browser.
"""
from typing import Any, Dict, List, Optional

from speech_client.services.auth.oauth.web import AuthSessionResult


class SdkError(Exception):
    """Exception shaped like the ones raised by the Google Sign-In SDK."""

    def __init__(self, code: str, message: str = ""):
        super().__init__(message or code)
        self.code = code
        self.message = message


class MockGoogleSignInSdk:
    """Scriptable Google Sign-In SDK."""

    def __init__(self, id_token: Optional[str] = "google-id-token"):
        self.sign_in_result: Optional[Dict[str, Any]] = {
            "type": "success",
            "data": {
                "user": {"id": "g-123", "email": "maria@example.com", "name": "Maria"},
                "idToken": id_token,
            },
        }
        self.tokens: Optional[Dict[str, Any]] = {
            "idToken": id_token,
            "accessToken": "google-access-token",
        }
        self.play_services = True

        self.sign_in_error: Optional[Exception] = None
        self.get_tokens_error: Optional[Exception] = None
        self.sign_out_error: Optional[Exception] = None
        self.play_services_error: Optional[Exception] = None

        # Track calls for testing
        self.call_log: Dict[str, int] = {}
        self.last_call_data: Dict[str, Any] = {}
        self.calls: List[str] = []

    def _log_call(self, method_name: str, **kwargs):
        """Log method calls for testing verification."""
        self.call_log[method_name] = self.call_log.get(method_name, 0) + 1
        self.last_call_data[method_name] = kwargs
        self.calls.append(method_name)

    def count(self, method_name: str) -> int:
        return self.call_log.get(method_name, 0)

    def configure(self, **options: Any) -> None:
        self._log_call("configure", **options)

    async def has_play_services(self) -> bool:
        self._log_call("has_play_services")
        if self.play_services_error:
            raise self.play_services_error
        return self.play_services

    async def sign_in(self) -> Optional[Dict[str, Any]]:
        self._log_call("sign_in")
        if self.sign_in_error:
            raise self.sign_in_error
        return self.sign_in_result

    async def get_tokens(self) -> Optional[Dict[str, Any]]:
        self._log_call("get_tokens")
        if self.get_tokens_error:
            raise self.get_tokens_error
        return self.tokens

    async def sign_out(self) -> None:
        self._log_call("sign_out")
        if self.sign_out_error:
            raise self.sign_out_error


class MockAuthSessionPrompt:
    """Browser auth prompt returning a scripted result."""

    def __init__(
        self,
        result: Optional[AuthSessionResult] = None,
        error: Optional[Exception] = None,
    ):
        self.result = result or AuthSessionResult(type="success", params={"id_token": "google-id-token"})
        self.error = error
        self.prompts: List[Dict[str, str]] = []

    async def prompt(self, authorization_url: str, redirect_uri: str) -> AuthSessionResult:
        self.prompts.append({"url": authorization_url, "redirect_uri": redirect_uri})
        if self.error:
            raise self.error
        return self.result
