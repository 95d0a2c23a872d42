"""
OAuth Strategy Base Interface

Defines the contract every sign-in strategy implements and the normalized
outcome it reports. Strategies never raise: provider SDK exceptions are
mapped into a ProviderOutcome before leaving the strategy.
"""
from abc import ABC, abstractmethod
from enum import Enum
from typing import Optional

import structlog
from pydantic import BaseModel

from speech_client.core.errors import ErrorMessages
from speech_client.core.platform import Platform
from speech_client.domain.schemas.auth import AuthErrorKind, OAuthProviderName, SignInResult

logger = structlog.get_logger(__name__)


class ProviderStatus(str, Enum):
    """Terminal states of one provider sign-in attempt."""
    SUCCESS = "success"
    CANCELLED = "cancelled"
    IN_PROGRESS = "in_progress"
    UNAVAILABLE = "unavailable"
    ERROR = "error"


_STATUS_KINDS = {
    ProviderStatus.CANCELLED: AuthErrorKind.PROVIDER_CANCELLED,
    ProviderStatus.IN_PROGRESS: AuthErrorKind.PROVIDER_IN_PROGRESS,
    ProviderStatus.UNAVAILABLE: AuthErrorKind.PROVIDER_UNAVAILABLE,
    ProviderStatus.ERROR: AuthErrorKind.PROVIDER_ERROR,
}

_KIND_STATUSES = {kind: status for status, kind in _STATUS_KINDS.items()}


class ProviderOutcome(BaseModel):
    """Normalized result of a provider sign-in attempt."""
    status: ProviderStatus
    id_token: Optional[str] = None
    error: Optional[str] = None

    @property
    def is_success(self) -> bool:
        return self.status == ProviderStatus.SUCCESS

    @property
    def error_kind(self) -> Optional[AuthErrorKind]:
        return _STATUS_KINDS.get(self.status)

    @classmethod
    def success(cls, id_token: str) -> "ProviderOutcome":
        return cls(status=ProviderStatus.SUCCESS, id_token=id_token)

    @classmethod
    def cancelled(cls) -> "ProviderOutcome":
        return cls(status=ProviderStatus.CANCELLED, error=ErrorMessages.SIGN_IN_CANCELLED)

    @classmethod
    def unavailable(cls, error: str) -> "ProviderOutcome":
        return cls(status=ProviderStatus.UNAVAILABLE, error=error)

    @classmethod
    def failed(cls, error: str) -> "ProviderOutcome":
        return cls(status=ProviderStatus.ERROR, error=error)

    @classmethod
    def from_kind(cls, kind: AuthErrorKind, error: str) -> "ProviderOutcome":
        return cls(status=_KIND_STATUSES.get(kind, ProviderStatus.ERROR), error=error)

    def to_result(self) -> SignInResult:
        """Failure result for a non-success outcome."""
        return SignInResult(
            success=False,
            error=self.error or ErrorMessages.get(self.error_kind or AuthErrorKind.PROVIDER_ERROR),
            error_kind=self.error_kind or AuthErrorKind.PROVIDER_ERROR,
        )


class OAuthStrategy(ABC):
    """One way of obtaining an identity token from a provider."""

    provider: OAuthProviderName
    platform: Platform

    @abstractmethod
    async def authenticate(self) -> ProviderOutcome:
        """Run the provider flow and return its outcome."""
        pass

    async def sign_out(self) -> None:
        """Sign out of the provider; no-op for providers without a local session."""
        return None

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(provider={self.provider.value}, platform={self.platform.value})"
