"""
Session Bootstrap Controller

Restores the signed-in user once at process start by fetching the profile
with whatever credentials are already in place.
"""
import asyncio
from enum import Enum
from typing import Awaitable, Callable, Optional, Union

import structlog
from pydantic import BaseModel, ValidationError

from speech_client.core.errors import ErrorMessages, classify_api_failure
from speech_client.core.exceptions import ApiError, AuthenticationError, NetworkError, TokenStoreError
from speech_client.core.platform import CredentialPolicy
from speech_client.domain.schemas.auth import AuthErrorKind
from speech_client.domain.schemas.user import User
from speech_client.services.session.state import SessionStore
from speech_client.services.session.token_store import SecureTokenStore
from speech_client.services.user import UserService

logger = structlog.get_logger(__name__)


class BootstrapStatus(str, Enum):
    AUTHENTICATED = "authenticated"
    UNAUTHENTICATED = "unauthenticated"
    # Backend failed; the last known user, if any, was kept
    FAILED = "failed"


class BootstrapOutcome(BaseModel):
    """Result of the startup profile fetch."""
    status: BootstrapStatus
    user: Optional[User] = None
    error: Optional[str] = None
    error_kind: Optional[AuthErrorKind] = None
    attempts: int = 0


def retry_delay(attempt: int, base_delay: float, max_delay: float) -> float:
    """Exponential delay before retry number ``attempt`` (1-based)."""
    return min(base_delay * (2 ** (attempt - 1)), max_delay)


class SessionBootstrapController:
    """Runs the startup profile fetch exactly once per process."""

    def __init__(
        self,
        policy: CredentialPolicy,
        token_store: SecureTokenStore,
        session_store: SessionStore,
        user_service: UserService,
        max_retries: int = 2,
        retry_base_delay: float = 1.0,
        retry_max_delay: float = 30.0,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.policy = policy
        self.token_store = token_store
        self.session_store = session_store
        self.user_service = user_service
        self.max_retries = max_retries
        self.retry_base_delay = retry_base_delay
        self.retry_max_delay = retry_max_delay
        self._sleep = sleep
        self._task: Optional[asyncio.Task] = None

    @property
    def has_run(self) -> bool:
        return self._task is not None

    async def run(self) -> BootstrapOutcome:
        """
        Restore the session.

        Later calls, concurrent or not, return the outcome of the first one.
        """
        if self._task is None:
            self._task = asyncio.ensure_future(self._bootstrap())
        return await asyncio.shield(self._task)

    async def _bootstrap(self) -> BootstrapOutcome:
        try:
            eligible = await self.policy.can_attempt_profile_fetch(self.token_store)
        except TokenStoreError as e:
            logger.error("session_bootstrap_storage_failed", error=e.message)
            self.session_store.clear_user()
            self.session_store.set_error(e.message)
            return BootstrapOutcome(status=BootstrapStatus.UNAUTHENTICATED, error=e.message)

        if not eligible:
            logger.info("session_bootstrap_skipped", policy=self.policy.name)
            self.session_store.clear_user()
            return BootstrapOutcome(status=BootstrapStatus.UNAUTHENTICATED)

        self.session_store.set_loading(True)
        try:
            return await self._fetch_with_retries()
        finally:
            self.session_store.set_loading(False)

    async def _fetch_with_retries(self) -> BootstrapOutcome:
        attempt = 0
        while True:
            attempt += 1
            try:
                user = await self.user_service.get_current_user()
            except AuthenticationError as e:
                # Never retried
                return self._signed_out(e, attempt)
            except (NetworkError, ApiError, ValidationError) as e:
                if attempt <= self.max_retries:
                    delay = retry_delay(attempt, self.retry_base_delay, self.retry_max_delay)
                    logger.warning(
                        "session_bootstrap_retry",
                        attempt=attempt,
                        delay=delay,
                        error_type=type(e).__name__,
                    )
                    await self._sleep(delay)
                    continue
                if isinstance(e, NetworkError):
                    return self._signed_out(e, attempt)
                return self._failed(e, attempt)
            except TokenStoreError as e:
                # Not retried
                return self._failed(e, attempt)

            self.session_store.set_user(user)
            logger.info("session_restored", user_id=user.id, attempts=attempt)
            return BootstrapOutcome(
                status=BootstrapStatus.AUTHENTICATED,
                user=user,
                attempts=attempt,
            )

    def _signed_out(self, error: Union[ApiError, NetworkError], attempts: int) -> BootstrapOutcome:
        message = error.message
        self.session_store.clear_user()
        self.session_store.set_error(message)
        logger.info("session_bootstrap_signed_out", attempts=attempts, error=message)
        return BootstrapOutcome(
            status=BootstrapStatus.UNAUTHENTICATED,
            error=message,
            error_kind=classify_api_failure(error),
            attempts=attempts,
        )

    def _failed(self, error: Exception, attempts: int) -> BootstrapOutcome:
        if isinstance(error, ApiError):
            message, kind = error.message, classify_api_failure(error)
        else:
            message, kind = ErrorMessages.LOAD_USER_FAILED, AuthErrorKind.BACKEND_ERROR
        self.session_store.set_error(message)
        logger.error(
            "session_bootstrap_failed",
            attempts=attempts,
            error_type=type(error).__name__,
            error=str(error),
        )
        return BootstrapOutcome(
            status=BootstrapStatus.FAILED,
            user=self.session_store.user,
            error=message,
            error_kind=kind,
            attempts=attempts,
        )
