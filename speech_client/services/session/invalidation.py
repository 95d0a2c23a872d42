"""
Session invalidation on authoritative expiry signals.
"""
import structlog

from speech_client.core.exceptions import TokenStoreError
from speech_client.services.session.state import DeferredTaskQueue, SessionState, SessionStore
from speech_client.services.session.token_store import SecureTokenStore

logger = structlog.get_logger(__name__)


class SessionInvalidator:
    """
    Clears local credentials and identity, then asks the UI to re-authenticate.

    The invalidator latches on the first signal: concurrent requests that all
    receive a terminating 401 produce exactly one token clear, one state
    reset and one auth prompt. The latch re-arms once a user is signed in
    again or the prompt has been closed.
    """

    def __init__(
        self,
        token_store: SecureTokenStore,
        session_store: SessionStore,
        deferred: DeferredTaskQueue,
    ):
        self.token_store = token_store
        self.session_store = session_store
        self.deferred = deferred
        self._latched = False
        self._prompt_pending = False
        session_store.subscribe(self._on_state_change)

    @property
    def is_latched(self) -> bool:
        return self._latched

    async def invalidate(self, reason: str) -> bool:
        """
        Invalidate the local session.

        Args:
            reason: Backend error code that triggered the invalidation

        Returns:
            True if this call performed the invalidation, False if one was
            already in effect
        """
        # Checked and set before the first suspension point
        if self._latched:
            logger.debug("session_invalidation_skipped", reason=reason)
            return False
        self._latched = True
        self._prompt_pending = True

        logger.warning("session_invalidated", reason=reason)

        try:
            await self.token_store.clear()
        except TokenStoreError as e:
            logger.error("session_invalidation_token_clear_failed", error=str(e))

        self.session_store.clear_user()
        self.deferred.enqueue(self._open_auth_prompt)
        return True

    def _open_auth_prompt(self) -> None:
        self._prompt_pending = False
        self.session_store.set_auth_modal_open(True)
        logger.info("auth_prompt_requested")

    def _on_state_change(self, state: SessionState) -> None:
        if not self._latched or self._prompt_pending:
            return
        if state.user is not None or not state.is_auth_modal_open:
            self._latched = False
