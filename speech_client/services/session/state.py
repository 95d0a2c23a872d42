"""
Session State

Process-wide store for the signed-in user, loading/error flags and the
auth-prompt flag. One instance is constructed at startup and shared by the
exchange client, the interceptor pipeline and the bootstrap controller.
Listeners subscribe to transitions instead of polling.
"""
import asyncio
from typing import Callable, List, Optional

import structlog
from pydantic import BaseModel

from speech_client.domain.schemas.user import User

logger = structlog.get_logger(__name__)

Listener = Callable[["SessionState"], None]


class SessionState(BaseModel):
    """Snapshot of the client session."""
    user: Optional[User] = None
    is_loading: bool = False
    error: Optional[str] = None
    is_auth_modal_open: bool = False

    @property
    def is_authenticated(self) -> bool:
        return self.user is not None


class SessionStore:
    """Single-writer session state with subscribe/notify."""

    def __init__(self):
        self._state = SessionState()
        self._listeners: List[Listener] = []

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def user(self) -> Optional[User]:
        return self._state.user

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """
        Register a listener called after every transition.

        Returns:
            Callable removing the listener
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def set_user(self, user: Optional[User]) -> None:
        """Store the signed-in user and clear any error."""
        if user is None and self._state.user is None:
            return
        self._transition(user=user, error=None)

    def set_loading(self, loading: bool) -> None:
        self._transition(is_loading=loading)

    def set_error(self, error: Optional[str]) -> None:
        self._transition(error=error)

    def clear_user(self) -> None:
        """Reset to the initial state; idempotent."""
        if self._state == SessionState():
            return
        self._state = SessionState()
        logger.info("session_state_cleared")
        self._notify()

    def set_auth_modal_open(self, is_open: bool) -> None:
        self._transition(is_auth_modal_open=is_open)

    def is_authenticated(self) -> bool:
        return self._state.is_authenticated

    def _transition(self, **changes) -> None:
        updated = self._state.model_copy(update=changes)
        if updated == self._state:
            return
        self._state = updated
        self._notify()

    def _notify(self) -> None:
        state = self._state
        for listener in list(self._listeners):
            try:
                listener(state)
            except Exception as e:
                logger.error("session_listener_failed", error=str(e), listener=repr(listener))


class DeferredTaskQueue:
    """Runs callbacks on a later event-loop tick.

    Decouples "state was invalidated" from "UI was notified": the
    invalidating code enqueues the notification instead of performing it
    in the middle of its own transition.
    """

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None):
        self._loop = loop

    def enqueue(self, callback: Callable[[], None]) -> asyncio.Handle:
        loop = self._loop or asyncio.get_running_loop()
        return loop.call_soon(self._run, callback)

    @staticmethod
    def _run(callback: Callable[[], None]) -> None:
        try:
            callback()
        except Exception as e:
            logger.error("deferred_task_failed", error=str(e))
