"""
User profile service.
"""
import structlog

from speech_client.domain.schemas.user import UpdateUserRequest, User
from speech_client.infrastructure.http import ApiClient
from speech_client.services.session.state import SessionStore

logger = structlog.get_logger(__name__)

USER_ME_PATH = "/user/me"


class UserService:
    """Reads and updates the signed-in user's profile."""

    def __init__(self, api_client: ApiClient, session_store: SessionStore):
        self.api_client = api_client
        self.session_store = session_store

    async def get_current_user(self) -> User:
        """
        Fetch the current user.

        Raises:
            ApiError: Backend rejected the call
            NetworkError: No response was received
        """
        data = await self.api_client.get(USER_ME_PATH)
        return User.model_validate(data)

    async def update_current_user(self, update: UpdateUserRequest) -> User:
        """
        Update the current user's profile and publish it to the session.

        Args:
            update: Fields to change; unset fields are left untouched

        Returns:
            Updated user
        """
        payload = update.model_dump(by_alias=True, exclude_unset=True)
        data = await self.api_client.patch(USER_ME_PATH, json=payload)
        user = User.model_validate(data)
        self.session_store.set_user(user)
        logger.info("user_profile_updated", user_id=user.id, fields=sorted(payload))
        return user
