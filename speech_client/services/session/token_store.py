"""
Secure Token Store

Platform-aware persistence for the first-party session token pair.

On header-credential platforms the pair lives in an encrypted key/value
namespace. On cookie-credential platforms the backend owns the tokens and
every operation here is a no-op: an empty result means "not locally
observable", never "logged out".
"""
from datetime import datetime
from typing import Optional

import structlog

from speech_client.core.platform import CredentialPolicy
from speech_client.domain.schemas.auth import TokenPair
from speech_client.infrastructure.storage import KeyValueStore

logger = structlog.get_logger(__name__)

ACCESS_TOKEN_KEY = "accessToken"
REFRESH_TOKEN_KEY = "refreshToken"
ACCESS_TOKEN_EXPIRY_KEY = "accessTokenExpiry"
REFRESH_TOKEN_EXPIRY_KEY = "refreshTokenExpiry"

ALL_KEYS = (
    ACCESS_TOKEN_KEY,
    REFRESH_TOKEN_KEY,
    ACCESS_TOKEN_EXPIRY_KEY,
    REFRESH_TOKEN_EXPIRY_KEY,
)


def _parse_expiry(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    try:
        return datetime.fromisoformat(value)
    except ValueError:
        logger.warning("token_expiry_unparseable", value=value)
        return None


class SecureTokenStore:
    """Token pair persistence gated by the credential policy."""

    def __init__(self, policy: CredentialPolicy, storage: KeyValueStore):
        self.policy = policy
        self.storage = storage

    @property
    def is_locally_observable(self) -> bool:
        """False when tokens live in a cookie the client cannot read."""
        return self.policy.persists_tokens

    async def save(self, pair: TokenPair) -> None:
        """
        Persist a token pair.

        Expiry keys are only written when present; a stale expiry from a
        previous pair is removed.
        """
        if not self.policy.persists_tokens:
            return

        values = {
            ACCESS_TOKEN_KEY: pair.access_token,
            REFRESH_TOKEN_KEY: pair.refresh_token,
        }
        remove = []
        if pair.access_token_expiry:
            values[ACCESS_TOKEN_EXPIRY_KEY] = pair.access_token_expiry.isoformat()
        else:
            remove.append(ACCESS_TOKEN_EXPIRY_KEY)
        if pair.refresh_token_expiry:
            values[REFRESH_TOKEN_EXPIRY_KEY] = pair.refresh_token_expiry.isoformat()
        else:
            remove.append(REFRESH_TOKEN_EXPIRY_KEY)

        await self.storage.update(values, remove=tuple(remove))
        logger.debug(
            "tokens_saved",
            has_access_expiry=bool(pair.access_token_expiry),
            has_refresh_expiry=bool(pair.refresh_token_expiry),
        )

    async def get_access(self) -> Optional[str]:
        """Get the stored access token."""
        if not self.policy.persists_tokens:
            return None
        return await self.storage.get_string(ACCESS_TOKEN_KEY) or None

    async def get_refresh(self) -> Optional[str]:
        """Get the stored refresh token."""
        if not self.policy.persists_tokens:
            return None
        return await self.storage.get_string(REFRESH_TOKEN_KEY) or None

    async def get_all(self) -> Optional[TokenPair]:
        """Get the stored pair; None unless both tokens are present."""
        if not self.policy.persists_tokens:
            return None

        access_token = await self.get_access()
        refresh_token = await self.get_refresh()
        if not access_token or not refresh_token:
            return None

        return TokenPair(
            access_token=access_token,
            refresh_token=refresh_token,
            access_token_expiry=_parse_expiry(await self.storage.get_string(ACCESS_TOKEN_EXPIRY_KEY)),
            refresh_token_expiry=_parse_expiry(await self.storage.get_string(REFRESH_TOKEN_EXPIRY_KEY)),
        )

    async def clear(self) -> None:
        """Remove every stored token; safe to call repeatedly."""
        if not self.policy.persists_tokens:
            return
        await self.storage.remove(*ALL_KEYS)
        logger.debug("tokens_cleared")

    async def has_valid(self) -> bool:
        """
        True iff both tokens are present.

        Expiry is informational; the backend arbitrates validity on the
        next call. Always False on cookie-credential platforms.
        """
        return await self.get_all() is not None
