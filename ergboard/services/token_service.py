"""Token lifecycle service for Concept2 access tokens."""

import logging
import time
from typing import Callable, Optional

from ergboard.datasources import Concept2OAuthClient
from ergboard.errors import SystemicError, TokenRefreshError
from ergboard.models import ExternalCredential
from ergboard.stores import TokenStore

logger = logging.getLogger(__name__)

# Refresh this many seconds before the stored expiry
REFRESH_BUFFER_SECONDS = 300


class TokenService:
    """Hands out valid access tokens, refreshing stored credentials on demand."""

    def __init__(
        self,
        token_store: TokenStore,
        oauth_client: Concept2OAuthClient,
        clock: Callable[[], float] = time.time,
    ):
        self.token_store = token_store
        self.oauth_client = oauth_client
        self.clock = clock

    def needs_refresh(self, credential: ExternalCredential) -> bool:
        now = int(self.clock())
        return credential.expires_at - now < REFRESH_BUFFER_SECONDS

    async def get_valid_access_token(self, member_id: str) -> Optional[str]:
        """
        Get a currently valid access token for a member.

        Args:
            member_id: Internal member id

        Returns:
            The access token, or None if the member is not linked or the
            refresh failed. A failed refresh leaves the stored credential
            untouched so a later call can try again.

        Raises:
            SystemicError: the token store could not be read or written
        """
        try:
            credential = await self.token_store.get(member_id)
        except Exception as e:
            raise SystemicError(f"Token store unavailable: {e}") from e

        if credential is None:
            return None

        if not self.needs_refresh(credential):
            return credential.access_token

        try:
            tokens = await self.oauth_client.refresh_access_token(credential.refresh_token)
        except TokenRefreshError as e:
            logger.warning(f"Failed to refresh token for member {member_id}: {e}")
            return None

        refreshed = ExternalCredential(
            access_token=tokens.access_token,
            refresh_token=tokens.refresh_token,
            expires_at=int(self.clock()) + tokens.expires_in,
            external_user_id=credential.external_user_id,
        )

        try:
            await self.token_store.upsert(member_id, refreshed)
        except Exception as e:
            raise SystemicError(f"Failed to persist refreshed token: {e}") from e

        logger.info(f"Refreshed Concept2 token for member {member_id}")
        return refreshed.access_token
