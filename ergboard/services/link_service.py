"""Account linking: stores Concept2 credentials after the OAuth callback."""

import logging
import secrets
import time
from typing import Callable

from ergboard.datasources import Concept2OAuthClient, ResultsSource
from ergboard.models import Concept2User, ExternalCredential
from ergboard.stores import MemberDirectory, TokenStore

logger = logging.getLogger(__name__)


class LinkService:
    """Service for linking a member to their Concept2 Logbook account."""

    def __init__(
        self,
        member_directory: MemberDirectory,
        token_store: TokenStore,
        oauth_client: Concept2OAuthClient,
        results_source: ResultsSource,
        clock: Callable[[], float] = time.time,
    ):
        self.member_directory = member_directory
        self.token_store = token_store
        self.oauth_client = oauth_client
        self.results_source = results_source
        self.clock = clock

    def start_link(self) -> tuple[str, str]:
        """
        Begin the authorization-code flow.

        Returns:
            (state, authorization_url); the caller keeps ``state`` to
            verify the callback
        """
        state = secrets.token_urlsafe(16)
        return state, self.oauth_client.authorization_url(state)

    async def complete_link(self, member_id: str, code: str) -> Concept2User:
        """
        Exchange the code, store the credential and backfill gender.

        Gender is only copied from the Concept2 profile when the member
        has none recorded yet.

        Raises:
            ExternalApiError: code exchange or profile fetch failed
            SchemaValidationError: profile payload was malformed
        """
        tokens = await self.oauth_client.exchange_code(code)
        profile = await self.results_source.get_user(tokens.access_token)

        await self.token_store.upsert(member_id, ExternalCredential(
            access_token=tokens.access_token,
            refresh_token=tokens.refresh_token,
            expires_at=int(self.clock()) + tokens.expires_in,
            external_user_id=profile.user_id,
        ))

        member = await self.member_directory.get_member(member_id)
        if member is not None and member.gender is None and profile.gender:
            await self.member_directory.set_gender(member_id, profile.gender)

        logger.info(f"Linked member {member_id} to Concept2 user {profile.user_id}")
        return profile
