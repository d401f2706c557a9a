"""Profile service for member-editable settings."""

import logging
from typing import Optional

from ergboard.models import Member, ProfileResponse, ProfileUpdate
from ergboard.stores import MemberDirectory, TokenStore

logger = logging.getLogger(__name__)


class ProfileService:
    """Reads and updates a member's own profile."""

    def __init__(self, member_directory: MemberDirectory, token_store: TokenStore):
        self.member_directory = member_directory
        self.token_store = token_store

    async def _to_response(self, member: Member) -> ProfileResponse:
        credential = await self.token_store.get(member.id)
        return ProfileResponse(
            displayName=member.display_name,
            discordName=member.discord_name,
            showOnLeaderboard=member.show_on_leaderboard,
            gender=member.gender,
            hasConcept2Linked=credential is not None,
        )

    async def get_profile(self, member: Member) -> ProfileResponse:
        return await self._to_response(member)

    async def update_profile(self, member: Member, update: ProfileUpdate) -> Optional[ProfileResponse]:
        """
        Apply display name and visibility changes.

        Returns:
            The updated profile, or None if the member no longer exists
        """
        updated = await self.member_directory.update_profile(
            member.id,
            display_name=update.displayName,
            show_on_leaderboard=update.showOnLeaderboard,
        )
        if updated is None:
            return None
        return await self._to_response(updated)

    async def unlink_concept2(self, member: Member) -> None:
        """Delete the member's Concept2 credential."""
        await self.token_store.delete(member.id)
        logger.info(f"Unlinked Concept2 account for member {member.id}")
