"""Abstract interfaces for member and credential storage."""

from abc import ABC, abstractmethod
from typing import Optional

from ergboard.models import ExternalCredential, Member


class TokenStore(ABC):
    """
    Persistence for Concept2 credentials.

    Holds at most one credential per member. Implementations are expected
    to raise on connectivity problems rather than return None, so callers
    can tell "not linked" apart from "store unreachable".
    """

    @abstractmethod
    async def get(self, member_id: str) -> Optional[ExternalCredential]:
        """
        Get the credential for a member.

        Returns:
            The stored credential, or None if the member is not linked
        """
        pass

    @abstractmethod
    async def upsert(self, member_id: str, credential: ExternalCredential) -> None:
        """Create or replace the credential for a member."""
        pass

    @abstractmethod
    async def delete(self, member_id: str) -> None:
        """Remove the credential for a member. Missing credentials are ignored."""
        pass


class MemberDirectory(ABC):
    """Lookup and profile updates for club members."""

    @abstractmethod
    async def list_visible_members_with_external_link(self) -> list[Member]:
        """
        List members eligible for the leaderboard.

        Returns:
            Members with show_on_leaderboard set and a stored Concept2
            credential, ordered by member id
        """
        pass

    @abstractmethod
    async def get_member(self, member_id: str) -> Optional[Member]:
        pass

    @abstractmethod
    async def get_member_by_discord_id(self, discord_id: str) -> Optional[Member]:
        pass

    @abstractmethod
    async def upsert_member(self, member: Member) -> Member:
        """Create or replace a member record (called at sign-in)."""
        pass

    @abstractmethod
    async def update_profile(
        self,
        member_id: str,
        display_name: Optional[str] = None,
        show_on_leaderboard: Optional[bool] = None,
    ) -> Optional[Member]:
        """
        Apply profile changes. Fields left as None are unchanged.

        Returns:
            The updated member, or None if it does not exist
        """
        pass

    @abstractmethod
    async def set_gender(self, member_id: str, gender: Optional[str]) -> None:
        pass
