"""In-memory store implementations."""

import asyncio
from typing import Optional

from ergboard.models import ExternalCredential, Member
from .base import MemberDirectory, TokenStore


class InMemoryTokenStore(TokenStore):
    """Credential store backed by a dict keyed by member id."""

    def __init__(self):
        self._credentials: dict[str, ExternalCredential] = {}

    async def get(self, member_id: str) -> Optional[ExternalCredential]:
        credential = self._credentials.get(member_id)
        return credential.model_copy() if credential is not None else None

    async def upsert(self, member_id: str, credential: ExternalCredential) -> None:
        self._credentials[member_id] = credential.model_copy()

    async def delete(self, member_id: str) -> None:
        self._credentials.pop(member_id, None)

    def has_credential(self, member_id: str) -> bool:
        return member_id in self._credentials


class InMemoryMemberDirectory(MemberDirectory):
    """
    Member directory backed by a dict.

    Link state is read from the token store so the two never disagree.
    """

    def __init__(self, token_store: InMemoryTokenStore):
        self.token_store = token_store
        self._members: dict[str, Member] = {}
        self._lock = asyncio.Lock()

    async def list_visible_members_with_external_link(self) -> list[Member]:
        return [
            member.model_copy()
            for member_id, member in sorted(self._members.items())
            if member.show_on_leaderboard and self.token_store.has_credential(member_id)
        ]

    async def get_member(self, member_id: str) -> Optional[Member]:
        member = self._members.get(member_id)
        return member.model_copy() if member is not None else None

    async def get_member_by_discord_id(self, discord_id: str) -> Optional[Member]:
        for member in self._members.values():
            if member.discord_id == discord_id:
                return member.model_copy()
        return None

    async def upsert_member(self, member: Member) -> Member:
        async with self._lock:
            self._members[member.id] = member.model_copy()
        return member

    async def update_profile(
        self,
        member_id: str,
        display_name: Optional[str] = None,
        show_on_leaderboard: Optional[bool] = None,
    ) -> Optional[Member]:
        async with self._lock:
            member = self._members.get(member_id)
            if member is None:
                return None
            changes = {}
            if display_name is not None:
                changes["display_name"] = display_name
            if show_on_leaderboard is not None:
                changes["show_on_leaderboard"] = show_on_leaderboard
            member = member.model_copy(update=changes)
            self._members[member_id] = member
        return member.model_copy()

    async def set_gender(self, member_id: str, gender: Optional[str]) -> None:
        async with self._lock:
            member = self._members.get(member_id)
            if member is not None:
                self._members[member_id] = member.model_copy(update={"gender": gender})
