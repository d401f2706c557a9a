"""Member model for leaderboard participants."""

from typing import Optional
from pydantic import BaseModel, Field


class Member(BaseModel):
    """
    A club member who signed in with Discord.

    Members with ``show_on_leaderboard`` set to False are left out of
    every leaderboard entirely.
    """
    id: str
    discord_id: str = Field(description="Stable Discord user id")
    discord_name: str = Field(description="Name reported by Discord")
    display_name: Optional[str] = Field(default=None, description="User-chosen name override")
    discord_avatar: Optional[str] = None
    gender: Optional[str] = Field(default=None, description="Free-form gender from the Concept2 profile")
    show_on_leaderboard: bool = True

    @property
    def name(self) -> str:
        """Name shown on the leaderboard."""
        return self.display_name or self.discord_name or "Unknown"
