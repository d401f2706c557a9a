"""Profile request and response models."""

from typing import Optional
from pydantic import BaseModel, Field, ConfigDict


class ProfileResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    displayName: Optional[str] = None
    discordName: str
    showOnLeaderboard: bool
    gender: Optional[str] = None
    hasConcept2Linked: bool = False


class ProfileUpdate(BaseModel):
    """Fields a member may change on their own profile."""
    displayName: Optional[str] = Field(default=None, min_length=1, max_length=50)
    showOnLeaderboard: Optional[bool] = None
