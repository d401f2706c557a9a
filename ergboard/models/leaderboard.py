"""Leaderboard models for API responses."""

from dataclasses import dataclass, field
from datetime import date
from typing import Optional, Union
from pydantic import BaseModel, Field, ConfigDict

from ergboard.errors import ValidationError


@dataclass(frozen=True)
class DateRange:
    """Inclusive ``[from_date, to_date]`` window for a leaderboard query."""
    from_date: date
    to_date: date

    def __post_init__(self):
        if self.from_date > self.to_date:
            raise ValidationError(
                f"Invalid date range: {self.from_date.isoformat()} is after {self.to_date.isoformat()}"
            )


class LeaderboardEntry(BaseModel):
    """
    A single ranked row of the leaderboard.
    """
    model_config = ConfigDict(populate_by_name=True)

    rank: int = Field(description="1-based position, 0 until ranked")
    userId: str
    discordId: str
    discordName: str = Field(description="Display name, or Discord name when not overridden")
    discordAvatar: Optional[str] = None
    gender: Optional[str] = None
    totalMeters: Union[int, float] = Field(description="Sum of workout distances")
    workoutCount: int
    totalHours: float
    totalCalories: Union[int, float] = 0
    lastWorkout: Optional[str] = Field(default=None, description="Date of the most recent workout")


@dataclass
class AggregationResult:
    """Ranked entries plus the ids of members that were skipped."""
    entries: list[LeaderboardEntry] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
