"""Weekly summary result model."""

from typing import Union

from pydantic import BaseModel, Field


class SummaryLeader(BaseModel):
    name: str
    meters: Union[int, float]


class WeeklySummary(BaseModel):
    """Outcome of a weekly Discord summary run."""
    message: str
    sent: bool
    topMen: list[SummaryLeader] = Field(default_factory=list)
    topWomen: list[SummaryLeader] = Field(default_factory=list)
