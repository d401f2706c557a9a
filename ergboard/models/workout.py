"""Workout and profile models as returned by the Concept2 Logbook API."""

from datetime import datetime
from typing import Any, Optional, Union
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class WorkoutResult(BaseModel):
    """
    A single logged workout.

    Results are consumed transiently by the aggregator and never
    mutated once fetched.
    """
    model_config = ConfigDict(frozen=True)

    id: str
    user_id: str
    date: str = Field(description="Provider-local timestamp, e.g. '2024-01-15 08:30:00'")
    distance: float = Field(ge=0, description="Distance in meters")
    type: str = Field(description="Machine type: rower, skierg, bike, ...")
    time: Optional[float] = Field(default=None, description="Elapsed time in deciseconds")
    calories_total: Optional[float] = None
    workout_type: Optional[str] = None
    source: Optional[str] = None
    weight_class: Optional[str] = None
    verified: Optional[bool] = None

    @field_validator("id", "user_id", mode="before")
    @classmethod
    def _coerce_id(cls, value: Any) -> Any:
        if isinstance(value, (int, str)) and not isinstance(value, bool):
            return str(value)
        return value

    @field_validator("date")
    @classmethod
    def _check_date(cls, value: str) -> str:
        datetime.fromisoformat(value)
        return value

    @property
    def performed_at(self) -> datetime:
        """Get the workout date as a datetime."""
        return datetime.fromisoformat(self.date)


class Pagination(BaseModel):
    total: int
    count: int
    per_page: int
    current_page: int
    total_pages: int


class ResultsMeta(BaseModel):
    pagination: Pagination


class ResultsPage(BaseModel):
    """One page of ``/users/me/results``."""
    data: list[WorkoutResult]
    meta: ResultsMeta


class Concept2User(BaseModel):
    """
    Concept2 user profile.

    The API reports the id as either ``user_id`` or ``id`` and may wrap
    the profile in a ``data`` envelope.
    """
    user_id: str
    username: str = ""
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: Optional[str] = None
    gender: Optional[str] = None

    @model_validator(mode="before")
    @classmethod
    def _unwrap(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        if isinstance(data.get("data"), dict):
            data = data["data"]
        data = dict(data)
        user_id: Union[str, int, None] = data.get("user_id") or data.get("id")
        if user_id is None or isinstance(user_id, bool):
            raise ValueError("Missing user ID in Concept2 response")
        data["user_id"] = str(user_id)
        data.pop("id", None)
        if data.get("username") is None:
            data["username"] = ""
        return data
