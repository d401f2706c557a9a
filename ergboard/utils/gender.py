"""Gender normalization for Concept2 profile values."""

from enum import Enum
from typing import Optional


class GenderFilter(str, Enum):
    ALL = "all"
    MALE = "male"
    FEMALE = "female"


def normalize_gender(gender: Optional[str]) -> str:
    """
    Normalize a raw gender value to 'male', 'female' or 'unknown'.

    Handles M/m/Male/male and F/f/Female/female; anything else, including
    a missing value, is 'unknown'.
    """
    if not gender:
        return "unknown"

    normalized = gender.strip().lower()
    if normalized in ("m", "male"):
        return "male"
    if normalized in ("f", "female"):
        return "female"
    return "unknown"


def matches_filter(gender: Optional[str], gender_filter: GenderFilter) -> bool:
    if gender_filter == GenderFilter.ALL:
        return True
    return normalize_gender(gender) == gender_filter.value
