from .member import Member
from .credential import ExternalCredential, TokenResponse
from .workout import WorkoutResult, Pagination, ResultsPage, Concept2User
from .leaderboard import DateRange, LeaderboardEntry, AggregationResult
from .profile import ProfileResponse, ProfileUpdate
from .summary import SummaryLeader, WeeklySummary

__all__ = [
    "Member",
    "ExternalCredential",
    "TokenResponse",
    "WorkoutResult",
    "Pagination",
    "ResultsPage",
    "Concept2User",
    "DateRange",
    "LeaderboardEntry",
    "AggregationResult",
    "ProfileResponse",
    "ProfileUpdate",
    "SummaryLeader",
    "WeeklySummary",
]
