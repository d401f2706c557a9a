from .token_service import TokenService
from ergboard.services.aggregator import LeaderboardAggregator, aggregate_results
from ergboard.services.cache import LeaderboardCache
from ergboard.services.leaderboard_service import LeaderboardService
from .profile_service import ProfileService
from .link_service import LinkService
from .weekly_summary_service import WeeklySummaryService

__all__ = [
    "TokenService",
    "LeaderboardAggregator",
    "aggregate_results",
    "LeaderboardCache",
    "LeaderboardService",
    "ProfileService",
    "LinkService",
    "WeeklySummaryService",
]
