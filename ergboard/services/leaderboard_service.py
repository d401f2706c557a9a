"""Leaderboard service: query validation and caching in front of the aggregator."""

import logging
from dataclasses import dataclass
from datetime import date
from typing import Callable, Optional

from ergboard.models import DateRange, LeaderboardEntry
from ergboard.utils.date_periods import (
    TimePeriod,
    get_date_range_for_period,
    parse_date,
    parse_period,
)
from ergboard.utils.gender import GenderFilter, matches_filter
from .aggregator import LeaderboardAggregator, rank_entries
from .cache import DEFAULT_TTL_SECONDS, LeaderboardCache

logger = logging.getLogger(__name__)


@dataclass
class LeaderboardQuery:
    """A validated leaderboard request."""
    period: TimePeriod
    date_range: DateRange
    raw_from: Optional[str] = None
    raw_to: Optional[str] = None

    @property
    def cache_key(self) -> str:
        return f"leaderboard:{self.period.value}:{self.raw_from or ''}:{self.raw_to or ''}"


@dataclass
class LeaderboardResult:
    entries: list[LeaderboardEntry]
    cached: bool
    skipped: Optional[list[str]] = None


class LeaderboardService:
    """Service for serving leaderboards over selectable time windows."""

    def __init__(
        self,
        aggregator: LeaderboardAggregator,
        cache: LeaderboardCache,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        today: Callable[[], date] = date.today,
    ):
        self.aggregator = aggregator
        self.cache = cache
        self.ttl_seconds = ttl_seconds
        self.today = today

    def build_query(
        self,
        period: str = "week",
        from_: Optional[str] = None,
        to: Optional[str] = None,
    ) -> LeaderboardQuery:
        """
        Validate request parameters and resolve the date range.

        Raises:
            ValidationError: unknown period, missing custom bounds,
                unparseable dates or from > to
        """
        time_period = parse_period(period)

        if time_period != TimePeriod.CUSTOM:
            # Bounds only shape the key for custom ranges
            return LeaderboardQuery(
                period=time_period,
                date_range=get_date_range_for_period(time_period, self.today()),
            )

        custom_from = parse_date(from_) if from_ else None
        custom_to = parse_date(to) if to else None
        date_range = get_date_range_for_period(
            time_period,
            self.today(),
            custom_from=custom_from,
            custom_to=custom_to,
        )
        return LeaderboardQuery(
            period=time_period,
            date_range=date_range,
            raw_from=date_range.from_date.isoformat(),
            raw_to=date_range.to_date.isoformat(),
        )

    async def get_leaderboard(
        self,
        period: str = "week",
        from_: Optional[str] = None,
        to: Optional[str] = None,
        force_refresh: bool = False,
        gender: GenderFilter = GenderFilter.ALL,
    ) -> LeaderboardResult:
        """
        Get the leaderboard for a period.

        Args:
            period: week, month, year or custom
            from_: Start date for custom periods
            to: End date for custom periods
            force_refresh: Skip the cache read; the fresh result is still cached
            gender: Optional gender filter, ranks are re-assigned after filtering

        Returns:
            LeaderboardResult; an empty entry list means no data for the period

        Raises:
            ValidationError: invalid query parameters (raised before any I/O)
            SystemicError: aggregation could not run
        """
        query = self.build_query(period, from_, to)
        key = query.cache_key

        entries: Optional[list[LeaderboardEntry]] = None
        skipped: Optional[list[str]] = None

        if not force_refresh:
            entries = self.cache.get(key)

        cached = entries is not None
        if cached:
            logger.info(f"Cache hit for {key}")
        else:
            logger.info(f"Cache miss for {key}" + (" (forced refresh)" if force_refresh else ""))
            result = await self.aggregator.get_leaderboard(query.date_range)
            entries = result.entries
            skipped = result.skipped
            self.cache.set(key, entries, self.ttl_seconds)

        if gender != GenderFilter.ALL:
            entries = rank_entries([e for e in entries if matches_filter(e.gender, gender)])

        return LeaderboardResult(entries=list(entries), cached=cached, skipped=skipped)

    def clear_cache(self) -> None:
        self.cache.clear()
