"""Leaderboard aggregation across all linked members."""

import asyncio
import logging
import math
from typing import Optional, Union

import httpx

from ergboard.datasources import ResultsSource
from ergboard.errors import (
    ExternalApiError,
    SchemaValidationError,
    SystemicError,
    TokenRefreshError,
)
from ergboard.models import AggregationResult, DateRange, LeaderboardEntry, Member, WorkoutResult
from ergboard.stores import MemberDirectory
from .token_service import TokenService

logger = logging.getLogger(__name__)

DECISECONDS_PER_HOUR = 36000
MAX_CONCURRENT_FETCHES = 10
# Optional deadline on one member's whole fetch. Individual requests are
# bounded by the HTTP client timeout.
MEMBER_FETCH_TIMEOUT: Optional[float] = None

# Expected per-member failures, logged without a traceback
MEMBER_ERRORS = (
    ExternalApiError,
    SchemaValidationError,
    TokenRefreshError,
    httpx.HTTPError,
)


def _whole(value: float) -> Union[int, float]:
    """Integral sums serialize as integers, e.g. 8000 rather than 8000.0."""
    return int(value) if value.is_integer() else value


def aggregate_results(results: list[WorkoutResult]) -> dict:
    """
    Calculate aggregate statistics from workout results.

    Pure and independent of input order.

    Returns:
        dict with: total_meters, workout_count, total_hours,
        total_calories, last_workout (None when there are no results)
    """
    total_meters = _whole(math.fsum(r.distance for r in results))
    # Time is in tenths of a second
    total_deciseconds = math.fsum(r.time or 0 for r in results)
    total_calories = _whole(math.fsum(r.calories_total or 0 for r in results))

    last_workout = None
    if results:
        latest = max(results, key=lambda r: r.performed_at.replace(tzinfo=None))
        last_workout = latest.date

    return {
        "total_meters": total_meters,
        "workout_count": len(results),
        "total_hours": total_deciseconds / DECISECONDS_PER_HOUR,
        "total_calories": total_calories,
        "last_workout": last_workout,
    }


def rank_entries(entries: list[LeaderboardEntry]) -> list[LeaderboardEntry]:
    """Sort by total meters (descending, stable) and assign 1-based ranks."""
    ordered = sorted(entries, key=lambda e: e.totalMeters, reverse=True)
    return [
        entry.model_copy(update={"rank": i + 1})
        for i, entry in enumerate(ordered)
    ]


class LeaderboardAggregator:
    """
    Builds the leaderboard for a date range.

    Member fetches run concurrently, bounded by a semaphore. Each member
    is isolated: any failure while fetching a member skips that member
    only. Failures reaching the member directory or token store abort the
    whole call with SystemicError.
    """

    def __init__(
        self,
        member_directory: MemberDirectory,
        token_service: TokenService,
        results_source: ResultsSource,
        max_concurrent_fetches: int = MAX_CONCURRENT_FETCHES,
        member_fetch_timeout: Optional[float] = MEMBER_FETCH_TIMEOUT,
    ):
        self.member_directory = member_directory
        self.token_service = token_service
        self.results_source = results_source
        self.max_concurrent_fetches = max(1, max_concurrent_fetches)
        self.member_fetch_timeout = member_fetch_timeout

    async def get_leaderboard(self, date_range: DateRange) -> AggregationResult:
        """
        Aggregate every eligible member's workouts within a date range.

        Args:
            date_range: Inclusive range to aggregate

        Returns:
            AggregationResult with ranked entries and skipped member ids.
            No eligible members, or all skipped, gives empty entries.

        Raises:
            SystemicError: member directory or token store unavailable
        """
        try:
            members = await self.member_directory.list_visible_members_with_external_link()
        except Exception as e:
            raise SystemicError(f"Member directory unavailable: {e}") from e

        members = [m for m in members if m.show_on_leaderboard]
        if not members:
            return AggregationResult()

        semaphore = asyncio.Semaphore(self.max_concurrent_fetches)
        tasks = [
            asyncio.create_task(self._fetch_member_results(member, date_range, semaphore))
            for member in members
        ]

        try:
            outcomes = await asyncio.gather(*tasks)
        except BaseException:
            for task in tasks:
                task.cancel()
            raise

        entries: list[LeaderboardEntry] = []
        skipped: list[str] = []

        for member, results in zip(members, outcomes):
            if results is None:
                skipped.append(member.id)
                continue
            entries.append(self._build_entry(member, results))

        leaderboard = rank_entries(entries)

        logger.info(
            f"Aggregated leaderboard {date_range.from_date}..{date_range.to_date}: "
            f"{len(leaderboard)} entries, {len(skipped)} skipped"
        )

        return AggregationResult(entries=leaderboard, skipped=skipped)

    async def _fetch_member_results(
        self,
        member: Member,
        date_range: DateRange,
        semaphore: asyncio.Semaphore,
    ) -> Optional[list[WorkoutResult]]:
        """Fetch one member's results, or None if the member is skipped."""
        async with semaphore:
            try:
                return await asyncio.wait_for(
                    self._load_results(member, date_range),
                    timeout=self.member_fetch_timeout,
                )
            except asyncio.TimeoutError:
                logger.warning(
                    f"Timed out fetching results for {member.name} "
                    f"after {self.member_fetch_timeout}s"
                )
            except SystemicError:
                raise
            except MEMBER_ERRORS as e:
                logger.warning(f"Error fetching data for {member.name}: {e}")
            except Exception:
                logger.exception(f"Unexpected error fetching data for {member.name}")
        return None

    async def _load_results(
        self,
        member: Member,
        date_range: DateRange,
    ) -> Optional[list[WorkoutResult]]:
        access_token = await self.token_service.get_valid_access_token(member.id)

        if not access_token:
            logger.warning(f"No valid access token for {member.name}")
            return None

        return await self.results_source.get_all_results(access_token, date_range)

    def _build_entry(self, member: Member, results: list[WorkoutResult]) -> LeaderboardEntry:
        stats = aggregate_results(results)
        return LeaderboardEntry(
            rank=0,  # Set after sorting
            userId=member.id,
            discordId=member.discord_id,
            discordName=member.name,
            discordAvatar=member.discord_avatar,
            gender=member.gender,
            totalMeters=stats["total_meters"],
            workoutCount=stats["workout_count"],
            totalHours=stats["total_hours"],
            totalCalories=stats["total_calories"],
            lastWorkout=stats["last_workout"],
        )
