"""Weekly Discord summary of the top rowers."""

import logging
from datetime import date, datetime, timezone
from typing import Callable, Optional

import httpx

from ergboard.errors import ConfigurationError, ExternalApiError
from ergboard.models import LeaderboardEntry, SummaryLeader, WeeklySummary
from ergboard.utils.date_periods import previous_week_range
from ergboard.utils.gender import normalize_gender
from .aggregator import LeaderboardAggregator

logger = logging.getLogger(__name__)

MEDALS = ["🥇", "🥈", "🥉"]
TOP_N = 3
EMBED_COLOR = 0x5865F2
NO_DATA_MESSAGE = "No workout data available this week"


def top_by_gender(entries: list[LeaderboardEntry], gender: str) -> list[LeaderboardEntry]:
    """Top rowers of one gender, excluding anyone with zero meters."""
    matching = [e for e in entries if normalize_gender(e.gender) == gender]
    return [e for e in matching[:TOP_N] if e.totalMeters > 0]


def format_leaders(leaders: list[LeaderboardEntry]) -> str:
    return "\n\n".join(
        f"{MEDALS[i]} **{entry.discordName}**\n"
        f"   • {entry.totalMeters:,.0f}m | {entry.workoutCount} workouts"
        for i, entry in enumerate(leaders)
    )


def build_embed(
    top_men: list[LeaderboardEntry],
    top_women: list[LeaderboardEntry],
    app_url: str,
    now: datetime,
) -> Optional[dict]:
    """Build the Discord embed, or None when nobody qualifies."""
    sections = []
    if top_men:
        sections.append(f"**👨 Men**\n\n{format_leaders(top_men)}")
    if top_women:
        sections.append(f"**👩 Women**\n\n{format_leaders(top_women)}")

    if not sections:
        return None

    return {
        "title": "🏆 Top Rowers Last Week",
        "description": "\n\n".join(sections) + f"\n\n[📊 View Full Leaderboard]({app_url})",
        "color": EMBED_COLOR,
        "footer": {"text": "Keep up the great work! 💪"},
        "timestamp": now.isoformat(),
    }


class WeeklySummaryService:
    """Posts last week's top rowers to a Discord channel webhook."""

    def __init__(
        self,
        aggregator: LeaderboardAggregator,
        webhook_url: Optional[str],
        app_url: str,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        today: Callable[[], date] = date.today,
    ):
        self.aggregator = aggregator
        self.webhook_url = webhook_url
        self.app_url = app_url
        self._transport = transport
        self.today = today

    async def send_weekly_summary(self) -> WeeklySummary:
        """
        Aggregate the previous Monday-Sunday week and post the top three
        men and women.

        Returns:
            WeeklySummary; ``sent`` is False when there was nothing to post

        Raises:
            ConfigurationError: no webhook URL configured
            ExternalApiError: Discord rejected the message
            SystemicError: the leaderboard could not be aggregated
        """
        if not self.webhook_url:
            raise ConfigurationError("Discord webhook URL not configured")

        date_range = previous_week_range(self.today())
        result = await self.aggregator.get_leaderboard(date_range)

        if not result.entries:
            return WeeklySummary(message=NO_DATA_MESSAGE, sent=False)

        top_men = top_by_gender(result.entries, "male")
        top_women = top_by_gender(result.entries, "female")

        embed = build_embed(top_men, top_women, self.app_url, datetime.now(timezone.utc))
        if embed is None:
            return WeeklySummary(message=NO_DATA_MESSAGE, sent=False)

        async with httpx.AsyncClient(timeout=10.0, transport=self._transport) as client:
            response = await client.post(self.webhook_url, json={"embeds": [embed]})

        if response.is_error:
            logger.error(f"Discord webhook error: {response.text}")
            raise ExternalApiError(response.status_code, response.text, "discord webhook")

        logger.info(
            f"Weekly summary sent for {date_range.from_date}..{date_range.to_date} "
            f"({len(top_men)} men, {len(top_women)} women)"
        )

        return WeeklySummary(
            message="Weekly summary sent to Discord",
            sent=True,
            topMen=[SummaryLeader(name=e.discordName, meters=e.totalMeters) for e in top_men],
            topWomen=[SummaryLeader(name=e.discordName, meters=e.totalMeters) for e in top_women],
        )
