"""Date range helpers for leaderboard periods."""

import calendar
from datetime import date, datetime, timedelta
from enum import Enum
from typing import Optional

from ergboard.errors import ValidationError
from ergboard.models import DateRange


class TimePeriod(str, Enum):
    """Selectable leaderboard windows."""
    WEEK = "week"
    MONTH = "month"
    YEAR = "year"
    CUSTOM = "custom"


def parse_period(value: str) -> TimePeriod:
    try:
        return TimePeriod(value)
    except ValueError:
        raise ValidationError(
            f"Invalid period '{value}': expected one of week, month, year, custom"
        ) from None


def parse_date(value: str) -> date:
    """
    Parse a query-string date.

    Accepts ``YYYY-MM-DD`` or a full ISO 8601 datetime, which is truncated
    to its calendar date.
    """
    text = value.strip()
    try:
        return date.fromisoformat(text)
    except ValueError:
        pass
    try:
        return datetime.fromisoformat(text.replace("Z", "+00:00")).date()
    except ValueError:
        raise ValidationError(f"Invalid date '{value}'") from None


def week_range(today: date) -> DateRange:
    """Monday through Sunday of the week containing ``today``."""
    monday = today - timedelta(days=today.weekday())
    return DateRange(monday, monday + timedelta(days=6))


def previous_week_range(today: date) -> DateRange:
    """Monday through Sunday of the week before the one containing ``today``."""
    return week_range(today - timedelta(days=7))


def month_range(today: date) -> DateRange:
    last_day = calendar.monthrange(today.year, today.month)[1]
    return DateRange(today.replace(day=1), today.replace(day=last_day))


def year_range(today: date) -> DateRange:
    # Only up to today, not the end of the year
    return DateRange(date(today.year, 1, 1), today)


def get_date_range_for_period(
    period: TimePeriod,
    today: date,
    custom_from: Optional[date] = None,
    custom_to: Optional[date] = None,
) -> DateRange:
    """
    Resolve a period to a concrete date range.

    Raises:
        ValidationError: custom period without both bounds, or from > to
    """
    if period == TimePeriod.WEEK:
        return week_range(today)
    if period == TimePeriod.MONTH:
        return month_range(today)
    if period == TimePeriod.YEAR:
        return year_range(today)
    if custom_from is None or custom_to is None:
        raise ValidationError("Custom period requires 'from' and 'to' parameters")
    return DateRange(custom_from, custom_to)
