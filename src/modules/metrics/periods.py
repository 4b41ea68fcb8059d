"""Reporting periods for DORA metrics."""

import calendar
from collections.abc import Iterator
from datetime import UTC, date, datetime, time, timedelta
from enum import Enum


class PeriodType(str, Enum):
    """Granularity of a metric series."""

    WEEKLY = "WEEKLY"
    BIWEEKLY = "BIWEEKLY"
    MONTHLY = "MONTHLY"


def _month_end(day: date) -> date:
    return day.replace(day=calendar.monthrange(day.year, day.month)[1])


def _next_month(day: date) -> date:
    if day.month == 12:
        return day.replace(year=day.year + 1, month=1, day=1)
    return day.replace(month=day.month + 1, day=1)


def iter_periods(
    range_start: date, range_end: date, period: PeriodType
) -> Iterator[tuple[date, date]]:
    """Yield ``(period_start, period_end)`` pairs covering a date range.

    Monthly periods start on the first of ``range_start``'s month. Weekly and
    biweekly periods start on the Monday on or before ``range_start``. Period
    ends are clamped to ``range_end``; the first period may begin before
    ``range_start``.
    """
    if period is PeriodType.MONTHLY:
        current = range_start.replace(day=1)
        while current <= range_end:
            yield current, min(_month_end(current), range_end)
            current = _next_month(current)
        return

    length = timedelta(weeks=2 if period is PeriodType.BIWEEKLY else 1)
    current = range_start - timedelta(days=range_start.weekday())
    while current <= range_end:
        yield current, min(current + length - timedelta(days=1), range_end)
        current += length


def day_bounds(start: date, end: date) -> tuple[datetime, datetime]:
    """UTC instants from ``start`` 00:00:00 to ``end`` 23:59:59."""
    return (
        datetime.combine(start, time.min, tzinfo=UTC),
        datetime.combine(end, time(23, 59, 59), tzinfo=UTC),
    )
