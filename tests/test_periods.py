"""Tests for metric reporting periods."""

from datetime import UTC, date, datetime

from src.modules.metrics.periods import PeriodType, day_bounds, iter_periods


class TestIterPeriods:
    """Tests for iter_periods."""

    def test_weekly_starts_on_monday(self) -> None:
        periods = list(iter_periods(date(2024, 3, 6), date(2024, 3, 20), PeriodType.WEEKLY))

        assert periods == [
            (date(2024, 3, 4), date(2024, 3, 10)),
            (date(2024, 3, 11), date(2024, 3, 17)),
            (date(2024, 3, 18), date(2024, 3, 20)),
        ]

    def test_biweekly(self) -> None:
        periods = list(
            iter_periods(date(2024, 3, 4), date(2024, 3, 20), PeriodType.BIWEEKLY)
        )

        assert periods == [
            (date(2024, 3, 4), date(2024, 3, 17)),
            (date(2024, 3, 18), date(2024, 3, 20)),
        ]

    def test_monthly_crosses_year_end(self) -> None:
        periods = list(
            iter_periods(date(2024, 11, 15), date(2025, 1, 10), PeriodType.MONTHLY)
        )

        assert periods == [
            (date(2024, 11, 1), date(2024, 11, 30)),
            (date(2024, 12, 1), date(2024, 12, 31)),
            (date(2025, 1, 1), date(2025, 1, 10)),
        ]

    def test_monthly_leap_february(self) -> None:
        assert list(
            iter_periods(date(2024, 2, 10), date(2024, 2, 29), PeriodType.MONTHLY)
        ) == [(date(2024, 2, 1), date(2024, 2, 29))]

    def test_single_day_range(self) -> None:
        assert list(iter_periods(date(2024, 3, 10), date(2024, 3, 10), PeriodType.WEEKLY)) == [
            (date(2024, 3, 4), date(2024, 3, 10))
        ]

    def test_empty_when_start_after_end(self) -> None:
        assert list(iter_periods(date(2024, 4, 1), date(2024, 3, 1), PeriodType.MONTHLY)) == []


class TestDayBounds:
    def test_covers_whole_days(self) -> None:
        start, end = day_bounds(date(2024, 3, 1), date(2024, 3, 2))

        assert start == datetime(2024, 3, 1, tzinfo=UTC)
        assert end == datetime(2024, 3, 2, 23, 59, 59, tzinfo=UTC)
