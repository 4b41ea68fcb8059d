"""Metrics module exceptions."""

from datetime import date


class MetricsError(Exception):
    """Base exception for metric calculations."""

    pass


class InvalidDateRangeError(MetricsError):
    """Raised when a range starts after it ends."""

    def __init__(self, start: date, end: date) -> None:
        self.start = start
        self.end = end
        super().__init__(f"Start date {start} is after end date {end}")
