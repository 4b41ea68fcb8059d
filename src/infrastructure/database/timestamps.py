"""Timestamp conversion between Python datetimes and stored ISO strings."""

from datetime import UTC, datetime


def utc_now() -> datetime:
    """Return the current time as an aware UTC datetime."""
    return datetime.now(UTC)


def to_db(value: datetime | None) -> str | None:
    """Serialize a datetime for storage.

    Naive datetimes are taken to be UTC. Aware datetimes are converted to
    UTC so that stored strings sort and compare chronologically.

    Args:
        value: Datetime to serialize, or None.

    Returns:
        ISO-8601 string with a +00:00 offset, or None.
    """
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return value.astimezone(UTC).isoformat()


def from_db(value: object) -> datetime | None:
    """Parse a stored timestamp (or an API timestamp such as ``...Z``).

    Args:
        value: Stored value.

    Returns:
        Aware UTC datetime, or None when the value is empty.
    """
    if value is None or value == "":
        return None
    parsed = datetime.fromisoformat(str(value))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed.astimezone(UTC)
