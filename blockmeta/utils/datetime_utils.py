"""
Datetime utilities.

Block times are stored as naive UTC datetimes.
"""

from datetime import UTC, datetime, timedelta

EPOCH = datetime(1970, 1, 1, tzinfo=UTC)


def assume_utc(value: datetime) -> datetime:
    """
    Attach UTC to a naive datetime, keeping sub-second precision.

    Aware datetimes are converted to UTC.

    Args:
        value: Datetime read from the database

    Returns:
        Timezone-aware UTC datetime
    """
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def to_unix_timestamp(value: datetime) -> int:
    """Whole seconds since the epoch, floored."""
    return (assume_utc(value) - EPOCH) // timedelta(seconds=1)
