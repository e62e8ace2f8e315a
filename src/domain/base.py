from datetime import UTC, datetime
from typing import Optional, Union

from sqlalchemy import DateTime
from sqlalchemy.types import TypeDecorator


def utc_now() -> datetime:
    return datetime.now(UTC)


def to_utc(value: Union[datetime, int, float, None]) -> Optional[datetime]:
    """
    Normalize a timestamp to an aware UTC datetime.

    Accepts aware datetimes, naive datetimes (taken as UTC) and numeric
    epoch seconds.
    """
    if value is None:
        return None
    if isinstance(value, bool):
        raise TypeError("Timestamp cannot be a bool")
    if isinstance(value, (int, float)):
        return datetime.fromtimestamp(value, tz=UTC)
    if not isinstance(value, datetime):
        raise TypeError(f"Unsupported timestamp type: {type(value).__name__}")
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


class UTCDateTime(TypeDecorator):
    """
    Timestamp column stored as naive UTC and loaded as aware UTC.

    Every timestamp crossing the store boundary goes through here.
    """

    impl = DateTime
    cache_ok = True

    def process_bind_param(self, value, dialect):
        value = to_utc(value)
        if value is None:
            return None
        return value.replace(tzinfo=None)

    def process_result_value(self, value, dialect):
        return to_utc(value)
