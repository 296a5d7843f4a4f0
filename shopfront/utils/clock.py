from datetime import datetime, timezone
from typing import Callable

Clock = Callable[[], datetime]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """Naive datetimes (as returned by Mongo) are UTC."""
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
