"""Wall-clock helpers in the shop's timezone."""
from datetime import datetime, timezone
from functools import lru_cache
from zoneinfo import ZoneInfo

from src.lib.settings import settings


@lru_cache(maxsize=None)
def business_tz() -> ZoneInfo:
    return ZoneInfo(settings.business_timezone)


def business_now() -> datetime:
    """Current time in the business timezone."""
    return datetime.now(business_tz())


def to_business_time(value: datetime) -> datetime:
    """Convert a stored timestamp; naive values are taken as UTC (SQLite drops tzinfo)."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(business_tz())
