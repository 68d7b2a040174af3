"""Timezone-aware datetime utilities for the operator's local time."""

import os
from datetime import date, datetime, timezone
from zoneinfo import ZoneInfo

# Brazil has had no DST since 2019; ZoneInfo still handles historical transitions
APP_TIMEZONE = ZoneInfo(os.getenv("APP_TIMEZONE", "America/Sao_Paulo"))


def now_local() -> datetime:
    """Get current datetime in the application timezone."""
    return datetime.now(APP_TIMEZONE)


def today_local() -> date:
    """Get today's date in the application timezone."""
    return now_local().date()


def now_utc() -> datetime:
    """Get current UTC datetime as NAIVE for database storage."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def month_of(day: date) -> str:
    """Return the YYYY-MM month key a date belongs to."""
    return f"{day.year:04d}-{day.month:02d}"
