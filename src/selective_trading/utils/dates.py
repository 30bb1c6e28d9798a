# src/selective_trading/utils/dates.py
"""Calendar helpers bound to the business time zone."""

from __future__ import annotations

from datetime import UTC, date, datetime, time, timedelta, tzinfo

from selective_trading.core.settings import settings
from selective_trading.db.time import utcnow


def business_today(now: datetime | None = None, tz: tzinfo | None = None) -> date:
    """Return the current calendar date in the business time zone."""
    return (now or utcnow()).astimezone(tz or settings.business_tz).date()


def business_day_bounds(day: date, tz: tzinfo | None = None) -> tuple[datetime, datetime]:
    """Return the half-open UTC interval ``[start, end)`` covering ``day``."""
    zone = tz or settings.business_tz
    start = datetime.combine(day, time.min, tzinfo=zone)
    end = datetime.combine(day + timedelta(days=1), time.min, tzinfo=zone)
    return start.astimezone(UTC), end.astimezone(UTC)
