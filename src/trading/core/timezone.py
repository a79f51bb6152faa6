"""Time helpers.

Timestamps are stored as naive UTC; report days are bounded in a market
timezone (US/Eastern by default).
"""

from datetime import date, datetime, time, timedelta
from typing import Optional

import pytz
from dateutil import parser as date_parser


def utc_now() -> datetime:
    """Return the current time as a naive UTC datetime."""
    return datetime.now(pytz.UTC).replace(tzinfo=None)


def to_utc_naive(dt: datetime, default_tz: Optional[pytz.BaseTzInfo] = None) -> datetime:
    """
    Convert a datetime to naive UTC.

    Naive input is interpreted in default_tz, or taken as UTC already when
    no default is given.
    """
    if dt.tzinfo is None:
        if default_tz is None:
            return dt
        dt = default_tz.localize(dt)
    return dt.astimezone(pytz.UTC).replace(tzinfo=None)


def day_bounds_utc(day: date, tz_name: str = "US/Eastern") -> tuple[datetime, datetime]:
    """Return the first and last instant of a local calendar day, as naive UTC."""
    tz = pytz.timezone(tz_name)
    start = tz.localize(datetime.combine(day, time.min))
    # Localize the next midnight separately so DST days get their real length
    end = tz.localize(datetime.combine(day + timedelta(days=1), time.min)) - timedelta(microseconds=1)
    return to_utc_naive(start), to_utc_naive(end)


def parse_datetime_utc(value: str, default_tz: Optional[pytz.BaseTzInfo] = None) -> datetime:
    """Parse a datetime string into naive UTC (naive strings default to UTC)."""
    return to_utc_naive(date_parser.parse(value), default_tz)
