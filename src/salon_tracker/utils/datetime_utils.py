"""Datetime utilities for timezone-aware UTC timestamps.

Usage:
    from salon_tracker.utils.datetime_utils import utc_now

    # For SQLAlchemy Column defaults
    created_at = Column(DateTime, default=utc_now)
"""

from datetime import date, datetime, timezone
from typing import Optional, Union

from .constants import DATE_FORMAT


def utc_now() -> datetime:
    """Return current UTC time as timezone-aware datetime.

    Returns:
        Current UTC datetime with timezone info
    """
    return datetime.now(timezone.utc)


def parse_visit_date(value: Union[date, str, None]) -> Optional[date]:
    """Coerce a visit date given as ``date``, ``datetime`` or ISO string.

    Empty strings and None give None; anything else unparseable raises ValueError.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    value = value.strip()
    if not value:
        return None
    return datetime.strptime(value, DATE_FORMAT).date()
