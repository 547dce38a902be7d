from __future__ import annotations

import re
from datetime import datetime, time, timezone
from typing import Any, Optional

from dateutil import parser as dateparser

_DATE_ONLY_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def parse_dt(value: Any) -> Optional[datetime]:
    """Parse a provider timestamp into a tz-aware UTC datetime, or None."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        dt = value
    else:
        try:
            dt = dateparser.isoparse(str(value))
        except (ValueError, OverflowError):
            try:
                dt = dateparser.parse(str(value))
            except (ValueError, OverflowError):
                return None
    # Ensure tz-aware for consistent comparisons
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def is_date_only(value: str) -> bool:
    return bool(_DATE_ONLY_RE.match((value or "").strip()))


def parse_bound(value: str, *, end_of_day: bool = False) -> Optional[datetime]:
    """Parse a filter bound. A bare YYYY-MM-DD covers the whole day."""
    value = (value or "").strip()
    if not value:
        return None
    dt = parse_dt(value)
    if dt is None:
        return None
    if end_of_day and is_date_only(value):
        dt = datetime.combine(dt.date(), time.max, tzinfo=timezone.utc)
    return dt


def sort_key(dt: Optional[datetime]) -> tuple[bool, datetime]:
    # undated articles sort after every dated one when ordering descending
    return (dt is not None, dt or _EPOCH)


def to_provider_date(value: Optional[str], fmt: str = "%Y-%m-%d") -> Optional[str]:
    """Reformat a canonical date string into a provider's query format."""
    dt = parse_dt(value) if value else None
    if dt is None:
        return None
    return dt.strftime(fmt)
