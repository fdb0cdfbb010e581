# ================================
# UTILS PACKAGE INITIALIZATION (utils/__init__.py)
# ================================

"""
Utils Package

Helpers shared across the group stay claims service:
- Date/time handling (UTC normalisation, ISO parsing)
- Pagination clamping
- Location and label normalisation (utils/location_utils.py)
- Audit trail (utils/audit.py, imported directly to avoid model import cycles)
"""

from datetime import datetime, timezone, date
from typing import Any, Optional, Tuple
import math

# ================================
# DATE/TIME UTILITIES
# ================================

def utc_now() -> datetime:
    """Get current UTC datetime with timezone info"""
    return datetime.now(timezone.utc)

def as_utc(dt: Optional[datetime]) -> Optional[datetime]:
    """
    Normalise a datetime to timezone-aware UTC.

    Naive values are treated as UTC (SQLite hands timestamps back without tzinfo).
    """
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)

def parse_iso_datetime(value: Any) -> Optional[datetime]:
    """
    Parse a deadline-like value into an aware UTC datetime.

    Accepts datetime, date, epoch milliseconds and ISO-8601 strings (with or
    without trailing 'Z'). Returns None for anything unparseable.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, datetime):
        return as_utc(value)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day, tzinfo=timezone.utc)
    if isinstance(value, (int, float)):
        if not math.isfinite(value):
            return None
        try:
            return datetime.fromtimestamp(value / 1000, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            return as_utc(datetime.fromisoformat(text))
        except ValueError:
            return None
    return None

def compute_nights(check_in: Optional[datetime], check_out: Optional[datetime]) -> int:
    """Whole nights between the stay dates, at least 1; flexible-date bookings count as 1"""
    if check_in is None or check_out is None:
        return 1
    seconds = (as_utc(check_out) - as_utc(check_in)).total_seconds()
    return max(1, math.ceil(seconds / 86400))

# ================================
# NUMBERS & PAGINATION
# ================================

def to_float(value: Any) -> Optional[float]:
    """Decimal/str/int to float, None when not a finite number"""
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None

def clamp_pagination(page: Optional[int], page_size: Optional[int], max_page_size: int = 100) -> Tuple[int, int]:
    """Page >= 1 (default 1), page size in [1, max_page_size] (default 50)"""
    page_num = max(1, int(page or 1))
    size = min(max_page_size, max(1, int(page_size or 50)))
    return page_num, size

__all__ = [
    "utc_now", "as_utc", "parse_iso_datetime", "compute_nights",
    "to_float", "clamp_pagination",
]
