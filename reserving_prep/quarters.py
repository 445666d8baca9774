"""
Calendar and development-quarter arithmetic.

Two time axes are used throughout the pipeline:
- calendar quarters, labelled "YYYYQn" (Jan-Mar = Q1 ... Oct-Dec = Q4)
- development quarters, counted from a claim's accident quarter

All dates are handled at UTC day granularity as ``datetime.date``.
"""

from __future__ import annotations

import math
import re
from datetime import date, datetime, timedelta, timezone
from typing import Any, List, Optional, Tuple

import pandas as pd

from . import config
from .schemas import QuarterInfo

FALLBACK_QUARTER_INFO = QuarterInfo(
    calendar_year=2020,
    calendar_quarter=1,
    development_quarter=0,
    quarter_key="2020Q1",
)

_QUARTER_KEY_RE = re.compile(r"(\d{4})Q(\d)")


# ---------------- Date helpers ---------------- #

def to_date(value: Any) -> Optional[date]:
    """Coerce a date-like value to ``datetime.date`` (None when invalid).

    Accepts ``date``, ``datetime``, ``pandas.Timestamp`` and ISO strings.
    Timezone-aware values are converted to UTC first.
    """
    if value is None or value is pd.NaT:
        return None
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc)
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        ts = pd.to_datetime(value, errors="coerce", utc=True)
        if pd.isna(ts):
            return None
        return ts.date()
    return None


def parse_maybe_date(value: Any, base_start: Optional[date] = None) -> Optional[date]:
    """Like ``to_date`` but a number is read as a day offset from ``base_start``."""
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        if base_start is None or not math.isfinite(value):
            return None
        return add_days(base_start, int(value))
    return to_date(value)


def add_days(d: date, days: int) -> date:
    return d + timedelta(days=int(days))


def days_between(a: date, b: date) -> int:
    return (b - a).days


def clamp_date(d: date, lo: date, hi: date) -> date:
    return min(max(d, lo), hi)


def month_key(d: date) -> int:
    """Months since year 0, unique per calendar month."""
    return d.year * 12 + (d.month - 1)


# ---------------- Quarter keys ---------------- #

def quarter_of(d: date) -> int:
    return (d.month - 1) // 3 + 1


def format_quarter_key(year: int, quarter: int) -> str:
    return f"{year}Q{quarter}"


def quarter_key(d: date) -> str:
    return format_quarter_key(d.year, quarter_of(d))


def parse_quarter_key(key: Optional[str]) -> Optional[Tuple[int, int]]:
    if not key:
        return None
    m = _QUARTER_KEY_RE.search(key)
    if not m:
        return None
    return int(m.group(1)), int(m.group(2))


def shift_quarter_key(key: str, n: int) -> Optional[str]:
    """Step a quarter key by ``n`` quarters (negative steps go back)."""
    parsed = parse_quarter_key(key)
    if parsed is None:
        return None
    year, quarter = parsed
    total = year * 4 + (quarter - 1) + n
    return format_quarter_key(total // 4, total % 4 + 1)


def prev_quarter_key(key: str) -> Optional[str]:
    return shift_quarter_key(key, -1)


def next_quarter_key(key: str) -> Optional[str]:
    return shift_quarter_key(key, 1)


def start_of_quarter(d: date) -> date:
    return date(d.year, (quarter_of(d) - 1) * 3 + 1, 1)


def add_quarters(d: date, n: int) -> date:
    """First day of the quarter ``n`` quarters after the one containing ``d``."""
    start = start_of_quarter(d)
    months = start.year * 12 + (start.month - 1) + 3 * n
    return date(months // 12, months % 12 + 1, 1)


def quarter_range(start: date, end: date) -> List[date]:
    """Quarter start dates from ``start``'s quarter through ``end``'s, inclusive."""
    out = []
    q = start_of_quarter(start)
    last = start_of_quarter(end)
    while q <= last:
        out.append(q)
        q = add_quarters(q, 1)
    return out


# ---------------- Development quarters ---------------- #

def quarter_info(d: Any, reference_date: Any) -> QuarterInfo:
    """Calendar quarter of ``d`` and its development offset from ``reference_date``.

    The offset is clamped to +/- ``config.DEV_QUARTER_CLAMP``. Missing or
    invalid dates return ``FALLBACK_QUARTER_INFO``.
    """
    d = to_date(d)
    ref = to_date(reference_date)
    if d is None or ref is None:
        return FALLBACK_QUARTER_INFO

    date_q = (d.month - 1) // 3
    ref_q = (ref.month - 1) // 3
    since_ref = (d.year - ref.year) * 4 + (date_q - ref_q)

    clamp = config.DEV_QUARTER_CLAMP
    return QuarterInfo(
        calendar_year=d.year,
        calendar_quarter=date_q + 1,
        development_quarter=max(-clamp, min(clamp, since_ref)),
        quarter_key=format_quarter_key(d.year, date_q + 1),
    )
