# sales_dashboard/analytics/periods.py
"""
Period Resolver

Turns a period selector into a PeriodWindow (current range plus the
directly-preceding comparison range) and splits a transaction
DataFrame along it.

Supported selectors:
- "7" / "30" / "90" / "365" (or the ints): trailing N days vs. the N days before
- "current_month": month-to-date vs. the whole previous month
- "YYYY-MM" or (year, month): calendar month vs. the previous calendar month
- "custom" with from/to dates: that range, no comparison window

Anything else resolves to a fallback window: the whole collection is
"current" and the comparison window is empty.
"""

import calendar
import logging
from datetime import date, timedelta
from typing import Any, Optional, Tuple

import pandas as pd

from .constants import PERIOD_CURRENT_MONTH, PERIOD_CUSTOM, PERIOD_SELECTORS, RELATIVE_PERIOD_DAYS
from .models import DateRange, PeriodWindow
from .normalizer import parse_transaction_date

logger = logging.getLogger(__name__)


# =============================================================================
# CALENDAR HELPERS
# =============================================================================

def month_range(year: int, month: int) -> DateRange:
    """Full calendar month as a DateRange."""
    last_day = calendar.monthrange(year, month)[1]
    return DateRange(date(year, month, 1), date(year, month, last_day))


def previous_month(year: int, month: int) -> Tuple[int, int]:
    """(year, month) of the preceding calendar month."""
    if month == 1:
        return year - 1, 12
    return year, month - 1


def shift_months(day: date, months: int) -> date:
    """Move a date by N months, clamping the day to the target month length."""
    month_index = day.year * 12 + (day.month - 1) + months
    year, month = divmod(month_index, 12)
    month += 1
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, min(day.day, last_day))


# =============================================================================
# WINDOW BUILDERS
# =============================================================================

def month_window(year: int, month: int) -> PeriodWindow:
    """Calendar month compared against the preceding calendar month."""
    prev_year, prev_month = previous_month(year, month)
    return PeriodWindow(
        selector=f"{year:04d}-{month:02d}",
        current=month_range(year, month),
        previous=month_range(prev_year, prev_month),
    )


def trailing_days_window(days: int, today: date, selector: Any = None) -> PeriodWindow:
    """
    Last N days (today included) compared against the N days before them.

    current  = [today - (N-1), today]
    previous = [today - (2N-1), today - N]
    """
    current_start = today - timedelta(days=days - 1)
    previous_end = current_start - timedelta(days=1)
    previous_start = previous_end - timedelta(days=days - 1)
    return PeriodWindow(
        selector=selector if selector is not None else str(days),
        current=DateRange(current_start, today),
        previous=DateRange(previous_start, previous_end),
    )


def current_month_window(today: date) -> PeriodWindow:
    """Month-to-date compared against the whole preceding month."""
    prev_year, prev_month = previous_month(today.year, today.month)
    return PeriodWindow(
        selector=PERIOD_CURRENT_MONTH,
        current=DateRange(date(today.year, today.month, 1), today),
        previous=month_range(prev_year, prev_month),
    )


def custom_window(start: date, end: date) -> PeriodWindow:
    """Explicit range; there is no defined comparison window."""
    return PeriodWindow(
        selector=PERIOD_CUSTOM,
        current=DateRange(start, end),
        previous=None,
    )


def fallback_window(selector: Any = None) -> PeriodWindow:
    """Whole collection as current, empty comparison."""
    return PeriodWindow(selector=selector, current=None, previous=None, is_fallback=True)


def trailing_months(months: int, today: Optional[date] = None) -> DateRange:
    """Range covering the last N months up to today (ABC lookback window)."""
    today = today or date.today()
    return DateRange(shift_months(today, -months), today)


# =============================================================================
# SELECTOR RESOLUTION
# =============================================================================

def _parse_year_month(selector: Any) -> Optional[Tuple[int, int]]:
    if isinstance(selector, tuple) and len(selector) == 2:
        year, month = selector
    elif isinstance(selector, str) and '-' in selector:
        parts = selector.strip().split('-')
        if len(parts) != 2:
            return None
        year, month = parts
    else:
        return None

    try:
        year, month = int(year), int(month)
    except (TypeError, ValueError):
        return None

    if not (1 <= month <= 12 and 1 <= year <= 9999):
        return None
    return year, month


def resolve_period(
    selector: Any,
    custom_from: Any = None,
    custom_to: Any = None,
    today: Optional[date] = None
) -> PeriodWindow:
    """
    Resolve a period selector into a PeriodWindow.

    Args:
        selector: "7"|"30"|"90"|"365"|"current_month"|"custom"|"YYYY-MM",
                  an int day count, or a (year, month) tuple
        custom_from: Start date for the "custom" selector
        custom_to: End date for the "custom" selector
        today: Reference day for relative selectors (default: date.today())

    Returns:
        PeriodWindow. Never raises: unresolvable selectors give a fallback window.
    """
    today = today or date.today()

    if isinstance(selector, int) and not isinstance(selector, bool):
        selector = str(selector)

    if isinstance(selector, str):
        selector = selector.strip()

        if selector in RELATIVE_PERIOD_DAYS:
            return trailing_days_window(RELATIVE_PERIOD_DAYS[selector], today, selector)

        if selector == PERIOD_CURRENT_MONTH:
            return current_month_window(today)

        if selector == PERIOD_CUSTOM:
            start = parse_transaction_date(custom_from)
            end = parse_transaction_date(custom_to)
            if start is None or end is None or start > end:
                logger.warning(f"Invalid custom range: from={custom_from}, to={custom_to}")
                return fallback_window(selector)
            return custom_window(start, end)

    year_month = _parse_year_month(selector)
    if year_month is not None:
        window = month_window(*year_month)
        logger.debug(f"Period {selector}: current={window.current}, previous={window.previous}")
        return window

    logger.warning(
        f"Invalid period selector: {selector!r} (expected one of {PERIOD_SELECTORS} "
        f"or YYYY-MM), using whole collection"
    )
    return fallback_window(selector)


# =============================================================================
# DATAFRAME SPLITTING
# =============================================================================

def filter_by_range(df: pd.DataFrame, date_range: Optional[DateRange]) -> pd.DataFrame:
    """Rows whose date falls inside the inclusive range (empty when range is None)."""
    if df.empty or date_range is None:
        return df.head(0)

    if 'date' not in df.columns:
        logger.warning("Column 'date' not found in DataFrame")
        return df.head(0)

    dates = pd.to_datetime(df['date'], errors='coerce').dt.normalize()
    mask = (dates >= pd.Timestamp(date_range.start)) & (dates <= pd.Timestamp(date_range.end))
    return df[mask]


def split_by_period(df: pd.DataFrame, window: PeriodWindow) -> Tuple[pd.DataFrame, pd.DataFrame]:
    """
    Split a transaction DataFrame into (current, previous) along a window.

    A fallback window keeps the whole collection as current.
    """
    if window.current is None:
        current = df
    else:
        current = filter_by_range(df, window.current)

    previous = filter_by_range(df, window.previous)

    logger.debug(f"Period {window.selector}: current={len(current):,} rows, previous={len(previous):,} rows")
    return current, previous
