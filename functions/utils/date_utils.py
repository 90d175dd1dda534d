from datetime import date, datetime
import logging

from constants import CURRENCY_SYMBOL, DEFAULT_LOOKAHEAD_MONTHS

# Set up a module-level logger
log = logging.getLogger(__name__)


def _parse_year_month(value) -> tuple | None:
    """
    Returns (year, month) for a date, datetime, "YYYY-MM" or "YYYY-MM-DD" value.
    Strings are split into components directly so no timezone conversion can
    shift the result into a neighbouring day or month.
    """
    if not value:
        return None
    if isinstance(value, (date, datetime)):
        return value.year, value.month

    parts = str(value).strip().split('-')
    if len(parts) < 2:
        return None
    try:
        year, month = int(parts[0]), int(parts[1][:2])
    except ValueError:
        return None
    if year <= 0 or not 1 <= month <= 12:
        return None
    return year, month


def parse_date(value) -> date | None:
    """Parses a "YYYY-MM-DD" string (or passes a date through). None if malformed."""
    if not value:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        year, month, day = (int(part) for part in str(value).strip()[:10].split('-'))
        return date(year, month, day)
    except (ValueError, TypeError):
        return None


def month_key(value) -> str | None:
    """Returns the "YYYY-MM" key of a date-like value, or None when it cannot be parsed."""
    parsed = _parse_year_month(value)
    if parsed is None:
        return None
    year, month = parsed
    return f"{year:04d}-{month:02d}"


def current_month_key() -> str:
    return month_key(date.today())


def today_iso() -> str:
    return date.today().isoformat()


def add_months(key: str, count: int) -> str:
    """Shifts a "YYYY-MM" key by `count` calendar months (negative goes back)."""
    year, month = _parse_year_month(key)
    index = year * 12 + (month - 1) + count
    return f"{index // 12:04d}-{index % 12 + 1:02d}"


def month_range(start_date, lookahead: int = DEFAULT_LOOKAHEAD_MONTHS) -> list:
    """
    Every calendar month from start_date's month through the current month plus
    `lookahead`, ascending and inclusive. The lookahead keeps next month open so
    advance payments can be recorded before it begins.

    Returns an empty list when start_date is missing or malformed, and also when
    start_date's month is already past the end bound.
    """
    start = month_key(start_date)
    if start is None:
        return []

    end = add_months(current_month_key(), lookahead)
    months = []
    cursor = start
    while cursor <= end:
        months.append(cursor)
        cursor = add_months(cursor, 1)
    return months


def format_month(key: str) -> str:
    """Formats "2026-01" as "Jan 2026"."""
    parsed = _parse_year_month(key)
    if parsed is None:
        return '-'
    year, month = parsed
    return date(year, month, 1).strftime('%b %Y')


def format_date(value) -> str:
    """Formats "2025-06-15" as "15 Jun 2025"; "-" for missing or malformed dates."""
    parsed = parse_date(value)
    if parsed is None:
        return '-'
    return parsed.strftime('%d %b %Y')


def _group_indian(digits: str) -> str:
    # 1234567 -> 12,34,567
    if len(digits) <= 3:
        return digits
    head, tail = digits[:-3], digits[-3:]
    groups = []
    while len(head) > 2:
        groups.insert(0, head[-2:])
        head = head[:-2]
    if head:
        groups.insert(0, head)
    return ','.join(groups + [tail])


def format_currency(amount) -> str:
    """Formats an amount with the currency symbol and Indian digit grouping (₹1,00,000)."""
    try:
        value = float(amount or 0)
    except (TypeError, ValueError):
        log.warning(f"Could not format amount '{amount}' as currency")
        value = 0.0

    sign = '-' if value < 0 else ''
    value = abs(value)
    if value == int(value):
        whole, fraction = str(int(value)), ''
    else:
        whole, fraction = f"{value:.2f}".split('.')
        fraction = '.' + fraction.rstrip('0')
    return f"{sign}{CURRENCY_SYMBOL}{_group_indian(whole)}{fraction}"
