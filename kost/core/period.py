"""
Billing periods.

A period is a calendar month written as ``YYYY-MM`` with a zero-padded month.
The fixed width makes plain string comparison match chronological order, and
``expense_date`` values (``YYYY-MM-DD``) belong to a period when they start with it.
"""
import re
from datetime import date, datetime, timezone
from typing import List, Optional, Tuple

from kost.core.errors import ValidationFailed

PERIOD_RE = re.compile(r"^\d{4}-(0[1-9]|1[0-2])$")
DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def is_valid_period(value: Optional[str]) -> bool:
    return isinstance(value, str) and PERIOD_RE.match(value) is not None


def is_valid_date(value: Optional[str]) -> bool:
    """A real calendar day written as YYYY-MM-DD."""
    if not isinstance(value, str) or DATE_RE.match(value) is None:
        return False
    try:
        date.fromisoformat(value)
    except ValueError:
        return False
    return True


def validate_period(value: Optional[str]) -> str:
    """Return ``value`` unchanged or raise ValidationFailed."""
    if not is_valid_period(value):
        raise ValidationFailed("Invalid period format", {"period": "Must be YYYY-MM"})
    return value


def _split(period: str) -> Tuple[int, int]:
    year, month = validate_period(period).split("-")
    return int(year), int(month)


def format_period(year: int, month: int) -> str:
    return f"{year:04d}-{month:02d}"


def next_period(period: str) -> str:
    year, month = _split(period)
    if month == 12:
        return format_period(year + 1, 1)
    return format_period(year, month + 1)


def previous_period(period: str) -> str:
    year, month = _split(period)
    if month == 1:
        return format_period(year - 1, 12)
    return format_period(year, month - 1)


def period_of(day: date) -> str:
    return format_period(day.year, day.month)


def current_period() -> str:
    return period_of(datetime.now(timezone.utc).date())


def today_iso() -> str:
    return datetime.now(timezone.utc).date().isoformat()


def period_range(start: str, end: str) -> List[str]:
    """Inclusive list of periods from ``start`` to ``end``; empty when start > end."""
    validate_period(start)
    validate_period(end)
    periods: List[str] = []
    current = start
    while current <= end:
        periods.append(current)
        current = next_period(current)
    return periods


def last_periods(count: int, end: Optional[str] = None) -> List[str]:
    """The ``count`` periods ending at ``end`` (default: current period), oldest first."""
    current = end or current_period()
    periods = [current]
    for _ in range(count - 1):
        current = previous_period(current)
        periods.append(current)
    periods.reverse()
    return periods


def invoice_number(period: str, seq: int) -> str:
    """INV-YYYYMM-NNNN"""
    return f"INV-{period.replace('-', '')}-{seq:04d}"


def invoice_sequence(invoice_no: str) -> int:
    """The NNNN part of INV-YYYYMM-NNNN; 0 when it is not a number."""
    suffix = invoice_no.rsplit("-", 1)[-1]
    return int(suffix) if suffix.isdigit() else 0
