"""
Values -- conversion helpers for the payroll domain.

Responsibility:
    Normalizes the loosely-typed values that arrive from payroll and
    time-tracking exports (ISO strings, JSON numbers) into ``date``,
    ``datetime`` and ``Decimal``.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.

Invariants enforced:
    - Numbers become ``Decimal`` via ``str()``, never via binary float
      arithmetic.
    - Calendar dates of timezone-aware timestamps are taken in UTC.

Failure modes:
    - ValueError / TypeError on values that cannot be interpreted.
"""

from __future__ import annotations

from datetime import date, datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Any

ZERO = Decimal("0")
ONE = Decimal("1")
HUNDRED = Decimal("100")


def to_decimal(value: Any) -> Decimal:
    """
    Convert a numeric value to ``Decimal``.

    Preconditions:
        ``value`` is a Decimal, int, float or numeric string.  Booleans are
        rejected even though they are ints.
    Raises:
        TypeError: for unsupported types.
        ValueError: for strings that are not numbers.
    """
    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool):
        raise TypeError(f"Cannot convert boolean {value!r} to Decimal")
    if isinstance(value, (int, float)):
        return Decimal(str(value))
    if isinstance(value, str):
        try:
            return Decimal(value.strip())
        except InvalidOperation as exc:
            raise ValueError(f"Not a number: {value!r}") from exc
    raise TypeError(f"Cannot convert {type(value).__name__} to Decimal")


def parse_date(value: Any) -> date:
    """
    Parse a calendar date.

    Accepts a ``date``, a ``datetime`` (its own date is used), an ISO date
    string (``2024-01-15``) or an ISO timestamp string
    (``2024-01-15T00:00:00Z``).

    Raises:
        ValueError: if ``value`` is not a valid date representation.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        text = value.strip()
        try:
            return date.fromisoformat(text)
        except ValueError:
            return datetime.fromisoformat(text).date()
    raise ValueError(f"Cannot parse date from {value!r}")


def parse_optional_date(value: Any) -> date | None:
    """``parse_date`` that maps None and empty strings to None."""
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    return parse_date(value)


def parse_timestamp(value: Any) -> datetime:
    """
    Parse an ISO-8601 timestamp (``Z`` suffix accepted).

    Raises:
        ValueError: if ``value`` is not a valid timestamp.
    """
    if isinstance(value, datetime):
        return value
    if isinstance(value, str):
        return datetime.fromisoformat(value.strip())
    raise ValueError(f"Cannot parse timestamp from {value!r}")


def calendar_date(ts: datetime) -> date:
    """Calendar date of a timestamp, normalized to UTC when tz-aware."""
    if ts.tzinfo is not None:
        return ts.astimezone(timezone.utc).date()
    return ts.date()


def iso_or_none(value: date | None) -> str | None:
    return value.isoformat() if value is not None else None


_TRUE_TEXT = frozenset({"true", "yes", "y", "1"})
_FALSE_TEXT = frozenset({"false", "no", "n", "0", ""})


def parse_flag(value: Any) -> bool:
    """
    Interpret a boolean as exported by JSON or by a spreadsheet cell.

    Strings are matched case-insensitively (``"TRUE"``, ``"yes"``, ``"0"``).

    Raises:
        ValueError: for strings that are neither true nor false.
    """
    if value is None:
        return False
    if isinstance(value, str):
        text = value.strip().lower()
        if text in _TRUE_TEXT:
            return True
        if text in _FALSE_TEXT:
            return False
        raise ValueError(f"Not a boolean: {value!r}")
    return bool(value)
