"""
Pay-schedule rate conversion (``payroll_engines.rates``).

Converts between annual salary and hourly rate using the working hours a
pay schedule implies per year.  Payroll exports report either figure
depending on the employee's pay type; the compensation ledger stores both.

Pure functions, no I/O.
"""

from __future__ import annotations

from decimal import Decimal
from enum import Enum

from payroll_kernel.domain.values import ZERO, to_decimal

STANDARD_HOURS_PER_YEAR = Decimal("2080")


class PaySchedule(str, Enum):
    """Pay schedules reported by payroll systems."""

    WEEKLY = "weekly"
    BI_WEEKLY = "bi-weekly"
    SEMI_MONTHLY = "semi-monthly"
    MONTHLY = "monthly"


_HOURS_PER_YEAR: dict[str, Decimal] = {
    PaySchedule.WEEKLY.value: Decimal("52") * Decimal("40"),
    PaySchedule.BI_WEEKLY.value: Decimal("26") * Decimal("80"),
    PaySchedule.SEMI_MONTHLY.value: Decimal("24") * Decimal("86.67"),
    PaySchedule.MONTHLY.value: Decimal("12") * Decimal("173.33"),
}


def hours_per_year(
    schedule: str | PaySchedule | None = None,
    standard_hours: Decimal = STANDARD_HOURS_PER_YEAR,
) -> Decimal:
    """
    Working hours per year for ``schedule``.

    Unknown or missing schedules fall back to ``standard_hours`` (the
    2080-hour year unless configured otherwise).  Lookup is
    case-insensitive and accepts ``biweekly``/``semimonthly``.
    """
    if schedule is None:
        return standard_hours
    key = schedule.value if isinstance(schedule, PaySchedule) else str(schedule)
    key = key.strip().lower()
    key = {"biweekly": "bi-weekly", "semimonthly": "semi-monthly"}.get(key, key)
    return _HOURS_PER_YEAR.get(key, standard_hours)


def hourly_rate_from_annual(
    annual_salary: Decimal | int | str,
    schedule: str | PaySchedule | None = None,
    standard_hours: Decimal = STANDARD_HOURS_PER_YEAR,
) -> Decimal:
    """Hourly rate implied by ``annual_salary`` on ``schedule``."""
    annual = to_decimal(annual_salary)
    hours = hours_per_year(schedule, standard_hours)
    return annual / hours if hours > ZERO else ZERO


def annual_salary_from_hourly(
    hourly_rate: Decimal | int | str,
    schedule: str | PaySchedule | None = None,
    standard_hours: Decimal = STANDARD_HOURS_PER_YEAR,
) -> Decimal:
    """Annual salary implied by ``hourly_rate`` on ``schedule``."""
    return to_decimal(hourly_rate) * hours_per_year(schedule, standard_hours)
