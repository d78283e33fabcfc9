"""
BambooHR payload mappers.

Employee directory rows and per-employee compensation rows, as returned by
the BambooHR API, mapped to ``Employee`` and ``CompensationRecord``.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Any

from payroll_engines.rates import (
    STANDARD_HOURS_PER_YEAR,
    annual_salary_from_hourly,
    hourly_rate_from_annual,
)
from payroll_ingestion.mapping.common import maps_payload, parse_amount, text_or_none
from payroll_kernel.domain.records import CompensationRecord, Employee, EmployeeStatus
from payroll_kernel.domain.values import parse_optional_date
from payroll_kernel.exceptions import SourceRecordError

SOURCE = "bamboohr"

DEFAULT_PAY_PERIOD = "monthly"
DEFAULT_CURRENCY = "USD"

_ANNUAL_PAY_TYPES = frozenset({"salary", "annual"})
_HOURLY_PAY_TYPES = frozenset({"hourly"})


def employee_name(payload: dict[str, Any]) -> str:
    """preferredName, else displayName, else "first last"."""
    for key in ("preferredName", "displayName"):
        name = text_or_none(payload.get(key))
        if name:
            return name
    first = text_or_none(payload.get("firstName")) or ""
    last = text_or_none(payload.get("lastName")) or ""
    return f"{first} {last}".strip()


@maps_payload(SOURCE, "id")
def map_employee(payload: dict[str, Any]) -> Employee:
    status = EmployeeStatus.ACTIVE if payload.get("status") == "active" else EmployeeStatus.INACTIVE
    return Employee(
        id=str(payload["id"]),
        name=employee_name(payload),
        status=status,
        email=text_or_none(payload.get("workEmail") or payload.get("email")),
        department=text_or_none(payload.get("department")),
        position=text_or_none(payload.get("jobTitle")),
        hire_date=parse_optional_date(payload.get("hireDate")),
        termination_date=parse_optional_date(payload.get("terminationDate")),
    )


@maps_payload(SOURCE, "employeeId", "id")
def map_compensation(
    payload: dict[str, Any],
    import_date: date,
    default_pay_period: str = DEFAULT_PAY_PERIOD,
    default_currency: str = DEFAULT_CURRENCY,
    standard_hours: Decimal = STANDARD_HOURS_PER_YEAR,
) -> CompensationRecord:
    """
    Map one compensation row.

    ``payType`` salary/annual means ``payRate`` is an annual salary and the
    hourly rate is derived from the pay period; ``hourly`` is the reverse.
    Rows without ``payRate`` or ``payType`` are rejected.  A missing
    effective date defaults to ``import_date``.  Pay periods without a
    schedule of their own (``annual``) use ``standard_hours`` per year.
    """
    employee_id = str(payload["employeeId"])
    pay_rate = payload.get("payRate")
    pay_type = text_or_none(payload.get("payType"))
    if pay_rate in (None, "") or pay_type is None:
        raise SourceRecordError(SOURCE, employee_id, "missing payRate or payType")

    pay_type = pay_type.lower()
    pay_period = text_or_none(payload.get("payPeriod")) or default_pay_period
    amount = parse_amount(pay_rate)
    if pay_type in _ANNUAL_PAY_TYPES:
        annual_salary = amount
        hourly_rate = hourly_rate_from_annual(amount, pay_period, standard_hours)
    elif pay_type in _HOURLY_PAY_TYPES:
        hourly_rate = amount
        annual_salary = annual_salary_from_hourly(amount, pay_period, standard_hours)
    else:
        raise SourceRecordError(SOURCE, employee_id, f"unsupported payType {pay_type!r}")

    return CompensationRecord(
        employee_id=employee_id,
        effective_date=parse_optional_date(payload.get("effectiveDate")) or import_date,
        end_date=parse_optional_date(payload.get("endDate")),
        annual_salary=annual_salary,
        hourly_rate=hourly_rate,
        currency=text_or_none(payload.get("payCurrency")) or default_currency,
        notes=f"Imported from BambooHR - {pay_type} ({pay_period})",
    )
