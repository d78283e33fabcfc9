"""SurePayroll payload mappers."""

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

SOURCE = "surepayroll"


@maps_payload(SOURCE, "id")
def map_employee(payload: dict[str, Any]) -> Employee:
    name = text_or_none(payload.get("displayName"))
    if name is None:
        name = " ".join(
            part for part in (
                text_or_none(payload.get("firstName")),
                text_or_none(payload.get("lastName")),
            ) if part
        )
    status = EmployeeStatus.ACTIVE if payload.get("status") == "active" else EmployeeStatus.INACTIVE
    return Employee(
        id=str(payload["id"]),
        name=name,
        status=status,
        email=text_or_none(payload.get("email")),
        department=text_or_none(payload.get("department")),
        position=text_or_none(payload.get("jobTitle")),
        hire_date=parse_optional_date(payload.get("hireDate")),
        termination_date=parse_optional_date(payload.get("terminationDate")),
    )


@maps_payload(SOURCE, "employeeId")
def map_compensation(
    payload: dict[str, Any],
    import_date: date,
    default_pay_period: str = "monthly",
    default_currency: str = "USD",
    standard_hours: Decimal = STANDARD_HOURS_PER_YEAR,
) -> CompensationRecord:
    """
    Map one compensation row.

    SurePayroll reports both figures; when one is missing it is derived
    from the other using the pay schedule.
    """
    employee_id = str(payload["employeeId"])
    pay_type = text_or_none(payload.get("payType")) or "salary"
    pay_schedule = text_or_none(payload.get("paySchedule")) or default_pay_period

    annual = payload.get("annualSalary")
    hourly = payload.get("hourlyRate")
    if annual in (None, "") and hourly in (None, ""):
        raise SourceRecordError(SOURCE, employee_id, "missing annualSalary and hourlyRate")
    if hourly in (None, ""):
        annual_salary = parse_amount(annual)
        hourly_rate = hourly_rate_from_annual(annual_salary, pay_schedule, standard_hours)
    elif annual in (None, ""):
        hourly_rate = parse_amount(hourly)
        annual_salary = annual_salary_from_hourly(hourly_rate, pay_schedule, standard_hours)
    else:
        annual_salary, hourly_rate = parse_amount(annual), parse_amount(hourly)

    return CompensationRecord(
        employee_id=employee_id,
        effective_date=parse_optional_date(payload.get("effectiveDate")) or import_date,
        end_date=parse_optional_date(payload.get("endDate")),
        annual_salary=annual_salary,
        hourly_rate=hourly_rate,
        currency=text_or_none(payload.get("currency")) or default_currency,
        notes=f"Imported from SurePayroll - {pay_type} ({pay_schedule})",
    )
