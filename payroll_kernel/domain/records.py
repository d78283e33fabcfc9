"""
Payroll Domain Records (``payroll_kernel.domain.records``).

Responsibility
--------------
Frozen dataclass value objects for the nouns the profitability engine
consumes: employees, projects, effective-dated compensation and project
multiplier records, and raw time-tracking entries.

Architecture position
---------------------
**Kernel > Domain** -- pure data definitions with ZERO I/O.  Populated by
``payroll_ingestion`` mappers, stored by ``payroll_engines.ledger`` and read
by ``payroll_engines.costing``.

Invariants enforced
-------------------
* All records are ``frozen=True``.
* Rates, salaries, multipliers are ``Decimal`` (coerced on construction).
* ``ProjectMultiplierRecord.multiplier`` is strictly positive.

Dates on compensation and multiplier records are normalized by the ledger
in ``add_record``; ISO strings are accepted at construction so an invalid
date surfaces as ``InvalidIntervalError`` at the ledger boundary.

Failure modes
-------------
* ``ValueError`` on negative rates/salaries, non-positive multipliers or an
  unknown employee status.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any

from payroll_kernel.domain.values import (
    ZERO,
    iso_or_none,
    parse_flag,
    parse_optional_date,
    parse_timestamp,
    to_decimal,
)


class EmployeeStatus(str, Enum):
    """Employment status."""

    ACTIVE = "active"
    INACTIVE = "inactive"


@dataclass(frozen=True)
class Employee:
    """An employee as known to the payroll system."""

    id: str
    name: str
    status: EmployeeStatus = EmployeeStatus.ACTIVE
    email: str | None = None
    department: str | None = None
    position: str | None = None
    hire_date: date | None = None
    termination_date: date | None = None

    def __post_init__(self) -> None:
        if not self.id:
            raise ValueError("Employee id is required")
        object.__setattr__(self, "status", EmployeeStatus(self.status))

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Employee:
        """Build from the employee import shape (camelCase keys)."""
        return cls(
            id=str(data["id"]),
            name=data["name"],
            status=data.get("status") or EmployeeStatus.ACTIVE,
            email=data.get("email"),
            department=data.get("department"),
            position=data.get("position"),
            hire_date=parse_optional_date(data.get("hireDate")),
            termination_date=parse_optional_date(data.get("terminationDate")),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "status": self.status.value,
            "department": self.department,
            "position": self.position,
            "hireDate": iso_or_none(self.hire_date),
            "terminationDate": iso_or_none(self.termination_date),
        }


@dataclass(frozen=True)
class Project:
    """A time-tracking project."""

    id: str
    name: str

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Project:
        return cls(id=str(data["id"]), name=data.get("name") or "")

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "name": self.name}


@dataclass(frozen=True)
class CompensationRecord:
    """
    Effective-dated salary and hourly rate for one employee.

    Valid over ``[effective_date, end_date)``; ``end_date`` None means the
    record is the employee's current (open) compensation.
    """

    employee_id: str
    effective_date: date
    annual_salary: Decimal
    hourly_rate: Decimal
    currency: str = "USD"
    end_date: date | None = None
    notes: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "annual_salary", to_decimal(self.annual_salary))
        object.__setattr__(self, "hourly_rate", to_decimal(self.hourly_rate))
        if self.annual_salary < ZERO:
            raise ValueError(f"annual_salary cannot be negative: {self.annual_salary}")
        if self.hourly_rate < ZERO:
            raise ValueError(f"hourly_rate cannot be negative: {self.hourly_rate}")

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> CompensationRecord:
        """Build from the compensation import shape (camelCase keys)."""
        return cls(
            employee_id=str(data["employeeId"]),
            effective_date=data["effectiveDate"],
            end_date=data.get("endDate") or None,
            annual_salary=data["annualSalary"],
            hourly_rate=data["hourlyRate"],
            currency=data.get("currency") or "USD",
            notes=data.get("notes"),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "employeeId": self.employee_id,
            "effectiveDate": _date_text(self.effective_date),
            "endDate": _date_text(self.end_date),
            "annualSalary": str(self.annual_salary),
            "hourlyRate": str(self.hourly_rate),
            "currency": self.currency,
            "notes": self.notes,
        }


@dataclass(frozen=True)
class ProjectMultiplierRecord:
    """
    Effective-dated billing multiplier for one project.

    Applied to billable value only; cost is never multiplied.
    """

    project_id: str
    project_name: str
    multiplier: Decimal
    effective_date: date
    end_date: date | None = None
    notes: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "multiplier", to_decimal(self.multiplier))
        if self.multiplier <= ZERO:
            raise ValueError(f"multiplier must be positive: {self.multiplier}")

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ProjectMultiplierRecord:
        """Build from the multiplier import shape (camelCase keys)."""
        return cls(
            project_id=str(data["projectId"]),
            project_name=data.get("projectName") or "",
            multiplier=data["multiplier"],
            effective_date=data["effectiveDate"],
            end_date=data.get("endDate") or None,
            notes=data.get("notes"),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "projectId": self.project_id,
            "projectName": self.project_name,
            "multiplier": str(self.multiplier),
            "effectiveDate": _date_text(self.effective_date),
            "endDate": _date_text(self.end_date),
            "notes": self.notes,
        }


@dataclass(frozen=True)
class TimeInterval:
    """Start/end of a time entry plus its ISO-8601 duration string."""

    start: datetime
    duration: str = ""
    end: datetime | None = None


@dataclass(frozen=True)
class RawTimeEntry:
    """A time entry as delivered by the time-tracking system."""

    id: str
    user_id: str
    project_id: str
    billable: bool
    time_interval: TimeInterval
    description: str | None = None
    tags: tuple[str, ...] = field(default_factory=tuple)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> RawTimeEntry:
        """Build from the canonical raw entry shape (camelCase keys)."""
        interval = data["timeInterval"]
        end = interval.get("end")
        return cls(
            id=str(data["id"]),
            user_id=str(data["userId"]),
            project_id=str(data["projectId"]),
            billable=parse_flag(data.get("billable", False)),
            description=data.get("description"),
            tags=_tag_tuple(data.get("tags")),
            time_interval=TimeInterval(
                start=parse_timestamp(interval["start"]),
                end=parse_timestamp(end) if end else None,
                duration=interval.get("duration") or "",
            ),
        )


def _date_text(value: Any) -> str | None:
    # Restored snapshots may carry dates that never went through a ledger.
    if value is None:
        return None
    if isinstance(value, date):
        return value.isoformat()
    return str(value)


def _tag_tuple(value: Any) -> tuple[str, ...]:
    # Spreadsheet exports flatten tags into one comma-separated cell.
    if isinstance(value, str):
        return tuple(tag.strip() for tag in value.split(",") if tag.strip())
    return tuple(value or ())
