"""
Time Entry Costing Engine (``payroll_engines.costing``).

Responsibility
--------------
Costs raw time-tracking entries against the compensation and project
multiplier in effect on each entry's date:

    totalCost     = hours * hourlyRate
    billableValue = billableHours * hourlyRate * multiplier
    efficiency    = billableHours / hours   (0 when hours is 0)

Architecture position
---------------------
**Engines layer** -- pure functional core.  ZERO I/O, ZERO clock reads.
Reads (never writes) the ledgers and directories it is given.

Invariants enforced
-------------------
* ``hours == billable_hours + non_billable_hours``; an entry is wholly
  billable or wholly non-billable, mirroring its ``billable`` flag.
* Every division checks its denominator and yields 0 instead of failing.
* Per-entry problems never raise.  Entries with an unknown employee, an
  unknown project or no compensation on their date are returned as
  ``SkipRecord`` values and the batch continues.

Failure modes
-------------
* ``LedgerCorruptionError`` from a ledger resolve is the only exception
  that escapes ``process``; it aborts the whole batch.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Any

from payroll_engines.ledger import CompensationLedger, ProjectMultiplierLedger
from payroll_engines.tracer import traced_engine
from payroll_kernel.domain.records import Employee, Project, RawTimeEntry
from payroll_kernel.domain.values import ZERO, calendar_date, parse_date, to_decimal
from payroll_kernel.logging_config import get_logger

logger = get_logger("engines.costing")

# Searched, not anchored: "P1DT2H" still yields 2 hours, "" and "P1D" yield 0.
_DURATION_PATTERN = re.compile(r"PT(?:(\d+)H)?(?:(\d+)M)?(?:(\d+)S)?")
_SECONDS_PER_HOUR = Decimal("3600")


def parse_duration_hours(duration: str | None) -> Decimal:
    """
    Parse an ISO-8601 duration (``PT[nH][nM][nS]`` subset) into hours.

    Absent groups count as 0.  A string that does not match the pattern
    parses to 0 hours; this is not an error.

    >>> parse_duration_hours("PT2H30M")
    Decimal('2.5')
    """
    if not duration:
        return ZERO
    match = _DURATION_PATTERN.search(duration)
    if match is None:
        return ZERO
    hours, minutes, seconds = (int(group) if group else 0 for group in match.groups())
    total_seconds = hours * 3600 + minutes * 60 + seconds
    return Decimal(total_seconds) / _SECONDS_PER_HOUR


class SkipReason(str, Enum):
    """Why an entry was not costed."""

    UNKNOWN_EMPLOYEE = "unknown-employee"
    UNKNOWN_PROJECT = "unknown-project"
    MISSING_SALARY = "missing-salary"


@dataclass(frozen=True)
class SkipRecord:
    """A raw entry the engine could not cost, with the reason."""

    entry_id: str
    reason: SkipReason
    message: str
    user_id: str | None = None
    project_id: str | None = None
    entry_date: date | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "entryId": self.entry_id,
            "reason": self.reason.value,
            "message": self.message,
            "userId": self.user_id,
            "projectId": self.project_id,
            "date": self.entry_date.isoformat() if self.entry_date else None,
        }


@dataclass(frozen=True)
class CostedTimeEntry:
    """A time entry enriched with the rate and multiplier in effect on its date."""

    employee_id: str
    employee_name: str
    project_id: str
    project_name: str
    date: date
    hours: Decimal
    billable_hours: Decimal
    non_billable_hours: Decimal
    hourly_rate: Decimal
    project_multiplier: Decimal
    total_cost: Decimal
    billable_value: Decimal
    efficiency: Decimal
    description: str = ""
    tags: tuple[str, ...] = ()
    entry_id: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "entryId": self.entry_id,
            "employeeId": self.employee_id,
            "employeeName": self.employee_name,
            "projectId": self.project_id,
            "projectName": self.project_name,
            "date": self.date.isoformat(),
            "hours": str(self.hours),
            "billableHours": str(self.billable_hours),
            "nonBillableHours": str(self.non_billable_hours),
            "hourlyRate": str(self.hourly_rate),
            "projectMultiplier": str(self.project_multiplier),
            "totalCost": str(self.total_cost),
            "billableValue": str(self.billable_value),
            "efficiency": str(self.efficiency),
            "description": self.description,
            "tags": list(self.tags),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> CostedTimeEntry:
        """Rebuild from ``to_dict`` output (exported state snapshots)."""
        return cls(
            employee_id=str(data["employeeId"]),
            employee_name=data.get("employeeName") or "",
            project_id=str(data["projectId"]),
            project_name=data.get("projectName") or "",
            date=parse_date(data["date"]),
            hours=to_decimal(data["hours"]),
            billable_hours=to_decimal(data["billableHours"]),
            non_billable_hours=to_decimal(data["nonBillableHours"]),
            hourly_rate=to_decimal(data["hourlyRate"]),
            project_multiplier=to_decimal(data["projectMultiplier"]),
            total_cost=to_decimal(data["totalCost"]),
            billable_value=to_decimal(data["billableValue"]),
            efficiency=to_decimal(data["efficiency"]),
            description=data.get("description") or "",
            tags=tuple(data.get("tags") or ()),
            entry_id=data.get("entryId"),
        )


@dataclass(frozen=True)
class CostingSummary:
    """Batch totals reported back to import callers."""

    total_entries: int = 0
    billable_hours: Decimal = ZERO
    non_billable_hours: Decimal = ZERO
    total_cost: Decimal = ZERO
    total_billable_value: Decimal = ZERO

    def to_dict(self) -> dict[str, Any]:
        return {
            "totalEntries": self.total_entries,
            "billableHours": str(self.billable_hours),
            "nonBillableHours": str(self.non_billable_hours),
            "totalCost": str(self.total_cost),
            "totalBillableValue": str(self.total_billable_value),
        }


@dataclass(frozen=True)
class CostingResult:
    """Output of one costing batch: costed entries plus skipped entries."""

    costed: tuple[CostedTimeEntry, ...] = ()
    skipped: tuple[SkipRecord, ...] = field(default_factory=tuple)

    @property
    def total_entries(self) -> int:
        return len(self.costed) + len(self.skipped)

    def summary(self) -> CostingSummary:
        return CostingSummary(
            total_entries=self.total_entries,
            billable_hours=sum((e.billable_hours for e in self.costed), ZERO),
            non_billable_hours=sum((e.non_billable_hours for e in self.costed), ZERO),
            total_cost=sum((e.total_cost for e in self.costed), ZERO),
            total_billable_value=sum((e.billable_value for e in self.costed), ZERO),
        )


def cost_entry(
    entry: RawTimeEntry,
    employee: Employee,
    project: Project,
    entry_date: date,
    hourly_rate: Decimal,
    multiplier: Decimal,
) -> CostedTimeEntry:
    """Apply the costing formulas to a single resolved entry."""
    hours = parse_duration_hours(entry.time_interval.duration)
    if entry.billable:
        billable_hours, non_billable_hours = hours, ZERO
    else:
        billable_hours, non_billable_hours = ZERO, hours

    total_cost = hours * hourly_rate
    billable_value = billable_hours * hourly_rate * multiplier
    efficiency = billable_hours / hours if hours > ZERO else ZERO

    return CostedTimeEntry(
        employee_id=employee.id,
        employee_name=employee.name,
        project_id=project.id,
        project_name=project.name,
        date=entry_date,
        hours=hours,
        billable_hours=billable_hours,
        non_billable_hours=non_billable_hours,
        hourly_rate=hourly_rate,
        project_multiplier=multiplier,
        total_cost=total_cost,
        billable_value=billable_value,
        efficiency=efficiency,
        description=entry.description or "",
        tags=tuple(entry.tags),
        entry_id=entry.id,
    )


class TimeEntryCostingEngine:
    """
    Stateless costing of raw time entries.

    Contract:
        No I/O, fully deterministic for a given ledger state.  Directories
        and ledgers are passed per call and only read.
    Guarantees:
        - Entries are examined in input order; costed and skipped outputs
          preserve that order.
        - Lookup order per entry: employee, project, compensation,
          multiplier.  The first failing lookup determines the skip reason.
    Non-goals:
        - Does not persist costed entries.
        - Does not re-resolve names after costing; names are copied from
          the directories for display.
    """

    @traced_engine("costing", "1.0", fingerprint_fields=("entries",))
    def process(
        self,
        entries: Iterable[RawTimeEntry],
        employees: Mapping[str, Employee],
        projects: Mapping[str, Project],
        compensation: CompensationLedger,
        multipliers: ProjectMultiplierLedger,
    ) -> CostingResult:
        """
        Cost a batch of raw entries.

        Raises:
            LedgerCorruptionError: a ledger key cannot be interpreted.
        """
        costed: list[CostedTimeEntry] = []
        skipped: list[SkipRecord] = []

        for entry in entries:
            employee = employees.get(entry.user_id)
            if employee is None:
                skipped.append(self._skip(
                    entry, SkipReason.UNKNOWN_EMPLOYEE,
                    f"No employee record found for user {entry.user_id} (entry {entry.id})",
                ))
                continue

            project = projects.get(entry.project_id)
            if project is None:
                skipped.append(self._skip(
                    entry, SkipReason.UNKNOWN_PROJECT,
                    f"Unknown project {entry.project_id} for entry {entry.id}",
                ))
                continue

            entry_date = calendar_date(entry.time_interval.start)
            salary = compensation.resolve(employee.id, entry_date)
            if salary is None:
                skipped.append(self._skip(
                    entry, SkipReason.MISSING_SALARY,
                    f"No salary in effect for employee {employee.id} "
                    f"({employee.name}) on {entry_date.isoformat()}",
                    entry_date=entry_date,
                ))
                continue

            multiplier = multipliers.resolve(project.id, entry_date)
            costed.append(cost_entry(
                entry, employee, project, entry_date, salary.hourly_rate, multiplier,
            ))

        result = CostingResult(costed=tuple(costed), skipped=tuple(skipped))
        summary = result.summary()
        logger.info(
            "time_entries_costed",
            extra={
                "total_entries": summary.total_entries,
                "costed": len(costed),
                "skipped": len(skipped),
                "total_cost": str(summary.total_cost),
                "total_billable_value": str(summary.total_billable_value),
            },
        )
        return result

    @staticmethod
    def _skip(
        entry: RawTimeEntry,
        reason: SkipReason,
        message: str,
        entry_date: date | None = None,
    ) -> SkipRecord:
        logger.warning(
            "time_entry_skipped",
            extra={
                "entry_id": entry.id,
                "reason": reason.value,
                "user_id": entry.user_id,
                "project_id": entry.project_id,
            },
        )
        return SkipRecord(
            entry_id=entry.id,
            reason=reason,
            message=message,
            user_id=entry.user_id,
            project_id=entry.project_id,
            entry_date=entry_date,
        )
