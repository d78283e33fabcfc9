"""
payroll_services.profitability_service -- Explicit profitability service.

Responsibility:
    Owns the employee and project directories, the compensation and
    project-multiplier ledgers and the costed time entries produced so
    far.  Runs the costing engine and the report builder over that state,
    and exports/restores it as a JSON-compatible snapshot.

Architecture position:
    Services -- stateful orchestration over engines + kernel.  Callers
    construct one instance and pass it where it is needed; there is no
    module-level instance.

Invariants enforced:
    - Ledger writes are serialized per (ledger, key) with a lock, so the
      "close previous open record, then insert" step of ``add_record`` is
      atomic for each employee and project.
    - Costed entries are keyed by time-entry id; re-importing an entry
      replaces its previous costing.

Failure modes:
    - InvalidIntervalError / IntervalOverlapError from ``add_salary`` and
      ``add_project_multiplier``; the ledger is unchanged.
    - LedgerCorruptionError from costing or rate lookups over restored
      state.
    - KeyError from ``update_employee`` for an unknown employee.
"""

from __future__ import annotations

import threading
from collections.abc import Iterable, Iterator, Mapping
from contextlib import contextmanager
from datetime import date, datetime
from decimal import Decimal
from typing import Any

from payroll_engines.costing import CostedTimeEntry, CostingResult, TimeEntryCostingEngine
from payroll_engines.directory import EmployeeDirectory, ProjectDirectory
from payroll_engines.ledger import CompensationLedger, ProjectMultiplierLedger
from payroll_engines.profitability import (
    EmployeeProfitabilityReport,
    PortfolioReport,
    ProfitabilityReportBuilder,
    ProjectProfitabilityReport,
)
from payroll_kernel.domain.clock import Clock, SystemClock
from payroll_kernel.domain.records import (
    CompensationRecord,
    Employee,
    Project,
    ProjectMultiplierRecord,
    RawTimeEntry,
)
from payroll_kernel.domain.values import ZERO
from payroll_kernel.logging_config import get_logger

logger = get_logger("services.profitability")

SNAPSHOT_VERSION = 1


class ProfitabilityService:
    """In-memory payroll profitability state plus the operations over it."""

    def __init__(
        self,
        clock: Clock | None = None,
        costing_engine: TimeEntryCostingEngine | None = None,
        report_builder: ProfitabilityReportBuilder | None = None,
    ):
        self._clock = clock or SystemClock()
        self._costing = costing_engine or TimeEntryCostingEngine()
        self._reports = report_builder or ProfitabilityReportBuilder()

        self.employees = EmployeeDirectory()
        self.projects = ProjectDirectory()
        self.compensation = CompensationLedger()
        self.multipliers = ProjectMultiplierLedger()

        self._costed: dict[str, CostedTimeEntry] = {}
        self._last_processed_at: datetime | None = None

        self._locks: dict[tuple[str, str], threading.Lock] = {}
        self._locks_guard = threading.Lock()
        self._costed_lock = threading.Lock()

    @property
    def clock(self) -> Clock:
        return self._clock

    @contextmanager
    def _key_lock(self, ledger: str, key: str) -> Iterator[None]:
        with self._locks_guard:
            lock = self._locks.setdefault((ledger, key), threading.Lock())
        with lock:
            yield

    # ------------------------------------------------------------------
    # Directories
    # ------------------------------------------------------------------

    def add_employee(self, employee: Employee | Mapping[str, Any]) -> Employee:
        if not isinstance(employee, Employee):
            employee = Employee.from_dict(dict(employee))
        return self.employees.add(employee)

    def update_employee(self, employee_id: str, **changes: Any) -> Employee:
        return self.employees.update(employee_id, **changes)

    def get_employee(self, employee_id: str) -> Employee | None:
        return self.employees.get_employee(employee_id)

    def all_employees(self) -> tuple[Employee, ...]:
        return self.employees.all()

    def add_project(self, project: Project | Mapping[str, Any]) -> Project:
        if not isinstance(project, Project):
            project = Project.from_dict(dict(project))
        return self.projects.add(project)

    # ------------------------------------------------------------------
    # Compensation and multipliers
    # ------------------------------------------------------------------

    def add_salary(
        self, record: CompensationRecord | Mapping[str, Any],
    ) -> CompensationRecord:
        if not isinstance(record, CompensationRecord):
            record = CompensationRecord.from_dict(dict(record))
        with self._key_lock(self.compensation.ledger_name, record.employee_id):
            return self.compensation.add_record(record.employee_id, record)

    def salary_on(self, employee_id: str, on: date | str) -> CompensationRecord | None:
        return self.compensation.resolve(employee_id, on)

    def salary_history(self, employee_id: str) -> tuple[CompensationRecord, ...]:
        return self.compensation.history(employee_id)

    def add_project_multiplier(
        self, record: ProjectMultiplierRecord | Mapping[str, Any],
    ) -> ProjectMultiplierRecord:
        if not isinstance(record, ProjectMultiplierRecord):
            record = ProjectMultiplierRecord.from_dict(dict(record))
        with self._key_lock(self.multipliers.ledger_name, record.project_id):
            return self.multipliers.add_record(record.project_id, record)

    def multiplier_on(self, project_id: str, on: date | str) -> Decimal:
        return self.multipliers.resolve(project_id, on)

    def multiplier_history(self, project_id: str) -> tuple[ProjectMultiplierRecord, ...]:
        return self.multipliers.history(project_id)

    # ------------------------------------------------------------------
    # Costing and reports
    # ------------------------------------------------------------------

    def process_time_entries(self, entries: Iterable[RawTimeEntry]) -> CostingResult:
        """Cost ``entries`` and keep the costed results for reporting."""
        result = self._costing.process(
            entries=list(entries),
            employees=self.employees,
            projects=self.projects,
            compensation=self.compensation,
            multipliers=self.multipliers,
        )
        with self._costed_lock:
            for entry in result.costed:
                self._costed[self._costed_key(entry)] = entry
            self._last_processed_at = self._clock.now()
        return result

    def costed_entries(self) -> tuple[CostedTimeEntry, ...]:
        with self._costed_lock:
            return tuple(self._costed.values())

    def project_report(
        self,
        project_id: str,
        start: date | str,
        end: date | str,
        revenue: Decimal | int | str = ZERO,
    ) -> ProjectProfitabilityReport:
        return self._reports.project_report(
            project_id=project_id,
            start=start,
            end=end,
            costed=self.costed_entries(),
            revenue=revenue,
        )

    def employee_report(
        self, employee_id: str, start: date | str, end: date | str,
    ) -> EmployeeProfitabilityReport:
        return self._reports.employee_report(
            employee_id=employee_id,
            start=start,
            end=end,
            costed=self.costed_entries(),
        )

    def portfolio_report(
        self,
        start: date | str,
        end: date | str,
        project_revenues: Mapping[str, Decimal | int | str] | None = None,
    ) -> PortfolioReport:
        return self._reports.portfolio_report(
            start, end, self.costed_entries(), project_revenues,
        )

    def statistics(self) -> dict[str, Any]:
        return {
            "totalEmployees": len(self.employees),
            "totalProjects": len(self.projects),
            "totalSalaries": self.compensation.record_count(),
            "totalProjectMultipliers": self.multipliers.record_count(),
            "totalTimeEntries": len(self._costed),
            "lastImportDate": (
                self._last_processed_at.isoformat() if self._last_processed_at else None
            ),
        }

    # ------------------------------------------------------------------
    # Snapshots
    # ------------------------------------------------------------------

    def export_state(self) -> dict[str, Any]:
        """JSON-compatible snapshot of all state."""
        return {
            "version": SNAPSHOT_VERSION,
            "exportedAt": self._clock.now().isoformat(),
            "employees": [e.to_dict() for e in self.employees.all()],
            "projects": [p.to_dict() for p in self.projects.all()],
            "salaries": [
                r.to_dict()
                for key in self.compensation.keys()
                for r in self.compensation.history(key)
            ],
            "multipliers": [
                r.to_dict()
                for key in self.multipliers.keys()
                for r in self.multipliers.history(key)
            ],
            "timeEntries": [e.to_dict() for e in self.costed_entries()],
        }

    def restore_state(self, state: Mapping[str, Any]) -> None:
        """
        Replace all state with ``state`` (``export_state`` output).

        Ledger records are loaded verbatim; they are checked when resolved
        or when the key is next written.
        """
        employees = EmployeeDirectory([Employee.from_dict(e) for e in state.get("employees", ())])
        projects = ProjectDirectory([Project.from_dict(p) for p in state.get("projects", ())])

        compensation = CompensationLedger()
        for key, records in _group_records(
            (CompensationRecord.from_dict(r) for r in state.get("salaries", ())),
            lambda r: r.employee_id,
        ).items():
            compensation.restore(key, records)

        multipliers = ProjectMultiplierLedger()
        for key, records in _group_records(
            (ProjectMultiplierRecord.from_dict(r) for r in state.get("multipliers", ())),
            lambda r: r.project_id,
        ).items():
            multipliers.restore(key, records)

        costed: dict[str, CostedTimeEntry] = {}
        for position, data in enumerate(state.get("timeEntries", ())):
            entry = CostedTimeEntry.from_dict(data)
            costed[entry.entry_id or f"#{position}"] = entry

        self.employees, self.projects = employees, projects
        self.compensation, self.multipliers = compensation, multipliers
        with self._costed_lock:
            self._costed = costed

        logger.info(
            "profitability_state_restored",
            extra={
                "employees": len(employees),
                "projects": len(projects),
                "salaries": compensation.record_count(),
                "multipliers": multipliers.record_count(),
                "time_entries": len(costed),
            },
        )

    def _costed_key(self, entry: CostedTimeEntry) -> str:
        if entry.entry_id:
            return entry.entry_id
        return f"#{len(self._costed)}"


def _group_records(records: Iterable[Any], key_of: Any) -> dict[str, list[Any]]:
    grouped: dict[str, list[Any]] = {}
    for record in records:
        grouped.setdefault(key_of(record), []).append(record)
    return grouped
