"""
payroll_ingestion.domain.types -- Pure frozen dataclasses for import results.

ZERO I/O.  Every result exposes ``to_dict()`` with the camelCase keys API
consumers expect; Decimals are rendered as strings.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Any

from payroll_engines.costing import CostingSummary


@dataclass(frozen=True)
class ImportResult:
    """
    Outcome of a time-entry import batch.

    ``success`` is True for an empty batch; otherwise True when at least
    one entry was imported.
    """

    records_imported: int
    records_skipped: int
    errors: tuple[str, ...] = ()
    summary: CostingSummary = field(default_factory=CostingSummary)

    @property
    def success(self) -> bool:
        if self.summary.total_entries == 0:
            return True
        return self.records_imported > 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": self.success,
            "recordsImported": self.records_imported,
            "recordsSkipped": self.records_skipped,
            "errors": list(self.errors),
            "summary": self.summary.to_dict(),
        }


@dataclass(frozen=True)
class PayrollImportResult:
    """Outcome of importing employees and compensation from a payroll system."""

    source: str
    import_date: date
    employees_imported: int = 0
    records_imported: int = 0
    records_skipped: int = 0
    errors: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "source": self.source,
            "importDate": self.import_date.isoformat(),
            "employeesImported": self.employees_imported,
            "recordsImported": self.records_imported,
            "recordsSkipped": self.records_skipped,
            "errors": list(self.errors),
        }
