"""
Import service: fetch -> map -> load into the profitability service.

Orchestrates sources, payload mappers and the costing engine.
Uses structured logging (LogContext, get_logger("ingestion.*")).

Per-record problems (unmappable payloads, rejected ledger records, skipped
time entries) are counted and reported in the result, never raised.  Only
``LedgerCorruptionError`` aborts a time-entry batch.
"""

from __future__ import annotations

from datetime import date
from typing import Any
from uuid import uuid4

from payroll_config.schema import CostingConfig
from payroll_engines.costing import CostingSummary
from payroll_ingestion.adapters.base import (
    CompensationSource,
    EmployeeSource,
    MultiplierSource,
    TimeEntrySource,
)
from payroll_ingestion.domain.types import ImportResult, PayrollImportResult
from payroll_ingestion.mapping import (
    PAYROLL_MAPPERS,
    TIME_TRACKING_MAPPERS,
    map_canonical_multiplier,
)
from payroll_kernel.domain.clock import Clock
from payroll_kernel.domain.records import RawTimeEntry
from payroll_kernel.domain.values import parse_date
from payroll_kernel.exceptions import InvalidIntervalError, SourceRecordError
from payroll_kernel.logging_config import LogContext, get_logger
from payroll_services.profitability_service import ProfitabilityService

logger = get_logger("ingestion.import_service")


class ImportService:
    """Loads payroll and time-tracking data into a ``ProfitabilityService``."""

    def __init__(
        self,
        profitability: ProfitabilityService,
        clock: Clock | None = None,
        costing_config: CostingConfig | None = None,
    ):
        self._profitability = profitability
        self._clock = clock or profitability.clock
        self._costing_config = costing_config or CostingConfig()

    def import_payroll_records(
        self,
        source_name: str,
        employee_source: EmployeeSource | None = None,
        compensation_source: CompensationSource | None = None,
    ) -> PayrollImportResult:
        """
        Import employees, then compensation, from a payroll system.

        ``source_name`` selects the payload mappers (``bamboohr``,
        ``surepayroll`` or ``canonical``).

        Raises:
            ValueError: if ``source_name`` has no mappers.
        """
        mappers = PAYROLL_MAPPERS.get(source_name)
        if mappers is None:
            raise ValueError(f"No payroll mappers for source {source_name!r}")

        import_date = self._clock.today()
        errors: list[str] = []
        employees_imported = 0
        records_imported = 0

        with LogContext.bind(batch_id=str(uuid4()), source=source_name):
            logger.info("payroll_import_started", extra={"import_date": import_date.isoformat()})

            if employee_source is not None:
                for payload in employee_source.fetch_employees():
                    try:
                        employee = mappers.employee(payload)
                    except SourceRecordError as exc:
                        errors.append(str(exc))
                        logger.warning("employee_rejected", extra={"record_id": exc.record_id, "reason": exc.reason})
                        continue
                    self._profitability.add_employee(employee)
                    employees_imported += 1

            if compensation_source is not None:
                for payload in compensation_source.fetch_compensation():
                    try:
                        record = mappers.compensation(
                            payload,
                            import_date,
                            self._costing_config.default_pay_schedule,
                            self._costing_config.default_currency,
                            self._costing_config.standard_hours_per_year,
                        )
                        self._profitability.add_salary(record)
                    except SourceRecordError as exc:
                        errors.append(str(exc))
                        logger.warning("compensation_rejected", extra={"record_id": exc.record_id, "reason": exc.reason})
                        continue
                    except InvalidIntervalError as exc:
                        errors.append(str(exc))
                        logger.warning("compensation_rejected", extra={"record_id": exc.key, "reason": exc.reason})
                        continue
                    records_imported += 1

            result = PayrollImportResult(
                source=source_name,
                import_date=import_date,
                employees_imported=employees_imported,
                records_imported=records_imported,
                records_skipped=len(errors),
                errors=tuple(errors),
            )
            logger.info(
                "payroll_import_completed",
                extra={
                    "employees_imported": employees_imported,
                    "records_imported": records_imported,
                    "records_skipped": result.records_skipped,
                },
            )
        return result

    def import_project_multipliers(self, source: MultiplierSource) -> PayrollImportResult:
        """Import project multipliers in the canonical shape."""
        import_date = self._clock.today()
        errors: list[str] = []
        imported = 0
        with LogContext.bind(batch_id=str(uuid4()), source="multipliers"):
            for payload in source.fetch_multipliers():
                try:
                    record = map_canonical_multiplier(payload)
                    self._profitability.add_project_multiplier(record)
                except SourceRecordError as exc:
                    errors.append(str(exc))
                    continue
                except InvalidIntervalError as exc:
                    errors.append(str(exc))
                    continue
                imported += 1
            logger.info(
                "multiplier_import_completed",
                extra={"records_imported": imported, "records_skipped": len(errors)},
            )
        return PayrollImportResult(
            source="multipliers",
            import_date=import_date,
            records_imported=imported,
            records_skipped=len(errors),
            errors=tuple(errors),
        )

    def import_time_entries(
        self,
        source: TimeEntrySource,
        start: date | str,
        end: date | str,
        system: str = "clockify",
    ) -> ImportResult:
        """
        Import and cost time entries for ``[start, end]``.

        Projects are refreshed from the source first.  Entries that cannot
        be mapped count as skipped alongside those the costing engine skips.

        Raises:
            ValueError: if ``system`` has no mappers.
            LedgerCorruptionError: a ledger cannot be interpreted.
        """
        mappers = TIME_TRACKING_MAPPERS.get(system)
        if mappers is None:
            raise ValueError(f"No time-tracking mappers for system {system!r}")
        start_date, end_date = parse_date(start), parse_date(end)

        with LogContext.bind(batch_id=str(uuid4()), source=system):
            logger.info(
                "time_entry_import_started",
                extra={"start": start_date.isoformat(), "end": end_date.isoformat()},
            )

            errors: list[str] = []
            for payload in source.fetch_projects():
                try:
                    self._profitability.add_project(mappers.project(payload))
                except SourceRecordError as exc:
                    errors.append(str(exc))

            raw_entries: list[RawTimeEntry] = []
            unmapped = 0
            for payload in source.fetch_time_entries(start_date, end_date):
                try:
                    raw_entries.append(mappers.time_entry(payload))
                except SourceRecordError as exc:
                    unmapped += 1
                    errors.append(str(exc))
                    logger.warning(
                        "time_entry_rejected",
                        extra={"record_id": exc.record_id, "reason": exc.reason},
                    )

            costing = self._profitability.process_time_entries(raw_entries)
            errors.extend(skip.message for skip in costing.skipped)

            costed_summary = costing.summary()
            summary = CostingSummary(
                total_entries=costed_summary.total_entries + unmapped,
                billable_hours=costed_summary.billable_hours,
                non_billable_hours=costed_summary.non_billable_hours,
                total_cost=costed_summary.total_cost,
                total_billable_value=costed_summary.total_billable_value,
            )
            result = ImportResult(
                records_imported=len(costing.costed),
                records_skipped=len(costing.skipped) + unmapped,
                errors=tuple(errors),
                summary=summary,
            )
            logger.info(
                "time_entry_import_completed",
                extra=_result_log_fields(result),
            )
        return result


def _result_log_fields(result: ImportResult) -> dict[str, Any]:
    return {
        "success": result.success,
        "records_imported": result.records_imported,
        "records_skipped": result.records_skipped,
        "errors": len(result.errors),
        "total_cost": str(result.summary.total_cost),
        "total_billable_value": str(result.summary.total_billable_value),
    }
