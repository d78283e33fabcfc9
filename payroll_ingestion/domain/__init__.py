"""Import result types."""

from payroll_ingestion.domain.types import ImportResult, PayrollImportResult

__all__ = ["ImportResult", "PayrollImportResult"]
