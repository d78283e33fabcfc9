"""Source adapters: protocols, JSON/CSV/XLSX readers and file-backed sources."""

from payroll_ingestion.adapters.base import (
    CompensationSource,
    EmployeeSource,
    MultiplierSource,
    SourceAdapter,
    SourcePreview,
    TimeEntrySource,
)
from payroll_ingestion.adapters.csv_adapter import CsvSourceAdapter
from payroll_ingestion.adapters.file_source import ExportFileSource
from payroll_ingestion.adapters.json_adapter import JsonSourceAdapter
from payroll_ingestion.adapters.xlsx_adapter import XlsxSourceAdapter

__all__ = [
    "CompensationSource",
    "CsvSourceAdapter",
    "EmployeeSource",
    "ExportFileSource",
    "JsonSourceAdapter",
    "MultiplierSource",
    "SourceAdapter",
    "SourcePreview",
    "TimeEntrySource",
    "XlsxSourceAdapter",
]
