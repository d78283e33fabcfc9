"""
XLSX source adapter for payroll spreadsheets.

BambooHR custom reports and SurePayroll register downloads often put a
title block (company name, report period) above the column headers, so
the header row is located by content:

  - sheet by index (0-based) or name; default is the active sheet
  - skip_rows before searching for the header
  - header_row pins the header (0-based, after skip_rows); otherwise the
    first row with at least 2 payroll column names is used
  - cells are normalized: strings stripped, empty -> "", whole floats -> int;
    dates and numbers keep their native types for the mappers
"""

from __future__ import annotations

import re
from pathlib import Path
from typing import Any, Iterator

import openpyxl

from payroll_ingestion.adapters.base import SourcePreview
from payroll_kernel.logging_config import get_logger

logger = get_logger("ingestion.xlsx_adapter")

# Squashed (lowercase, no spaces/underscores) payroll and time-tracking column names
_HEADER_KEYWORDS = frozenset({
    "id", "employeeid", "employeenumber", "userid", "name", "displayname",
    "firstname", "lastname", "status", "department", "jobtitle", "hiredate",
    "payrate", "paytype", "payperiod", "payschedule", "annualsalary",
    "hourlyrate", "currency", "effectivedate", "enddate",
    "projectid", "projectname", "multiplier",
    "billable", "start", "duration", "description",
})

_HEADER_SEARCH_ROWS = 15
_MIN_HEADER_MATCHES = 2
_SAMPLE_SIZE = 5


def _squash(value: Any) -> str:
    return re.sub(r"[\s_\-]+", "", str(value)).lower()


def _cell_value(value: Any) -> Any:
    if value is None:
        return ""
    if isinstance(value, str):
        return value.strip()
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return value


def _is_blank(values: list[Any]) -> bool:
    return all(v == "" for v in values)


def _detect_header_row(rows: list[tuple[Any, ...]]) -> int:
    """0-based index of the first row naming at least 2 known columns; 0 if none."""
    for i, row in enumerate(rows[:_HEADER_SEARCH_ROWS]):
        matches = {
            _squash(v) for v in row
            if isinstance(v, str) and _squash(v) in _HEADER_KEYWORDS
        }
        if len(matches) >= _MIN_HEADER_MATCHES:
            return i
    return 0


def _headers(row: tuple[Any, ...]) -> list[str]:
    """Header names with blanks numbered and duplicates suffixed."""
    last = max((i for i, v in enumerate(row) if _cell_value(v) != ""), default=0)
    headers: list[str] = []
    for i, value in enumerate(row[: last + 1]):
        text = re.sub(r"\s+", " ", str(_cell_value(value))).strip()
        key = text or f"Column_{i + 1}"
        base, n = key, 0
        while key in headers:
            n += 1
            key = f"{base}_{n}"
        headers.append(key)
    return headers


class XlsxSourceAdapter:
    """Read .xlsx workbooks as one dict per row below the header."""

    def _get_sheet(self, wb: Any, options: dict[str, Any]) -> Any:
        sheet_ref = options.get("sheet")
        if sheet_ref is None:
            return wb.active
        if isinstance(sheet_ref, int):
            return wb.worksheets[sheet_ref]
        return wb[sheet_ref]

    def _table(self, source_path: Path, options: dict[str, Any]) -> tuple[list[str], list[list[Any]]]:
        """Header names and data rows (blank rows dropped) of the selected sheet."""
        wb = openpyxl.load_workbook(source_path, read_only=True, data_only=True)
        try:
            sheet = self._get_sheet(wb, options)
            skip_rows = int(options.get("skip_rows", 0))
            rows = list(sheet.iter_rows(min_row=1 + skip_rows, values_only=True))
        finally:
            wb.close()
        if not rows:
            return [], []

        header_row = options.get("header_row")
        hi = int(header_row) if header_row is not None else _detect_header_row(rows)
        headers = _headers(rows[hi])
        logger.debug(
            "xlsx_header_located",
            extra={"source_path": str(source_path), "header_row": hi, "columns": len(headers)},
        )

        data: list[list[Any]] = []
        for row in rows[hi + 1:]:
            values = [_cell_value(row[c]) if c < len(row) else "" for c in range(len(headers))]
            if not _is_blank(values):
                data.append(values)
        return headers, data

    def read(self, source_path: Path, options: dict[str, Any]) -> Iterator[dict[str, Any]]:
        headers, data = self._table(source_path, options)
        for values in data:
            yield dict(zip(headers, values))

    def preview(self, source_path: Path, options: dict[str, Any]) -> SourcePreview:
        headers, data = self._table(source_path, options)
        return SourcePreview(
            row_count=len(data),
            columns=tuple(headers),
            sample_rows=tuple(dict(zip(headers, values)) for values in data[:_SAMPLE_SIZE]),
        )
