"""
File-backed sources: payroll and time-tracking exports wired to the source protocols.

``ExportFileSource`` lets the import service (and the report script) run
against exported files instead of live payroll/time-tracking clients.
The reader is picked from the file suffix (.json, .jsonl, .csv, .xlsx).
Any path left as None behaves as an empty source.

Spreadsheet headers are turned into the payload keys the mappers expect:
"Pay Rate" and "pay_rate" become ``payRate``, and dotted headers nest, so
"timeInterval.start" becomes ``{"timeInterval": {"start": ...}}``.
JSON rows are passed through untouched.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from datetime import date
from pathlib import Path
from typing import Any, Iterator

from payroll_ingestion.adapters.base import SourceAdapter
from payroll_ingestion.adapters.csv_adapter import CsvSourceAdapter
from payroll_ingestion.adapters.json_adapter import JsonSourceAdapter
from payroll_ingestion.adapters.xlsx_adapter import XlsxSourceAdapter
from payroll_kernel.domain.values import calendar_date, parse_timestamp
from payroll_kernel.logging_config import get_logger

logger = get_logger("ingestion.file_source")

_TABULAR_SUFFIXES = frozenset({".csv", ".xlsx"})
_WORD_SEPARATORS = re.compile(r"[\s_\-]+")


def default_adapters() -> dict[str, SourceAdapter]:
    json_adapter = JsonSourceAdapter()
    return {
        ".json": json_adapter,
        ".jsonl": json_adapter,
        ".csv": CsvSourceAdapter(),
        ".xlsx": XlsxSourceAdapter(),
    }


def _lead_word(word: str) -> str:
    return word.lower() if word.isupper() else word[:1].lower() + word[1:]


def camel_key(header: str) -> str:
    """``"Employee ID"`` -> ``employeeId``, ``"ID"`` -> ``id``; camelCase headers are kept."""
    words = [w for w in _WORD_SEPARATORS.split(header.strip()) if w]
    if not words:
        return header.strip()
    head, *rest = words
    return _lead_word(head) + "".join(w[:1].upper() + w[1:].lower() for w in rest)


def tabular_row_to_payload(row: dict[str, Any]) -> dict[str, Any]:
    """Re-key a spreadsheet row into a payload dict (camelCase, dotted headers nested)."""
    payload: dict[str, Any] = {}
    for header, value in row.items():
        *parents, leaf = [camel_key(part) for part in str(header).split(".")]
        target = payload
        for parent in parents:
            target = target.setdefault(parent, {})
        target[leaf] = value
    return payload


def _entry_date(row: dict[str, Any]) -> date | None:
    interval = row.get("timeInterval")
    if not isinstance(interval, dict) or not interval.get("start"):
        return None
    try:
        return calendar_date(parse_timestamp(interval["start"]))
    except (TypeError, ValueError):
        return None


class ExportFileSource:
    """Employee, compensation, multiplier and time-entry source over export files."""

    def __init__(
        self,
        *,
        employees: Path | None = None,
        compensation: Path | None = None,
        multipliers: Path | None = None,
        time_entries: Path | None = None,
        projects: Path | None = None,
        options: dict[str, Any] | None = None,
        adapters: Mapping[str, SourceAdapter] | None = None,
    ):
        self._paths = {
            "employees": employees,
            "compensation": compensation,
            "multipliers": multipliers,
            "time_entries": time_entries,
            "projects": projects,
        }
        self._options = dict(options or {})
        self._adapters = dict(adapters) if adapters is not None else default_adapters()

    def _rows(self, kind: str) -> Iterator[dict[str, Any]]:
        path = self._paths[kind]
        if path is None:
            return
        path = Path(path)
        suffix = path.suffix.lower()
        adapter = self._adapters.get(suffix)
        if adapter is None:
            raise ValueError(
                f"No reader for {path.name!r}; expected one of {sorted(self._adapters)}"
            )
        options = dict(self._options)
        if suffix == ".jsonl":
            options.setdefault("format", "jsonl")
        logger.debug("file_source_read", extra={"kind": kind, "source_path": str(path)})

        rows = adapter.read(path, options)
        if suffix in _TABULAR_SUFFIXES:
            yield from (tabular_row_to_payload(row) for row in rows)
        else:
            yield from rows

    def fetch_employees(self) -> Iterator[dict[str, Any]]:
        return self._rows("employees")

    def fetch_compensation(self) -> Iterator[dict[str, Any]]:
        return self._rows("compensation")

    def fetch_multipliers(self) -> Iterator[dict[str, Any]]:
        return self._rows("multipliers")

    def fetch_projects(self) -> Iterator[dict[str, Any]]:
        return self._rows("projects")

    def fetch_time_entries(self, start: date, end: date) -> Iterator[dict[str, Any]]:
        """
        Entries whose start date falls in ``[start, end]``.

        Rows without a readable start are passed through so the mapper can
        reject them with a reason.
        """
        for row in self._rows("time_entries"):
            entry_date = _entry_date(row)
            if entry_date is None or start <= entry_date <= end:
                yield row
