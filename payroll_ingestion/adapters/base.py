"""
Source protocols and preview DTO.

Contract:
    SourceAdapter.read() yields one dict per source record (streaming).
    SourceAdapter.preview() returns a quick snapshot: row count, columns, sample rows.

    EmployeeSource / CompensationSource / TimeEntrySource / MultiplierSource
    are what the import service pulls raw payloads from.  A payroll or
    time-tracking client implements the protocol for its system; payloads
    are mapped to canonical records by ``payroll_ingestion.mapping``.

Architecture: payroll_ingestion/adapters. File I/O only, no engine imports.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date
from pathlib import Path
from typing import Any, Iterator, Protocol, runtime_checkable


@runtime_checkable
class SourceAdapter(Protocol):
    """Protocol for reading structured source files into record dicts."""

    def read(self, source_path: Path, options: dict[str, Any]) -> Iterator[dict[str, Any]]:
        """Yield one dict per source record. Streams; does not load entire file."""
        ...

    def preview(self, source_path: Path, options: dict[str, Any]) -> "SourcePreview":
        """Quick preview: row count, detected columns, sample rows."""
        ...


@dataclass(frozen=True)
class SourcePreview:
    """Result of probing a source file (row count, columns, first N rows)."""

    row_count: int
    columns: tuple[str, ...]
    sample_rows: tuple[dict[str, Any], ...]  # First 5 rows; do not mutate
    encoding: str | None = None
    detected_delimiter: str | None = None


@runtime_checkable
class EmployeeSource(Protocol):
    """Supplies raw employee payloads from a payroll system."""

    def fetch_employees(self) -> Iterable[dict[str, Any]]:
        ...


@runtime_checkable
class CompensationSource(Protocol):
    """Supplies raw compensation payloads from a payroll system."""

    def fetch_compensation(self) -> Iterable[dict[str, Any]]:
        ...


@runtime_checkable
class MultiplierSource(Protocol):
    """Supplies project multiplier payloads (canonical shape)."""

    def fetch_multipliers(self) -> Iterable[dict[str, Any]]:
        ...


@runtime_checkable
class TimeEntrySource(Protocol):
    """Supplies raw time entries and projects from a time-tracking system."""

    def fetch_time_entries(self, start: date, end: date) -> Iterable[dict[str, Any]]:
        """Entries whose start falls in ``[start, end]`` (inclusive)."""
        ...

    def fetch_projects(self) -> Iterable[dict[str, Any]]:
        ...
