"""
CSV source adapter.

Payroll systems (BambooHR custom reports, SurePayroll register exports) and
Clockify detailed reports all download as CSV.  Uses csv.DictReader.

Options: delimiter (``"auto"`` sniffs from the first lines), encoding,
has_header, columns (names when there is no header row), skip_rows (title
lines above the header), required_keys.  A BOM is stripped when the
encoding is utf-8.  Header cells are trimmed and fully blank rows are
dropped.  Rows stream; the file is never loaded whole.
"""

from __future__ import annotations

import csv
from pathlib import Path
from typing import Any, Iterator, TextIO

from payroll_ingestion.adapters.base import SourcePreview
from payroll_kernel.logging_config import get_logger

logger = get_logger("ingestion.csv_adapter")

_SNIFF_DELIMITERS = ",;\t|"
_SNIFF_BYTES = 4096
_SAMPLE_SIZE = 5


def _get_encoding(options: dict[str, Any]) -> str:
    enc = options.get("encoding", "utf-8")
    if enc.lower() in ("utf-8", "utf8"):
        return "utf-8-sig"
    return enc


def _skip(f: TextIO, skip_rows: int) -> None:
    for _ in range(skip_rows):
        f.readline()


def _resolve_delimiter(f: TextIO, options: dict[str, Any]) -> str:
    """Configured delimiter, or one sniffed from the head of the file (rewinds)."""
    delimiter = options.get("delimiter", ",")
    if delimiter != "auto":
        return delimiter
    start = f.tell()
    head = f.read(_SNIFF_BYTES)
    f.seek(start)
    try:
        return csv.Sniffer().sniff(head, delimiters=_SNIFF_DELIMITERS).delimiter
    except csv.Error:
        logger.debug("csv_delimiter_not_detected", extra={"fallback": ","})
        return ","


def _is_blank(row: dict[str, Any]) -> bool:
    return all(value is None or not str(value).strip() for value in row.values())


def _has_required_keys(row: dict[str, Any], required_keys: list[str]) -> bool:
    return all(str(row.get(key) or "").strip() for key in required_keys)


def _rows(f: TextIO, delimiter: str, options: dict[str, Any]) -> Iterator[dict[str, Any]]:
    if options.get("has_header", True):
        reader = csv.DictReader(f, delimiter=delimiter)
        if reader.fieldnames:
            reader.fieldnames = [name.strip() for name in reader.fieldnames]
        for row in reader:
            # Cells past the header land under the None key
            row.pop(None, None)
            yield row
        return

    reader = csv.reader(f, delimiter=delimiter)
    columns = options.get("columns")
    for values in reader:
        if columns is None:
            columns = [f"field_{i}" for i in range(len(values))]
        yield dict(zip(columns, values))


class CsvSourceAdapter:
    """Read CSV exports as one dict per row."""

    def read(self, source_path: Path, options: dict[str, Any]) -> Iterator[dict[str, Any]]:
        required_keys = options.get("required_keys")
        with source_path.open("r", encoding=_get_encoding(options), newline="") as f:
            _skip(f, int(options.get("skip_rows", 0)))
            delimiter = _resolve_delimiter(f, options)
            for row in _rows(f, delimiter, options):
                if _is_blank(row):
                    continue
                if required_keys and not _has_required_keys(row, required_keys):
                    continue
                yield row

    def preview(self, source_path: Path, options: dict[str, Any]) -> SourcePreview:
        encoding = _get_encoding(options)
        sample: list[dict[str, Any]] = []
        count = 0
        with source_path.open("r", encoding=encoding, newline="") as f:
            _skip(f, int(options.get("skip_rows", 0)))
            delimiter = _resolve_delimiter(f, options)
            for row in _rows(f, delimiter, options):
                if _is_blank(row):
                    continue
                count += 1
                if len(sample) < _SAMPLE_SIZE:
                    sample.append(dict(row))

        columns = tuple(sample[0].keys()) if sample else ()
        return SourcePreview(
            row_count=count,
            columns=columns,
            sample_rows=tuple(sample),
            encoding=encoding,
            detected_delimiter=delimiter,
        )
