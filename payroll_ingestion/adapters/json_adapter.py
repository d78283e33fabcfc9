"""
JSON source adapter.

Handles JSON array (file is [{...}, {...}, ...]) and JSON Lines (one object per line).
Configurable: json_path for nested arrays (e.g. "data.records"), format "array" | "jsonl".
Keys are kept as exported (payroll and time-tracking payloads are camelCase);
pass ``lowercase_keys`` to fold them.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Iterator

from payroll_ingestion.adapters.base import SourcePreview
from payroll_kernel.logging_config import get_logger

logger = get_logger("ingestion.json_adapter")


def _get_nested(data: Any, path: str) -> Any:
    """Follow dot-separated path into dict/list. Returns None if key missing."""
    if not path.strip():
        return data
    for key in path.split("."):
        key = key.strip()
        if not key:
            continue
        if isinstance(data, list):
            try:
                data = data[int(key)]
            except (ValueError, IndexError):
                return None
        elif isinstance(data, dict) and key in data:
            data = data[key]
        else:
            return None
    return data


def _all_keys(rows: list[dict[str, Any]]) -> tuple[str, ...]:
    """Union of keys from first 5 rows for column list."""
    seen: set[str] = set()
    for row in rows[:5]:
        seen.update(row.keys())
    return tuple(sorted(seen))


def _normalize_row_keys(item: dict[str, Any], lowercase: bool) -> dict[str, Any]:
    """Copy with string keys stripped (and lowercased when asked)."""
    if lowercase:
        return {str(k).strip().lower(): v for k, v in item.items() if isinstance(k, str)}
    return {str(k).strip(): v for k, v in item.items() if isinstance(k, str)}


def _has_required_keys(row: dict[str, Any], required_keys: list[str]) -> bool:
    """True if row has all required keys with non-empty values."""
    for key in required_keys:
        val = row.get(key)
        if val is None:
            return False
        if isinstance(val, str) and not val.strip():
            return False
    return True


class JsonSourceAdapter:
    """Read JSON array or JSON Lines files as one dict per record."""

    def read(self, source_path: Path, options: dict[str, Any]) -> Iterator[dict[str, Any]]:
        fmt = options.get("format", "array")
        json_path = options.get("json_path")
        encoding = options.get("encoding", "utf-8")
        lowercase = bool(options.get("lowercase_keys", False))
        required_keys = options.get("required_keys")

        if fmt == "jsonl":
            with source_path.open("r", encoding=encoding) as f:
                for line in f:
                    line = line.strip()
                    if not line:
                        continue
                    item = json.loads(line)
                    if not isinstance(item, dict):
                        continue
                    row = _normalize_row_keys(item, lowercase)
                    if required_keys and not _has_required_keys(row, required_keys):
                        continue
                    yield row
            return

        with source_path.open("r", encoding=encoding) as f:
            data = json.load(f)
        root = _get_nested(data, json_path) if json_path else data
        if not isinstance(root, list):
            logger.warning(
                "json_source_not_a_list",
                extra={"source_path": str(source_path), "json_path": json_path},
            )
            return
        for item in root:
            if not isinstance(item, dict):
                continue
            row = _normalize_row_keys(item, lowercase)
            if required_keys and not _has_required_keys(row, required_keys):
                continue
            yield row

    def preview(self, source_path: Path, options: dict[str, Any]) -> SourcePreview:
        fmt = options.get("format", "array")
        json_path = options.get("json_path")
        encoding = options.get("encoding", "utf-8")
        sample_size = 5

        if fmt == "jsonl":
            sample_list: list[dict[str, Any]] = []
            count = 0
            with source_path.open("r", encoding=encoding) as f:
                for line in f:
                    line = line.strip()
                    if not line:
                        continue
                    count += 1
                    if len(sample_list) < sample_size:
                        try:
                            item = json.loads(line)
                        except json.JSONDecodeError:
                            continue
                        if isinstance(item, dict):
                            sample_list.append(item)
            return SourcePreview(
                row_count=count,
                columns=_all_keys(sample_list),
                sample_rows=tuple(sample_list),
                encoding=encoding,
            )

        with source_path.open("r", encoding=encoding) as f:
            data = json.load(f)
        root = _get_nested(data, json_path) if json_path else data
        if not isinstance(root, list):
            return SourcePreview(row_count=0, columns=(), sample_rows=(), encoding=encoding)
        sample = [r for r in root[:sample_size] if isinstance(r, dict)]
        return SourcePreview(
            row_count=len(root),
            columns=_all_keys(sample),
            sample_rows=tuple(sample),
            encoding=encoding,
        )
