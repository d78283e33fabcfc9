"""
Shared helpers for payload mappers, plus mappers for the canonical shapes.

Mappers are pure: raw payload dict in, frozen domain record out.  Any
payload that cannot be mapped raises ``SourceRecordError``; the import
service catches it and reports the record as skipped.
"""

from __future__ import annotations

import functools
import re
from collections.abc import Callable
from decimal import Decimal
from typing import Any, TypeVar

from payroll_kernel.domain.records import (
    CompensationRecord,
    Employee,
    Project,
    ProjectMultiplierRecord,
    RawTimeEntry,
)
from payroll_kernel.domain.values import to_decimal
from payroll_kernel.exceptions import SourceRecordError

T = TypeVar("T")

_AMOUNT_PATTERN = re.compile(r"-?\d+(?:\.\d+)?")


def record_id_of(payload: Any, *keys: str) -> str | None:
    """First present identifier in ``payload`` (``id`` when no keys given)."""
    if not isinstance(payload, dict):
        return None
    for key in keys or ("id",):
        value = payload.get(key)
        if value not in (None, ""):
            return str(value)
    return None


def maps_payload(source: str, *id_keys: str) -> Callable[[Callable[..., T]], Callable[..., T]]:
    """
    Decorator: turn lookup/conversion failures into ``SourceRecordError``.

    The wrapped mapper's first argument is the raw payload; its id (taken
    from ``id_keys``) is attached to the error.
    """

    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        @functools.wraps(func)
        def wrapper(payload: Any, *args: Any, **kwargs: Any) -> T:
            if not isinstance(payload, dict):
                raise SourceRecordError(source, None, f"payload is {type(payload).__name__}, not an object")
            try:
                return func(payload, *args, **kwargs)
            except SourceRecordError:
                raise
            except KeyError as exc:
                raise SourceRecordError(
                    source, record_id_of(payload, *id_keys), f"missing field {exc}",
                ) from exc
            except (TypeError, ValueError, ArithmeticError) as exc:
                raise SourceRecordError(
                    source, record_id_of(payload, *id_keys), str(exc),
                ) from exc

        return wrapper

    return decorator


def parse_amount(value: Any) -> Decimal:
    """
    Parse a monetary amount as exported by payroll systems.

    Accepts numbers and strings such as ``"85000.00 USD"`` or ``"1,250.50"``.

    Raises:
        ValueError: if no number can be found.
    """
    if isinstance(value, str):
        match = _AMOUNT_PATTERN.search(value.replace(",", ""))
        if match is None:
            raise ValueError(f"Not an amount: {value!r}")
        return Decimal(match.group(0))
    return to_decimal(value)


def text_or_none(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


# -----------------------------------------------------------------------------
# Canonical shapes (already in the engine's import format)
# -----------------------------------------------------------------------------


@maps_payload("canonical", "id")
def map_canonical_employee(payload: dict[str, Any]) -> Employee:
    return Employee.from_dict(payload)


@maps_payload("canonical", "employeeId")
def map_canonical_compensation(payload: dict[str, Any]) -> CompensationRecord:
    return CompensationRecord.from_dict(payload)


@maps_payload("canonical", "projectId")
def map_canonical_multiplier(payload: dict[str, Any]) -> ProjectMultiplierRecord:
    return ProjectMultiplierRecord.from_dict(payload)


@maps_payload("canonical", "id")
def map_canonical_project(payload: dict[str, Any]) -> Project:
    return Project.from_dict(payload)


@maps_payload("canonical", "id")
def map_canonical_time_entry(payload: dict[str, Any]) -> RawTimeEntry:
    return RawTimeEntry.from_dict(payload)
