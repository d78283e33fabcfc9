"""
Payload mappers, grouped per source system.

``PAYROLL_MAPPERS`` and ``TIME_TRACKING_MAPPERS`` let the import service
pick mappers by system name (``bamboohr``, ``surepayroll``, ``clockify``,
``canonical``).
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Any

from payroll_engines.rates import STANDARD_HOURS_PER_YEAR
from payroll_ingestion.mapping import bamboohr, clockify, surepayroll
from payroll_ingestion.mapping.common import (
    map_canonical_compensation,
    map_canonical_employee,
    map_canonical_multiplier,
    map_canonical_project,
    map_canonical_time_entry,
    maps_payload,
    parse_amount,
)
from payroll_kernel.domain.records import (
    CompensationRecord,
    Employee,
    Project,
    RawTimeEntry,
)


@dataclass(frozen=True)
class PayrollMappers:
    employee: Callable[[dict[str, Any]], Employee]
    # (payload, import_date, default_pay_period, default_currency, standard_hours)
    compensation: Callable[[dict[str, Any], date, str, str, Decimal], CompensationRecord]


@dataclass(frozen=True)
class TimeTrackingMappers:
    time_entry: Callable[[dict[str, Any]], RawTimeEntry]
    project: Callable[[dict[str, Any]], Project]


def _canonical_compensation(
    payload: dict[str, Any],
    import_date: date,
    default_pay_period: str = "monthly",
    default_currency: str = "USD",
    standard_hours: Decimal = STANDARD_HOURS_PER_YEAR,
) -> CompensationRecord:
    return map_canonical_compensation(payload)


PAYROLL_MAPPERS: dict[str, PayrollMappers] = {
    bamboohr.SOURCE: PayrollMappers(bamboohr.map_employee, bamboohr.map_compensation),
    surepayroll.SOURCE: PayrollMappers(surepayroll.map_employee, surepayroll.map_compensation),
    "canonical": PayrollMappers(map_canonical_employee, _canonical_compensation),
}

TIME_TRACKING_MAPPERS: dict[str, TimeTrackingMappers] = {
    clockify.SOURCE: TimeTrackingMappers(clockify.map_time_entry, clockify.map_project),
    "canonical": TimeTrackingMappers(map_canonical_time_entry, map_canonical_project),
}

__all__ = [
    "PAYROLL_MAPPERS",
    "PayrollMappers",
    "TIME_TRACKING_MAPPERS",
    "TimeTrackingMappers",
    "map_canonical_multiplier",
    "maps_payload",
    "parse_amount",
]
