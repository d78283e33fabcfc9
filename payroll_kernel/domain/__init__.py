"""
Pure domain layer.

Immutable records and value conversion helpers with NO dependencies on
I/O, persistence or the wall clock (except ``SystemClock``).
"""

from payroll_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from payroll_kernel.domain.records import (
    CompensationRecord,
    Employee,
    EmployeeStatus,
    Project,
    ProjectMultiplierRecord,
    RawTimeEntry,
    TimeInterval,
)

__all__ = [
    "Clock",
    "CompensationRecord",
    "DeterministicClock",
    "Employee",
    "EmployeeStatus",
    "Project",
    "ProjectMultiplierRecord",
    "RawTimeEntry",
    "SystemClock",
    "TimeInterval",
]
