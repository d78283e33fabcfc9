"""
Pytest fixtures for the payroll profitability test suite.

Provides:
- Structured logging configured for the session, plus a log capture fixture
- Deterministic clock
- Domain record factories (employees, compensation, raw time entries)
- A ProfitabilityService populated with a small, known dataset
"""

import json
import logging
from collections.abc import Callable
from datetime import date, datetime, timezone
from decimal import Decimal
from io import StringIO

import pytest

from payroll_kernel.domain.clock import DeterministicClock
from payroll_kernel.domain.records import (
    CompensationRecord,
    Employee,
    Project,
    ProjectMultiplierRecord,
    RawTimeEntry,
    TimeInterval,
)
from payroll_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)
from payroll_services.profitability_service import ProfitabilityService


# =============================================================================
# Logging fixtures
# =============================================================================


@pytest.fixture(autouse=True, scope="session")
def _configure_test_logging():
    """Configure structured logging for the test suite."""
    reset_logging()
    configure_logging(level=logging.DEBUG)
    yield
    reset_logging()


@pytest.fixture(autouse=True)
def _clear_log_context():
    """Clear LogContext between tests to prevent cross-test contamination."""
    LogContext.clear()
    yield
    LogContext.clear()


@pytest.fixture
def captured_logs():
    """
    Capture payroll_kernel logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs, service):
            service.add_salary(...)
            logs = captured_logs()
            assert any(r["message"] == "ledger_record_added" for r in logs)
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("payroll_kernel")
    previous_level = root.level
    root.setLevel(logging.DEBUG)
    root.addHandler(handler)

    def _get_records() -> list[dict]:
        lines = stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    yield _get_records

    root.removeHandler(handler)
    root.setLevel(previous_level)


# =============================================================================
# Clock
# =============================================================================


@pytest.fixture
def clock() -> DeterministicClock:
    return DeterministicClock(datetime(2024, 6, 1, 9, 0, 0, tzinfo=timezone.utc))


# =============================================================================
# Record factories
# =============================================================================


def make_entry(
    entry_id: str = "te-1",
    user_id: str = "emp-1",
    project_id: str = "proj-1",
    start: str = "2024-03-04T09:00:00+00:00",
    duration: str = "PT2H",
    billable: bool = True,
    description: str | None = "Design review",
    tags: tuple[str, ...] = (),
) -> RawTimeEntry:
    """Build a RawTimeEntry with sensible defaults."""
    return RawTimeEntry(
        id=entry_id,
        user_id=user_id,
        project_id=project_id,
        billable=billable,
        description=description,
        tags=tags,
        time_interval=TimeInterval(
            start=datetime.fromisoformat(start),
            duration=duration,
        ),
    )


def make_salary(
    employee_id: str = "emp-1",
    effective: str | date = "2024-01-01",
    hourly_rate: str = "50",
    annual_salary: str = "104000",
    end: str | date | None = None,
) -> CompensationRecord:
    return CompensationRecord(
        employee_id=employee_id,
        effective_date=effective,
        end_date=end,
        annual_salary=Decimal(annual_salary),
        hourly_rate=Decimal(hourly_rate),
    )


def make_multiplier(
    project_id: str = "proj-1",
    multiplier: str = "2",
    effective: str | date = "2024-01-01",
    end: str | date | None = None,
) -> ProjectMultiplierRecord:
    return ProjectMultiplierRecord(
        project_id=project_id,
        project_name="Harbor Bridge",
        multiplier=Decimal(multiplier),
        effective_date=effective,
        end_date=end,
    )


@pytest.fixture
def entry_factory() -> Callable[..., RawTimeEntry]:
    return make_entry


@pytest.fixture
def salary_factory() -> Callable[..., CompensationRecord]:
    return make_salary


@pytest.fixture
def multiplier_factory() -> Callable[..., ProjectMultiplierRecord]:
    return make_multiplier


# =============================================================================
# Populated service
# =============================================================================


@pytest.fixture
def service(clock) -> ProfitabilityService:
    """
    Service with two employees, two projects, salaries and one multiplier.

    emp-1 (Ada Lovelace)  $50/h from 2024-01-01
    emp-2 (Alan Turing)   $80/h from 2024-01-01
    proj-1 (Harbor Bridge)  multiplier 2 from 2024-01-01
    proj-2 (Library Annex)  no multiplier records
    """
    svc = ProfitabilityService(clock=clock)
    svc.add_employee(Employee(id="emp-1", name="Ada Lovelace", department="Engineering"))
    svc.add_employee(Employee(id="emp-2", name="Alan Turing", department="Engineering"))
    svc.add_project(Project(id="proj-1", name="Harbor Bridge"))
    svc.add_project(Project(id="proj-2", name="Library Annex"))
    svc.add_salary(make_salary("emp-1", hourly_rate="50", annual_salary="104000"))
    svc.add_salary(make_salary("emp-2", hourly_rate="80", annual_salary="166400"))
    svc.add_project_multiplier(make_multiplier("proj-1", "2"))
    return svc
