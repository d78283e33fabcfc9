"""
Tests for payroll and time-tracking payload mappers.

Covers:
- BambooHR employee names, status and compensation pay types
- SurePayroll figure derivation and notes
- Clockify time entries, tags and projects
- Canonical shapes and SourceRecordError wrapping
"""

from datetime import date, datetime, timezone
from decimal import Decimal

import pytest

from payroll_ingestion.mapping import PAYROLL_MAPPERS, TIME_TRACKING_MAPPERS, parse_amount
from payroll_ingestion.mapping import bamboohr, clockify, surepayroll
from payroll_ingestion.mapping.common import (
    map_canonical_compensation,
    map_canonical_multiplier,
    record_id_of,
)
from payroll_kernel.domain.records import EmployeeStatus
from payroll_kernel.exceptions import SourceRecordError

IMPORT_DATE = date(2024, 6, 1)


# =============================================================================
# Shared helpers
# =============================================================================


class TestParseAmount:

    @pytest.mark.parametrize("raw,expected", [
        ("85000.00 USD", Decimal("85000.00")),
        ("1,250.50", Decimal("1250.50")),
        ("$42", Decimal("42")),
        (52.5, Decimal("52.5")),
        (100, Decimal("100")),
    ])
    def test_amounts(self, raw, expected):
        assert parse_amount(raw) == expected

    def test_no_number_rejected(self):
        with pytest.raises(ValueError):
            parse_amount("n/a")

    def test_record_id_of(self):
        assert record_id_of({"employeeId": 7}, "employeeId", "id") == "7"
        assert record_id_of({"id": ""}) is None
        assert record_id_of(["not", "a", "dict"]) is None


# =============================================================================
# BambooHR
# =============================================================================


class TestBambooHREmployee:

    def test_preferred_name_wins(self):
        employee = bamboohr.map_employee({
            "id": 12,
            "preferredName": "Ada",
            "displayName": "Augusta Ada King",
            "status": "active",
            "workEmail": "ada@example.com",
            "jobTitle": "Analyst",
            "hireDate": "2020-02-03",
        })
        assert employee.id == "12"
        assert employee.name == "Ada"
        assert employee.status is EmployeeStatus.ACTIVE
        assert employee.email == "ada@example.com"
        assert employee.position == "Analyst"
        assert employee.hire_date == date(2020, 2, 3)

    def test_display_name_then_first_last(self):
        assert bamboohr.employee_name({"preferredName": " ", "displayName": "A. Turing"}) == "A. Turing"
        assert bamboohr.employee_name({"firstName": "Alan", "lastName": "Turing"}) == "Alan Turing"

    def test_non_active_status_is_inactive(self):
        employee = bamboohr.map_employee({"id": "1", "displayName": "X", "status": "terminated"})
        assert employee.status is EmployeeStatus.INACTIVE

    def test_missing_id_is_source_error(self):
        with pytest.raises(SourceRecordError) as exc_info:
            bamboohr.map_employee({"displayName": "No Id"})
        assert exc_info.value.source == "bamboohr"
        assert exc_info.value.code == "SOURCE_RECORD_INVALID"


class TestBambooHRCompensation:

    def test_salary_derives_hourly(self):
        record = bamboohr.map_compensation(
            {"employeeId": "12", "payRate": "104000.00 USD", "payType": "Salary",
             "payPeriod": "weekly", "effectiveDate": "2024-01-01"},
            IMPORT_DATE,
        )
        assert record.annual_salary == Decimal("104000.00")
        assert record.hourly_rate == Decimal("50")
        assert record.effective_date == date(2024, 1, 1)
        assert record.notes == "Imported from BambooHR - salary (weekly)"

    def test_hourly_derives_annual_with_default_period(self):
        record = bamboohr.map_compensation(
            {"employeeId": "12", "payRate": "50", "payType": "hourly"}, IMPORT_DATE,
        )
        assert record.hourly_rate == Decimal("50")
        assert record.annual_salary == Decimal("103998.00")
        assert record.effective_date == IMPORT_DATE
        assert record.currency == "USD"
        assert record.notes == "Imported from BambooHR - hourly (monthly)"

    def test_defaults_passed_by_caller(self):
        record = bamboohr.map_compensation(
            {"employeeId": "12", "payRate": "50", "payType": "hourly"},
            IMPORT_DATE, "weekly", "CAD",
        )
        assert record.annual_salary == Decimal("104000")
        assert record.currency == "CAD"

    def test_annual_period_uses_standard_hours(self):
        payload = {"employeeId": "12", "payRate": "100000", "payType": "salary",
                   "payPeriod": "annual"}
        assert bamboohr.map_compensation(payload, IMPORT_DATE).hourly_rate == Decimal("100000") / Decimal("2080")
        record = bamboohr.map_compensation(payload, IMPORT_DATE, "monthly", "USD", Decimal("2000"))
        assert record.hourly_rate == Decimal("50")

    @pytest.mark.parametrize("payload", [
        {"employeeId": "12", "payType": "salary"},
        {"employeeId": "12", "payRate": "", "payType": "salary"},
        {"employeeId": "12", "payRate": "50"},
    ])
    def test_missing_rate_or_type_rejected(self, payload):
        with pytest.raises(SourceRecordError, match="missing payRate or payType"):
            bamboohr.map_compensation(payload, IMPORT_DATE)

    def test_unsupported_pay_type_rejected(self):
        with pytest.raises(SourceRecordError, match="unsupported payType"):
            bamboohr.map_compensation(
                {"employeeId": "12", "payRate": "10", "payType": "commission"}, IMPORT_DATE,
            )

    def test_unparseable_rate_rejected_with_id(self):
        with pytest.raises(SourceRecordError) as exc_info:
            bamboohr.map_compensation(
                {"employeeId": "12", "payRate": "TBD", "payType": "hourly"}, IMPORT_DATE,
            )
        assert exc_info.value.record_id == "12"


# =============================================================================
# SurePayroll
# =============================================================================


class TestSurePayroll:

    def test_employee_falls_back_to_first_last(self):
        employee = surepayroll.map_employee(
            {"id": "sp-1", "firstName": "Grace", "lastName": "Hopper", "status": "active"},
        )
        assert employee.name == "Grace Hopper"
        assert employee.status is EmployeeStatus.ACTIVE

    def test_both_figures_kept(self):
        record = surepayroll.map_compensation(
            {"employeeId": "sp-1", "annualSalary": 90000, "hourlyRate": "45.00",
             "payType": "salary", "paySchedule": "bi-weekly"},
            IMPORT_DATE,
        )
        assert record.annual_salary == Decimal("90000")
        assert record.hourly_rate == Decimal("45.00")
        assert record.notes == "Imported from SurePayroll - salary (bi-weekly)"

    def test_hourly_derived_from_annual(self):
        record = surepayroll.map_compensation(
            {"employeeId": "sp-1", "annualSalary": "104000", "paySchedule": "weekly"},
            IMPORT_DATE,
        )
        assert record.hourly_rate == Decimal("50")

    def test_unknown_schedule_uses_standard_hours(self):
        record = surepayroll.map_compensation(
            {"employeeId": "sp-1", "hourlyRate": "50", "paySchedule": "annual"},
            IMPORT_DATE, "monthly", "USD", Decimal("2000"),
        )
        assert record.annual_salary == Decimal("100000")

    def test_annual_derived_from_hourly(self):
        record = surepayroll.map_compensation(
            {"employeeId": "sp-1", "hourlyRate": "50", "payType": "hourly"}, IMPORT_DATE,
        )
        assert record.annual_salary == Decimal("103998.00")
        assert record.notes == "Imported from SurePayroll - hourly (monthly)"

    def test_no_figures_rejected(self):
        with pytest.raises(SourceRecordError, match="missing annualSalary and hourlyRate"):
            surepayroll.map_compensation({"employeeId": "sp-1"}, IMPORT_DATE)


# =============================================================================
# Clockify
# =============================================================================


def _clockify_entry(**overrides):
    payload = {
        "id": "ck-1",
        "userId": "emp-1",
        "projectId": "proj-1",
        "billable": True,
        "description": "Site visit",
        "tags": [{"id": "t-1", "name": "onsite"}, {"id": "t-2"}],
        "timeInterval": {
            "start": "2024-03-04T09:00:00Z",
            "end": "2024-03-04T11:30:00Z",
            "duration": "PT2H30M",
        },
    }
    payload.update(overrides)
    return payload


class TestClockify:

    def test_time_entry(self):
        entry = clockify.map_time_entry(_clockify_entry())
        assert entry.id == "ck-1"
        assert entry.billable is True
        assert entry.tags == ("onsite", "t-2")
        assert entry.time_interval.start == datetime(2024, 3, 4, 9, tzinfo=timezone.utc)
        assert entry.time_interval.duration == "PT2H30M"

    def test_default_description(self):
        entry = clockify.map_time_entry(_clockify_entry(description=""))
        assert entry.description == "Imported from Clockify"

    def test_missing_start_rejected(self):
        with pytest.raises(SourceRecordError, match="timeInterval.start") as exc_info:
            clockify.map_time_entry(_clockify_entry(timeInterval={"duration": "PT1H"}))
        assert exc_info.value.record_id == "ck-1"

    def test_missing_project_rejected(self):
        with pytest.raises(SourceRecordError, match="userId or projectId"):
            clockify.map_time_entry(_clockify_entry(projectId=None))

    def test_bad_timestamp_rejected(self):
        with pytest.raises(SourceRecordError):
            clockify.map_time_entry(_clockify_entry(timeInterval={"start": "yesterday"}))

    def test_non_dict_payload_rejected(self):
        with pytest.raises(SourceRecordError, match="not an object"):
            clockify.map_time_entry(["ck-1"])

    def test_project(self):
        project = clockify.map_project({"id": "proj-1", "name": " Harbor Bridge "})
        assert (project.id, project.name) == ("proj-1", "Harbor Bridge")


# =============================================================================
# Canonical shapes and registries
# =============================================================================


class TestCanonicalAndRegistry:

    def test_canonical_compensation(self):
        record = map_canonical_compensation({
            "employeeId": "emp-1", "effectiveDate": "2024-01-01",
            "annualSalary": "104000", "hourlyRate": "50", "currency": "USD",
        })
        assert record.hourly_rate == Decimal("50")

    def test_canonical_missing_field(self):
        with pytest.raises(SourceRecordError, match="missing field") as exc_info:
            map_canonical_compensation({"employeeId": "emp-1", "effectiveDate": "2024-01-01"})
        assert exc_info.value.record_id == "emp-1"

    def test_canonical_multiplier_invalid_value(self):
        with pytest.raises(SourceRecordError, match="positive"):
            map_canonical_multiplier({
                "projectId": "proj-1", "multiplier": "0", "effectiveDate": "2024-01-01",
            })

    def test_registries(self):
        assert set(PAYROLL_MAPPERS) == {"bamboohr", "surepayroll", "canonical"}
        assert set(TIME_TRACKING_MAPPERS) == {"clockify", "canonical"}
        record = PAYROLL_MAPPERS["canonical"].compensation(
            {"employeeId": "e", "effectiveDate": "2024-01-01",
             "annualSalary": 1, "hourlyRate": 1},
            IMPORT_DATE, "monthly", "USD",
        )
        assert record.employee_id == "e"
