"""
Tests for the profitability report builder.

Covers:
- Project report totals, profit and margin
- First-entry rate in averageMultiplier and breakdown efficiency
- Inclusive period filters
- Employee and portfolio reports
- Empty reports and zero denominators
"""

from datetime import date
from decimal import Decimal

import pytest

from payroll_engines.profitability import (
    UNKNOWN_EMPLOYEE,
    UNKNOWN_PROJECT,
    ProfitabilityReportBuilder,
)


@pytest.fixture
def builder() -> ProfitabilityReportBuilder:
    return ProfitabilityReportBuilder()


@pytest.fixture
def costed(service, entry_factory):
    """
    emp-1 on proj-1: 8h billable (March), 2h non-billable (April)
    emp-2 on proj-1: 1h billable (March)
    emp-1 on proj-2: 4h billable (March)
    """
    result = service.process_time_entries([
        entry_factory("te-1", duration="PT8H", start="2024-03-04T09:00:00+00:00"),
        entry_factory("te-2", duration="PT2H", billable=False, start="2024-04-02T09:00:00+00:00"),
        entry_factory("te-3", user_id="emp-2", duration="PT1H", start="2024-03-05T09:00:00+00:00"),
        entry_factory("te-4", project_id="proj-2", duration="PT4H", start="2024-03-06T09:00:00+00:00"),
    ])
    assert result.skipped == ()
    return result.costed


# =============================================================================
# Project report
# =============================================================================


class TestProjectReport:

    def test_revenue_profit_and_margin(self, builder, costed):
        """Revenue 1000 over 400 of cost: profit 600, margin 60."""
        report = builder.project_report(
            "proj-1", "2024-03-01", "2024-03-04", costed, revenue=1000,
        )
        assert report.total_cost == Decimal("400")
        assert report.gross_profit == Decimal("600")
        assert report.profit_margin == Decimal("60")
        assert report.project_name == "Harbor Bridge"

    def test_totals_over_full_period(self, builder, costed):
        report = builder.project_report("proj-1", "2024-03-01", "2024-04-30", costed)
        assert report.total_hours == Decimal("11")
        assert report.total_billable_hours == Decimal("9")
        # 8*50 + 2*50 + 1*80
        assert report.total_cost == Decimal("580")
        # 8*50*2 + 1*80*2
        assert report.total_billable_value == Decimal("960")

    def test_zero_revenue_has_zero_margin(self, builder, costed):
        report = builder.project_report("proj-1", "2024-03-01", "2024-04-30", costed)
        assert report.total_revenue == Decimal("0")
        assert report.gross_profit == Decimal("-580")
        assert report.profit_margin == Decimal("0")

    def test_average_multiplier_uses_first_entry_rate(self, builder, costed):
        report = builder.project_report("proj-1", "2024-03-01", "2024-04-30", costed)
        # 960 / (9h * 50), not the true multiplier of 2
        assert report.average_multiplier == Decimal("960") / Decimal("450")

    def test_employee_breakdown_first_seen_order(self, builder, costed):
        report = builder.project_report("proj-1", "2024-03-01", "2024-04-30", costed)
        ada, alan = report.employee_breakdown
        assert (ada.employee_id, alan.employee_id) == ("emp-1", "emp-2")
        assert ada.hours == Decimal("10")
        assert ada.cost == Decimal("500")
        assert ada.billable_value == Decimal("800")
        # 800 / (10h * 50)
        assert ada.efficiency == Decimal("1.6")
        assert alan.efficiency == Decimal("2")

    def test_monthly_breakdown_has_zero_revenue(self, builder, costed):
        report = builder.project_report(
            "proj-1", "2024-03-01", "2024-04-30", costed, revenue="5000",
        )
        march, april = report.monthly_breakdown
        assert march.month == "2024-03"
        assert march.hours == Decimal("9")
        assert march.cost == Decimal("480")
        assert april.month == "2024-04"
        assert april.cost == Decimal("100")
        for line in report.monthly_breakdown:
            assert line.revenue == Decimal("0")
            assert line.profit == Decimal("0")

    def test_period_bounds_inclusive(self, builder, costed):
        on_day = builder.project_report("proj-1", "2024-03-04", "2024-03-04", costed)
        assert on_day.total_hours == Decimal("8")
        after = builder.project_report("proj-1", date(2024, 3, 5), date(2024, 3, 31), costed)
        assert after.total_hours == Decimal("1")

    def test_empty_report(self, builder, costed):
        report = builder.project_report("proj-9", "2024-03-01", "2024-03-31", costed)
        assert report.project_name == UNKNOWN_PROJECT
        assert report.total_hours == Decimal("0")
        assert report.average_multiplier == Decimal("0")
        assert report.employee_breakdown == ()
        assert report.monthly_breakdown == ()

    def test_no_billable_hours_gives_zero_multiplier(self, builder, costed):
        report = builder.project_report("proj-1", "2024-04-01", "2024-04-30", costed)
        assert report.total_billable_hours == Decimal("0")
        assert report.average_multiplier == Decimal("0")
        assert report.employee_breakdown[0].efficiency == Decimal("0")

    def test_to_dict_shape(self, builder, costed):
        data = builder.project_report(
            "proj-1", "2024-03-01", "2024-03-04", costed, revenue=1000,
        ).to_dict()
        assert data["period"] == {"start": "2024-03-01", "end": "2024-03-04"}
        assert data["grossProfit"] == "600"
        assert data["employeeBreakdown"][0]["employeeName"] == "Ada Lovelace"
        assert data["monthlyBreakdown"][0]["revenue"] == "0"


# =============================================================================
# Employee report
# =============================================================================


class TestEmployeeReport:

    def test_totals_and_rates(self, builder, costed):
        report = builder.employee_report("emp-1", "2024-03-01", "2024-04-30", costed)
        assert report.employee_name == "Ada Lovelace"
        assert report.total_hours == Decimal("14")
        assert report.total_billable_hours == Decimal("12")
        assert report.total_cost == Decimal("700")
        assert report.efficiency == Decimal("12") / Decimal("14")
        assert report.average_hourly_rate == Decimal("50")

    def test_project_breakdown(self, builder, costed):
        report = builder.employee_report("emp-1", "2024-03-01", "2024-04-30", costed)
        harbor, annex = report.project_breakdown
        assert harbor.project_id == "proj-1"
        assert harbor.hours == Decimal("10")
        assert annex.project_name == "Library Annex"
        assert annex.billable_value == Decimal("200")
        assert annex.efficiency == Decimal("1")

    def test_monthly_breakdown(self, builder, costed):
        report = builder.employee_report("emp-1", "2024-03-01", "2024-04-30", costed)
        assert [line.month for line in report.monthly_breakdown] == ["2024-03", "2024-04"]

    def test_empty_report(self, builder, costed):
        report = builder.employee_report("emp-9", "2024-03-01", "2024-04-30", costed)
        assert report.employee_name == UNKNOWN_EMPLOYEE
        assert report.efficiency == Decimal("0")
        assert report.average_hourly_rate == Decimal("0")
        assert report.to_dict()["projectBreakdown"] == []


# =============================================================================
# Portfolio report
# =============================================================================


class TestPortfolioReport:

    def test_one_report_per_project(self, builder, costed):
        report = builder.portfolio_report(
            "2024-03-01", "2024-04-30", costed, {"proj-1": "1000"},
        )
        assert [p.project_id for p in report.projects] == ["proj-1", "proj-2"]
        assert report.projects[1].total_revenue == Decimal("0")

        summary = report.summary
        assert summary.total_projects == 2
        assert summary.total_hours == Decimal("15")
        assert summary.total_cost == Decimal("780")
        assert summary.total_revenue == Decimal("1000")
        # (1000 - 580) + (0 - 200)
        assert summary.total_profit == Decimal("220")

    def test_period_limits_projects(self, builder, costed):
        report = builder.portfolio_report("2024-04-01", "2024-04-30", costed)
        assert [p.project_id for p in report.projects] == ["proj-1"]
        assert report.to_dict()["summary"]["totalProjects"] == 1

    def test_empty_portfolio(self, builder):
        report = builder.portfolio_report("2024-01-01", "2024-12-31", [])
        assert report.projects == ()
        assert report.summary.total_cost == Decimal("0")
