"""
Profitability Report Builder (``payroll_engines.profitability``).

Responsibility
--------------
Aggregates costed time entries for a period into project, employee and
portfolio profitability reports.

Architecture position
---------------------
**Engines layer** -- pure functional core.  Reports are derived values,
always recomputed from ``CostedTimeEntry`` sequences plus caller-supplied
revenue; they are never stored.

Invariants enforced
-------------------
* Date filters are inclusive on both ends.
* Every division checks its denominator and yields 0 instead of failing.
* Breakdown sequences keep first-seen order of the filtered entries.
* An empty filter yields a fully-populated report of zeros named
  ``Unknown Project`` / ``Unknown Employee``.

Parity behaviour (kept as-is, not corrected)
--------------------------------------------
* ``average_multiplier`` and breakdown ``efficiency`` divide by the hourly
  rate of the *first* filtered entry (of the report or of the group),
  which is wrong when employees on a project have different rates.
* Monthly ``revenue`` and ``profit`` are always 0: there is no model for
  allocating revenue to months.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Any

from payroll_engines.costing import CostedTimeEntry
from payroll_engines.tracer import traced_engine
from payroll_kernel.domain.values import HUNDRED, ZERO, parse_date, to_decimal
from payroll_kernel.logging_config import get_logger

logger = get_logger("engines.profitability")

UNKNOWN_PROJECT = "Unknown Project"
UNKNOWN_EMPLOYEE = "Unknown Employee"


def _safe_divide(numerator: Decimal, denominator: Decimal) -> Decimal:
    if denominator == ZERO:
        return ZERO
    return numerator / denominator


def _period_dict(start: date, end: date) -> dict[str, str]:
    return {"start": start.isoformat(), "end": end.isoformat()}


# =============================================================================
# Report value objects
# =============================================================================


@dataclass(frozen=True)
class EmployeeBreakdownLine:
    """Per-employee totals within a project report."""

    employee_id: str
    employee_name: str
    hours: Decimal
    cost: Decimal
    billable_value: Decimal
    efficiency: Decimal

    def to_dict(self) -> dict[str, Any]:
        return {
            "employeeId": self.employee_id,
            "employeeName": self.employee_name,
            "hours": str(self.hours),
            "cost": str(self.cost),
            "billableValue": str(self.billable_value),
            "efficiency": str(self.efficiency),
        }


@dataclass(frozen=True)
class ProjectBreakdownLine:
    """Per-project totals within an employee report."""

    project_id: str
    project_name: str
    hours: Decimal
    cost: Decimal
    billable_value: Decimal
    efficiency: Decimal

    def to_dict(self) -> dict[str, Any]:
        return {
            "projectId": self.project_id,
            "projectName": self.project_name,
            "hours": str(self.hours),
            "cost": str(self.cost),
            "billableValue": str(self.billable_value),
            "efficiency": str(self.efficiency),
        }


@dataclass(frozen=True)
class MonthlyBreakdownLine:
    """Hours and cost for one ``YYYY-MM`` month; revenue and profit are 0."""

    month: str
    hours: Decimal
    cost: Decimal
    revenue: Decimal = ZERO
    profit: Decimal = ZERO

    def to_dict(self) -> dict[str, Any]:
        return {
            "month": self.month,
            "hours": str(self.hours),
            "cost": str(self.cost),
            "revenue": str(self.revenue),
            "profit": str(self.profit),
        }


@dataclass(frozen=True)
class ProjectProfitabilityReport:
    project_id: str
    project_name: str
    period_start: date
    period_end: date
    total_hours: Decimal
    total_billable_hours: Decimal
    total_cost: Decimal
    total_billable_value: Decimal
    total_revenue: Decimal
    gross_profit: Decimal
    profit_margin: Decimal
    average_multiplier: Decimal
    employee_breakdown: tuple[EmployeeBreakdownLine, ...] = ()
    monthly_breakdown: tuple[MonthlyBreakdownLine, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "projectId": self.project_id,
            "projectName": self.project_name,
            "period": _period_dict(self.period_start, self.period_end),
            "totalHours": str(self.total_hours),
            "totalBillableHours": str(self.total_billable_hours),
            "totalCost": str(self.total_cost),
            "totalBillableValue": str(self.total_billable_value),
            "totalRevenue": str(self.total_revenue),
            "grossProfit": str(self.gross_profit),
            "profitMargin": str(self.profit_margin),
            "averageMultiplier": str(self.average_multiplier),
            "employeeBreakdown": [line.to_dict() for line in self.employee_breakdown],
            "monthlyBreakdown": [line.to_dict() for line in self.monthly_breakdown],
        }


@dataclass(frozen=True)
class EmployeeProfitabilityReport:
    employee_id: str
    employee_name: str
    period_start: date
    period_end: date
    total_hours: Decimal
    total_billable_hours: Decimal
    total_cost: Decimal
    total_billable_value: Decimal
    efficiency: Decimal
    average_hourly_rate: Decimal
    project_breakdown: tuple[ProjectBreakdownLine, ...] = ()
    monthly_breakdown: tuple[MonthlyBreakdownLine, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "employeeId": self.employee_id,
            "employeeName": self.employee_name,
            "period": _period_dict(self.period_start, self.period_end),
            "totalHours": str(self.total_hours),
            "totalBillableHours": str(self.total_billable_hours),
            "totalCost": str(self.total_cost),
            "totalBillableValue": str(self.total_billable_value),
            "efficiency": str(self.efficiency),
            "averageHourlyRate": str(self.average_hourly_rate),
            "projectBreakdown": [line.to_dict() for line in self.project_breakdown],
            "monthlyBreakdown": [line.to_dict() for line in self.monthly_breakdown],
        }


@dataclass(frozen=True)
class PortfolioSummary:
    total_projects: int
    total_hours: Decimal
    total_cost: Decimal
    total_revenue: Decimal
    total_profit: Decimal

    def to_dict(self) -> dict[str, Any]:
        return {
            "totalProjects": self.total_projects,
            "totalHours": str(self.total_hours),
            "totalCost": str(self.total_cost),
            "totalRevenue": str(self.total_revenue),
            "totalProfit": str(self.total_profit),
        }


@dataclass(frozen=True)
class PortfolioReport:
    """Project reports for every project with entries in the period."""

    period_start: date
    period_end: date
    projects: tuple[ProjectProfitabilityReport, ...]
    summary: PortfolioSummary

    def to_dict(self) -> dict[str, Any]:
        return {
            "period": _period_dict(self.period_start, self.period_end),
            "projects": [report.to_dict() for report in self.projects],
            "summary": self.summary.to_dict(),
        }


# =============================================================================
# Aggregation helpers
# =============================================================================


@dataclass
class _Group:
    """Mutable accumulator for one breakdown key."""

    key: str
    name: str
    first_rate: Decimal
    hours: Decimal = ZERO
    cost: Decimal = ZERO
    billable_value: Decimal = ZERO

    def add(self, entry: CostedTimeEntry) -> None:
        self.hours += entry.hours
        self.cost += entry.total_cost
        self.billable_value += entry.billable_value

    @property
    def efficiency(self) -> Decimal:
        return _safe_divide(self.billable_value, self.hours * self.first_rate)


def _group_by(
    entries: Iterable[CostedTimeEntry],
    key: Callable[[CostedTimeEntry], str],
    name: Callable[[CostedTimeEntry], str],
) -> list[_Group]:
    groups: dict[str, _Group] = {}
    for entry in entries:
        group_key = key(entry)
        group = groups.get(group_key)
        if group is None:
            group = groups[group_key] = _Group(
                key=group_key, name=name(entry), first_rate=entry.hourly_rate,
            )
        group.add(entry)
    return list(groups.values())


def _monthly(entries: Iterable[CostedTimeEntry]) -> tuple[MonthlyBreakdownLine, ...]:
    months: dict[str, list[Decimal]] = {}
    for entry in entries:
        month = entry.date.strftime("%Y-%m")
        totals = months.setdefault(month, [ZERO, ZERO])
        totals[0] += entry.hours
        totals[1] += entry.total_cost
    return tuple(
        MonthlyBreakdownLine(month=month, hours=hours, cost=cost)
        for month, (hours, cost) in months.items()
    )


def _in_period(entry: CostedTimeEntry, start: date, end: date) -> bool:
    return start <= entry.date <= end


# =============================================================================
# Builder
# =============================================================================


class ProfitabilityReportBuilder:
    """
    Builds profitability reports from costed entries.

    Stateless; each call is a deterministic function of its arguments.
    """

    @traced_engine(
        "project_profitability", "1.0",
        fingerprint_fields=("project_id", "start", "end", "revenue"),
    )
    def project_report(
        self,
        project_id: str,
        start: date | str,
        end: date | str,
        costed: Iterable[CostedTimeEntry],
        revenue: Decimal | int | str = ZERO,
    ) -> ProjectProfitabilityReport:
        start_date, end_date = parse_date(start), parse_date(end)
        revenue = to_decimal(revenue)
        entries = [
            e for e in costed
            if e.project_id == project_id and _in_period(e, start_date, end_date)
        ]

        total_hours = sum((e.hours for e in entries), ZERO)
        total_billable_hours = sum((e.billable_hours for e in entries), ZERO)
        total_cost = sum((e.total_cost for e in entries), ZERO)
        total_billable_value = sum((e.billable_value for e in entries), ZERO)

        gross_profit = revenue - total_cost
        profit_margin = gross_profit / revenue * HUNDRED if revenue > ZERO else ZERO

        first_rate = entries[0].hourly_rate if entries else ZERO
        average_multiplier = ZERO
        if total_billable_hours > ZERO:
            average_multiplier = _safe_divide(
                total_billable_value, total_billable_hours * first_rate,
            )

        groups = _group_by(entries, lambda e: e.employee_id, lambda e: e.employee_name)
        report = ProjectProfitabilityReport(
            project_id=project_id,
            project_name=entries[0].project_name if entries else UNKNOWN_PROJECT,
            period_start=start_date,
            period_end=end_date,
            total_hours=total_hours,
            total_billable_hours=total_billable_hours,
            total_cost=total_cost,
            total_billable_value=total_billable_value,
            total_revenue=revenue,
            gross_profit=gross_profit,
            profit_margin=profit_margin,
            average_multiplier=average_multiplier,
            employee_breakdown=tuple(
                EmployeeBreakdownLine(
                    employee_id=g.key,
                    employee_name=g.name,
                    hours=g.hours,
                    cost=g.cost,
                    billable_value=g.billable_value,
                    efficiency=g.efficiency,
                )
                for g in groups
            ),
            monthly_breakdown=_monthly(entries),
        )

        logger.info(
            "project_report_built",
            extra={
                "project_id": project_id,
                "entries": len(entries),
                "total_cost": str(total_cost),
                "gross_profit": str(gross_profit),
            },
        )
        return report

    @traced_engine(
        "employee_profitability", "1.0",
        fingerprint_fields=("employee_id", "start", "end"),
    )
    def employee_report(
        self,
        employee_id: str,
        start: date | str,
        end: date | str,
        costed: Iterable[CostedTimeEntry],
    ) -> EmployeeProfitabilityReport:
        start_date, end_date = parse_date(start), parse_date(end)
        entries = [
            e for e in costed
            if e.employee_id == employee_id and _in_period(e, start_date, end_date)
        ]

        total_hours = sum((e.hours for e in entries), ZERO)
        total_billable_hours = sum((e.billable_hours for e in entries), ZERO)
        total_cost = sum((e.total_cost for e in entries), ZERO)
        total_billable_value = sum((e.billable_value for e in entries), ZERO)

        groups = _group_by(entries, lambda e: e.project_id, lambda e: e.project_name)
        report = EmployeeProfitabilityReport(
            employee_id=employee_id,
            employee_name=entries[0].employee_name if entries else UNKNOWN_EMPLOYEE,
            period_start=start_date,
            period_end=end_date,
            total_hours=total_hours,
            total_billable_hours=total_billable_hours,
            total_cost=total_cost,
            total_billable_value=total_billable_value,
            efficiency=_safe_divide(total_billable_hours, total_hours),
            average_hourly_rate=_safe_divide(total_cost, total_hours),
            project_breakdown=tuple(
                ProjectBreakdownLine(
                    project_id=g.key,
                    project_name=g.name,
                    hours=g.hours,
                    cost=g.cost,
                    billable_value=g.billable_value,
                    efficiency=g.efficiency,
                )
                for g in groups
            ),
            monthly_breakdown=_monthly(entries),
        )

        logger.info(
            "employee_report_built",
            extra={
                "employee_id": employee_id,
                "entries": len(entries),
                "total_hours": str(total_hours),
            },
        )
        return report

    def portfolio_report(
        self,
        start: date | str,
        end: date | str,
        costed: Iterable[CostedTimeEntry],
        project_revenues: Mapping[str, Decimal | int | str] | None = None,
    ) -> PortfolioReport:
        """
        One project report per project with entries in the period.

        Projects appear in first-seen order; revenue defaults to 0 for
        projects missing from ``project_revenues``.
        """
        start_date, end_date = parse_date(start), parse_date(end)
        revenues = project_revenues or {}
        entries = [e for e in costed if _in_period(e, start_date, end_date)]

        project_ids = list(dict.fromkeys(e.project_id for e in entries))
        reports = tuple(
            self.project_report(
                project_id, start_date, end_date, entries,
                revenues.get(project_id, ZERO),
            )
            for project_id in project_ids
        )
        summary = PortfolioSummary(
            total_projects=len(reports),
            total_hours=sum((r.total_hours for r in reports), ZERO),
            total_cost=sum((r.total_cost for r in reports), ZERO),
            total_revenue=sum((r.total_revenue for r in reports), ZERO),
            total_profit=sum((r.gross_profit for r in reports), ZERO),
        )
        logger.info(
            "portfolio_report_built",
            extra={
                "projects": summary.total_projects,
                "total_cost": str(summary.total_cost),
                "total_profit": str(summary.total_profit),
            },
        )
        return PortfolioReport(
            period_start=start_date,
            period_end=end_date,
            projects=reports,
            summary=summary,
        )
