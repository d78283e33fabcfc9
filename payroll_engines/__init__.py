"""
Payroll engines -- pure calculation layer.

Ledgers resolve effective-dated rates, the costing engine prices raw time
entries against them, and the report builder aggregates costed entries.
No engine performs I/O or reads the wall clock.
"""

from payroll_engines.costing import (
    CostedTimeEntry,
    CostingResult,
    CostingSummary,
    SkipReason,
    SkipRecord,
    TimeEntryCostingEngine,
    parse_duration_hours,
)
from payroll_engines.directory import EmployeeDirectory, ProjectDirectory
from payroll_engines.ledger import (
    CompensationLedger,
    EffectiveDatedLedger,
    ProjectMultiplierLedger,
)
from payroll_engines.profitability import (
    EmployeeBreakdownLine,
    EmployeeProfitabilityReport,
    MonthlyBreakdownLine,
    PortfolioReport,
    PortfolioSummary,
    ProfitabilityReportBuilder,
    ProjectBreakdownLine,
    ProjectProfitabilityReport,
)
from payroll_engines.rates import (
    STANDARD_HOURS_PER_YEAR,
    PaySchedule,
    annual_salary_from_hourly,
    hourly_rate_from_annual,
    hours_per_year,
)
from payroll_engines.tracer import traced_engine

__all__ = [
    "CompensationLedger",
    "CostedTimeEntry",
    "CostingResult",
    "CostingSummary",
    "EffectiveDatedLedger",
    "EmployeeBreakdownLine",
    "EmployeeDirectory",
    "EmployeeProfitabilityReport",
    "MonthlyBreakdownLine",
    "PaySchedule",
    "PortfolioReport",
    "PortfolioSummary",
    "ProfitabilityReportBuilder",
    "ProjectBreakdownLine",
    "ProjectDirectory",
    "ProjectMultiplierLedger",
    "ProjectProfitabilityReport",
    "STANDARD_HOURS_PER_YEAR",
    "SkipReason",
    "SkipRecord",
    "TimeEntryCostingEngine",
    "annual_salary_from_hourly",
    "hourly_rate_from_annual",
    "hours_per_year",
    "parse_duration_hours",
    "traced_engine",
]
