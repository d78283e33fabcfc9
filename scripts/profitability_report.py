#!/usr/bin/env python3
"""
Cost exported time entries and print a profitability report as JSON.

Loads employees, compensation, project multipliers, projects and time
entries from JSON, JSON Lines, CSV or XLSX exports, costs the entries for the
period and prints a project, employee or portfolio report.

Usage:
    python3 scripts/profitability_report.py --start <date> --end <date> [options]

Examples:
    # Portfolio report from canonical exports
    python3 scripts/profitability_report.py --start 2024-01-01 --end 2024-03-31 \\
        --employees employees.json --salaries salaries.json \\
        --projects projects.json --time-entries entries.jsonl

    # One project, with revenue from the accounting system
    python3 scripts/profitability_report.py --start 2024-01-01 --end 2024-03-31 \\
        --project p-100 --revenue 25000 ...

    # BambooHR exports, Clockify entries, integration config for defaults
    python3 scripts/profitability_report.py --payroll-source bamboohr \\
        --config integration.yaml ...
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from decimal import Decimal
from pathlib import Path

from payroll_config import get_integration_config
from payroll_config.schema import CostingConfig
from payroll_ingestion.adapters.file_source import ExportFileSource
from payroll_ingestion.services.import_service import ImportService
from payroll_kernel.domain.values import to_decimal
from payroll_kernel.exceptions import PayrollKernelError
from payroll_kernel.logging_config import configure_logging
from payroll_services.profitability_service import ProfitabilityService


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Cost time entries and print a profitability report.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument("--start", required=True, help="Period start (YYYY-MM-DD, inclusive).")
    parser.add_argument("--end", required=True, help="Period end (YYYY-MM-DD, inclusive).")
    parser.add_argument("--employees", type=Path, help="Employee export.")
    parser.add_argument("--salaries", type=Path, help="Compensation export.")
    parser.add_argument("--multipliers", type=Path, help="Project multiplier export (canonical shape).")
    parser.add_argument("--projects", type=Path, help="Project export.")
    parser.add_argument("--time-entries", type=Path, help="Time entry export.")
    parser.add_argument(
        "--payroll-source",
        default="canonical",
        choices=("canonical", "bamboohr", "surepayroll"),
        help="Shape of the employee/compensation exports (default: canonical).",
    )
    parser.add_argument(
        "--time-source",
        default="clockify",
        choices=("canonical", "clockify"),
        help="Shape of the time entry/project exports (default: clockify).",
    )
    parser.add_argument("--config", type=Path, help="Integration YAML (costing defaults).")
    group = parser.add_mutually_exclusive_group()
    group.add_argument("--project", help="Print a project report for this project id.")
    group.add_argument("--employee", help="Print an employee report for this employee id.")
    parser.add_argument(
        "--revenue",
        help="Revenue for --project (default 0), or a JSON object of project id -> revenue for the portfolio.",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Structured logs to stderr.")
    return parser.parse_args(argv)


def _parse_revenue_map(raw: str | None) -> dict[str, Decimal]:
    """Portfolio revenue: a JSON object of project id -> amount."""
    if raw is None:
        return {}
    try:
        parsed = json.loads(raw)
    except json.JSONDecodeError as e:
        raise ValueError(f"--revenue is not valid JSON: {e}") from e
    if not isinstance(parsed, dict):
        raise ValueError("--revenue for a portfolio report must be a JSON object")
    return {str(project_id): to_decimal(amount) for project_id, amount in parsed.items()}


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)
    configure_logging(level=logging.INFO if args.verbose else logging.WARNING)

    costing = CostingConfig()
    if args.config is not None:
        try:
            costing = get_integration_config(args.config).costing
        except (OSError, PayrollKernelError) as e:
            print(f"ERROR: Failed to load config: {e}", file=sys.stderr)
            return 1

    source = ExportFileSource(
        employees=args.employees,
        compensation=args.salaries,
        multipliers=args.multipliers,
        projects=args.projects,
        time_entries=args.time_entries,
    )
    service = ProfitabilityService()
    importer = ImportService(service, costing_config=costing)

    try:
        payroll = importer.import_payroll_records(args.payroll_source, source, source)
        multipliers = importer.import_project_multipliers(source)
        entries = importer.import_time_entries(source, args.start, args.end, system=args.time_source)
    except (OSError, ValueError, PayrollKernelError) as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 1

    for result in (payroll, multipliers):
        for error in result.errors:
            print(f"WARNING: {error}", file=sys.stderr)
    for error in entries.errors:
        print(f"WARNING: {error}", file=sys.stderr)

    try:
        if args.project:
            revenue = to_decimal(args.revenue or "0")
            report = service.project_report(args.project, args.start, args.end, revenue)
        elif args.employee:
            report = service.employee_report(args.employee, args.start, args.end)
        else:
            revenues = _parse_revenue_map(args.revenue)
            report = service.portfolio_report(args.start, args.end, revenues)
    except (ValueError, TypeError, PayrollKernelError) as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 1

    output = {"import": entries.to_dict(), "report": report.to_dict()}
    print(json.dumps(output, indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
