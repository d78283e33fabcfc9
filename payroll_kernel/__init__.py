"""
Payroll Kernel

Shared foundations for the payroll profitability engine:
- Typed exceptions with machine-readable codes
- Structured JSON logging with batch-scoped context
- Injectable clock
- Immutable domain records (employees, projects, rates, time entries)
"""

__version__ = "0.1.0"
