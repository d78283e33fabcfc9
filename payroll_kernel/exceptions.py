"""
Typed Exception Hierarchy for the Payroll Kernel.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

Callers of the ledgers, the costing engine and the import pipeline need to
tell a rejected record apart from a corrupted ledger without parsing
message strings. Every error therefore has:
  1. A TYPED exception class (catch by type, not message)
  2. A CODE attribute (machine-readable, API-safe)
  3. Structured DATA attributes (not just a message string)

Example:
    try:
        ledger.add_record(employee_id, record)
    except IntervalOverlapError as e:
        log.warning("overlap", extra={"key": e.key, "conflict": e.conflicting_effective_date})
    except InvalidIntervalError as e:
        api_response(code=e.code, key=e.key)

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    PayrollKernelError (base)
    |
    +-- LedgerError
    |   +-- InvalidIntervalError
    |   |   +-- IntervalOverlapError
    |   +-- LedgerCorruptionError
    |
    +-- ConfigurationError
    |
    +-- SourceRecordError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category   | Code                  | When Raised
-----------|-----------------------|---------------------------------------------
Ledger     | INVALID_INTERVAL      | effective date unparseable, or end <= effective
           | INTERVAL_OVERLAP      | new record overlaps an existing interval
           | LEDGER_CORRUPTION     | resolve found malformed or ambiguous records
-----------|-----------------------|---------------------------------------------
Config     | CONFIGURATION_ERROR   | integration config missing/invalid fields
-----------|-----------------------|---------------------------------------------
Ingestion  | SOURCE_RECORD_INVALID | adapter payload cannot be mapped

Per-entry costing problems (unknown employee, unknown project, missing
salary) are NOT exceptions. They are returned as ``SkipRecord`` values by
the costing engine and never raised.

===============================================================================
HANDLING PATTERNS
===============================================================================

1. InvalidIntervalError is recoverable: the ledger is unchanged, the caller
   reports the rejected record and moves on (the import service does this).

2. LedgerCorruptionError is fatal for the operation in progress. The costing
   batch aborts; the caller must repair or re-import the ledger.
"""


class PayrollKernelError(Exception):
    """
    Base exception for all payroll kernel errors.

    All subclasses carry a ``code`` class attribute for machine-readable
    error identification.
    """

    code: str = "PAYROLL_KERNEL_ERROR"


# Ledger-related exceptions


class LedgerError(PayrollKernelError):
    """Base exception for effective-dated ledger errors."""

    code: str = "LEDGER_ERROR"


class InvalidIntervalError(LedgerError):
    """
    A ledger record's interval is unusable.

    Raised at ``add_record`` time, never later: the effective date cannot be
    parsed, the end date is not strictly after the effective date, or
    closing the currently-open record would leave it empty or inverted.
    """

    code: str = "INVALID_INTERVAL"

    def __init__(
        self,
        ledger: str,
        key: str,
        effective_date: str,
        end_date: str | None,
        reason: str,
    ):
        self.ledger = ledger
        self.key = key
        self.effective_date = effective_date
        self.end_date = end_date
        self.reason = reason
        super().__init__(
            f"Invalid interval in {ledger} ledger for {key}: "
            f"[{effective_date}, {end_date or 'open'}) - {reason}"
        )


class IntervalOverlapError(InvalidIntervalError):
    """New record would overlap an existing interval for the same key."""

    code: str = "INTERVAL_OVERLAP"

    def __init__(
        self,
        ledger: str,
        key: str,
        effective_date: str,
        end_date: str | None,
        conflicting_effective_date: str,
        conflicting_end_date: str | None,
    ):
        self.conflicting_effective_date = conflicting_effective_date
        self.conflicting_end_date = conflicting_end_date
        super().__init__(
            ledger,
            key,
            effective_date,
            end_date,
            reason=(
                f"overlaps existing record "
                f"[{conflicting_effective_date}, {conflicting_end_date or 'open'})"
            ),
        )


class LedgerCorruptionError(LedgerError):
    """
    Resolve found records that cannot be interpreted.

    Only reachable when records were loaded through ``restore`` (which
    bypasses the closing rule): a malformed date, an inverted interval, or
    two records with the same effective date both covering the query date.
    Fatal for the operation in progress.
    """

    code: str = "LEDGER_CORRUPTION"

    def __init__(self, ledger: str, key: str, detail: str):
        self.ledger = ledger
        self.key = key
        self.detail = detail
        super().__init__(f"Corrupted {ledger} ledger for {key}: {detail}")


# Configuration exceptions


class ConfigurationError(PayrollKernelError):
    """Integration configuration is missing a required field or is invalid."""

    code: str = "CONFIGURATION_ERROR"

    def __init__(self, section: str, field: str, reason: str):
        self.section = section
        self.field = field
        self.reason = reason
        super().__init__(f"Invalid configuration {section}.{field}: {reason}")


# Ingestion exceptions


class SourceRecordError(PayrollKernelError):
    """An adapter payload could not be mapped to a canonical record."""

    code: str = "SOURCE_RECORD_INVALID"

    def __init__(self, source: str, record_id: str | None, reason: str):
        self.source = source
        self.record_id = record_id
        self.reason = reason
        super().__init__(
            f"Invalid {source} record {record_id or '<unknown>'}: {reason}"
        )
