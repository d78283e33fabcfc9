"""
Effective-Dated Ledgers (``payroll_engines.ledger``).

Responsibility
--------------
Stores effective-dated records per key and resolves "the record in effect
on date D":

* ``CompensationLedger`` -- salary/hourly rate per employee.  A missing
  record is a hard skip condition for costing.
* ``ProjectMultiplierLedger`` -- billing multiplier per project.  A missing
  record resolves to the neutral multiplier ``1``.

Architecture position
---------------------
**Engines layer** -- in-memory, zero I/O.  Populated by
``payroll_services.ProfitabilityService`` and read by
``payroll_engines.costing``.

Invariants enforced
-------------------
* Each record is valid over ``[effective_date, end_date)``; ``end_date``
  None means open-ended.
* At most one open record per key.  Adding an open record closes the
  previously-open record at the new record's effective date.
* Records for a key are kept sorted by ``effective_date`` and never
  overlap.  Resolution is a binary search over a parallel index of
  effective dates.
* ``add_record`` validates everything before mutating, so a rejected
  record leaves the ledger unchanged.

Records loaded through ``restore`` bypass these rules.  Such keys are
marked unverified and resolved with a validating scan:

* a malformed or inverted interval raises ``LedgerCorruptionError``;
* overlapping records resolve to the one with the latest effective date
  (last-write-wins, logged as ``ledger_overlap_last_write_wins``);
* two covering records with the same effective date are ambiguous and
  raise ``LedgerCorruptionError``.

Concurrency
-----------
Not safe for concurrent writers on the same key.  ``add_record`` (close
previous open record, then insert) must run as one step; callers
serialize writes per key (``ProfitabilityService`` holds a lock per key).
Reads may run concurrently with each other but not with a write to the
same key.

Failure modes
-------------
* ``InvalidIntervalError`` -- unparseable effective/end date, end not
  after effective, or a new open record that does not start after the
  current open record.
* ``IntervalOverlapError`` -- new record overlaps an existing interval.
* ``LedgerCorruptionError`` -- unverified key cannot be interpreted.
* ``ValueError`` -- record belongs to a different key than the one given.
"""

from __future__ import annotations

from bisect import bisect_right
from collections.abc import Iterable
from dataclasses import replace
from datetime import date
from decimal import Decimal
from typing import Any, Generic, TypeVar

from payroll_kernel.domain.records import CompensationRecord, ProjectMultiplierRecord
from payroll_kernel.domain.values import ONE, parse_date, parse_optional_date
from payroll_kernel.exceptions import (
    IntervalOverlapError,
    InvalidIntervalError,
    LedgerCorruptionError,
)
from payroll_kernel.logging_config import get_logger

logger = get_logger("engines.ledger")

R = TypeVar("R", CompensationRecord, ProjectMultiplierRecord)


def _overlaps(
    a_start: date, a_end: date | None, b_start: date, b_end: date | None,
) -> bool:
    """Half-open interval overlap; None end means +infinity."""
    return (b_end is None or a_start < b_end) and (a_end is None or b_start < a_end)


def _text(value: Any) -> str | None:
    if value is None:
        return None
    return value.isoformat() if isinstance(value, date) else str(value)


class EffectiveDatedLedger(Generic[R]):
    """
    Per-key, append-sorted sequences of effective-dated records.

    Subclasses set ``ledger_name`` and ``_owner_of`` (the key a record
    belongs to).
    """

    ledger_name: str = "effective_dated"

    def __init__(self) -> None:
        self._records: dict[str, list[R]] = {}
        self._index: dict[str, list[date]] = {}
        self._unverified: set[str] = set()

    def _owner_of(self, record: R) -> str:
        raise NotImplementedError

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def add_record(self, key: str, record: R) -> R:
        """
        Validate and insert ``record`` under ``key``.

        If the record is open-ended, the key's current open record is
        closed at ``record.effective_date``.

        Returns:
            The stored record, with dates normalized to ``date``.
        """
        owner = self._owner_of(record)
        if owner != key:
            raise ValueError(
                f"{self.ledger_name} record for {owner!r} added under key {key!r}"
            )
        if key in self._unverified:
            self._reindex(key)

        effective, end = self._validated_interval(key, record)
        records = self._records.get(key, [])

        open_pos: int | None = None
        for pos in range(len(records) - 1, -1, -1):
            if records[pos].end_date is None:
                open_pos = pos
                break

        closed_prior: R | None = None
        if end is None and open_pos is not None:
            prior = records[open_pos]
            if prior.effective_date >= effective:
                raise InvalidIntervalError(
                    self.ledger_name,
                    key,
                    effective.isoformat(),
                    None,
                    reason=(
                        f"must start after the current open record "
                        f"effective {prior.effective_date.isoformat()}"
                    ),
                )
            closed_prior = replace(prior, end_date=effective)

        for pos, existing in enumerate(records):
            if pos == open_pos and closed_prior is not None:
                existing = closed_prior
            if _overlaps(effective, end, existing.effective_date, existing.end_date):
                logger.warning(
                    "ledger_record_rejected_overlap",
                    extra={
                        "ledger": self.ledger_name,
                        "key": key,
                        "effective_date": effective.isoformat(),
                        "end_date": _text(end),
                        "conflicting_effective_date": existing.effective_date.isoformat(),
                    },
                )
                raise IntervalOverlapError(
                    self.ledger_name,
                    key,
                    effective.isoformat(),
                    _text(end),
                    existing.effective_date.isoformat(),
                    _text(existing.end_date),
                )

        if closed_prior is not None:
            records[open_pos] = closed_prior
            logger.info(
                "ledger_record_closed",
                extra={
                    "ledger": self.ledger_name,
                    "key": key,
                    "effective_date": closed_prior.effective_date.isoformat(),
                    "end_date": effective.isoformat(),
                },
            )

        stored = replace(record, effective_date=effective, end_date=end)
        index = self._index.setdefault(key, [])
        pos = bisect_right(index, effective)
        records.insert(pos, stored)
        index.insert(pos, effective)
        self._records[key] = records

        logger.info(
            "ledger_record_added",
            extra={
                "ledger": self.ledger_name,
                "key": key,
                "effective_date": effective.isoformat(),
                "end_date": _text(end),
                "record_count": len(records),
            },
        )
        return stored

    def restore(self, key: str, records: Iterable[R]) -> None:
        """
        Bulk-load records verbatim, bypassing the closing rule.

        Used when re-hydrating an exported snapshot.  The key is marked
        unverified; it is validated lazily by ``resolve_record`` and by
        the next ``add_record``.
        """
        loaded = list(records)
        self._index.pop(key, None)
        if not loaded:
            self._records.pop(key, None)
            self._unverified.discard(key)
            return
        self._records[key] = loaded
        self._unverified.add(key)
        logger.info(
            "ledger_key_restored",
            extra={
                "ledger": self.ledger_name,
                "key": key,
                "record_count": len(loaded),
            },
        )

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def resolve_record(self, key: str, on: date | str) -> R | None:
        """
        Return the record whose interval contains ``on``, or None.
        """
        on_date = parse_date(on)
        records = self._records.get(key)
        if not records:
            return None
        if key in self._unverified:
            return self._resolve_unverified(key, records, on_date)

        pos = bisect_right(self._index[key], on_date) - 1
        if pos < 0:
            return None
        candidate = records[pos]
        if candidate.end_date is None or on_date < candidate.end_date:
            return candidate
        return None

    def history(self, key: str) -> tuple[R, ...]:
        """
        All records for ``key`` in ascending effective-date order.

        Restored keys are ordered by their parsed dates without being
        verified; a malformed interval raises ``LedgerCorruptionError``.
        """
        records = self._records.get(key, ())
        if key not in self._unverified:
            return tuple(records)
        parsed = []
        for record in records:
            start, end = self._stored_interval(key, record)
            parsed.append(replace(record, effective_date=start, end_date=end))
        return tuple(sorted(parsed, key=lambda r: r.effective_date))

    def keys(self) -> tuple[str, ...]:
        return tuple(self._records)

    def record_count(self) -> int:
        return sum(len(records) for records in self._records.values())

    def __contains__(self, key: object) -> bool:
        return key in self._records

    def __len__(self) -> int:
        return len(self._records)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _validated_interval(self, key: str, record: R) -> tuple[date, date | None]:
        try:
            effective = parse_date(record.effective_date)
        except (TypeError, ValueError) as exc:
            raise InvalidIntervalError(
                self.ledger_name,
                key,
                _text(record.effective_date) or "",
                _text(record.end_date),
                reason=f"effective_date is not a date ({exc})",
            ) from exc
        try:
            end = parse_optional_date(record.end_date)
        except (TypeError, ValueError) as exc:
            raise InvalidIntervalError(
                self.ledger_name,
                key,
                effective.isoformat(),
                _text(record.end_date),
                reason=f"end_date is not a date ({exc})",
            ) from exc
        if end is not None and end <= effective:
            raise InvalidIntervalError(
                self.ledger_name,
                key,
                effective.isoformat(),
                end.isoformat(),
                reason="end_date must be after effective_date",
            )
        return effective, end

    def _stored_interval(self, key: str, record: R) -> tuple[date, date | None]:
        try:
            start = parse_date(record.effective_date)
            end = parse_optional_date(record.end_date)
        except (TypeError, ValueError) as exc:
            raise LedgerCorruptionError(
                self.ledger_name,
                key,
                f"malformed interval [{record.effective_date!r}, {record.end_date!r}): {exc}",
            ) from exc
        if end is not None and end < start:
            raise LedgerCorruptionError(
                self.ledger_name,
                key,
                f"inverted interval [{start.isoformat()}, {end.isoformat()})",
            )
        return start, end

    def _resolve_unverified(self, key: str, records: list[R], on: date) -> R | None:
        matches: list[tuple[date, R]] = []
        for record in records:
            start, end = self._stored_interval(key, record)
            if start <= on and (end is None or on < end):
                matches.append((start, record))
        if not matches:
            return None

        matches.sort(key=lambda m: m[0])
        latest_start, winner = matches[-1]
        if len(matches) > 1:
            if matches[-2][0] == latest_start:
                raise LedgerCorruptionError(
                    self.ledger_name,
                    key,
                    f"{len(matches)} records cover {on.isoformat()} with the "
                    f"same effective date {latest_start.isoformat()}",
                )
            logger.warning(
                "ledger_overlap_last_write_wins",
                extra={
                    "ledger": self.ledger_name,
                    "key": key,
                    "on": on.isoformat(),
                    "candidates": len(matches),
                    "effective_date": latest_start.isoformat(),
                },
            )
        return winner

    def _reindex(self, key: str) -> None:
        """Normalize and verify a restored key before accepting writes."""
        normalized: list[R] = []
        for record in self._records.get(key, []):
            start, end = self._stored_interval(key, record)
            if end is not None and end == start:
                # Zero-length intervals cover no date; drop them.
                continue
            normalized.append(replace(record, effective_date=start, end_date=end))
        normalized.sort(key=lambda r: r.effective_date)

        open_count = sum(1 for r in normalized if r.end_date is None)
        if open_count > 1:
            raise LedgerCorruptionError(
                self.ledger_name, key, f"{open_count} open records"
            )
        for prev, nxt in zip(normalized, normalized[1:]):
            if _overlaps(prev.effective_date, prev.end_date, nxt.effective_date, nxt.end_date):
                raise LedgerCorruptionError(
                    self.ledger_name,
                    key,
                    f"overlapping records effective {prev.effective_date.isoformat()} "
                    f"and {nxt.effective_date.isoformat()}",
                )

        self._records[key] = normalized
        self._index[key] = [r.effective_date for r in normalized]
        self._unverified.discard(key)


class CompensationLedger(EffectiveDatedLedger[CompensationRecord]):
    """Effective-dated compensation records keyed by employee id."""

    ledger_name = "compensation"

    def _owner_of(self, record: CompensationRecord) -> str:
        return record.employee_id

    def resolve(self, employee_id: str, on: date | str) -> CompensationRecord | None:
        """Compensation in effect for ``employee_id`` on ``on``; None if none."""
        return self.resolve_record(employee_id, on)


class ProjectMultiplierLedger(EffectiveDatedLedger[ProjectMultiplierRecord]):
    """Effective-dated billing multipliers keyed by project id."""

    ledger_name = "project_multiplier"

    def _owner_of(self, record: ProjectMultiplierRecord) -> str:
        return record.project_id

    def resolve(self, project_id: str, on: date | str) -> Decimal:
        """Multiplier in effect for ``project_id`` on ``on``; ``1`` if none."""
        record = self.resolve_record(project_id, on)
        return record.multiplier if record is not None else ONE
