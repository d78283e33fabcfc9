"""
Property-based tests for ledgers, costing and reports.

Properties:
- resolve returns a record whose interval contains the date, or None
- adding open records closes the prior one; intervals never overlap
- hours == billable + non-billable, with exactly one of them non-zero
- totalCost == hours * rate; billableValue == billableHours * rate * multiplier
- efficiency is 0 for zero hours; profitMargin is 0 for zero revenue
- totalHours is additive across disjoint date ranges
"""

from datetime import date, datetime, timedelta, timezone
from decimal import Decimal

from hypothesis import given, settings
from hypothesis import strategies as st

from payroll_engines.costing import TimeEntryCostingEngine
from payroll_engines.directory import EmployeeDirectory, ProjectDirectory
from payroll_engines.ledger import CompensationLedger, ProjectMultiplierLedger
from payroll_engines.profitability import ProfitabilityReportBuilder
from payroll_kernel.domain.records import (
    CompensationRecord,
    Employee,
    Project,
    ProjectMultiplierRecord,
    RawTimeEntry,
    TimeInterval,
)
from payroll_kernel.exceptions import InvalidIntervalError

TOLERANCE = Decimal("1e-9")

dates = st.dates(min_value=date(2020, 1, 1), max_value=date(2026, 12, 31))
rates = st.decimals(min_value=Decimal("0"), max_value=Decimal("500"), places=2)
multipliers = st.decimals(min_value=Decimal("0.1"), max_value=Decimal("5"), places=2)


@st.composite
def durations(draw) -> str:
    hours = draw(st.integers(min_value=0, max_value=12))
    minutes = draw(st.sampled_from([0, 15, 30, 45]))
    seconds = draw(st.integers(min_value=0, max_value=59))
    parts = "PT"
    if hours:
        parts += f"{hours}H"
    if minutes:
        parts += f"{minutes}M"
    if seconds:
        parts += f"{seconds}S"
    return parts


def _salary(effective: date, rate: Decimal = Decimal("50")) -> CompensationRecord:
    return CompensationRecord(
        employee_id="emp-1",
        effective_date=effective,
        annual_salary=rate * 2080,
        hourly_rate=rate,
    )


def _entry(entry_id: str, on: date, duration: str, billable: bool) -> RawTimeEntry:
    return RawTimeEntry(
        id=entry_id,
        user_id="emp-1",
        project_id="proj-1",
        billable=billable,
        time_interval=TimeInterval(
            start=datetime(on.year, on.month, on.day, 12, tzinfo=timezone.utc),
            duration=duration,
        ),
    )


def _cost(entries, rate: Decimal, multiplier: Decimal):
    compensation = CompensationLedger()
    compensation.add_record("emp-1", _salary(date(2020, 1, 1), rate))
    project_multipliers = ProjectMultiplierLedger()
    project_multipliers.add_record("proj-1", ProjectMultiplierRecord(
        project_id="proj-1", project_name="Harbor Bridge",
        multiplier=multiplier, effective_date=date(2020, 1, 1),
    ))
    return TimeEntryCostingEngine().process(
        entries=entries,
        employees=EmployeeDirectory([Employee(id="emp-1", name="Ada Lovelace")]),
        projects=ProjectDirectory([Project(id="proj-1", name="Harbor Bridge")]),
        compensation=compensation,
        multipliers=project_multipliers,
    )


def _assert_well_formed(ledger: CompensationLedger) -> None:
    history = ledger.history("emp-1")
    assert sum(1 for r in history if r.end_date is None) <= 1
    for prev, nxt in zip(history, history[1:]):
        assert prev.end_date is not None
        assert prev.end_date <= nxt.effective_date


# =============================================================================
# Ledger properties
# =============================================================================


class TestLedgerProperties:

    @given(st.lists(dates, min_size=1, max_size=10, unique=True), dates)
    @settings(max_examples=100)
    def test_resolve_returns_containing_record(self, effective_dates, on):
        ledger = CompensationLedger()
        for effective in sorted(effective_dates):
            ledger.add_record("emp-1", _salary(effective))
        _assert_well_formed(ledger)

        record = ledger.resolve("emp-1", on)
        if record is None:
            assert on < min(effective_dates)
        else:
            assert record.effective_date <= on
            assert record.end_date is None or on < record.end_date

    @given(st.lists(dates, min_size=1, max_size=10, unique=True))
    @settings(max_examples=100)
    def test_any_insertion_order_stays_well_formed(self, effective_dates):
        ledger = CompensationLedger()
        rejected = 0
        for effective in effective_dates:
            try:
                ledger.add_record("emp-1", _salary(effective))
            except InvalidIntervalError:
                rejected += 1
        _assert_well_formed(ledger)
        assert len(ledger.history("emp-1")) + rejected == len(effective_dates)
        # the latest date accepted so far is always the open record
        assert ledger.history("emp-1")[-1].end_date is None


# =============================================================================
# Costing properties
# =============================================================================


class TestCostingProperties:

    @given(durations(), rates, multipliers, st.booleans())
    @settings(max_examples=200)
    def test_formulas(self, duration, rate, multiplier, billable):
        (costed,) = _cost([_entry("te-1", date(2024, 3, 4), duration, billable)], rate, multiplier).costed

        assert costed.hours == costed.billable_hours + costed.non_billable_hours
        if costed.hours > 0:
            nonzero = [h for h in (costed.billable_hours, costed.non_billable_hours) if h != 0]
            assert len(nonzero) == 1
        assert abs(costed.total_cost - costed.hours * rate) <= TOLERANCE
        assert abs(
            costed.billable_value - costed.billable_hours * rate * multiplier
        ) <= TOLERANCE
        if costed.hours == 0:
            assert costed.efficiency == 0

    @given(
        st.lists(st.tuples(durations(), st.booleans()), max_size=8),
        rates,
    )
    @settings(max_examples=50)
    def test_zero_revenue_zero_margin(self, specs, rate):
        entries = [
            _entry(f"te-{i}", date(2024, 3, 4), duration, billable)
            for i, (duration, billable) in enumerate(specs)
        ]
        costed = _cost(entries, rate, Decimal("1")).costed
        report = ProfitabilityReportBuilder().project_report(
            "proj-1", "2024-03-01", "2024-03-31", costed, revenue=0,
        )
        assert report.profit_margin == 0
        assert report.gross_profit == -report.total_cost


# =============================================================================
# Report properties
# =============================================================================


class TestReportProperties:

    @given(
        st.lists(
            st.tuples(st.integers(min_value=0, max_value=60), durations(), st.booleans()),
            max_size=15,
        ),
        st.integers(min_value=0, max_value=59),
    )
    @settings(max_examples=100)
    def test_total_hours_additive_over_disjoint_ranges(self, specs, split_offset):
        start = date(2024, 3, 1)
        end = start + timedelta(days=60)
        split = start + timedelta(days=split_offset)
        entries = [
            _entry(f"te-{i}", start + timedelta(days=offset), duration, billable)
            for i, (offset, duration, billable) in enumerate(specs)
        ]
        costed = _cost(entries, Decimal("75"), Decimal("1.5")).costed
        builder = ProfitabilityReportBuilder()

        whole = builder.project_report("proj-1", start, end, costed)
        left = builder.project_report("proj-1", start, split, costed)
        right = builder.project_report("proj-1", split + timedelta(days=1), end, costed)

        assert abs(whole.total_hours - (left.total_hours + right.total_hours)) <= TOLERANCE
        assert abs(whole.total_cost - (left.total_cost + right.total_cost)) <= TOLERANCE
