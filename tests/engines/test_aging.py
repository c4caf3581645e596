"""
Tests for the aging engine.

Covers:
- Bucket construction and labels from period boundaries
- Classification at and around every boundary
- Not-yet-due items land in "Current"
- Report totals by bucket and by counterparty
"""

from datetime import date, timedelta
from decimal import Decimal
from uuid import uuid4

import pytest

from ledger_engines.aging import (
    CURRENT_BUCKET_NAME,
    STANDARD_BUCKETS,
    AgeBucket,
    AgingCalculator,
    build_buckets,
)
from ledger_kernel.exceptions import InvalidAgingPeriodsError

AS_OF = date(2024, 3, 31)


@pytest.fixture
def calculator():
    return AgingCalculator()


def _item(calculator, days_overdue, amount, number="INV-1", counterparty_id=None, name="Acme"):
    due = AS_OF - timedelta(days=days_overdue)
    return calculator.age_item(
        document_id=uuid4(),
        document_type="invoice",
        number=number,
        document_date=due - timedelta(days=30),
        due_date=due,
        amount=Decimal(amount),
        as_of_date=AS_OF,
        counterparty_id=counterparty_id,
        counterparty_name=name,
    )


class TestBuildBuckets:
    """Bucket labels and ranges."""

    def test_default_labels(self):
        assert [b.name for b in STANDARD_BUCKETS] == [
            "Current",
            "1-30 days",
            "31-60 days",
            "61-90 days",
            "91-120 days",
            "Over 120 days",
        ]

    def test_custom_periods(self):
        buckets = build_buckets((15, 45))

        assert [(b.name, b.min_days, b.max_days) for b in buckets] == [
            ("Current", 0, 0),
            ("1-15 days", 1, 15),
            ("16-45 days", 16, 45),
            ("Over 45 days", 46, None),
        ]
        assert buckets[-1].is_unbounded

    @pytest.mark.parametrize(
        "periods",
        [(), (0, 30), (30, 30), (60, 30), (-5,)],
    )
    def test_invalid_periods(self, periods):
        with pytest.raises(InvalidAgingPeriodsError) as exc_info:
            build_buckets(periods)

        assert exc_info.value.periods == tuple(periods)

    def test_bucket_bounds_validated(self):
        with pytest.raises(ValueError):
            AgeBucket("bad", 10, 5)


class TestClassify:
    """Every integer age maps to exactly one bucket."""

    @pytest.mark.parametrize(
        "age,expected",
        [
            (-10, "Current"),
            (0, "Current"),
            (1, "1-30 days"),
            (30, "1-30 days"),
            (31, "31-60 days"),
            (60, "31-60 days"),
            (61, "61-90 days"),
            (90, "61-90 days"),
            (91, "91-120 days"),
            (120, "91-120 days"),
            (121, "Over 120 days"),
            (10_000, "Over 120 days"),
        ],
    )
    def test_boundaries(self, calculator, age, expected):
        assert calculator.classify(age).name == expected

    def test_exactly_one_bucket_contains_each_age(self):
        for age in range(0, 200):
            assert sum(1 for b in STANDARD_BUCKETS if b.contains(age)) == 1

    def test_days_overdue(self, calculator):
        assert calculator.calculate_days_overdue(date(2024, 1, 15), date(2024, 2, 15)) == 31
        assert calculator.calculate_days_overdue(date(2024, 2, 15), date(2024, 1, 15)) == -31

    def test_age_item(self, calculator):
        item = _item(calculator, 45, "100.00")

        assert item.age_days == 45
        assert item.bucket.name == "31-60 days"
        assert item.is_overdue
        assert item.days_past_due == 45

    def test_not_yet_due_is_current(self, calculator):
        item = _item(calculator, -3, "100.00")

        assert item.bucket.name == CURRENT_BUCKET_NAME
        assert not item.is_overdue
        assert item.days_past_due == 0


class TestAgingReport:
    """Totals over a generated report."""

    @pytest.fixture
    def report(self, calculator):
        acme, globex = uuid4(), uuid4()
        items = [
            _item(calculator, 100, "300.00", "INV-3", acme, "Acme"),
            _item(calculator, 0, "50.00", "INV-1", globex, "Globex"),
            _item(calculator, 10, "200.00", "INV-2", acme, "Acme"),
            _item(calculator, 45, "400.00", "INV-4", globex, "Globex"),
        ]
        return calculator.generate_report(items, AS_OF)

    def test_items_ordered_by_due_date(self, report):
        assert [i.number for i in report.items] == ["INV-3", "INV-4", "INV-2", "INV-1"]

    def test_bucket_totals_cover_every_bucket(self, report):
        totals = {t.bucket.name: (t.amount, t.count) for t in report.total_by_bucket()}

        assert list(totals) == [b.name for b in STANDARD_BUCKETS]
        assert totals["Current"] == (Decimal("50.00"), 1)
        assert totals["1-30 days"] == (Decimal("200.00"), 1)
        assert totals["31-60 days"] == (Decimal("400.00"), 1)
        assert totals["91-120 days"] == (Decimal("300.00"), 1)
        assert totals["Over 120 days"] == (Decimal("0"), 0)

    def test_totals_agree(self, report):
        by_bucket = sum((t.amount for t in report.total_by_bucket()), Decimal("0"))

        assert report.total_amount() == by_bucket == Decimal("950.00")
        assert report.overdue_amount() == Decimal("900.00")
        assert report.item_count == 4

    def test_counterparties_sorted_by_total(self, report):
        rows = report.total_by_counterparty()

        assert [r.counterparty_name for r in rows] == ["Acme", "Globex"]
        assert rows[0].total == Decimal("500.00")
        assert rows[0].amount_in("91-120 days") == Decimal("300.00")
        assert rows[1].amount_in("Current") == Decimal("50.00")
        assert rows[1].amount_in("Over 120 days") == Decimal("0")

    def test_empty_report(self, calculator):
        report = calculator.generate_report([], AS_OF)

        assert report.total_amount() == Decimal("0")
        assert all(t.count == 0 for t in report.total_by_bucket())
        assert report.total_by_counterparty() == ()
