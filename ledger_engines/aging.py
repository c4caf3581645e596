"""
Module: ledger_engines.aging
Responsibility:
    Calculate how overdue an open invoice or bill is and classify it into
    aging buckets derived from a list of period boundaries.  Used for AR
    aging and AP aging.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import ledger_kernel exceptions, config and logging.

Invariants enforced:
    - Purity: no clock access, no I/O.
    - Decimal-only arithmetic for all monetary amounts.
    - Buckets form a total, non-overlapping partition of the integers:
      ``days <= 0`` is "Current", ``periods[i-1] < days <= periods[i]`` is
      the i-th bucket (boundary inclusive), ``days > periods[-1]`` is the
      overflow bucket.

Failure modes:
    - InvalidAgingPeriodsError when periods are empty, non-positive or not
      strictly increasing.

Usage:
    from ledger_engines.aging import AgingCalculator, build_buckets
    from datetime import date

    calculator = AgingCalculator()
    days = calculator.calculate_days_overdue(
        due_date=date(2024, 1, 15),
        as_of_date=date(2024, 2, 15),
    )  # Returns 31

    bucket = calculator.classify(days, build_buckets((30, 60, 90, 120)))
    # Returns AgeBucket("31-60 days", 31, 60)
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Sequence
from uuid import UUID

from ledger_kernel.config import DEFAULT_AGING_PERIODS, validate_aging_periods
from ledger_kernel.exceptions import InvalidAgingPeriodsError
from ledger_kernel.logging_config import get_logger

logger = get_logger("engines.aging")

CURRENT_BUCKET_NAME = "Current"


@dataclass(frozen=True)
class AgeBucket:
    """
    Definition of an aging bucket.

    Contract:
        Frozen dataclass representing a contiguous range of days overdue.
        The "Current" bucket has ``max_days == 0`` and also takes every
        negative age (not yet due).
    Guarantees:
        - min_days >= 0.
        - max_days >= min_days (when bounded).
    """

    name: str
    min_days: int
    max_days: int | None  # None = unbounded ("Over N days")

    def __post_init__(self) -> None:
        if self.min_days < 0:
            raise ValueError("min_days cannot be negative")
        if self.max_days is not None and self.max_days < self.min_days:
            raise ValueError("max_days cannot be less than min_days")

    def contains(self, age_days: int) -> bool:
        """Check if age falls within this bucket."""
        if age_days < self.min_days:
            return False
        if self.max_days is None:
            return True
        return age_days <= self.max_days

    @property
    def is_unbounded(self) -> bool:
        """True if bucket has no upper limit."""
        return self.max_days is None


def build_buckets(periods: Sequence[int] = DEFAULT_AGING_PERIODS) -> tuple[AgeBucket, ...]:
    """
    Turn period boundaries into labelled buckets.

    ``(30, 60, 90, 120)`` gives "Current", "1-30 days", "31-60 days",
    "61-90 days", "91-120 days" and "Over 120 days".

    Raises:
        InvalidAgingPeriodsError: periods empty, non-positive or not
            strictly increasing.
    """
    periods = tuple(periods)
    try:
        validate_aging_periods(periods)
    except ValueError as exc:
        raise InvalidAgingPeriodsError(periods, str(exc)) from exc

    buckets = [AgeBucket(CURRENT_BUCKET_NAME, 0, 0)]
    previous = 0
    for boundary in periods:
        buckets.append(AgeBucket(f"{previous + 1}-{boundary} days", previous + 1, boundary))
        previous = boundary
    buckets.append(AgeBucket(f"Over {previous} days", previous + 1, None))
    return tuple(buckets)


STANDARD_BUCKETS: tuple[AgeBucket, ...] = build_buckets(DEFAULT_AGING_PERIODS)


@dataclass(frozen=True)
class AgedItem:
    """
    An open document with its age classification.

    Guarantees:
        - ``bucket.contains(age_days)``, or ``age_days < 0`` and the bucket
          is "Current".
    """

    document_id: UUID
    document_type: str
    number: str
    document_date: date
    due_date: date
    amount: Decimal
    age_days: int
    bucket: AgeBucket
    counterparty_id: UUID | None = None
    counterparty_name: str | None = None

    @property
    def is_overdue(self) -> bool:
        return self.age_days > 0

    @property
    def days_past_due(self) -> int:
        """Days past due (0 if not overdue)."""
        return max(0, self.age_days)


@dataclass(frozen=True)
class BucketTotal:
    """Amount and item count of one bucket."""

    bucket: AgeBucket
    amount: Decimal
    count: int


@dataclass(frozen=True)
class CounterpartyAging:
    """One customer's or vendor's open amounts spread across buckets."""

    counterparty_id: UUID | None
    counterparty_name: str | None
    amounts: tuple[tuple[str, Decimal], ...]
    total: Decimal

    def amount_in(self, bucket_name: str) -> Decimal:
        return dict(self.amounts).get(bucket_name, Decimal("0"))


@dataclass(frozen=True)
class AgingReport:
    """
    Complete aging snapshot.

    Guarantees:
        - ``total_amount()`` equals the sum of all item amounts, and equals
          the sum of ``total_by_bucket()`` amounts.
        - ``total_by_bucket()`` covers every bucket in ``self.buckets``.
    """

    as_of_date: date
    buckets: tuple[AgeBucket, ...]
    items: tuple[AgedItem, ...]
    report_type: str = "AR"

    @property
    def item_count(self) -> int:
        return len(self.items)

    def total_amount(self) -> Decimal:
        return sum((item.amount for item in self.items), Decimal("0"))

    def total_by_bucket(self) -> tuple[BucketTotal, ...]:
        """Per-bucket amount and count, in bucket order."""
        return tuple(
            BucketTotal(
                bucket=bucket,
                amount=sum((i.amount for i in in_bucket), Decimal("0")),
                count=len(in_bucket),
            )
            for bucket in self.buckets
            for in_bucket in (self.items_in_bucket(bucket.name),)
        )

    def total_by_counterparty(self) -> tuple[CounterpartyAging, ...]:
        """
        Per-counterparty bucket amounts, sorted by total descending.

        Ties keep the order in which counterparties first appear.
        """
        order: list[UUID | None] = []
        names: dict[UUID | None, str | None] = {}
        amounts: dict[UUID | None, dict[str, Decimal]] = {}

        for item in self.items:
            key = item.counterparty_id
            if key not in amounts:
                order.append(key)
                names[key] = item.counterparty_name
                amounts[key] = {b.name: Decimal("0") for b in self.buckets}
            amounts[key][item.bucket.name] += item.amount

        rows = [
            CounterpartyAging(
                counterparty_id=key,
                counterparty_name=names[key],
                amounts=tuple((b.name, amounts[key][b.name]) for b in self.buckets),
                total=sum(amounts[key].values(), Decimal("0")),
            )
            for key in order
        ]
        rows.sort(key=lambda row: row.total, reverse=True)
        return tuple(rows)

    def items_in_bucket(self, bucket_name: str) -> tuple[AgedItem, ...]:
        return tuple(i for i in self.items if i.bucket.name == bucket_name)

    def overdue_amount(self) -> Decimal:
        return sum((i.amount for i in self.items if i.is_overdue), Decimal("0"))


class AgingCalculator:
    """
    Calculate aging for open invoices and bills.

    Contract:
        Pure functions -- no I/O, no database access.
        All dates and data passed as parameters.
    Guarantees:
        - ``classify`` maps every integer age to exactly one bucket of a
          sequence produced by ``build_buckets``.
    """

    DEFAULT_BUCKETS = STANDARD_BUCKETS

    def calculate_days_overdue(self, due_date: date, as_of_date: date) -> int:
        """Whole days from due date to as-of date (negative if not yet due)."""
        return (as_of_date - due_date).days

    def classify(
        self,
        age_days: int,
        buckets: Sequence[AgeBucket] | None = None,
    ) -> AgeBucket:
        """
        Classify age into a bucket.

        Postconditions:
            - Returns exactly one ``AgeBucket`` whose range contains
              ``age_days`` (negative ages map to the current bucket).
        Raises:
            ValueError: If age doesn't fit any bucket.
        """
        if buckets is None:
            buckets = self.DEFAULT_BUCKETS

        if age_days < 0:
            for bucket in buckets:
                if bucket.min_days == 0:
                    return bucket
            return buckets[0]

        for bucket in buckets:
            if bucket.contains(age_days):
                return bucket

        logger.warning("age_classification_no_bucket", extra={
            "age_days": age_days,
            "bucket_count": len(buckets),
        })
        raise ValueError(f"Age {age_days} does not fit any bucket")

    def age_item(
        self,
        document_id: UUID,
        document_type: str,
        number: str,
        document_date: date,
        due_date: date,
        amount: Decimal,
        as_of_date: date,
        counterparty_id: UUID | None = None,
        counterparty_name: str | None = None,
        buckets: Sequence[AgeBucket] | None = None,
    ) -> AgedItem:
        """Convenience method combining calculate_days_overdue and classify."""
        age_days = self.calculate_days_overdue(due_date, as_of_date)
        return AgedItem(
            document_id=document_id,
            document_type=document_type,
            number=number,
            document_date=document_date,
            due_date=due_date,
            amount=amount,
            age_days=age_days,
            bucket=self.classify(age_days, buckets),
            counterparty_id=counterparty_id,
            counterparty_name=counterparty_name,
        )

    def generate_report(
        self,
        items: Sequence[AgedItem],
        as_of_date: date,
        buckets: Sequence[AgeBucket] | None = None,
        report_type: str = "AR",
    ) -> AgingReport:
        """
        Assemble an aging report.  Items are ordered by due date ascending
        (then number) regardless of input order.
        """
        if buckets is None:
            buckets = self.DEFAULT_BUCKETS

        ordered = sorted(items, key=lambda i: (i.due_date, i.number))

        logger.info("aging_report_generated", extra={
            "as_of_date": as_of_date.isoformat(),
            "report_type": report_type,
            "item_count": len(ordered),
            "bucket_count": len(buckets),
        })

        return AgingReport(
            as_of_date=as_of_date,
            buckets=tuple(buckets),
            items=tuple(ordered),
            report_type=report_type,
        )
