"""Pure calculation engines (no I/O)."""

from ledger_engines.aging import (
    AgeBucket,
    AgedItem,
    AgingCalculator,
    AgingReport,
    BucketTotal,
    CounterpartyAging,
    build_buckets,
)

__all__ = [
    "AgeBucket",
    "AgedItem",
    "AgingCalculator",
    "AgingReport",
    "BucketTotal",
    "CounterpartyAging",
    "build_buckets",
]
