"""
Reporting Configuration Schema.

Report presentation options and the tolerance used for the trial balance
and balance sheet integrity checks.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Self

from ledger_kernel.config import DEFAULT_AGING_PERIODS, LedgerConfig, validate_aging_periods
from ledger_kernel.db.types import within_tolerance
from ledger_kernel.logging_config import get_logger

logger = get_logger("reporting.config")


@dataclass
class ReportingConfig:
    """
    Configuration schema for the reporting package.

    Controls the entity heading, aging defaults and integrity tolerance.
    """

    # Entity name shown on reports
    entity_name: str = "Company"

    # Aging boundaries used when a caller passes none
    default_aging_periods: tuple[int, ...] = field(
        default_factory=lambda: DEFAULT_AGING_PERIODS,
    )

    # |debits - credits| must be strictly below this to count as balanced
    balance_tolerance: Decimal = Decimal("0.01")

    # Rounding precision for display
    display_precision: int = 2

    def __post_init__(self):
        self.balance_tolerance = Decimal(str(self.balance_tolerance))
        if self.balance_tolerance < 0:
            raise ValueError("balance_tolerance cannot be negative")
        if self.display_precision < 0:
            raise ValueError("display_precision cannot be negative")
        self.default_aging_periods = validate_aging_periods(
            tuple(self.default_aging_periods)
        )

    def is_within_tolerance(self, left: Decimal, right: Decimal) -> bool:
        return within_tolerance(left, right, self.balance_tolerance)

    @classmethod
    def with_defaults(cls) -> Self:
        """Create config with standard defaults."""
        logger.info("reporting_config_created_with_defaults")
        return cls()

    @classmethod
    def from_dict(cls, data: dict) -> Self:
        """Create config from dictionary."""
        data = dict(data)
        if "default_aging_periods" in data:
            data["default_aging_periods"] = tuple(data["default_aging_periods"])
        logger.info(
            "reporting_config_loading_from_dict",
            extra={"keys": sorted(data.keys())},
        )
        return cls(**data)

    @classmethod
    def from_ledger_config(cls, config: LedgerConfig) -> Self:
        """Derive report options from the ledger's runtime configuration."""
        return cls(
            entity_name=config.entity_name,
            default_aging_periods=config.default_aging_periods,
            balance_tolerance=config.balance_tolerance,
        )
