"""
Ledger Configuration (``ledger_kernel.config``).

Responsibility
--------------
Typed runtime configuration for the ledger core: database connection,
posting tolerance, entry-number retry budget, default aging periods and
logging level.  Values come from a YAML file (``yaml.safe_load``) with
environment-variable overrides for deployment secrets.

Failure modes
-------------
* Missing YAML file named explicitly  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Out-of-range values  -> ``ValueError`` from ``__post_init__``.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field, fields
from decimal import Decimal
from pathlib import Path
from typing import Any, Mapping, Self

import yaml

from ledger_kernel.logging_config import get_logger

logger = get_logger("config")

CONFIG_PATH_ENV = "LEDGER_CONFIG"
DATABASE_URL_ENV = "LEDGER_DATABASE_URL"

DEFAULT_AGING_PERIODS: tuple[int, ...] = (30, 60, 90, 120)


def validate_aging_periods(periods: tuple[int, ...]) -> tuple[int, ...]:
    """
    Check that aging periods are positive and strictly increasing.

    Raises:
        ValueError: If periods is empty, non-positive or not increasing.
    """
    if not periods:
        raise ValueError("aging periods cannot be empty")
    previous = 0
    for period in periods:
        if isinstance(period, bool) or not isinstance(period, int):
            raise ValueError(f"aging period {period!r} is not an integer")
        if period <= previous:
            raise ValueError("aging periods must be positive and strictly increasing")
        previous = period
    return tuple(periods)


@dataclass
class LedgerConfig:
    """
    Configuration schema for the ledger core.

    Controls persistence, posting validation and report defaults.
    """

    # Connection
    database_url: str = "sqlite://"
    echo_sql: bool = False
    statement_timeout_ms: int | None = None

    # Posting
    balance_tolerance: Decimal = Decimal("0.01")
    entry_number_max_attempts: int = 3

    # Reporting
    default_aging_periods: tuple[int, ...] = field(
        default_factory=lambda: DEFAULT_AGING_PERIODS,
    )
    entity_name: str = "Company"

    # Chart of accounts
    chart_template: str = "service"

    log_level: str = "INFO"

    def __post_init__(self):
        self.balance_tolerance = Decimal(str(self.balance_tolerance))
        if self.balance_tolerance < 0:
            raise ValueError("balance_tolerance cannot be negative")
        if self.entry_number_max_attempts < 1:
            raise ValueError("entry_number_max_attempts must be at least 1")
        if self.statement_timeout_ms is not None and self.statement_timeout_ms <= 0:
            raise ValueError("statement_timeout_ms must be positive")
        self.default_aging_periods = validate_aging_periods(
            tuple(self.default_aging_periods)
        )

    @classmethod
    def with_defaults(cls) -> Self:
        """Create config with standard defaults."""
        return cls()

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Self:
        """Create config from a dictionary, rejecting unknown keys."""
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ValueError(f"Unknown ledger config keys: {unknown}")
        logger.info(
            "ledger_config_loading_from_dict",
            extra={"keys": sorted(data.keys())},
        )
        return cls(**dict(data))


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
    """
    with open(path) as f:
        return yaml.safe_load(f) or {}


def load_config(
    path: str | Path | None = None,
    environ: Mapping[str, str] | None = None,
) -> LedgerConfig:
    """
    Build the runtime configuration.

    Resolution order: explicit ``path``, then the ``LEDGER_CONFIG``
    environment variable, then built-in defaults.  ``LEDGER_DATABASE_URL``
    overrides ``database_url`` from any source.
    """
    env = os.environ if environ is None else environ
    config_path = path or env.get(CONFIG_PATH_ENV)

    data: dict[str, Any] = {}
    if config_path:
        data = dict(load_yaml_file(Path(config_path)).get("ledger", {}))

    if env.get(DATABASE_URL_ENV):
        data["database_url"] = env[DATABASE_URL_ENV]

    if "default_aging_periods" in data:
        data["default_aging_periods"] = tuple(data["default_aging_periods"])

    config = LedgerConfig.from_dict(data) if data else LedgerConfig.with_defaults()
    logger.info(
        "ledger_config_loaded",
        extra={
            "source": str(config_path) if config_path else "defaults",
            "balance_tolerance": config.balance_tolerance,
            "entry_number_max_attempts": config.entry_number_max_attempts,
        },
    )
    return config
