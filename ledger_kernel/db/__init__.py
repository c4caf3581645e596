"""Database layer - engine, base classes and column types."""

from ledger_kernel.db.base import UUID, Base, TenantScopedMixin, TrackedBase, UUIDString
from ledger_kernel.db.engine import (
    create_tables,
    drop_tables,
    get_engine,
    get_session,
    get_session_factory,
    init_engine_from_config,
    init_engine_from_url,
    reset_engine,
    session_scope,
)
from ledger_kernel.db.types import ZERO, Money, as_money, round_money, within_tolerance

__all__ = [
    "UUID",
    "Base",
    "TenantScopedMixin",
    "TrackedBase",
    "UUIDString",
    "create_tables",
    "drop_tables",
    "get_engine",
    "get_session",
    "get_session_factory",
    "init_engine_from_config",
    "init_engine_from_url",
    "reset_engine",
    "session_scope",
    "ZERO",
    "Money",
    "as_money",
    "round_money",
    "within_tolerance",
]
