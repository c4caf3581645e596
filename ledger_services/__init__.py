"""
ledger_services -- Package init and public API.

Responsibility:
    The boundary contract external collaborators use: a single facade
    over the kernel services and the report engine, plus the
    request-scoped transaction helper.

Architecture position:
    Services -- orchestration over kernel + engines + reporting.

    Dependency direction:
        ledger_services/  -> ledger_reporting/, ledger_engines/, ledger_kernel/
        ledger_kernel/    -> ledger_services/ (FORBIDDEN)
"""

from ledger_services.ledger_orchestrator import (
    LedgerOrchestrator,
    build_ledger_orchestrator,
    run_in_transaction,
)

__all__ = [
    "LedgerOrchestrator",
    "build_ledger_orchestrator",
    "run_in_transaction",
]
