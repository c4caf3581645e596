"""
Module: ledger_kernel.selectors.base
Responsibility: Abstract base class for all read-only query selectors.
    Selectors are the read side of the kernel: balances, journal reads,
    account listings and open subledger documents.
Architecture position: Kernel > Selectors.  May import from db/, models/
    and the domain DTOs.  MUST NOT import from services/ or outer layers.

Invariants enforced:
    - Read-only access: selectors MUST NOT call session.add(),
      session.delete(), session.commit(), or session.flush().
    - DTO return convention: selectors return frozen dataclasses or
      Decimals, never raw ORM rows.
    - Tenant isolation: every query is filtered by the bound tenant_id.
    - No stored balances: every figure is derived from posted journal
      lines at query time.
"""

from abc import ABC
from uuid import UUID

from sqlalchemy.orm import Session


class BaseSelector(ABC):
    """
    Abstract base class for all selectors.

    Contract:
        Selectors accept a Session and a tenant id from the caller, perform
        read-only queries, and return DTOs or computed results.

    Non-goals:
        - Does NOT manage its own session or transaction.  A report that
          issues several queries sees whatever the caller's transaction
          sees.
    """

    def __init__(self, session: Session, tenant_id: UUID):
        self.session = session
        self.tenant_id = tenant_id
