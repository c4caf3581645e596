"""
BaseService -- abstract base for all kernel services.

Responsibility:
    Provides the common constructor and session-handling contract for
    every write-side service in the kernel.  A service is bound to one
    tenant for its lifetime and receives a SQLAlchemy ``Session`` that it
    uses via ``session.flush()`` -- never ``session.commit()``.

Architecture position:
    Kernel > Services -- imperative shell infrastructure.

Invariants enforced:
    - Transaction boundaries: services flush within the caller's
      transaction and never commit or rollback themselves.  The caller
      (LedgerOrchestrator, session_scope, or test harness) owns
      commit/rollback.
    - Tenant isolation: every query a service issues is filtered by the
      bound tenant_id.  A row owned by another tenant is reported as
      not found.
"""

from abc import ABC
from uuid import UUID

from sqlalchemy.orm import Session


class BaseService(ABC):
    """
    Abstract base class for all kernel services.

    Contract:
        Accepts a SQLAlchemy ``Session`` and a tenant id from the caller and
        uses ``session.flush()`` to persist changes within the active
        transaction.

    Non-goals:
        - Does NOT manage transaction lifecycle (commit/rollback).
        - Does NOT provide query-only (read) methods -- those belong
          in ``ledger_kernel/selectors/``.
    """

    def __init__(self, session: Session, tenant_id: UUID):
        """
        Preconditions:
            - ``session`` is a valid, open SQLAlchemy session.
            - ``tenant_id`` identifies the tenant every operation acts on.
        """
        self.session = session
        self.tenant_id = tenant_id
