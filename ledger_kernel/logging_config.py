"""
Structured JSON logging for the ledger kernel.

Every record is one JSON object: ``ts``, ``level``, ``logger``, ``message``,
the request-scoped ``LogContext`` fields (correlation, tenant, actor, entry),
the record's ``extra`` payload, and for failures the exception details.
Ledger errors also contribute ``exc_code``, ``exc_category`` and their
structured attributes (``exc_debits``, ``exc_account_code``, ...).

Loggers live under the ``ledger_kernel`` namespace; ``get_logger("x")``
returns ``ledger_kernel.x``.
"""

__all__ = [
    "CONTEXT_FIELDS",
    "StructuredFormatter",
    "LogContext",
    "get_logger",
    "configure_logging",
    "reset_logging",
]

import json
import logging
import sys
import threading
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import UTC, date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Iterator
from uuid import UUID

from ledger_kernel.exceptions import (
    ConflictError,
    InternalError,
    InvalidArgumentError,
    LedgerKernelError,
    NotFoundError,
)

CONTEXT_FIELDS: tuple[str, ...] = ("correlation_id", "tenant_id", "actor_id", "entry_id")

_CONTEXT_VARS: dict[str, ContextVar[str | None]] = {
    name: ContextVar(f"ledger_log_{name}", default=None) for name in CONTEXT_FIELDS
}

_CATEGORIES: tuple[type[LedgerKernelError], ...] = (
    NotFoundError,
    InvalidArgumentError,
    ConflictError,
    InternalError,
)


# ---------------------------------------------------------------------------
# Context propagation
# ---------------------------------------------------------------------------


def _context_var(name: str) -> ContextVar[str | None]:
    try:
        return _CONTEXT_VARS[name]
    except KeyError:
        raise TypeError(f"Unknown log context field: {name}") from None


class LogContext:
    """
    Request-scoped log fields held in ContextVars.

    Values are stored as strings so UUID tenant and entry ids can be passed
    straight through.  Safe across threads and asyncio tasks.
    """

    @staticmethod
    def set(**fields: Any) -> None:
        """Set context fields. None leaves a field unchanged."""
        for name, value in fields.items():
            var = _context_var(name)
            if value is not None:
                var.set(str(value))

    @staticmethod
    def get_all() -> dict[str, str]:
        """Return the fields that currently have a value."""
        ctx: dict[str, str] = {}
        for name, var in _CONTEXT_VARS.items():
            value = var.get()
            if value is not None:
                ctx[name] = value
        return ctx

    @staticmethod
    def clear() -> None:
        for var in _CONTEXT_VARS.values():
            var.set(None)

    @staticmethod
    @contextmanager
    def bind(**fields: Any) -> Iterator[None]:
        """Set fields for the duration of a block, then restore the previous values."""
        tokens = []
        for name, value in fields.items():
            var = _context_var(name)
            if value is not None:
                tokens.append((var, var.set(str(value))))
        try:
            yield
        finally:
            for var, token in reversed(tokens):
                var.reset(token)


# ---------------------------------------------------------------------------
# JSON Formatter
# ---------------------------------------------------------------------------

_STDLIB_KEYS: frozenset[str] = frozenset(
    vars(logging.LogRecord("", 0, "", 0, "", (), None)).keys()
) | {"message", "taskName"}


def _encode(obj: Any) -> Any:
    """JSON fallback for ids, dates, money and enum members."""
    if isinstance(obj, Enum):
        return obj.value
    if isinstance(obj, (UUID, Decimal)):
        return str(obj)
    if isinstance(obj, (datetime, date)):
        return obj.isoformat()
    return str(obj)


def _exception_fields(exc: BaseException) -> dict[str, Any]:
    fields: dict[str, Any] = {
        "exc_type": type(exc).__name__,
        "exc_message": str(exc),
    }
    if isinstance(exc, LedgerKernelError):
        fields["exc_code"] = exc.code
        category = next((base for base in _CATEGORIES if isinstance(exc, base)), None)
        if category is not None:
            fields["exc_category"] = category.code
        for key, value in vars(exc).items():
            if not key.startswith("_"):
                fields[f"exc_{key}"] = value
    return fields


class StructuredFormatter(logging.Formatter):
    """Formats each log record as a single JSON line."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            **LogContext.get_all(),
        }

        for key, value in vars(record).items():
            if key not in _STDLIB_KEYS and key not in payload:
                payload[key] = value

        if record.exc_info and record.exc_info[1] is not None:
            payload.update(_exception_fields(record.exc_info[1]))
            payload["traceback"] = self.formatException(record.exc_info)

        return json.dumps(payload, default=_encode)


# ---------------------------------------------------------------------------
# Logger factory and initialization
# ---------------------------------------------------------------------------

_LOGGER_PREFIX = "ledger_kernel"

_configured = False
_lock = threading.Lock()


def get_logger(name: str) -> logging.Logger:
    """Get a logger under the ledger_kernel namespace."""
    return logging.getLogger(f"{_LOGGER_PREFIX}.{name}")


def configure_logging(
    *,
    level: int | str = logging.INFO,
    stream: Any = None,
    handler: logging.Handler | None = None,
) -> None:
    """
    Attach one JSON handler to the ``ledger_kernel`` logger.

    Idempotent: only the first call in a process takes effect.  ``level``
    may be a number or a level name in any case (``"debug"``).
    """
    global _configured
    with _lock:
        if _configured:
            return
        _configured = True

    if isinstance(level, str):
        level = level.upper()

    root_logger = logging.getLogger(_LOGGER_PREFIX)
    root_logger.setLevel(level)
    root_logger.propagate = False

    h = handler if handler is not None else logging.StreamHandler(stream or sys.stderr)
    h.setFormatter(StructuredFormatter())
    root_logger.addHandler(h)


def reset_logging() -> None:
    """Reset logging configuration. FOR TESTING ONLY."""
    global _configured
    with _lock:
        _configured = False
    logger = logging.getLogger(_LOGGER_PREFIX)
    logger.handlers.clear()
    logger.setLevel(logging.WARNING)
