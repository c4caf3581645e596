"""
Ledger Kernel - accounting core of the bookkeeping platform.

A double-entry ledger with:
- Hierarchical, tenant-scoped chart of accounts
- Validated, atomic journal posting with per-tenant entry numbers
- Balances derived from posted lines (never stored)
- Correction by reversal instead of mutation
"""

__version__ = "0.1.0"
