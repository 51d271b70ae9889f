"""Handler layer for HTTP endpoints.

Handlers depend on services (business logic), not directly on the cache
or the ledger client.

Architecture:
    Handler -> Service -> Cache -> Client
"""

from .ledger_handler import LedgerHandler

__all__ = [
    "LedgerHandler",
]
