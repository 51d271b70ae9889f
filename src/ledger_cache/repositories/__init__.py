"""Repository layer for data access.

Wraps the remote ledger service behind the LedgerClient protocol. The
implementations are protocol-based (structural typing), not
inheritance-based: any class implementing the required methods works.
"""

from ledger_cache.protocols import LedgerClient

from .http_ledger_client import HttpLedgerClient

__all__ = [
    "HttpLedgerClient",
    "LedgerClient",
]
