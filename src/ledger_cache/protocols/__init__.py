"""Protocol interfaces for swappable implementations.

Protocols enable:
- Swapping the transport (HTTP, in-memory fake, ...)
- Unit testing with mock implementations
- Clear separation of concerns
"""

from .ledger_client import LedgerClient

__all__ = [
    "LedgerClient",
]
