"""Service layer for business logic.

Services depend on protocols (interfaces), not concrete implementations,
making them testable and flexible.

Architecture:
    Handler -> Service -> Cache -> Client
    (HTTP)  -> (Facade) -> (Consistency) -> (Ledger API)

Usage:
    ```python
    from ledger_cache.services import LedgerService

    service = LedgerService.create(client=HttpLedgerClient.create())
    ```
"""

from .ledger_service import LedgerService

__all__ = [
    "LedgerService",
]
