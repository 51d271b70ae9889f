"""Ledger Cache - cache-consistent views over a shared-expense ledger API.

This package provides a layered architecture for reading and writing ledger
data (teams, expenses, balances, settlements, approvals) through a local
cache that stays correct after mutations:

Layers:
    - protocols: Interface contracts (LedgerClient)
    - repositories: Data access implementations (HttpLedgerClient)
    - cache: QueryCache, Aggregator, InvalidationGraph, MutationCoordinator
    - services: Business logic facade (LedgerService)
    - handlers: HTTP endpoint handlers
    - dto: Data transfer objects (ledger records, API contracts)
    - entities: Domain models (internal)

Usage:
    ```python
    from ledger_cache.repositories import HttpLedgerClient
    from ledger_cache.services import LedgerService

    service = LedgerService.create(client=HttpLedgerClient.create())
    view = await service.all_balances()
    ```

For HTTP API:
    ```python
    from ledger_cache.api.app import app
    ```
"""

from ledger_cache.cache import (
    Aggregator,
    InvalidationGraph,
    MutationCoordinator,
    QueryCache,
    filter_items,
)
from ledger_cache.config import get_settings, settings
from ledger_cache.entities import (
    BalanceAggregate,
    CacheEntry,
    CacheStatus,
    ExpenseAggregate,
    KeyPattern,
    MutationKind,
    ResourceKey,
)
from ledger_cache.errors import (
    LedgerError,
    NetworkError,
    PartialAggregationError,
    ValidationError,
)
from ledger_cache.handlers import LedgerHandler
from ledger_cache.protocols import LedgerClient
from ledger_cache.repositories import HttpLedgerClient
from ledger_cache.services import LedgerService

__all__ = [
    # Configuration
    "settings",
    "get_settings",
    # Protocols (interfaces)
    "LedgerClient",
    # Core
    "QueryCache",
    "Aggregator",
    "InvalidationGraph",
    "MutationCoordinator",
    "filter_items",
    # Services (business logic)
    "LedgerService",
    # Handlers (HTTP)
    "LedgerHandler",
    # Repositories (data access)
    "HttpLedgerClient",
    # Entities (domain models)
    "BalanceAggregate",
    "CacheEntry",
    "CacheStatus",
    "ExpenseAggregate",
    "KeyPattern",
    "MutationKind",
    "ResourceKey",
    # Errors
    "LedgerError",
    "NetworkError",
    "PartialAggregationError",
    "ValidationError",
]
