"""Domain entities for internal representation.

These are pure dataclasses (frozen) used internally by the cache layer
and services. They are NOT used for API contracts - use DTOs from the
dto package for that.
"""

from .aggregates import (
    BalanceAggregate,
    DashboardSummary,
    ExpenseAggregate,
    FailedTeam,
    ItemResult,
    TeamBalanceItem,
    TeamExpenseItem,
)
from .cache_entry import CacheEntry, CacheStatus
from .mutation import MutationDescriptor, MutationKind
from .resource_key import KeyPattern, KeyTemplate, ResourceKey

__all__ = [
    "BalanceAggregate",
    "CacheEntry",
    "CacheStatus",
    "DashboardSummary",
    "ExpenseAggregate",
    "FailedTeam",
    "ItemResult",
    "KeyPattern",
    "KeyTemplate",
    "MutationDescriptor",
    "MutationKind",
    "ResourceKey",
    "TeamBalanceItem",
    "TeamExpenseItem",
]
