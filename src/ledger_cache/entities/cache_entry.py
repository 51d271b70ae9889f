"""Cache entry domain entity."""

from dataclasses import dataclass
from enum import Enum
from typing import Any

from .resource_key import ResourceKey


class CacheStatus(str, Enum):
    """Lifecycle state of a cached resource."""

    FRESH = "fresh"
    STALE = "stale"
    LOADING = "loading"
    ERROR = "error"


@dataclass(frozen=True)
class CacheEntry:
    """Snapshot of one cached server resource.

    Entries are owned by the QueryCache, which replaces the snapshot on every
    state transition. Consumers only ever read them.

    Attributes:
        key: The resource key identifying the cache slot
        value: Last successfully loaded value (kept while stale, loading or errored)
        status: Current lifecycle state
        last_updated: Issue timestamp of the fetch that produced ``value``
        error: Exception from the most recent failed load, if any
    """

    key: ResourceKey
    value: Any = None
    status: CacheStatus = CacheStatus.LOADING
    last_updated: float | None = None
    error: BaseException | None = None

    @property
    def has_value(self) -> bool:
        """Whether a successful load has ever been stored."""
        return self.last_updated is not None
