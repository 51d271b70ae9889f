"""Cache-consistency core.

Components:
    - QueryCache: keyed store with request de-duplication and staleness
    - Aggregator: fan-out/reduce views over per-team resources
    - InvalidationGraph: mutation kind -> keys to invalidate
    - MutationCoordinator: write, then invalidate on success
    - filter_items / sort_items: pure view filtering
"""

from . import keys
from .aggregator import Aggregator, FanOut
from .invalidation import DEFAULT_GRAPH, InvalidationGraph
from .mutations import MutationCoordinator
from .query_cache import Loader, QueryCache
from .view_filter import filter_items, sort_items

__all__ = [
    "Aggregator",
    "DEFAULT_GRAPH",
    "FanOut",
    "InvalidationGraph",
    "Loader",
    "MutationCoordinator",
    "QueryCache",
    "filter_items",
    "keys",
    "sort_items",
]
