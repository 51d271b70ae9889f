"""Runs writes and applies their invalidations on success."""

from typing import Any, Awaitable, Callable, Mapping

from ledger_cache.entities import MutationDescriptor, MutationKind, ResourceKey
from ledger_cache.logging import get_logger

from .invalidation import InvalidationGraph
from .query_cache import QueryCache


class MutationCoordinator:
    """Executes writes against the ledger service and keeps the cache honest.

    On success every key the invalidation graph names for the mutation is
    marked stale (watched keys refetch immediately). On failure the cache is
    left exactly as it was and the error propagates unchanged.

    Example:
        ```python
        coordinator = MutationCoordinator(cache=cache)

        expense = await coordinator.mutate(
            MutationKind.CREATE_EXPENSE,
            {"team_id": team_id},
            lambda: client.create_expense(team_id, payload),
        )
        ```
    """

    def __init__(self, cache: QueryCache, graph: InvalidationGraph | None = None) -> None:
        self._cache = cache
        self._graph = graph or InvalidationGraph()
        self._logger = get_logger("ledger_cache.mutations")

    async def mutate(
        self,
        kind: MutationKind,
        params: Mapping[str, Any],
        write: Callable[[], Awaitable[Any]],
    ) -> Any:
        """Run a write, then invalidate what it changed.

        The descriptor is resolved before the write, so a misconfigured
        mutation fails without touching the server.

        Args:
            kind: The mutation kind
            params: Parameters for the graph's key templates
            write: Zero-argument coroutine function performing the write

        Returns:
            The write's result

        Raises:
            UnknownMutationError: If the kind has no invalidation entry
            ValueError: If a required parameter is missing
            Exception: Whatever ``write`` raised, unchanged
        """
        descriptor = self._graph.describe(kind, params)

        try:
            result = await write()
        except Exception as exc:
            self._logger.warning("Mutation failed", kind=descriptor.kind.value, error=str(exc))
            raise

        invalidated = self.apply(descriptor)
        self._logger.info(
            "Mutation applied",
            kind=descriptor.kind.value,
            invalidated=[str(key) for key in invalidated],
        )
        return result

    def apply(self, descriptor: MutationDescriptor) -> list[ResourceKey]:
        """Invalidate every target of a descriptor in one pass.

        Returns:
            The cached keys that were marked stale
        """
        return self._cache.invalidate(*descriptor.target_keys)

    @property
    def graph(self) -> InvalidationGraph:
        return self._graph
