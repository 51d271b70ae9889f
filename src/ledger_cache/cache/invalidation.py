"""Declarative mapping from mutation kind to the cache keys it makes stale.

Every key read by a view showing data a mutation can change must be covered
by that mutation's entry. Over-invalidation only costs a refetch;
under-invalidation shows stale data, so entries err on the wide side.
"""

from typing import Any, Mapping

from ledger_cache.entities import (
    KeyPattern,
    KeyTemplate,
    MutationDescriptor,
    MutationKind,
    ResourceKey,
)
from ledger_cache.errors import UnknownMutationError

from . import keys

KeySpec = KeyTemplate | KeyPattern

TEAM_EXPENSES = KeyTemplate(keys.TEAM_EXPENSES, ("team_id",))
TEAM_BALANCES = KeyTemplate(keys.TEAM_BALANCES, ("team_id",))
TEAM_MEMBERS = KeyTemplate(keys.TEAM_MEMBERS, ("team_id",))
TEAM_APPROVALS = KeyTemplate(keys.TEAM_APPROVALS, ("team_id",))
TEAM = KeyTemplate(keys.TEAM, ("team_id",))
TEAMS = KeyTemplate(keys.TEAMS)

# Approval requests are raised for new or edited expenses
_EXPENSE_CHANGE = (
    TEAM_EXPENSES,
    TEAM_BALANCES,
    TEAM_APPROVALS,
    keys.ALL_EXPENSES,
    keys.ALL_BALANCES,
)
# Member counts show on the team list and team detail
_MEMBERSHIP_CHANGE = (TEAM_MEMBERS, TEAM_BALANCES, TEAM, TEAMS)

DEFAULT_GRAPH: dict[MutationKind, tuple[KeySpec, ...]] = {
    MutationKind.CREATE_EXPENSE: _EXPENSE_CHANGE,
    MutationKind.UPDATE_EXPENSE: _EXPENSE_CHANGE,
    MutationKind.DELETE_EXPENSE: _EXPENSE_CHANGE,
    MutationKind.UPLOAD_RECEIPT: (TEAM_EXPENSES,),
    MutationKind.ADD_MEMBER: _MEMBERSHIP_CHANGE,
    MutationKind.REMOVE_MEMBER: _MEMBERSHIP_CHANGE + (keys.ALL_BALANCES,),
    MutationKind.UPDATE_APPROVAL: (TEAM_APPROVALS, TEAM_EXPENSES),
    MutationKind.RECORD_SETTLEMENT: (TEAM_BALANCES, keys.ALL_BALANCES),
    MutationKind.CREATE_TEAM: (TEAMS,),
    MutationKind.UPDATE_TEAM: (TEAMS, TEAM),
    MutationKind.DELETE_TEAM: (TEAMS,)
    + tuple(KeyTemplate(resource, ("team_id",)) for resource in keys.TEAM_SCOPED),
}


class InvalidationGraph:
    """Resolves mutation kinds to the keys they invalidate.

    Example:
        ```python
        graph = InvalidationGraph()
        descriptor = graph.describe(MutationKind.RECORD_SETTLEMENT, {"team_id": "t1"})
        descriptor.target_keys
        # (ResourceKey("team-balances", ("t1",)), KeyPattern("my-balance"))
        ```
    """

    def __init__(self, table: Mapping[MutationKind, tuple[KeySpec, ...]] | None = None) -> None:
        self._table = dict(DEFAULT_GRAPH if table is None else table)

    def targets(self, kind: MutationKind) -> tuple[KeySpec, ...]:
        """Unresolved key specs for a mutation kind.

        Raises:
            UnknownMutationError: If the kind has no entry
        """
        try:
            return self._table[MutationKind(kind)]
        except (KeyError, ValueError) as e:
            raise UnknownMutationError(f"No invalidation entry for mutation {kind!r}") from e

    def describe(self, kind: MutationKind, params: Mapping[str, Any]) -> MutationDescriptor:
        """Resolve a mutation's parameters into concrete keys and patterns.

        Args:
            kind: The mutation kind
            params: Mutation parameters (e.g. ``{"team_id": "t1"}``)

        Returns:
            MutationDescriptor with deduplicated targets in table order

        Raises:
            UnknownMutationError: If the kind has no entry
            ValueError: If a parameter required by a key template is missing
        """
        resolved: list[ResourceKey | KeyPattern] = []
        for spec in self.targets(kind):
            target = spec.resolve(params) if isinstance(spec, KeyTemplate) else spec
            if target not in resolved:
                resolved.append(target)
        return MutationDescriptor(kind=MutationKind(kind), target_keys=tuple(resolved))

    def kinds(self) -> list[MutationKind]:
        return list(self._table)
