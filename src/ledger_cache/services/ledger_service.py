"""Ledger service for core business logic.

This service is the single entry point views use: reads go through the
QueryCache (directly or via the Aggregator), writes go through the
MutationCoordinator so the right cache keys are invalidated afterwards.
"""

from typing import AsyncIterator, BinaryIO, Callable

from ledger_cache.cache import Aggregator, MutationCoordinator, QueryCache, keys
from ledger_cache.cache.invalidation import InvalidationGraph
from ledger_cache.dto.records import (
    Approval,
    Expense,
    ReportKind,
    Team,
    TeamBalances,
    TeamMember,
    UserBalance,
)
from ledger_cache.dto.requests import (
    AddMemberRequest,
    CreateExpenseRequest,
    RecordSettlementRequest,
    TeamRequest,
    UpdateApprovalRequest,
    UpdateExpenseRequest,
)
from ledger_cache.entities import (
    BalanceAggregate,
    CacheEntry,
    DashboardSummary,
    ExpenseAggregate,
    KeyPattern,
    MutationKind,
    ResourceKey,
)
from ledger_cache.protocols import LedgerClient


class LedgerService:
    """Cache-backed facade over the ledger service.

    This service depends on the LedgerClient PROTOCOL, not a concrete
    implementation, so tests can pass an in-memory fake.

    Example:
        ```python
        from ledger_cache.repositories import HttpLedgerClient
        from ledger_cache.services import LedgerService

        service = LedgerService.create(client=HttpLedgerClient.create())

        view = await service.all_balances()
        await service.create_expense(team_id, CreateExpenseRequest(...))
        view = await service.all_balances()  # refetches only what changed
        ```
    """

    def __init__(
        self,
        client: LedgerClient,
        cache: QueryCache | None = None,
        graph: InvalidationGraph | None = None,
    ) -> None:
        """Initialize the ledger service.

        Args:
            client: Ledger service client (required).
            cache: Shared query cache. A new one is created if omitted.
            graph: Invalidation graph. Defaults to the built-in table.
        """
        self._client = client
        self._cache = cache or QueryCache()
        self._aggregator = Aggregator(cache=self._cache, client=client)
        self._mutations = MutationCoordinator(cache=self._cache, graph=graph)

    @classmethod
    def create(
        cls,
        client: LedgerClient,
        cache: QueryCache | None = None,
    ) -> "LedgerService":
        """Factory method to create LedgerService with a fresh cache."""
        return cls(client=client, cache=cache)

    # Reads

    async def teams(self) -> list[Team]:
        return await self._cache.request(keys.teams(), self._client.list_teams)

    async def team(self, team_id: str) -> Team:
        return await self._cache.request(keys.team(team_id), lambda: self._client.get_team(team_id))

    async def team_members(self, team_id: str) -> list[TeamMember]:
        return await self._cache.request(
            keys.team_members(team_id), lambda: self._client.list_team_members(team_id)
        )

    async def team_expenses(self, team_id: str) -> list[Expense]:
        return await self._cache.request(
            keys.team_expenses(team_id), lambda: self._client.list_team_expenses(team_id)
        )

    async def team_balances(self, team_id: str) -> TeamBalances:
        return await self._cache.request(
            keys.team_balances(team_id), lambda: self._client.get_team_balances(team_id)
        )

    async def my_balance(self, team_id: str) -> UserBalance:
        return await self._cache.request(
            keys.my_balance(team_id), lambda: self._client.get_team_balance(team_id)
        )

    async def team_approvals(self, team_id: str) -> list[Approval]:
        return await self._cache.request(
            keys.team_approvals(team_id), lambda: self._client.list_approvals(team_id)
        )

    # Aggregate views

    async def all_balances(self) -> BalanceAggregate:
        return await self._aggregator.balances()

    async def all_expenses(self) -> ExpenseAggregate:
        return await self._aggregator.expenses()

    async def dashboard(self) -> DashboardSummary:
        return await self._aggregator.dashboard()

    # Mutations

    async def create_team(self, request: TeamRequest) -> Team:
        return await self._mutations.mutate(
            MutationKind.CREATE_TEAM, {}, lambda: self._client.create_team(request)
        )

    async def update_team(self, team_id: str, request: TeamRequest) -> Team:
        return await self._mutations.mutate(
            MutationKind.UPDATE_TEAM,
            {"team_id": team_id},
            lambda: self._client.update_team(team_id, request),
        )

    async def delete_team(self, team_id: str) -> None:
        await self._mutations.mutate(
            MutationKind.DELETE_TEAM,
            {"team_id": team_id},
            lambda: self._client.delete_team(team_id),
        )

    async def add_member(self, team_id: str, request: AddMemberRequest) -> None:
        await self._mutations.mutate(
            MutationKind.ADD_MEMBER,
            {"team_id": team_id},
            lambda: self._client.add_member(team_id, request),
        )

    async def remove_member(self, team_id: str, user_id: str) -> None:
        await self._mutations.mutate(
            MutationKind.REMOVE_MEMBER,
            {"team_id": team_id},
            lambda: self._client.remove_member(team_id, user_id),
        )

    async def create_expense(self, team_id: str, request: CreateExpenseRequest) -> Expense:
        """Create an expense. An empty ``split_with`` is sent as every current member."""
        if not request.split_with:
            members = await self.team_members(team_id)
            request = request.model_copy(
                update={"split_with": [member.user_id for member in members]}
            )
        return await self._mutations.mutate(
            MutationKind.CREATE_EXPENSE,
            {"team_id": team_id},
            lambda: self._client.create_expense(team_id, request),
        )

    async def update_expense(
        self, team_id: str, expense_id: str, request: UpdateExpenseRequest
    ) -> Expense:
        return await self._mutations.mutate(
            MutationKind.UPDATE_EXPENSE,
            {"team_id": team_id},
            lambda: self._client.update_expense(team_id, expense_id, request),
        )

    async def delete_expense(self, team_id: str, expense_id: str) -> None:
        await self._mutations.mutate(
            MutationKind.DELETE_EXPENSE,
            {"team_id": team_id},
            lambda: self._client.delete_expense(team_id, expense_id),
        )

    async def upload_receipt(
        self, team_id: str, expense_id: str, file: BinaryIO, filename: str
    ) -> None:
        await self._mutations.mutate(
            MutationKind.UPLOAD_RECEIPT,
            {"team_id": team_id},
            lambda: self._client.upload_receipt(team_id, expense_id, file, filename),
        )

    async def update_approval(
        self, team_id: str, approval_id: str, request: UpdateApprovalRequest
    ) -> None:
        await self._mutations.mutate(
            MutationKind.UPDATE_APPROVAL,
            {"team_id": team_id},
            lambda: self._client.update_approval(team_id, approval_id, request),
        )

    async def record_settlement(self, team_id: str, request: RecordSettlementRequest) -> None:
        await self._mutations.mutate(
            MutationKind.RECORD_SETTLEMENT,
            {"team_id": team_id},
            lambda: self._client.record_settlement(team_id, request),
        )

    # Reports are streamed straight through; they are never cached.

    def export_report(self, team_id: str, kind: ReportKind) -> AsyncIterator[bytes]:
        return self._client.export_report(team_id, kind)

    # Cache access

    def entry(self, key: ResourceKey) -> CacheEntry | None:
        return self._cache.get(key)

    def invalidate(self, target: ResourceKey | KeyPattern) -> list[ResourceKey]:
        """Manually mark keys stale (e.g. a "refresh" action in the UI)."""
        return self._cache.invalidate(target)

    def subscribe(
        self, key: ResourceKey, callback: Callable[[CacheEntry], None]
    ) -> Callable[[], None]:
        return self._cache.subscribe(key, callback)

    def get_stats(self) -> dict[str, int]:
        return self._cache.stats()

    async def is_healthy(self) -> bool:
        """Check whether the ledger service is reachable."""
        is_available = getattr(self._client, "is_available", None)
        if is_available is None:
            return True
        return await is_available()

    async def aclose(self) -> None:
        await self._cache.aclose()
        await self._client.aclose()

    @property
    def cache(self) -> QueryCache:
        """Get the underlying cache (for testing)."""
        return self._cache

    @property
    def client(self) -> LedgerClient:
        """Get the underlying client (for testing)."""
        return self._client
