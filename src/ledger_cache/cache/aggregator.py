"""Fan-out aggregation over cached resources.

Some views need one request per element of an index list (e.g. the user's
balance in every team) because the ledger service does not batch them. The
Aggregator runs such fan-outs through the QueryCache, so repeated
aggregations reuse warm per-item entries and mutations invalidate exactly
the per-item keys they touch.

Partial failure policy: a failed per-item fetch never fails the aggregate.
The item is reported with status "error" and left out of any sums. A failed
index fetch does propagate, since there is nothing to aggregate over.
"""

import asyncio
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Awaitable, Callable

from ledger_cache.entities import (
    BalanceAggregate,
    DashboardSummary,
    ExpenseAggregate,
    FailedTeam,
    ItemResult,
    ResourceKey,
    TeamBalanceItem,
    TeamExpenseItem,
)
from ledger_cache.logging import get_logger
from ledger_cache.protocols import LedgerClient

from . import keys
from .query_cache import QueryCache
from .view_filter import sort_items


@dataclass(frozen=True)
class FanOut:
    """Strategy describing one fan-out.

    Attributes:
        index_key: Cache key of the index list
        load_index: Loader for the index list
        item_key: Builds the per-item cache key from an index element
        load_item: Builds the per-item loader call from an index element
    """

    index_key: ResourceKey
    load_index: Callable[[], Awaitable[list[Any]]]
    item_key: Callable[[Any], ResourceKey]
    load_item: Callable[[Any], Awaitable[Any]]


class Aggregator:
    """Builds cross-team views from per-team cached resources.

    Example:
        ```python
        aggregator = Aggregator(cache=cache, client=client)

        view = await aggregator.balances()
        view.total_owed, view.total_owing
        [item.status for item in view.per_item]  # ["ok", "error", ...]
        ```
    """

    def __init__(self, cache: QueryCache, client: LedgerClient) -> None:
        self._cache = cache
        self._client = client
        self._logger = get_logger("ledger_cache.aggregator")

    async def fan_out(self, plan: FanOut) -> list[ItemResult]:
        """Fetch the index, then every item concurrently, all through the cache.

        Args:
            plan: The fan-out strategy

        Returns:
            One ItemResult per index element, in index order

        Raises:
            Exception: If the index itself cannot be fetched
        """
        index = await self._cache.request(plan.index_key, plan.load_index)

        async def fetch(item: Any) -> ItemResult:
            key = plan.item_key(item)
            try:
                value = await self._cache.request(key, lambda: plan.load_item(item))
            except Exception as exc:
                return ItemResult(item=item, key=key, status="error", error=exc)
            return ItemResult(item=item, key=key, value=value)

        # gather() preserves argument order regardless of completion order
        results = await asyncio.gather(*(fetch(item) for item in index))

        failed = [str(result.key) for result in results if not result.ok]
        if failed:
            self._logger.warning(
                "Partial aggregation",
                index=str(plan.index_key),
                failed=failed,
                total=len(results),
            )
        return list(results)

    def _teams_plan(
        self,
        item_key: Callable[[str], ResourceKey],
        load_item: Callable[[str], Awaitable[Any]],
    ) -> FanOut:
        return FanOut(
            index_key=keys.teams(),
            load_index=self._client.list_teams,
            item_key=lambda team: item_key(team.id),
            load_item=lambda team: load_item(team.id),
        )

    async def balances(self) -> BalanceAggregate:
        """The current user's balance in every team, with owe/owed totals.

        Balances are classified by sign: positive adds to ``total_owed``,
        negative adds its absolute value to ``total_owing``, zero adds to
        neither but is still listed.
        """
        plan = self._teams_plan(keys.my_balance, self._client.get_team_balance)
        results = await self.fan_out(plan)

        per_item: list[TeamBalanceItem] = []
        total_owed = Decimal("0")
        total_owing = Decimal("0")

        for result in results:
            team = result.item
            if not result.ok:
                per_item.append(
                    TeamBalanceItem(
                        team_id=team.id,
                        team_name=team.name,
                        key=result.key,
                        status="error",
                        error=str(result.error),
                    )
                )
                continue

            amount = Decimal(result.value.net_balance)
            if amount > 0:
                total_owed += amount
            elif amount < 0:
                total_owing += -amount

            per_item.append(
                TeamBalanceItem(team_id=team.id, team_name=team.name, key=result.key, balance=amount)
            )

        return BalanceAggregate(per_item=per_item, total_owed=total_owed, total_owing=total_owing)

    async def expenses(self) -> ExpenseAggregate:
        """Every expense of every team, annotated with its team, newest first."""
        plan = self._teams_plan(keys.team_expenses, self._client.list_team_expenses)
        results = await self.fan_out(plan)

        items: list[TeamExpenseItem] = []
        failed: list[FailedTeam] = []

        for result in results:
            team = result.item
            if not result.ok:
                failed.append(
                    FailedTeam(
                        team_id=team.id,
                        team_name=team.name,
                        key=result.key,
                        error=str(result.error),
                    )
                )
                continue
            items.extend(
                TeamExpenseItem(team_id=team.id, team_name=team.name, expense=expense)
                for expense in result.value
            )

        # Expenses without a timestamp keep their order at the end
        items = sort_items(items, "created_at", descending=True)

        return ExpenseAggregate(items=items, failed=failed)

    async def dashboard(self) -> DashboardSummary:
        """Headline numbers: team count and balance totals."""
        view = await self.balances()
        return DashboardSummary(
            team_count=len(view.per_item),
            total_owed=view.total_owed,
            total_owing=view.total_owing,
            unavailable_teams=len(view.failed_keys),
        )
