"""Aggregate view entities.

Aggregates are derived from cached base entries on every read and are never
stored themselves, so they cannot go stale independently of their inputs.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Literal

from ledger_cache.errors import PartialAggregationError

from .resource_key import ResourceKey

ItemStatus = Literal["ok", "error"]


@dataclass(frozen=True)
class ItemResult:
    """Outcome of one per-item fetch in a fan-out.

    Attributes:
        item: The index element the fetch was issued for
        key: Cache key of the per-item resource
        status: "ok" or "error"
        value: Loaded value (None when status is "error")
        error: The failure, when status is "error"
    """

    item: Any
    key: ResourceKey
    status: ItemStatus = "ok"
    value: Any = None
    error: BaseException | None = None

    @property
    def ok(self) -> bool:
        return self.status == "ok"


class _PartialMixin:
    """Shared partial-failure helpers for aggregates."""

    @property
    def failed_keys(self) -> list[str]:
        raise NotImplementedError

    @property
    def is_partial(self) -> bool:
        """Whether any item of the aggregate is unavailable."""
        return bool(self.failed_keys)

    def raise_for_partial(self) -> None:
        """Raise PartialAggregationError if any item is unavailable."""
        if self.is_partial:
            raise PartialAggregationError(self.failed_keys)


@dataclass(frozen=True)
class TeamBalanceItem:
    """The current user's balance in one team.

    ``balance`` is None exactly when the fetch failed, which keeps an
    unavailable team distinguishable from a settled (zero) one.
    """

    team_id: str
    team_name: str
    key: ResourceKey
    status: ItemStatus = "ok"
    balance: Decimal | None = None
    error: str | None = None


@dataclass(frozen=True)
class BalanceAggregate(_PartialMixin):
    """The current user's balances across all teams.

    Attributes:
        per_item: One entry per team, in team-list order
        total_owed: Sum of positive balances (others owe the user)
        total_owing: Sum of absolute negative balances (the user owes others)
    """

    per_item: list[TeamBalanceItem] = field(default_factory=list)
    total_owed: Decimal = Decimal("0")
    total_owing: Decimal = Decimal("0")

    @property
    def net_balance(self) -> Decimal:
        return self.total_owed - self.total_owing

    @property
    def failed_keys(self) -> list[str]:
        return [str(item.key) for item in self.per_item if item.status == "error"]


@dataclass(frozen=True)
class TeamExpenseItem:
    """An expense annotated with the team it belongs to."""

    team_id: str
    team_name: str
    expense: Any

    @property
    def description(self) -> str:
        return self.expense.description

    @property
    def category(self) -> str:
        return self.expense.category

    @property
    def created_at(self) -> Any:
        return self.expense.created_at


@dataclass(frozen=True)
class FailedTeam:
    """A team whose dependent resource could not be fetched."""

    team_id: str
    team_name: str
    key: ResourceKey
    error: str


@dataclass(frozen=True)
class ExpenseAggregate(_PartialMixin):
    """All expenses across the user's teams, newest first."""

    items: list[TeamExpenseItem] = field(default_factory=list)
    failed: list[FailedTeam] = field(default_factory=list)

    @property
    def failed_keys(self) -> list[str]:
        return [str(team.key) for team in self.failed]


@dataclass(frozen=True)
class DashboardSummary:
    """Headline numbers for the dashboard view."""

    team_count: int
    total_owed: Decimal
    total_owing: Decimal
    unavailable_teams: int = 0

    @property
    def net_balance(self) -> Decimal:
        return self.total_owed - self.total_owing
