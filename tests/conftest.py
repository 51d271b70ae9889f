"""
Shared fixtures: an in-memory ledger client and sample data.
"""

import asyncio
import itertools
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import Any

import pytest

from ledger_cache.dto import (
    Approval,
    Expense,
    Team,
    TeamBalances,
    TeamMember,
    UserBalance,
)
from ledger_cache.errors import NetworkError

BASE_TIME = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


def make_expense(team_id: str, expense_id: str, description: str, amount: str, minutes: int = 0,
                 category: str = "Other") -> Expense:
    return Expense(
        id=expense_id,
        team_id=team_id,
        amount=Decimal(amount),
        description=description,
        category=category,
        created_at=BASE_TIME + timedelta(minutes=minutes),
    )


class FakeLedgerClient:
    """In-memory LedgerClient with call recording, failure injection and gates.

    - ``fail(name, *args)`` makes the matching call raise
    - ``gate(name, *args)`` returns an Event the matching call waits on
    """

    def __init__(
        self,
        teams: list[Team] | None = None,
        balances: dict[str, Any] | None = None,
        expenses: dict[str, list[Expense]] | None = None,
    ) -> None:
        self.teams = list(teams or [])
        self.balances = {team_id: Decimal(str(v)) for team_id, v in (balances or {}).items()}
        self.expenses = {team_id: list(items) for team_id, items in (expenses or {}).items()}
        self.members: dict[str, list[TeamMember]] = {}
        self.approvals: dict[str, list[Approval]] = {}
        self.expense_requests: list[tuple[str, Any]] = []
        self.calls: list[tuple] = []
        self.closed = False
        self._failures: dict[tuple, Exception] = {}
        self._gates: dict[tuple, asyncio.Event] = {}
        self._ids = itertools.count(1)

    def fail(self, name: str, *args: Any, error: Exception | None = None) -> None:
        self._failures[(name, *args)] = error or NetworkError("boom", status_code=503)

    def recover(self, name: str, *args: Any) -> None:
        self._failures.pop((name, *args), None)

    def gate(self, name: str, *args: Any) -> asyncio.Event:
        event = asyncio.Event()
        self._gates[(name, *args)] = event
        return event

    def count(self, name: str, *args: Any) -> int:
        return sum(1 for call in self.calls if call[: len(args) + 1] == (name, *args))

    async def _enter(self, name: str, *args: Any) -> None:
        self.calls.append((name, *args))
        gate = self._gates.get((name, *args))
        if gate is not None:
            await gate.wait()
        error = self._failures.get((name, *args))
        if error is not None:
            raise error

    # Teams

    async def list_teams(self) -> list[Team]:
        await self._enter("list_teams")
        return list(self.teams)

    async def get_team(self, team_id: str) -> Team:
        await self._enter("get_team", team_id)
        return next(team for team in self.teams if team.id == team_id)

    async def create_team(self, request) -> Team:
        await self._enter("create_team")
        team = Team(id=f"t{100 + next(self._ids)}", name=request.name)
        self.teams.append(team)
        return team

    async def update_team(self, team_id: str, request) -> Team:
        await self._enter("update_team", team_id)
        team = Team(id=team_id, name=request.name)
        self.teams = [team if t.id == team_id else t for t in self.teams]
        return team

    async def delete_team(self, team_id: str) -> None:
        await self._enter("delete_team", team_id)
        self.teams = [t for t in self.teams if t.id != team_id]

    async def list_team_members(self, team_id: str) -> list[TeamMember]:
        await self._enter("list_team_members", team_id)
        return list(self.members.get(team_id, []))

    async def add_member(self, team_id: str, request) -> None:
        await self._enter("add_member", team_id)
        member = TeamMember(user_id=f"u{next(self._ids)}", email=request.email, role=request.role)
        self.members.setdefault(team_id, []).append(member)

    async def remove_member(self, team_id: str, user_id: str) -> None:
        await self._enter("remove_member", team_id, user_id)

    # Balances

    async def get_team_balance(self, team_id: str) -> UserBalance:
        await self._enter("get_team_balance", team_id)
        return UserBalance(net_balance=self.balances.get(team_id, Decimal("0")))

    async def get_team_balances(self, team_id: str) -> TeamBalances:
        await self._enter("get_team_balances", team_id)
        return TeamBalances(team_id=team_id)

    async def record_settlement(self, team_id: str, request) -> None:
        await self._enter("record_settlement", team_id)
        self.balances[team_id] = self.balances.get(team_id, Decimal("0")) + request.amount

    # Expenses

    async def list_team_expenses(self, team_id: str) -> list[Expense]:
        await self._enter("list_team_expenses", team_id)
        return list(self.expenses.get(team_id, []))

    async def create_expense(self, team_id: str, request) -> Expense:
        await self._enter("create_expense", team_id)
        self.expense_requests.append((team_id, request))
        expense = Expense(
            id=f"e{next(self._ids)}",
            team_id=team_id,
            amount=request.amount,
            description=request.description,
            category=request.category,
        )
        self.expenses.setdefault(team_id, []).append(expense)
        self.balances[team_id] = self.balances.get(team_id, Decimal("0")) + request.amount
        return expense

    async def update_expense(self, team_id: str, expense_id: str, request) -> Expense:
        await self._enter("update_expense", team_id, expense_id)
        return next(e for e in self.expenses.get(team_id, []) if e.id == expense_id)

    async def delete_expense(self, team_id: str, expense_id: str) -> None:
        await self._enter("delete_expense", team_id, expense_id)
        self.expenses[team_id] = [e for e in self.expenses.get(team_id, []) if e.id != expense_id]

    async def upload_receipt(self, team_id: str, expense_id: str, file, filename: str) -> None:
        await self._enter("upload_receipt", team_id, expense_id)

    # Approvals

    async def list_approvals(self, team_id: str) -> list[Approval]:
        await self._enter("list_approvals", team_id)
        return list(self.approvals.get(team_id, []))

    async def update_approval(self, team_id: str, approval_id: str, request) -> None:
        await self._enter("update_approval", team_id, approval_id)

    # Reports

    async def export_report(self, team_id: str, kind):
        await self._enter("export_report", team_id, str(getattr(kind, "value", kind)))
        yield b"date,description,amount\n"
        yield b"2024-05-01,Lunch,12.50\n"

    async def is_available(self) -> bool:
        return True

    async def aclose(self) -> None:
        self.closed = True


@pytest.fixture
def teams() -> list[Team]:
    """Four teams, in the order the ledger service lists them."""
    return [
        Team(id="t1", name="Paris Trip"),
        Team(id="t2", name="Office"),
        Team(id="t3", name="Flatmates"),
        Team(id="t4", name="Ski Weekend"),
    ]


@pytest.fixture
def fake_client(teams) -> FakeLedgerClient:
    """Client whose per-team balances are [5, -3, 0, -2]."""
    return FakeLedgerClient(
        teams=teams,
        balances={"t1": "5", "t2": "-3", "t3": "0", "t4": "-2"},
        expenses={
            "t1": [
                make_expense("t1", "e1", "Lunch", "30.00", minutes=10, category="Food"),
                make_expense("t1", "e2", "Hotel", "240.00", minutes=30, category="Accommodation"),
            ],
            "t2": [make_expense("t2", "e3", "Printer paper", "12.99", minutes=20)],
            "t3": [],
            "t4": [make_expense("t4", "e4", "Lift passes", "180.00", minutes=40, category="Travel")],
        },
    )


@pytest.fixture
def ticks():
    """Deterministic clock for the query cache: 1.0, 2.0, 3.0, ..."""
    counter = itertools.count(1)
    return lambda: float(next(counter))
