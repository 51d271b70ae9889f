#!/usr/bin/env python3
"""
Demo script for the ledger cache.

Runs against an in-process fake ledger service (httpx.MockTransport), so no
server is needed. Shows request de-duplication, partial aggregation and
invalidation after a write.
"""

import asyncio
import json
from collections import Counter
from decimal import Decimal

import httpx

from ledger_cache.cache import keys
from ledger_cache.dto import CreateExpenseRequest
from ledger_cache.logging import configure_logging
from ledger_cache.repositories import HttpLedgerClient
from ledger_cache.services import LedgerService

TEAMS = [
    {"id": "t1", "name": "Paris Trip"},
    {"id": "t2", "name": "Office"},
    {"id": "t3", "name": "Flatmates"},
]
BALANCES = {"t1": 42.5, "t2": -18.0, "t3": 0}
EXPENSES = {
    "t1": [{"id": "e1", "team_id": "t1", "amount": 85, "description": "Museum tickets",
            "category": "Culture", "created_at": "2024-05-02T10:00:00Z"}],
    "t2": [{"id": "e2", "team_id": "t2", "amount": 36, "description": "Coffee beans",
            "category": "Food", "created_at": "2024-05-03T09:30:00Z"}],
    "t3": [],
}
MEMBERS = {
    "t1": [{"user_id": "u1", "name": "Ana"}, {"user_id": "u2", "name": "Ben"}],
    "t2": [{"user_id": "u1", "name": "Ana"}, {"user_id": "u3", "name": "Caro"}],
    "t3": [{"user_id": "u1", "name": "Ana"}, {"user_id": "u4", "name": "Dev"}],
}


def print_section(title: str) -> None:
    """Print a section header."""
    print("\n" + "=" * 70)
    print(f"  {title}")
    print("=" * 70)


class FakeLedger:
    """Minimal ledger REST API served through httpx.MockTransport."""

    def __init__(self) -> None:
        self.calls: Counter[str] = Counter()
        self.down: set[str] = set()
        self.last_body: dict = {}

    def __call__(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path.removeprefix("/api/v1")
        self.calls[f"{request.method} {path}"] += 1
        if path in self.down:
            return httpx.Response(503, json={"success": False, "error": "upstream timeout"})

        parts = path.strip("/").split("/")
        if parts == ["teams"]:
            return self._ok(TEAMS)
        team_id = parts[1]
        if parts[2:] == ["members"] and request.method == "GET":
            return self._ok(MEMBERS[team_id])
        if parts[2:] == ["balances", "me"]:
            return self._ok({"net_balance": BALANCES[team_id]})
        if parts[2:] == ["expenses"] and request.method == "GET":
            return self._ok(EXPENSES[team_id], meta={"page": 1, "total_pages": 1})
        if parts[2:] == ["expenses"] and request.method == "POST":
            body = json.loads(request.content)
            self.last_body = body
            expense = {"id": f"e{len(EXPENSES[team_id]) + 10}", "team_id": team_id, **body}
            EXPENSES[team_id].append(expense)
            BALANCES[team_id] += body["amount"]
            return self._ok(expense, status_code=201)
        return httpx.Response(404, json={"success": False, "error": "not found"})

    @staticmethod
    def _ok(data, status_code: int = 200, **extra) -> httpx.Response:
        return httpx.Response(status_code, json={"success": True, "data": data, **extra})


def print_balances(view) -> None:
    for item in view.per_item:
        if item.status == "error":
            print(f"  {item.team_name:<12} unavailable ({item.error})")
        else:
            print(f"  {item.team_name:<12} {item.balance:>8}")
    print(f"  {'owed to you':<12} {view.total_owed:>8}")
    print(f"  {'you owe':<12} {view.total_owing:>8}")


async def demo_deduplication(service: LedgerService, ledger: FakeLedger) -> None:
    """Concurrent readers share one request per key."""
    print_section("Request De-duplication")

    await asyncio.gather(*(service.teams() for _ in range(10)))
    print(f"\n  10 concurrent reads of {keys.teams()} -> {ledger.calls['GET /teams']} request")


async def demo_partial_aggregation(service: LedgerService, ledger: FakeLedger) -> None:
    """One failing team does not hide the others."""
    print_section("Cross-team Balances (one team failing)")

    ledger.down.add("/teams/t2/balances/me")
    view = await service.all_balances()
    print_balances(view)
    print(f"\n  partial: {view.is_partial}, failed keys: {view.failed_keys}")

    ledger.down.clear()
    service.invalidate(keys.my_balance("t2"))
    print("\n  after recovery:")
    print_balances(await service.all_balances())


async def demo_invalidation(service: LedgerService, ledger: FakeLedger) -> None:
    """A write marks exactly the affected keys stale."""
    print_section("Mutation and Invalidation")

    await service.all_expenses()
    before = ledger.calls.copy()

    await service.create_expense(
        "t3", CreateExpenseRequest(description="Groceries", amount=Decimal("24.90"), category="Food")
    )
    print(f"  split with: {ledger.last_body['split_with']}")
    for key in (keys.teams(), keys.team_expenses("t3"), keys.my_balance("t3"), keys.my_balance("t1")):
        print(f"  {str(key):<20} {service.entry(key).status.value}")

    view = await service.all_expenses()
    print("\n  expenses, newest first:")
    for item in view.items:
        print(f"    {item.team_name:<12} {item.description:<16} {item.expense.amount:>8}")

    refetched = ledger.calls - before
    print(f"\n  requests after the write: {dict(refetched)}")


async def main() -> None:
    """Run all demos."""
    configure_logging(level="WARNING")
    print("\nLedger Cache Demo")

    ledger = FakeLedger()
    client = HttpLedgerClient(
        base_url="http://ledger.local/api/v1",
        token="demo-token",
        transport=httpx.MockTransport(ledger),
    )
    service = LedgerService.create(client=client)

    try:
        await demo_deduplication(service, ledger)
        await demo_partial_aggregation(service, ledger)
        await demo_invalidation(service, ledger)

        print_section("Cache Stats")
        for name, value in service.get_stats().items():
            print(f"  {name:<12} {value}")
    finally:
        await service.aclose()


if __name__ == "__main__":
    asyncio.run(main())
