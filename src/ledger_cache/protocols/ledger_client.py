"""Ledger service client protocol.

Defines the request surface the data layer needs from the remote ledger
service. Any implementation works: the HTTP client in ``repositories``, an
in-memory fake in tests, or a client for another transport.
"""

from typing import AsyncIterator, BinaryIO, Protocol, runtime_checkable

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


@runtime_checkable
class LedgerClient(Protocol):
    """Protocol for ledger service clients.

    Implementations raise ``NetworkError`` for transport failures and 5xx
    responses and ``ValidationError`` for 4xx responses.
    """

    async def list_teams(self) -> list[Team]:
        """List the teams the current user belongs to."""
        ...

    async def get_team(self, team_id: str) -> Team:
        ...

    async def create_team(self, request: TeamRequest) -> Team:
        ...

    async def update_team(self, team_id: str, request: TeamRequest) -> Team:
        ...

    async def delete_team(self, team_id: str) -> None:
        ...

    async def list_team_members(self, team_id: str) -> list[TeamMember]:
        ...

    async def add_member(self, team_id: str, request: AddMemberRequest) -> None:
        ...

    async def remove_member(self, team_id: str, user_id: str) -> None:
        ...

    async def get_team_balance(self, team_id: str) -> UserBalance:
        """Get the current user's net balance within a team."""
        ...

    async def get_team_balances(self, team_id: str) -> TeamBalances:
        """Get every member's balance and the suggested settlements of a team."""
        ...

    async def list_team_expenses(self, team_id: str) -> list[Expense]:
        """List all expenses of a team (every page)."""
        ...

    async def create_expense(self, team_id: str, request: CreateExpenseRequest) -> Expense:
        ...

    async def update_expense(
        self, team_id: str, expense_id: str, request: UpdateExpenseRequest
    ) -> Expense:
        ...

    async def delete_expense(self, team_id: str, expense_id: str) -> None:
        ...

    async def upload_receipt(
        self, team_id: str, expense_id: str, file: BinaryIO, filename: str
    ) -> None:
        ...

    async def list_approvals(self, team_id: str) -> list[Approval]:
        ...

    async def update_approval(
        self, team_id: str, approval_id: str, request: UpdateApprovalRequest
    ) -> None:
        ...

    async def record_settlement(self, team_id: str, request: RecordSettlementRequest) -> None:
        ...

    def export_report(self, team_id: str, kind: ReportKind) -> AsyncIterator[bytes]:
        """Stream a CSV report as raw bytes."""
        ...

    async def aclose(self) -> None:
        ...
