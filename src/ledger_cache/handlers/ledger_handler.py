"""HTTP handlers for ledger views and mutations.

Handlers convert between DTOs (API contracts) and service calls.
They handle HTTP concerns like status codes and error mapping.
"""

from typing import AsyncIterator, Awaitable, BinaryIO, Callable, TypeVar

from fastapi import HTTPException, status
from fastapi.responses import StreamingResponse

from ledger_cache.cache import filter_items
from ledger_cache.dto import (
    AddMemberRequest,
    Approval,
    BalanceViewResponse,
    CacheStatsResponse,
    CreateExpenseRequest,
    DashboardResponse,
    Expense,
    ExpenseItemResponse,
    ExpenseViewResponse,
    FailedTeamResponse,
    HealthCheckResponse,
    InvalidateRequest,
    InvalidateResponse,
    MessageResponse,
    RecordSettlementRequest,
    ReportKind,
    Team,
    TeamBalanceItemResponse,
    TeamBalances,
    TeamMember,
    TeamRequest,
    UpdateApprovalRequest,
    UpdateExpenseRequest,
    UserBalance,
)
from ledger_cache.entities import KeyPattern, ResourceKey
from ledger_cache.errors import NetworkError, ValidationError
from ledger_cache.logging import get_logger
from ledger_cache.services import LedgerService

T = TypeVar("T")

# Fields the expense search matches against.
EXPENSE_SEARCH_FIELDS = ("description", "team_name", "category")


class LedgerHandler:
    """HTTP handlers for ledger views.

    This handler delegates business logic to LedgerService
    and handles HTTP-specific concerns like:
    - Converting entities to DTOs
    - Setting appropriate status codes
    - Error handling and responses

    Example:
        ```python
        handler = LedgerHandler(ledger_service=service)

        @app.get("/views/balances", response_model=BalanceViewResponse)
        async def balances():
            return await handler.balances_view()
        ```
    """

    def __init__(self, ledger_service: LedgerService) -> None:
        """Initialize the ledger handler.

        Args:
            ledger_service: The ledger service for business logic (required).
        """
        self._ledger = ledger_service
        self._logger = get_logger("ledger_cache.handler")

    async def _call(self, action: str, operation: Callable[[], Awaitable[T]]) -> T:
        """Run a service call, mapping errors to HTTP responses.

        - ValidationError -> the ledger service's 4xx status
        - NetworkError -> 502
        - ValueError (bad parameters) -> 400
        - anything else -> 500
        """
        try:
            return await operation()
        except ValidationError as e:
            raise HTTPException(status_code=e.status_code, detail=e.message) from e
        except NetworkError as e:
            raise HTTPException(
                status_code=status.HTTP_502_BAD_GATEWAY,
                detail=f"Failed to {action}: {e.message}",
            ) from e
        except ValueError as e:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e
        except Exception as e:
            self._logger.exception("Unhandled handler error", action=action)
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail=f"Failed to {action}: {e}",
            ) from e

    # Aggregate views

    async def balances_view(self) -> BalanceViewResponse:
        """Handle GET /views/balances requests."""
        view = await self._call("load balances", self._ledger.all_balances)

        return BalanceViewResponse(
            per_item=[
                TeamBalanceItemResponse(
                    team_id=item.team_id,
                    team_name=item.team_name,
                    status=item.status,
                    balance=item.balance,
                    error=item.error,
                )
                for item in view.per_item
            ],
            total_owed=view.total_owed,
            total_owing=view.total_owing,
            net_balance=view.net_balance,
            is_partial=view.is_partial,
        )

    async def expenses_view(self, query: str | None = None) -> ExpenseViewResponse:
        """Handle GET /views/expenses requests, optionally filtered by ``query``."""
        view = await self._call("load expenses", self._ledger.all_expenses)
        items = filter_items(view.items, EXPENSE_SEARCH_FIELDS, query)

        return ExpenseViewResponse(
            items=[
                ExpenseItemResponse(team_id=item.team_id, team_name=item.team_name, expense=item.expense)
                for item in items
            ],
            failed=[
                FailedTeamResponse(team_id=team.team_id, team_name=team.team_name, error=team.error)
                for team in view.failed
            ],
            total=len(items),
            is_partial=view.is_partial,
        )

    async def dashboard(self) -> DashboardResponse:
        """Handle GET /views/dashboard requests."""
        summary = await self._call("load dashboard", self._ledger.dashboard)

        return DashboardResponse(
            team_count=summary.team_count,
            total_owed=summary.total_owed,
            total_owing=summary.total_owing,
            net_balance=summary.net_balance,
            unavailable_teams=summary.unavailable_teams,
        )

    # Team-scoped reads

    async def teams(self) -> list[Team]:
        return await self._call("load teams", self._ledger.teams)

    async def team(self, team_id: str) -> Team:
        return await self._call("load team", lambda: self._ledger.team(team_id))

    async def team_members(self, team_id: str) -> list[TeamMember]:
        return await self._call("load members", lambda: self._ledger.team_members(team_id))

    async def team_expenses(self, team_id: str, query: str | None = None) -> list[Expense]:
        expenses = await self._call("load expenses", lambda: self._ledger.team_expenses(team_id))
        return filter_items(expenses, ("description", "category"), query)

    async def team_balances(self, team_id: str) -> TeamBalances:
        return await self._call("load balances", lambda: self._ledger.team_balances(team_id))

    async def my_balance(self, team_id: str) -> UserBalance:
        return await self._call("load balance", lambda: self._ledger.my_balance(team_id))

    async def team_approvals(self, team_id: str) -> list[Approval]:
        return await self._call("load approvals", lambda: self._ledger.team_approvals(team_id))

    # Mutations

    async def create_team(self, request: TeamRequest) -> Team:
        return await self._call("create team", lambda: self._ledger.create_team(request))

    async def update_team(self, team_id: str, request: TeamRequest) -> Team:
        return await self._call("update team", lambda: self._ledger.update_team(team_id, request))

    async def delete_team(self, team_id: str) -> MessageResponse:
        await self._call("delete team", lambda: self._ledger.delete_team(team_id))
        return MessageResponse(message="Team deleted successfully")

    async def add_member(self, team_id: str, request: AddMemberRequest) -> MessageResponse:
        await self._call("add member", lambda: self._ledger.add_member(team_id, request))
        return MessageResponse(message="Member added successfully")

    async def remove_member(self, team_id: str, user_id: str) -> MessageResponse:
        await self._call("remove member", lambda: self._ledger.remove_member(team_id, user_id))
        return MessageResponse(message="Member removed successfully")

    async def create_expense(self, team_id: str, request: CreateExpenseRequest) -> Expense:
        return await self._call(
            "create expense", lambda: self._ledger.create_expense(team_id, request)
        )

    async def update_expense(
        self, team_id: str, expense_id: str, request: UpdateExpenseRequest
    ) -> Expense:
        return await self._call(
            "update expense", lambda: self._ledger.update_expense(team_id, expense_id, request)
        )

    async def delete_expense(self, team_id: str, expense_id: str) -> MessageResponse:
        await self._call("delete expense", lambda: self._ledger.delete_expense(team_id, expense_id))
        return MessageResponse(message="Expense deleted successfully")

    async def upload_receipt(
        self, team_id: str, expense_id: str, file: BinaryIO, filename: str
    ) -> MessageResponse:
        await self._call(
            "upload receipt",
            lambda: self._ledger.upload_receipt(team_id, expense_id, file, filename),
        )
        return MessageResponse(message="Receipt uploaded successfully")

    async def update_approval(
        self, team_id: str, approval_id: str, request: UpdateApprovalRequest
    ) -> MessageResponse:
        await self._call(
            "update approval",
            lambda: self._ledger.update_approval(team_id, approval_id, request),
        )
        return MessageResponse(message=f"Expense {request.status}")

    async def record_settlement(
        self, team_id: str, request: RecordSettlementRequest
    ) -> MessageResponse:
        await self._call(
            "record settlement", lambda: self._ledger.record_settlement(team_id, request)
        )
        return MessageResponse(message="Settlement recorded successfully")

    async def export_report(self, team_id: str, kind: ReportKind) -> StreamingResponse:
        """Handle GET /teams/{team_id}/export/{kind} requests.

        The first chunk is read before responding so ledger errors still map
        to a proper status code instead of a truncated download.
        """
        stream = self._ledger.export_report(team_id, kind)
        first = await self._call("export report", lambda: anext(stream, b""))

        async def body() -> AsyncIterator[bytes]:
            if first:
                yield first
            async for chunk in stream:
                yield chunk

        filename = f"{ReportKind(kind).value}-{team_id}.csv"
        return StreamingResponse(
            body(),
            media_type="text/csv",
            headers={"Content-Disposition": f'attachment; filename="{filename}"'},
        )

    # Cache

    async def get_stats(self) -> CacheStatsResponse:
        """Handle GET /cache/stats requests."""
        return CacheStatsResponse(**self._ledger.get_stats())

    async def invalidate(self, request: InvalidateRequest) -> InvalidateResponse:
        """Handle POST /cache/invalidate requests."""
        if request.params is None:
            target: ResourceKey | KeyPattern = KeyPattern(request.resource)
        else:
            target = ResourceKey(request.resource, tuple(request.params))

        invalidated = self._ledger.invalidate(target)
        return InvalidateResponse(invalidated=[str(key) for key in invalidated])

    async def health_check(self) -> HealthCheckResponse:
        """Handle GET /health requests."""
        is_healthy = await self._ledger.is_healthy()

        return HealthCheckResponse(
            status="healthy" if is_healthy else "unhealthy",
            ledger_reachable=is_healthy,
        )
