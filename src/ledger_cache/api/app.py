from typing import Any

from fastapi import FastAPI, File, Query, UploadFile, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import StreamingResponse

from ledger_cache.api.dependencies import HandlerDep, lifespan
from ledger_cache.config import settings
from ledger_cache.dto import (
    AddMemberRequest,
    Approval,
    BalanceViewResponse,
    CacheStatsResponse,
    CreateExpenseRequest,
    DashboardResponse,
    Expense,
    ExpenseViewResponse,
    HealthCheckResponse,
    InvalidateRequest,
    InvalidateResponse,
    MessageResponse,
    RecordSettlementRequest,
    ReportKind,
    Team,
    TeamBalances,
    TeamMember,
    TeamRequest,
    UpdateApprovalRequest,
    UpdateExpenseRequest,
    UserBalance,
)

app = FastAPI(
    title="Ledger Cache API",
    description="Cached, aggregated views over a shared-expense ledger service",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,  # type: ignore[arg-type]
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/")
async def root() -> dict[str, Any]:
    """Root endpoint with API information."""
    return {
        "name": "Ledger Cache API",
        "version": "0.1.0",
        "endpoints": {
            "views": "/views",
            "teams": "/teams",
            "cache": "/cache",
            "health": "/health",
            "docs": "/docs",
        },
    }


@app.get("/health", response_model=HealthCheckResponse)
async def health(handler: HandlerDep) -> HealthCheckResponse:
    return await handler.health_check()


# Aggregate views


@app.get("/views/balances", response_model=BalanceViewResponse)
async def balances_view(handler: HandlerDep) -> BalanceViewResponse:
    """The current user's balance in every team, with owe/owed totals."""
    return await handler.balances_view()


@app.get("/views/expenses", response_model=ExpenseViewResponse)
async def expenses_view(
    handler: HandlerDep,
    q: str | None = Query(None, description="Search description, team name and category"),
) -> ExpenseViewResponse:
    """Every expense across the user's teams, newest first."""
    return await handler.expenses_view(q)


@app.get("/views/dashboard", response_model=DashboardResponse)
async def dashboard(handler: HandlerDep) -> DashboardResponse:
    return await handler.dashboard()


# Teams


@app.get("/teams", response_model=list[Team])
async def list_teams(handler: HandlerDep) -> list[Team]:
    return await handler.teams()


@app.post("/teams", response_model=Team, status_code=status.HTTP_201_CREATED)
async def create_team(request: TeamRequest, handler: HandlerDep) -> Team:
    return await handler.create_team(request)


@app.get("/teams/{team_id}", response_model=Team)
async def get_team(team_id: str, handler: HandlerDep) -> Team:
    return await handler.team(team_id)


@app.put("/teams/{team_id}", response_model=Team)
async def update_team(team_id: str, request: TeamRequest, handler: HandlerDep) -> Team:
    return await handler.update_team(team_id, request)


@app.delete("/teams/{team_id}", response_model=MessageResponse)
async def delete_team(team_id: str, handler: HandlerDep) -> MessageResponse:
    return await handler.delete_team(team_id)


@app.get("/teams/{team_id}/members", response_model=list[TeamMember])
async def list_members(team_id: str, handler: HandlerDep) -> list[TeamMember]:
    return await handler.team_members(team_id)


@app.post("/teams/{team_id}/members", response_model=MessageResponse)
async def add_member(team_id: str, request: AddMemberRequest, handler: HandlerDep) -> MessageResponse:
    return await handler.add_member(team_id, request)


@app.delete("/teams/{team_id}/members/{user_id}", response_model=MessageResponse)
async def remove_member(team_id: str, user_id: str, handler: HandlerDep) -> MessageResponse:
    return await handler.remove_member(team_id, user_id)


# Expenses


@app.get("/teams/{team_id}/expenses", response_model=list[Expense])
async def list_expenses(
    team_id: str,
    handler: HandlerDep,
    q: str | None = Query(None, description="Search description and category"),
) -> list[Expense]:
    return await handler.team_expenses(team_id, q)


@app.post(
    "/teams/{team_id}/expenses",
    response_model=Expense,
    status_code=status.HTTP_201_CREATED,
)
async def create_expense(
    team_id: str, request: CreateExpenseRequest, handler: HandlerDep
) -> Expense:
    return await handler.create_expense(team_id, request)


@app.put("/teams/{team_id}/expenses/{expense_id}", response_model=Expense)
async def update_expense(
    team_id: str, expense_id: str, request: UpdateExpenseRequest, handler: HandlerDep
) -> Expense:
    return await handler.update_expense(team_id, expense_id, request)


@app.delete("/teams/{team_id}/expenses/{expense_id}", response_model=MessageResponse)
async def delete_expense(team_id: str, expense_id: str, handler: HandlerDep) -> MessageResponse:
    return await handler.delete_expense(team_id, expense_id)


@app.post("/teams/{team_id}/expenses/{expense_id}/receipt", response_model=MessageResponse)
async def upload_receipt(
    team_id: str,
    expense_id: str,
    handler: HandlerDep,
    receipt: UploadFile = File(..., description="Receipt image or PDF"),
) -> MessageResponse:
    return await handler.upload_receipt(
        team_id, expense_id, receipt.file, receipt.filename or "receipt"
    )


# Approvals


@app.get("/teams/{team_id}/approvals", response_model=list[Approval])
async def list_approvals(team_id: str, handler: HandlerDep) -> list[Approval]:
    return await handler.team_approvals(team_id)


@app.put("/teams/{team_id}/approvals/{approval_id}", response_model=MessageResponse)
async def update_approval(
    team_id: str, approval_id: str, request: UpdateApprovalRequest, handler: HandlerDep
) -> MessageResponse:
    return await handler.update_approval(team_id, approval_id, request)


# Balances and settlements


@app.get("/teams/{team_id}/balances", response_model=TeamBalances)
async def team_balances(team_id: str, handler: HandlerDep) -> TeamBalances:
    return await handler.team_balances(team_id)


@app.get("/teams/{team_id}/balances/me", response_model=UserBalance)
async def my_balance(team_id: str, handler: HandlerDep) -> UserBalance:
    return await handler.my_balance(team_id)


@app.post("/teams/{team_id}/settlements", response_model=MessageResponse)
async def record_settlement(
    team_id: str, request: RecordSettlementRequest, handler: HandlerDep
) -> MessageResponse:
    return await handler.record_settlement(team_id, request)


# Reports


@app.get("/teams/{team_id}/export/{kind}", response_class=StreamingResponse)
async def export_report(team_id: str, kind: ReportKind, handler: HandlerDep) -> StreamingResponse:
    """Download a CSV report streamed from the ledger service."""
    return await handler.export_report(team_id, kind)


# Cache


@app.get("/cache/stats", response_model=CacheStatsResponse)
async def cache_stats(handler: HandlerDep) -> CacheStatsResponse:
    return await handler.get_stats()


@app.post("/cache/invalidate", response_model=InvalidateResponse)
async def invalidate(request: InvalidateRequest, handler: HandlerDep) -> InvalidateResponse:
    """Mark cached keys stale, e.g. after changes made outside this process."""
    return await handler.invalidate(request)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "ledger_cache.api.app:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.api_reload,
    )
