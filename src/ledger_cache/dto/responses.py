"""Response DTOs for API endpoints."""

from typing import Any, Literal

from pydantic import BaseModel, Field

from .records import Expense, Money


class TeamBalanceItemResponse(BaseModel):
    """The user's balance in one team (in the per_item array)."""

    team_id: str = Field(..., description="Team identifier")
    team_name: str = Field(..., description="Team name")
    status: Literal["ok", "error"] = Field(..., description="Whether the balance could be fetched")
    balance: Money | None = Field(
        None,
        description="Net balance (null when unavailable, never substituted with zero)",
    )
    error: str | None = Field(None, description="Failure reason when status is 'error'")


class BalanceViewResponse(BaseModel):
    """Response DTO for the cross-team balances view."""

    per_item: list[TeamBalanceItemResponse] = Field(
        default_factory=list,
        description="One entry per team, in team-list order",
    )
    total_owed: Money = Field(..., description="Total others owe the user")
    total_owing: Money = Field(..., description="Total the user owes others")
    net_balance: Money = Field(..., description="total_owed - total_owing")
    is_partial: bool = Field(..., description="Whether any team was unavailable")


class ExpenseItemResponse(BaseModel):
    """One expense annotated with its team."""

    team_id: str
    team_name: str
    expense: Expense


class FailedTeamResponse(BaseModel):
    """A team whose expenses could not be fetched."""

    team_id: str
    team_name: str
    error: str


class ExpenseViewResponse(BaseModel):
    """Response DTO for the cross-team expenses view."""

    items: list[ExpenseItemResponse] = Field(default_factory=list, description="Newest first")
    failed: list[FailedTeamResponse] = Field(default_factory=list)
    total: int = Field(..., description="Number of items after filtering", ge=0)
    is_partial: bool


class DashboardResponse(BaseModel):
    """Response DTO for dashboard headline numbers."""

    team_count: int = Field(..., ge=0)
    total_owed: Money
    total_owing: Money
    net_balance: Money
    unavailable_teams: int = Field(0, ge=0)


class CacheStatsResponse(BaseModel):
    """Response DTO for cache statistics."""

    total: int = Field(..., description="Number of cached keys", ge=0)
    fresh: int = Field(..., ge=0)
    stale: int = Field(..., ge=0)
    loading: int = Field(..., ge=0)
    error: int = Field(..., ge=0)
    in_flight: int = Field(..., description="Loads currently in flight", ge=0)
    subscribed: int = Field(..., description="Keys with active subscribers", ge=0)


class InvalidateResponse(BaseModel):
    """Response DTO for manual invalidation."""

    invalidated: list[str] = Field(default_factory=list, description="Keys marked stale")


class MessageResponse(BaseModel):
    """Generic acknowledgement for writes without a body."""

    success: bool = True
    message: str
    data: Any = None


class HealthCheckResponse(BaseModel):
    """Response DTO for health check."""

    status: str = Field(..., description="Health status: 'healthy' or 'unhealthy'")
    ledger_reachable: bool = Field(..., description="Whether the ledger service answered")
