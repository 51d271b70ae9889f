"""Data Transfer Objects.

- records: ledger resources as returned by the ledger service
- requests: write payloads (HTTP API bodies and ledger service payloads)
- responses: HTTP API response bodies for the aggregate views

Internal cache state uses entities from the entities package.
"""

from .records import (
    Approval,
    ApprovalStatus,
    Expense,
    ExpenseSplit,
    MemberBalance,
    Money,
    ReportKind,
    SettlementSuggestion,
    SplitType,
    Team,
    TeamBalances,
    TeamMember,
    UserBalance,
    UserRef,
)
from .requests import (
    AddMemberRequest,
    CreateExpenseRequest,
    CustomSplitEntry,
    InvalidateRequest,
    RecordSettlementRequest,
    TeamRequest,
    UpdateApprovalRequest,
    UpdateExpenseRequest,
)
from .responses import (
    BalanceViewResponse,
    CacheStatsResponse,
    DashboardResponse,
    ExpenseItemResponse,
    ExpenseViewResponse,
    FailedTeamResponse,
    HealthCheckResponse,
    InvalidateResponse,
    MessageResponse,
    TeamBalanceItemResponse,
)

__all__ = [
    "AddMemberRequest",
    "Approval",
    "ApprovalStatus",
    "BalanceViewResponse",
    "CacheStatsResponse",
    "CreateExpenseRequest",
    "CustomSplitEntry",
    "DashboardResponse",
    "Expense",
    "ExpenseItemResponse",
    "ExpenseSplit",
    "ExpenseViewResponse",
    "FailedTeamResponse",
    "HealthCheckResponse",
    "InvalidateRequest",
    "InvalidateResponse",
    "MemberBalance",
    "MessageResponse",
    "Money",
    "RecordSettlementRequest",
    "ReportKind",
    "SettlementSuggestion",
    "SplitType",
    "Team",
    "TeamBalanceItemResponse",
    "TeamBalances",
    "TeamMember",
    "TeamRequest",
    "UpdateApprovalRequest",
    "UpdateExpenseRequest",
    "UserBalance",
    "UserRef",
]
