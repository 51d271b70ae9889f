"""Ledger records as returned by the remote service.

The data layer only relies on identifiers (to build resource keys) and on
monetary fields (for aggregate sums). Every other field is kept as-is;
unknown fields are preserved via ``extra="allow"``.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field, PlainSerializer

# Decimal in memory, JSON number on the wire.
Money = Annotated[Decimal, PlainSerializer(float, return_type=float, when_used="json")]


class SplitType(str, Enum):
    """How an expense is divided between members."""

    EQUAL = "equal"
    CUSTOM = "custom"
    PERCENT = "percent"


class ApprovalStatus(str, Enum):
    """Approval state of an expense."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class ReportKind(str, Enum):
    """CSV exports offered by the ledger service."""

    SUMMARY = "summary"
    EXPENSES = "expenses"
    BALANCES = "balances"


class LedgerRecord(BaseModel):
    """Base for server records: tolerant of extra fields."""

    model_config = ConfigDict(extra="allow")


class UserRef(LedgerRecord):
    """Compact user reference embedded in other records."""

    id: str
    email: str | None = None
    name: str | None = None


class Team(LedgerRecord):
    """A team sharing expenses."""

    id: str
    name: str
    created_by: str | None = None
    created_at: datetime | None = None


class TeamMember(LedgerRecord):
    """A member of a team."""

    user_id: str
    email: str | None = None
    name: str | None = None
    role: str = "member"
    joined_at: datetime | None = None


class ExpenseSplit(LedgerRecord):
    """One member's share of an expense."""

    id: str | None = None
    user: UserRef | None = None
    amount: Money
    percent: Money | None = None
    is_settled: bool = False


class Expense(LedgerRecord):
    """An expense paid by one member and split between several."""

    id: str
    team_id: str
    paid_by: UserRef | None = None
    amount: Money
    description: str = ""
    category: str = ""
    receipt_url: str | None = None
    split_type: SplitType = SplitType.EQUAL
    splits: list[ExpenseSplit] = Field(default_factory=list)
    approval_status: ApprovalStatus | None = None
    created_at: datetime | None = None


class Approval(LedgerRecord):
    """An approval request attached to an expense."""

    id: str
    expense: Expense | None = None
    approved_by: UserRef | None = None
    status: ApprovalStatus = ApprovalStatus.PENDING
    comment: str | None = None
    created_at: datetime | None = None
    approved_at: datetime | None = None


class MemberBalance(LedgerRecord):
    """Balance summary of one member within a team."""

    user: UserRef
    total_owed: Money = Decimal("0")
    total_owing: Money = Decimal("0")
    net_balance: Money = Decimal("0")


class SettlementSuggestion(LedgerRecord):
    """A payment between two members that would reduce outstanding balances."""

    from_user: UserRef
    to_user: UserRef
    amount: Money


class TeamBalances(LedgerRecord):
    """All balances of a team: per-member summaries and suggested settlements."""

    team_id: str | None = None
    team_name: str | None = None
    members: list[MemberBalance] = Field(default_factory=list)
    balances: list[SettlementSuggestion] = Field(default_factory=list)


class UserBalance(LedgerRecord):
    """The current user's net balance within one team.

    Positive means others owe the user, negative means the user owes others.
    """

    net_balance: Money
    total_owed: Money | None = None
    total_owing: Money | None = None
