"""Request DTOs for write operations.

These models are both the bodies accepted by the HTTP API and the payloads
forwarded to the ledger service. Validation here is limited to shape; business
rules (membership, split consistency) are enforced by the ledger service.
"""

from typing import Literal

from pydantic import BaseModel, Field

from .records import Money, SplitType


class CustomSplitEntry(BaseModel):
    """Explicit share for one member in a custom or percent split."""

    user_id: str = Field(..., min_length=1)
    amount: Money | None = Field(None, ge=0)
    percent: Money | None = Field(None, ge=0, le=100)


class CreateExpenseRequest(BaseModel):
    """Request DTO for creating an expense."""

    description: str = Field(..., description="What the expense was for", min_length=1)
    amount: Money = Field(..., description="Total amount paid", gt=0)
    category: str = Field("Other", description="Expense category")
    split_type: SplitType = Field(SplitType.EQUAL, description="How the amount is divided")
    split_with: list[str] = Field(
        default_factory=list,
        description="Member ids to split with (empty means all current members)",
    )
    custom_split: list[CustomSplitEntry] | None = Field(
        None,
        description="Per-member shares for custom and percent splits",
    )


class UpdateExpenseRequest(BaseModel):
    """Request DTO for editing an expense (only provided fields change)."""

    description: str | None = Field(None, min_length=1)
    amount: Money | None = Field(None, gt=0)
    category: str | None = None


class UpdateApprovalRequest(BaseModel):
    """Request DTO for approving or rejecting an expense."""

    status: Literal["approved", "rejected"] = Field(
        ...,
        description="New approval status",
    )
    comment: str | None = Field(None, description="Optional reviewer comment")


class RecordSettlementRequest(BaseModel):
    """Request DTO for recording a payment between two members."""

    from_user: str = Field(..., description="Member who paid", min_length=1)
    to_user: str = Field(..., description="Member who received the payment", min_length=1)
    amount: Money = Field(..., description="Amount paid", gt=0)


class AddMemberRequest(BaseModel):
    """Request DTO for adding a member to a team."""

    email: str = Field(..., description="Email of the user to add", min_length=3)
    role: Literal["admin", "member"] = Field("member", description="Role within the team")


class TeamRequest(BaseModel):
    """Request DTO for creating or renaming a team."""

    name: str = Field(..., description="Team name", min_length=1)


class InvalidateRequest(BaseModel):
    """Request DTO for manually invalidating cached resources."""

    resource: str = Field(..., description="Resource type, e.g. 'team-expenses'", min_length=1)
    params: list[str] | None = Field(
        None,
        description="Exact key parameters (if null, every key of the resource type)",
    )
