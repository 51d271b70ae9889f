"""Mutation domain entities."""

from dataclasses import dataclass
from enum import Enum

from .resource_key import KeyPattern, ResourceKey


class MutationKind(str, Enum):
    """Write operations that change server state visible through the cache."""

    CREATE_EXPENSE = "create_expense"
    UPDATE_EXPENSE = "update_expense"
    DELETE_EXPENSE = "delete_expense"
    UPLOAD_RECEIPT = "upload_receipt"
    ADD_MEMBER = "add_member"
    REMOVE_MEMBER = "remove_member"
    UPDATE_APPROVAL = "update_approval"
    RECORD_SETTLEMENT = "record_settlement"
    CREATE_TEAM = "create_team"
    UPDATE_TEAM = "update_team"
    DELETE_TEAM = "delete_team"


@dataclass(frozen=True)
class MutationDescriptor:
    """Cache slots a successful mutation must invalidate.

    Attributes:
        kind: The mutation kind
        target_keys: Concrete keys and wildcard patterns to mark stale
    """

    kind: MutationKind
    target_keys: tuple[ResourceKey | KeyPattern, ...] = ()
