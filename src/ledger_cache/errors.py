"""Error taxonomy for the ledger data layer.

- NetworkError: transport failures, timeouts, 5xx responses, malformed bodies
- ValidationError: 4xx responses (duplicate member, invalid amount, ...)
- PartialAggregationError: one or more fan-out items of an aggregate failed

Fetch failures are absorbed by the aggregator (the item is reported as
unavailable). Mutation failures always reach the caller unchanged.
"""

from typing import Any


class LedgerError(Exception):
    """Base exception for ledger data layer errors."""

    def __init__(self, code: str, message: str, details: dict[str, Any] | None = None) -> None:
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-serializable error body."""
        return {"code": self.code, "message": self.message, "details": self.details}


class NetworkError(LedgerError):
    """Transport-level or server-side (5xx) failure."""

    def __init__(
        self,
        message: str = "Ledger service unavailable",
        status_code: int | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.status_code = status_code
        super().__init__("NETWORK_ERROR", message, details)


class ValidationError(LedgerError):
    """Request rejected by the ledger service (4xx)."""

    def __init__(
        self,
        message: str = "Request rejected",
        status_code: int = 400,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.status_code = status_code
        super().__init__("VALIDATION_ERROR", message, details)


class PartialAggregationError(LedgerError):
    """One or more items of a fan-out aggregation could not be fetched."""

    def __init__(self, failed_keys: list[str], details: dict[str, Any] | None = None) -> None:
        self.failed_keys = failed_keys
        super().__init__(
            "PARTIAL_AGGREGATION",
            f"{len(failed_keys)} item(s) unavailable: {', '.join(failed_keys)}",
            details,
        )


class UnknownMutationError(ValueError):
    """Mutation kind has no entry in the invalidation graph."""
