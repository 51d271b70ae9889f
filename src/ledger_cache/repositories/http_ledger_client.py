"""HTTP client for the ledger service REST API.

Talks to the ledger service's ``/api/v1`` endpoints with a bearer token.
Responses use a JSON envelope ``{"success", "data", "error", "message"}``;
expense listings are paginated and walked to the last page.

Error mapping:
- transport errors, timeouts, 5xx, malformed bodies -> NetworkError
- 4xx -> ValidationError carrying the status code and the server's message

No retries are attempted; callers re-invoke when they want to retry.
"""

from typing import Any, AsyncIterator, BinaryIO

import httpx

from ledger_cache.config import settings
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
from ledger_cache.errors import NetworkError, ValidationError
from ledger_cache.logging import get_logger


class HttpLedgerClient:
    """httpx-based implementation of the LedgerClient protocol.

    This class satisfies the LedgerClient protocol through structural
    typing - no explicit inheritance needed.

    Example:
        ```python
        client = HttpLedgerClient.create(
            base_url="http://localhost:8080/api/v1",
            token="eyJhbGciOi...",
        )

        teams = await client.list_teams()
        await client.aclose()
        ```
    """

    def __init__(
        self,
        base_url: str | None = None,
        token: str | None = None,
        timeout: float | None = None,
        page_size: int | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the ledger client.

        Args:
            base_url: API root including the version prefix.
                     Defaults to settings.ledger_api_url.
            token: Bearer token forwarded on every request.
                  Defaults to settings.ledger_api_token.
            timeout: Request timeout in seconds. Defaults to settings.ledger_timeout.
            page_size: Page size for paginated listings. Defaults to settings.ledger_page_size.
            transport: Optional httpx transport (e.g. httpx.MockTransport in tests).
        """
        self._base_url = (base_url or settings.ledger_api_url).rstrip("/")
        self._token = token if token is not None else settings.ledger_api_token
        self._timeout = timeout or settings.ledger_timeout
        self._page_size = page_size or settings.ledger_page_size
        self._transport = transport
        self._client: httpx.AsyncClient | None = None
        self._logger = get_logger("ledger_cache.http_client")

    @property
    def client(self) -> httpx.AsyncClient:
        """Lazy-load the async HTTP client.

        Returns:
            The httpx.AsyncClient instance
        """
        if self._client is None:
            headers = {"Accept": "application/json"}
            if self._token:
                headers["Authorization"] = f"Bearer {self._token}"
            self._client = httpx.AsyncClient(
                base_url=self._base_url,
                headers=headers,
                timeout=self._timeout,
                transport=self._transport,
                limits=httpx.Limits(max_connections=100, max_keepalive_connections=20),
            )
        return self._client

    @classmethod
    def create(
        cls,
        base_url: str | None = None,
        token: str | None = None,
    ) -> "HttpLedgerClient":
        """Factory method to create HttpLedgerClient with defaults.

        Args:
            base_url: API root. If None, uses settings.
            token: Bearer token. If None, uses settings.

        Returns:
            Configured HttpLedgerClient
        """
        return cls(base_url=base_url, token=token)

    @property
    def base_url(self) -> str:
        return self._base_url

    # Teams

    async def list_teams(self) -> list[Team]:
        data = await self._request("GET", "/teams")
        return [Team.model_validate(item) for item in data or []]

    async def get_team(self, team_id: str) -> Team:
        return Team.model_validate(await self._request("GET", f"/teams/{team_id}"))

    async def create_team(self, request: TeamRequest) -> Team:
        data = await self._request("POST", "/teams", json=request.model_dump(mode="json"))
        return Team.model_validate(data)

    async def update_team(self, team_id: str, request: TeamRequest) -> Team:
        data = await self._request("PUT", f"/teams/{team_id}", json=request.model_dump(mode="json"))
        return Team.model_validate(data)

    async def delete_team(self, team_id: str) -> None:
        await self._request("DELETE", f"/teams/{team_id}")

    async def list_team_members(self, team_id: str) -> list[TeamMember]:
        data = await self._request("GET", f"/teams/{team_id}/members")
        return [TeamMember.model_validate(item) for item in data or []]

    async def add_member(self, team_id: str, request: AddMemberRequest) -> None:
        await self._request("POST", f"/teams/{team_id}/members", json=request.model_dump(mode="json"))

    async def remove_member(self, team_id: str, user_id: str) -> None:
        await self._request("DELETE", f"/teams/{team_id}/members/{user_id}")

    # Balances

    async def get_team_balance(self, team_id: str) -> UserBalance:
        return UserBalance.model_validate(await self._request("GET", f"/teams/{team_id}/balances/me"))

    async def get_team_balances(self, team_id: str) -> TeamBalances:
        return TeamBalances.model_validate(await self._request("GET", f"/teams/{team_id}/balances"))

    async def record_settlement(self, team_id: str, request: RecordSettlementRequest) -> None:
        await self._request(
            "POST",
            f"/teams/{team_id}/settlements",
            json=request.model_dump(mode="json"),
        )

    # Expenses

    async def list_team_expenses(self, team_id: str) -> list[Expense]:
        """List every expense of a team, following pagination to the last page."""
        expenses: list[Expense] = []
        page = 1
        while True:
            body = await self._send(
                "GET",
                f"/teams/{team_id}/expenses",
                params={"page": page, "per_page": self._page_size},
            )
            expenses.extend(Expense.model_validate(item) for item in body.get("data") or [])

            total_pages = (body.get("meta") or {}).get("total_pages") or 1
            if page >= total_pages:
                return expenses
            page += 1

    async def create_expense(self, team_id: str, request: CreateExpenseRequest) -> Expense:
        data = await self._request(
            "POST",
            f"/teams/{team_id}/expenses",
            json=request.model_dump(mode="json", exclude_none=True),
        )
        return Expense.model_validate(data)

    async def update_expense(
        self, team_id: str, expense_id: str, request: UpdateExpenseRequest
    ) -> Expense:
        data = await self._request(
            "PUT",
            f"/teams/{team_id}/expenses/{expense_id}",
            json=request.model_dump(mode="json", exclude_none=True),
        )
        return Expense.model_validate(data)

    async def delete_expense(self, team_id: str, expense_id: str) -> None:
        await self._request("DELETE", f"/teams/{team_id}/expenses/{expense_id}")

    async def upload_receipt(
        self, team_id: str, expense_id: str, file: BinaryIO, filename: str
    ) -> None:
        await self._request(
            "POST",
            f"/teams/{team_id}/expenses/{expense_id}/receipt",
            files={"receipt": (filename, file)},
        )

    # Approvals

    async def list_approvals(self, team_id: str) -> list[Approval]:
        data = await self._request("GET", f"/teams/{team_id}/approvals")
        return [Approval.model_validate(item) for item in data or []]

    async def update_approval(
        self, team_id: str, approval_id: str, request: UpdateApprovalRequest
    ) -> None:
        await self._request(
            "PUT",
            f"/teams/{team_id}/approvals/{approval_id}",
            json=request.model_dump(mode="json", exclude_none=True),
        )

    # Reports

    async def export_report(self, team_id: str, kind: ReportKind) -> AsyncIterator[bytes]:
        """Stream a CSV report.

        Yields:
            Raw CSV bytes as they arrive

        Raises:
            NetworkError: On transport failure or 5xx
            ValidationError: On 4xx
        """
        path = f"/teams/{team_id}/export/{ReportKind(kind).value}"
        try:
            async with self.client.stream("GET", path) as response:
                if response.is_error:
                    await response.aread()
                    self._raise_for_status(response)
                async for chunk in response.aiter_bytes():
                    yield chunk
        except httpx.HTTPError as e:
            raise self._transport_error(path, e) from e

    # Lifecycle

    async def is_available(self) -> bool:
        """Check if the ledger service answers its health endpoint.

        Returns:
            True if the service responded with 2xx, False otherwise
        """
        health_url = httpx.URL(self._base_url).copy_with(path="/health")
        try:
            response = await self.client.get(health_url)
        except httpx.HTTPError:
            return False
        return response.is_success

    async def aclose(self) -> None:
        """Close the async HTTP client.

        Should be called when shutting down the application.
        """
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    # Internals

    async def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        """Send a request and return the envelope's ``data`` field."""
        body = await self._send(method, path, **kwargs)
        return body.get("data")

    async def _send(self, method: str, path: str, **kwargs: Any) -> dict[str, Any]:
        try:
            response = await self.client.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            raise self._transport_error(path, e) from e

        self._raise_for_status(response)

        if response.status_code == 204 or not response.content:
            return {}
        try:
            body = response.json()
        except ValueError as e:
            raise NetworkError(
                f"Malformed response from {path}",
                status_code=response.status_code,
                details={"body": response.text[:500]},
            ) from e
        if not isinstance(body, dict):
            raise NetworkError(f"Unexpected response shape from {path}", response.status_code)

        self._logger.debug("Ledger request", method=method, path=path, status=response.status_code)
        return body

    def _raise_for_status(self, response: httpx.Response) -> None:
        if not response.is_error:
            return

        message = self._error_message(response)
        path = response.request.url.path
        if response.status_code >= 500:
            self._logger.error(
                "Ledger request failed",
                path=path,
                status_code=response.status_code,
                error=message,
            )
            raise NetworkError(message, status_code=response.status_code, details={"path": path})

        self._logger.info("Ledger request rejected", path=path, status_code=response.status_code)
        raise ValidationError(message, status_code=response.status_code, details={"path": path})

    def _transport_error(self, path: str, error: httpx.HTTPError) -> NetworkError:
        self._logger.error("Ledger service unreachable", path=path, error=str(error))
        return NetworkError(f"Ledger service unreachable: {error}", details={"path": path})

    @staticmethod
    def _error_message(response: httpx.Response) -> str:
        try:
            body = response.json()
        except ValueError:
            return response.text or response.reason_phrase
        if isinstance(body, dict):
            return body.get("error") or body.get("message") or response.reason_phrase
        return response.reason_phrase
