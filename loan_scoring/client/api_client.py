import logging
from typing import Any, Dict, List, Optional

import httpx

logger = logging.getLogger(__name__)


class LoanApiError(Exception):
    """Non-2xx response from the loan API, carrying the server's message and field."""

    def __init__(self, status_code: int, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.status_code = status_code
        self.message = message
        self.field = field


class LoanApiClient:
    """Async client for the loan API, used by the application wizard."""

    def __init__(
        self,
        base_url: str,
        access_token: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: float = 30.0,
    ):
        self.base_url = base_url.rstrip("/")
        self.access_token = access_token
        self.transport = transport
        self.timeout = timeout

    def _headers(self, extra: Optional[Dict[str, str]] = None) -> Dict[str, str]:
        headers = {"Accept": "application/json"}
        if self.access_token:
            headers["Authorization"] = f"Bearer {self.access_token}"
        if extra:
            headers.update(extra)
        return headers

    async def _request(self, method: str, path: str, **kwargs) -> Any:
        async with httpx.AsyncClient(base_url=self.base_url, transport=self.transport, timeout=self.timeout) as client:
            try:
                response = await client.request(method, path, **kwargs)
            except httpx.HTTPError as e:
                logger.error(f"{method} {path} failed: {e}")
                raise LoanApiError(0, f"Could not reach the loan API: {e}") from e

        if response.is_success:
            return response.json()

        try:
            body = response.json()
        except ValueError:
            body = {}
        message = body.get("message") if isinstance(body, dict) else None
        field = body.get("field") if isinstance(body, dict) else None
        logger.warning(f"{method} {path} returned {response.status_code}: {message}")
        raise LoanApiError(response.status_code, message or f"Request failed with status {response.status_code}", field)

    async def create_loan(self, payload: Dict[str, Any], idempotency_key: Optional[str] = None) -> Dict[str, Any]:
        extra = {"Idempotency-Key": idempotency_key} if idempotency_key else None
        return await self._request("POST", "/api/loans", json=payload, headers=self._headers(extra))

    async def list_loans(self) -> List[Dict[str, Any]]:
        return await self._request("GET", "/api/loans", headers=self._headers())

    async def get_loan(self, application_id: str) -> Dict[str, Any]:
        return await self._request("GET", f"/api/loans/{application_id}", headers=self._headers())

    async def assess_loan(self, application_id: str) -> Dict[str, Any]:
        return await self._request("POST", f"/api/loans/{application_id}/assess", headers=self._headers())

    async def request_upload_url(self, name: str, size: int, content_type: str) -> Dict[str, Any]:
        return await self._request(
            "POST",
            "/api/uploads/request-url",
            json={"name": name, "size": size, "contentType": content_type},
            headers=self._headers(),
        )
