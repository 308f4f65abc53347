"""httpx client for the dynamic form template backend."""

from typing import Any, Dict, List, Optional

import httpx

from formdraft.config import Config
from formdraft.exceptions import RemoteApiError
from formdraft.logger import Logger, session_logger
from formdraft.remote.base import CustomerDirectory, DocumentApi, DocumentId


def parse_error_response(response: httpx.Response) -> RemoteApiError:
    """Map an error response body to a RemoteApiError.

    A 400 whose body maps field names to message lists is a Django-style
    validation error; otherwise ``{"error": {code, message, details}}`` is
    expected. Bodies that are not JSON produce a generic ``parse_error``.
    """
    status = response.status_code
    try:
        data = response.json()
    except ValueError:
        return RemoteApiError(
            message=f"HTTP {status}: {response.reason_phrase}",
            code="parse_error",
            status=status,
        )

    if (
        status == 400
        and isinstance(data, dict)
        and "error" not in data
        and any(isinstance(v, list) for v in data.values())
    ):
        field_errors: Dict[str, List[str]] = {}
        messages = []
        for field, value in data.items():
            if isinstance(value, list):
                field_errors[field] = [str(v) for v in value]
                messages.append(f"{field}: {', '.join(field_errors[field])}")
            elif isinstance(value, str):
                field_errors[field] = [value]
                messages.append(f"{field}: {value}")
        return RemoteApiError(
            message="; ".join(messages) or "Validation error occurred",
            code="validation_error",
            status=status,
            field_errors=field_errors,
        )

    error = data.get("error") if isinstance(data, dict) else None
    error = error if isinstance(error, dict) else {}
    return RemoteApiError(
        message=error.get("message") or "An unexpected error occurred",
        code=error.get("code") or ("validation_error" if status == 400 else "unknown_error"),
        status=status,
        details=error.get("details") or {},
    )


class HttpDocumentApi(DocumentApi, CustomerDirectory):
    """Template and customer endpoints over ``httpx.AsyncClient``."""

    BASE_ENDPOINT = "/admin/dynamic_form"

    def __init__(
        self,
        base_url: Optional[str] = None,
        token: Optional[str] = None,
        timeout_seconds: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        logger: Optional[Logger] = None,
    ) -> None:
        self.base_url = (base_url or Config.get_api_base_url()).rstrip("/")
        self.token = token if token is not None else Config.get_api_token()
        self.timeout_seconds = (
            Config.get_api_timeout_seconds() if timeout_seconds is None else timeout_seconds
        )
        self.transport = transport
        self.logger = logger or session_logger

    # ------------------------------------------------------------------
    # DocumentApi
    # ------------------------------------------------------------------

    async def fetch(self, document_id: DocumentId) -> Dict[str, Any]:
        data = await self._request("GET", f"{self.BASE_ENDPOINT}/{document_id}/")
        return data or {}

    async def create(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        data = await self._request("POST", f"{self.BASE_ENDPOINT}/", json=payload)
        return data or {}

    async def update(self, document_id: DocumentId, payload: Dict[str, Any]) -> Dict[str, Any]:
        body = {"id": document_id, **payload}
        data = await self._request("PUT", f"{self.BASE_ENDPOINT}/{document_id}/", json=body)
        return data or {}

    # ------------------------------------------------------------------
    # CustomerDirectory
    # ------------------------------------------------------------------

    async def list_customers(self, search: str = "") -> List[Dict[str, Any]]:
        params = {"search": search} if search else None
        data = await self._request(
            "GET", f"{self.BASE_ENDPOINT}/customers/dropdown/", params=params
        )
        if isinstance(data, dict):
            data = data.get("results", [])
        return [c for c in data or [] if isinstance(c, dict)]

    async def get_customer_name(self, customer_id: DocumentId) -> Optional[str]:
        for customer in await self.list_customers():
            if str(customer.get("id")) == str(customer_id):
                return customer.get("customer_name")
        return None

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.token:
            headers["Authorization"] = f"Token {self.token}"
        return headers

    async def _request(
        self,
        method: str,
        endpoint: str,
        json: Optional[Dict[str, Any]] = None,
        params: Optional[Dict[str, str]] = None,
    ) -> Any:
        try:
            async with httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout_seconds,
                transport=self.transport,
            ) as client:
                self.logger.debug("Remote request", method=method, endpoint=endpoint)
                response = await client.request(
                    method, endpoint, json=json, params=params, headers=self._headers()
                )
        except httpx.HTTPError as exc:
            self.logger.error("Remote request failed", method=method, endpoint=endpoint, error=str(exc))
            raise RemoteApiError(
                message=str(exc) or "Network request failed", code="network_error", status=0
            ) from exc

        if response.is_error:
            error = parse_error_response(response)
            self.logger.warning(
                "Remote request rejected",
                method=method,
                endpoint=endpoint,
                status=response.status_code,
                code=error.code,
            )
            raise error

        if "application/json" in response.headers.get("content-type", ""):
            return response.json()
        return None
