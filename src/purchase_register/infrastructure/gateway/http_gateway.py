"""
HTTP implementation of the remote gateway.

Talks to the SUNAT proxy and the backend API over one shared
httpx.AsyncClient. Idempotent reads are retried with exponential backoff;
every failure leaves this module as GatewayTransportError.
"""

from collections.abc import Awaitable, Callable
from typing import Any

import httpx
from tenacity import (
    RetryCallState,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from purchase_register.config import get_logger, get_settings
from purchase_register.core.entities.credentials import Credentials
from purchase_register.core.exceptions import GatewayTransportError
from purchase_register.core.interfaces.gateway import (
    BatchRegistrationResponse,
    InvoiceToRegister,
    IRemoteGateway,
    JobStatusResponse,
    ProductPayload,
    QueuedJobResponse,
    RegisteredInvoice,
    RegisterFromRemoteRequest,
    RegisterFromRemoteResponse,
    SunatInvoicesResponse,
)

logger = get_logger(__name__)


def _secret(value: Any) -> str:
    if value is None:
        return ""
    return value.get_secret_value()


class HttpRemoteGateway(IRemoteGateway):
    """
    Remote gateway over HTTP.

    Args:
        base_url: API root; defaults to settings.
        timeout: Per-request timeout in seconds.
        max_retries: Attempts for idempotent GET requests.
        retry_delay: Base backoff delay in seconds.
        client: Pre-built client (tests inject one with a MockTransport).
    """

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float | None = None,
        max_retries: int | None = None,
        retry_delay: float | None = None,
        client: httpx.AsyncClient | None = None,
    ):
        settings = get_settings().gateway
        self.base_url = base_url or settings.base_url
        self.timeout = timeout if timeout is not None else settings.timeout
        self.max_retries = max(1, max_retries if max_retries is not None else settings.max_retries)
        self.retry_delay = retry_delay if retry_delay is not None else settings.retry_delay
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(base_url=self.base_url, timeout=self.timeout)

    def _get_retry_decorator(self) -> Any:
        """Get tenacity retry decorator with current settings."""
        return retry(
            stop=stop_after_attempt(self.max_retries),
            wait=wait_exponential(
                multiplier=self.retry_delay,
                min=self.retry_delay,
                max=self.retry_delay * 8,
            ),
            retry=retry_if_exception_type(httpx.TransportError),
            before_sleep=self._log_retry,
            reraise=True,
        )

    @staticmethod
    def _log_retry(retry_state: RetryCallState) -> None:
        """Log retry attempts."""
        logger.warning(
            "gateway_retry",
            attempt=retry_state.attempt_number,
            error=str(retry_state.outcome.exception()) if retry_state.outcome else None,
        )

    async def _request(
        self,
        method: str,
        path: str,
        operation: str,
        *,
        params: dict[str, Any] | None = None,
        json: Any = None,
        allow_not_found: bool = False,
    ) -> Any:
        """Send a request and return the decoded JSON body (None on allowed 404)."""

        async def _send() -> httpx.Response:
            return await self._client.request(method, path, params=params, json=json)

        send: Callable[[], Awaitable[httpx.Response]] = _send
        if method == "GET":
            send = self._get_retry_decorator()(_send)

        try:
            response = await send()
        except httpx.TransportError as e:
            logger.warning("gateway_transport_error", operation=operation, error=str(e))
            raise GatewayTransportError(operation, str(e) or type(e).__name__)

        if response.status_code == 404 and allow_not_found:
            return None

        if response.is_error:
            raise GatewayTransportError(
                operation,
                f"HTTP {response.status_code}: {response.text[:200]}",
                status_code=response.status_code,
            )

        if not response.content:
            return {}

        try:
            return response.json()
        except ValueError:
            raise GatewayTransportError(operation, "invalid JSON response", response.status_code)

    # Tax authority

    async def fetch_invoices(
        self, period_start: str, period_end: str, credentials: Credentials
    ) -> SunatInvoicesResponse:
        params = {
            "periodoInicio": period_start,
            "periodoFin": period_end,
            "ruc": credentials.ruc or "",
            "usuario": credentials.username or "",
            "claveSol": _secret(credentials.password),
            "clientId": credentials.client_id or "",
            "clientSecret": _secret(credentials.client_secret),
        }
        data = await self._request("GET", "sunat/facturas", "fetch_invoices", params=params)
        response = SunatInvoicesResponse.model_validate(data)

        logger.info(
            "sunat_invoices_fetched",
            period_start=period_start,
            period_end=period_end,
            results=len(response.results),
        )
        return response

    async def enqueue_detail_job(
        self,
        issuer_ruc: str,
        series: str,
        number: str,
        counterparty_ruc: str,
        credentials: Credentials,
    ) -> QueuedJobResponse:
        payload = {
            "issuerRuc": issuer_ruc,
            "series": series,
            "number": number,
            "ruc": counterparty_ruc,
            "solUser": credentials.username or "",
            "solPassword": _secret(credentials.password),
        }
        data = await self._request("POST", "sunat/descargar-xml", "enqueue_detail_job", json=payload)
        return QueuedJobResponse.model_validate(data)

    async def poll_job_status(self, job_id: str) -> JobStatusResponse:
        data = await self._request("GET", f"sunat/job/{job_id}", "poll_job_status")
        return JobStatusResponse.model_validate(data)

    async def validate_credentials(self, credentials: Credentials) -> bool:
        payload = {
            "ruc": credentials.ruc or "",
            "user": credentials.username or "",
            "solPassword": _secret(credentials.password),
        }
        data = await self._request(
            "POST", "sunat/validar-credenciales", "validate_credentials", json=payload
        )
        return bool(data.get("valid", False))

    # Backend

    async def lookup_invoice(self, document_number: str) -> RegisteredInvoice | None:
        data = await self._request(
            "GET",
            f"factura/ui/{document_number}",
            "lookup_invoice",
            allow_not_found=True,
        )
        if not data or not data.get("invoice"):
            return None
        return RegisteredInvoice.model_validate(data["invoice"])

    async def register_invoice_from_remote(
        self, request: RegisterFromRemoteRequest
    ) -> RegisterFromRemoteResponse:
        data = await self._request(
            "POST",
            "factura/registrar-desde-sunat",
            "register_invoice_from_remote",
            json=request.model_dump(by_alias=True),
        )
        return RegisterFromRemoteResponse.model_validate(data)

    async def persist_line_items(self, document_number: str, items: list[ProductPayload]) -> None:
        await self._request(
            "POST",
            f"factura/guardar-productos/{document_number}",
            "persist_line_items",
            json={"products": [item.model_dump(by_alias=True) for item in items]},
        )

    async def mark_extraction_complete(
        self, document_number: str, items: list[ProductPayload]
    ) -> None:
        await self._request(
            "PUT",
            f"factura/scraping-completado/{document_number}",
            "mark_extraction_complete",
            json={"products": [item.model_dump(by_alias=True) for item in items]},
        )

    async def register_invoices_batch(
        self, invoices: list[InvoiceToRegister]
    ) -> BatchRegistrationResponse:
        data = await self._request(
            "POST",
            "factura/procesarFactura",
            "register_invoices_batch",
            json={"invoices": [invoice.model_dump(by_alias=True) for invoice in invoices]},
        )
        return BatchRegistrationResponse.model_validate(data)

    async def list_registered_invoices(self, user_id: int) -> list[RegisteredInvoice]:
        data = await self._request(
            "GET",
            f"factura/ui/usuario/{user_id}/completo",
            "list_registered_invoices",
        )
        if not data.get("success"):
            return []
        return [RegisteredInvoice.model_validate(item) for item in data.get("invoices") or []]

    async def close(self) -> None:
        if self._owns_client:
            await self._client.aclose()
