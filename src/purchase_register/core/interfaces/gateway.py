"""
Abstract interface for the remote gateway.

Wraps the tax-authority proxy (SUNAT) and the backend API. The core depends
only on these request/response shapes, never on the transport.
"""

from abc import ABC, abstractmethod
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from purchase_register.core.entities.credentials import Credentials


class WireModel(BaseModel):
    """Base for wire payloads: camelCase on the wire, snake_case in Python."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


# ---------------------------------------------------------------------------
# Tax authority listing
# ---------------------------------------------------------------------------


class SunatContentItem(WireModel):
    """One document row reported by the tax authority for a period."""

    issuer_ruc: str = ""
    issuer_business_name: str = Field(
        default="",
        validation_alias=AliasChoices("issuerBusinessName", "issuerName", "issuer_business_name"),
    )
    period: str = ""
    issue_date: str = ""
    document_type: str = ""
    series: str = ""
    number: str = ""
    receiver_doc_type: str = ""
    receiver_doc_number: str = Field(
        default="",
        validation_alias=AliasChoices("receiverDocNumber", "receiverRuc", "receiver_doc_number"),
    )
    receiver_name: str = ""
    taxable_base: float | None = None
    igv: float | None = None
    non_taxed_amount: float | None = None
    total: float | None = None
    currency: str = ""
    exchange_rate: float | None = None
    status: str | None = None

    @field_validator(
        "issuer_ruc",
        "issuer_business_name",
        "period",
        "issue_date",
        "document_type",
        "series",
        "number",
        "receiver_doc_type",
        "receiver_doc_number",
        "receiver_name",
        "currency",
        mode="before",
    )
    @classmethod
    def coerce_string(cls, v: Any) -> str:
        if v is None:
            return ""
        return str(v).strip()


class SunatResult(WireModel):
    period: str = ""
    content: list[SunatContentItem] = Field(default_factory=list)


class SunatInvoicesResponse(WireModel):
    success: bool = False
    period_start: str = ""
    period_end: str = ""
    results: list[SunatResult] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Backend invoices
# ---------------------------------------------------------------------------


class RegisteredDetail(WireModel):
    description: str = ""
    quantity: str = ""
    unit_cost: str = ""
    unit_of_measure: str = ""

    @field_validator("description", "quantity", "unit_cost", "unit_of_measure", mode="before")
    @classmethod
    def coerce_string(cls, v: Any) -> str:
        if v is None:
            return ""
        return str(v)


class RegisteredProvider(WireModel):
    provider_ruc: str = ""
    business_name: str = ""


class RegisteredInvoice(WireModel):
    """Invoice as previously persisted by the backend."""

    invoice_id: int = Field(validation_alias=AliasChoices("invoiceId", "id", "invoice_id"))
    document_number: str = ""
    issue_date: str = ""
    status: str | None = None
    provider_ruc: str = ""
    total_cost: str = ""
    igv: str = ""
    total_amount: str = ""
    currency: str = ""
    series: str = ""
    number: str = ""
    details: list[RegisteredDetail] | None = None
    provider: RegisteredProvider | None = None


class RegisterFromRemoteRequest(WireModel):
    """Backfill request for a document the backend has not seen yet."""

    issuer_ruc: str
    series: str
    number: str
    issue_date: str
    business_name: str
    document_type: str
    currency: str
    total_cost: str
    igv: str
    total_amount: str
    user_id: int = 1


class RegisterFromRemoteResponse(WireModel):
    success: bool = False
    invoice_id: int | None = None
    document_number: str = ""
    message: str = ""


class ProductPayload(WireModel):
    description: str
    quantity: float
    unit_cost: float
    unit_of_measure: str = ""


class ProductToRegister(WireModel):
    description: str
    quantity: str
    unit_cost: str
    unit_of_measure: str = ""


class InvoiceToRegister(WireModel):
    id: int
    issuer_ruc: str
    series: str
    number: str
    issue_date: str
    business_name: str
    document_type: str
    currency: str
    total_cost: str
    igv: str
    total_amount: str
    products: list[ProductToRegister] = Field(default_factory=list)


class BatchRegistrationResult(WireModel):
    success: bool = False
    id: int | None = None
    document_number: str = ""


class BatchRegistrationResponse(WireModel):
    message: str = ""
    results: list[BatchRegistrationResult] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Detail extraction jobs
# ---------------------------------------------------------------------------


class QueuedJobResponse(WireModel):
    success: bool = False
    job_id: str | None = None
    message: str = ""


class JobItem(WireModel):
    description: str | None = None
    quantity: float | None = None
    unit_value: float | None = None
    unit: str | None = None
    code: str | None = None


class JobResult(WireModel):
    id: str | None = None
    items: list[JobItem] | None = None


class JobStatusResponse(WireModel):
    """Server-side job state: ``queued``, ``active``, ``completed`` or ``failed``."""

    id: str | None = None
    state: str = "queued"
    progress: int | None = None
    result: JobResult | None = None
    reason: str | None = None


class IRemoteGateway(ABC):
    """
    Abstract interface for the tax authority proxy and backend API.

    Implementations raise GatewayTransportError on network failures and
    unexpected HTTP statuses.
    """

    @abstractmethod
    async def fetch_invoices(
        self, period_start: str, period_end: str, credentials: Credentials
    ) -> SunatInvoicesResponse:
        """List the documents reported to the tax authority for a period."""

    @abstractmethod
    async def lookup_invoice(self, document_number: str) -> RegisteredInvoice | None:
        """Find a backend invoice by document number; None when not registered."""

    @abstractmethod
    async def register_invoice_from_remote(
        self, request: RegisterFromRemoteRequest
    ) -> RegisterFromRemoteResponse:
        """Create a backend invoice from a tax authority record."""

    @abstractmethod
    async def enqueue_detail_job(
        self,
        issuer_ruc: str,
        series: str,
        number: str,
        counterparty_ruc: str,
        credentials: Credentials,
    ) -> QueuedJobResponse:
        """Queue a server-side detail extraction job."""

    @abstractmethod
    async def poll_job_status(self, job_id: str) -> JobStatusResponse:
        """Get the current state of a detail extraction job."""

    @abstractmethod
    async def persist_line_items(
        self, document_number: str, items: list[ProductPayload]
    ) -> None:
        """Save extracted products for a backend invoice."""

    @abstractmethod
    async def mark_extraction_complete(
        self, document_number: str, items: list[ProductPayload]
    ) -> None:
        """Flag the backend invoice as scraped."""

    @abstractmethod
    async def register_invoices_batch(
        self, invoices: list[InvoiceToRegister]
    ) -> BatchRegistrationResponse:
        """Register invoices permanently in the backend."""

    @abstractmethod
    async def list_registered_invoices(self, user_id: int) -> list[RegisteredInvoice]:
        """All backend invoices owned by a user."""

    @abstractmethod
    async def validate_credentials(self, credentials: Credentials) -> bool:
        """Check SOL credentials against the tax authority."""

    async def close(self) -> None:
        """Release transport resources."""
        return None
