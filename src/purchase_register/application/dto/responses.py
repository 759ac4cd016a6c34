"""Response DTOs for API endpoints.

Pydantic v2 models for API response serialization.
These are the ONLY contracts between use cases and API layer.
"""

from typing import Any

from pydantic import BaseModel, Field

from purchase_register.core.entities.invoice import Invoice, LineItem
from purchase_register.core.entities.outcome import DetailOutcome, OperationResult


class LineItemResponse(BaseModel):
    """Line item in invoice response."""

    description: str = Field(..., description="Item description")
    quantity: str = Field(..., description="Quantity as text")
    unit_cost: str = Field(..., description="Unit cost, two decimals")
    unit_of_measure: str = Field(default="", description="Unit of measure")

    @classmethod
    def from_entity(cls, item: LineItem) -> "LineItemResponse":
        return cls(
            description=item.description,
            quantity=item.quantity,
            unit_cost=item.unit_cost,
            unit_of_measure=item.unit_of_measure,
        )


class InvoiceResponse(BaseModel):
    """Invoice response DTO."""

    id: int = Field(..., description="Session invoice ID")
    ruc: str = Field(..., description="Counterparty RUC")
    business_name: str = Field(..., description="Counterparty business name")
    series: str = Field(..., description="Document series")
    number: str = Field(..., description="Document number")
    document_number: str = Field(..., description="series-number")
    issue_date: str = Field(..., description="Issue date (dd/mm/yyyy)")
    document_type: str = Field(..., description="FACTURA, BOLETA or DOCUMENTO")
    year: str = Field(default="", description="Fiscal year")
    currency: str = Field(default="", description="Currency label")
    total_cost: str = Field(default="", description="Taxable base")
    igv: str = Field(default="", description="IGV tax")
    total_amount: str = Field(default="", description="Document total")
    exchange_rate: str = Field(default="", description="Exchange rate")
    status: str = Field(..., description="Lifecycle status label")
    is_selected: bool = Field(default=False)
    line_items: list[LineItemResponse] = Field(default=[], description="Line items")

    @classmethod
    def from_entity(cls, invoice: Invoice) -> "InvoiceResponse":
        return cls(
            id=invoice.id,
            ruc=invoice.ruc,
            business_name=invoice.business_name,
            series=invoice.series,
            number=invoice.number,
            document_number=invoice.document_number,
            issue_date=invoice.issue_date,
            document_type=invoice.document_type.value,
            year=invoice.year,
            currency=invoice.currency,
            total_cost=invoice.total_cost,
            igv=invoice.igv,
            total_amount=invoice.total_amount,
            exchange_rate=invoice.exchange_rate,
            status=invoice.status.value,
            is_selected=invoice.is_selected,
            line_items=[LineItemResponse.from_entity(item) for item in invoice.line_items],
        )


class InvoiceListResponse(BaseModel):
    kind: str = Field(..., description="purchase or sale")
    count: int = Field(..., description="Number of invoices")
    invoices: list[InvoiceResponse] = Field(default=[])

    @classmethod
    def build(cls, kind: str, invoices: list[Invoice]) -> "InvoiceListResponse":
        return cls(
            kind=kind,
            count=len(invoices),
            invoices=[InvoiceResponse.from_entity(invoice) for invoice in invoices],
        )


class OperationResponse(BaseModel):
    """Coarse success flag plus message."""

    success: bool
    message: str | None = None
    error_code: str | None = None

    @classmethod
    def from_result(cls, result: OperationResult) -> "OperationResponse":
        return cls(success=result.success, message=result.message, error_code=result.error_code)


class DetailResponse(BaseModel):
    """Outcome of a detail request."""

    success: bool
    outcome: str = Field(..., description="queued, already_detailed, completed, ...")
    invoice_id: int
    message: str | None = None
    job_id: str | None = None
    error_code: str | None = None
    line_items: list[LineItemResponse] = Field(default=[])

    @classmethod
    def from_outcome(cls, outcome: DetailOutcome) -> "DetailResponse":
        return cls(
            success=outcome.success,
            outcome=outcome.kind.value,
            invoice_id=outcome.invoice_id,
            message=outcome.message,
            job_id=outcome.job_id,
            error_code=outcome.error_code,
            line_items=[LineItemResponse.from_entity(item) for item in outcome.line_items],
        )


class DetailAllResponse(BaseModel):
    successful: int = Field(..., description="Invoices queued or already detailed")
    failed: int = Field(..., description="Invoices that could not be queued")
    total: int = Field(..., description="Invoices attempted")


class IssuerRucResponse(BaseModel):
    invoice_id: int
    issuer_ruc: str | None = None


class HealthResponse(BaseModel):
    """Service health summary."""

    status: str = Field(..., description="ok")
    version: str
    environment: str
    purchases: int = Field(default=0, description="Invoices in the purchase collection")
    sales: int = Field(default=0, description="Invoices in the sale collection")
    background_tasks: int = Field(default=0, description="Active background tasks")


class ErrorResponse(BaseModel):
    """Standardized error response DTO.

    Every error response includes:
    - error: machine-readable code (e.g. INVOICE_NOT_FOUND)
    - message: human-readable description
    - details: structured context from the domain error
    - hint: suggested recovery action
    """

    error: str = Field(..., description="Machine-readable error code")
    message: str = Field(..., description="Human-readable error description")
    details: dict[str, Any] = Field(default_factory=dict, description="Error context")
    hint: str | None = Field(default=None, description="Suggested recovery action")
    path: str | None = Field(default=None, description="Request path")
