"""
Invoice endpoints.

Thin wrappers over InvoiceSession. Failed operations are raised as domain
errors so the error handler renders them with a status code and hint.
"""

from fastapi import APIRouter, Depends

from purchase_register.api.dependencies import get_session
from purchase_register.application.dto.requests import (
    AddPurchaseInvoiceRequest,
    FetchInvoicesRequest,
    RegisterInvoicesRequest,
)
from purchase_register.application.dto.responses import (
    DetailAllResponse,
    DetailResponse,
    InvoiceListResponse,
    InvoiceResponse,
    IssuerRucResponse,
    OperationResponse,
)
from purchase_register.application.session import InvoiceSession
from purchase_register.core.entities.invoice import CollectionKind
from purchase_register.core.entities.outcome import OperationResult
from purchase_register.core.exceptions import PurchaseRegisterError

router = APIRouter(prefix="/api/invoices", tags=["invoices"])


def _raise_on_failure(result: OperationResult) -> None:
    if not result.success:
        raise PurchaseRegisterError(result.message or "Operation failed", code=result.error_code)


@router.get("/issuer-ruc/{invoice_id}", response_model=IssuerRucResponse)
async def get_issuer_ruc(
    invoice_id: int,
    session: InvoiceSession = Depends(get_session),
) -> IssuerRucResponse:
    """Issuer RUC recorded for an invoice when it was fetched."""
    return IssuerRucResponse(invoice_id=invoice_id, issuer_ruc=session.get_issuer_ruc(invoice_id))


@router.post("/purchase/manual", response_model=InvoiceResponse, status_code=201)
async def add_purchase_invoice(
    request: AddPurchaseInvoiceRequest,
    session: InvoiceSession = Depends(get_session),
) -> InvoiceResponse:
    """Register a hand-entered purchase and add it to the collection."""
    invoice = await session.add_purchase_invoice(request)
    if invoice is None:
        raise PurchaseRegisterError(
            session.errors.latest or "The invoice could not be added",
            code="REGISTRATION_FAILED",
        )
    return InvoiceResponse.from_entity(invoice)


@router.get("/{kind}", response_model=InvoiceListResponse)
async def list_invoices(
    kind: CollectionKind,
    session: InvoiceSession = Depends(get_session),
) -> InvoiceListResponse:
    """Current collection, sorted by issue date."""
    return InvoiceListResponse.build(kind.value, session.invoices(kind))


@router.post("/{kind}/fetch", response_model=InvoiceListResponse)
async def fetch_invoices(
    kind: CollectionKind,
    request: FetchInvoicesRequest,
    session: InvoiceSession = Depends(get_session),
) -> InvoiceListResponse:
    """Fetch a period from the tax authority and reconcile it."""
    result = await session.fetch_invoices(kind, request.period_start, request.period_end)
    _raise_on_failure(result)
    return InvoiceListResponse.build(kind.value, session.invoices(kind))


@router.post("/{kind}/load-registered", response_model=InvoiceListResponse)
async def load_registered_invoices(
    kind: CollectionKind,
    session: InvoiceSession = Depends(get_session),
) -> InvoiceListResponse:
    """Merge the invoices the backend already has for this user."""
    result = await session.load_registered_invoices(kind)
    _raise_on_failure(result)
    return InvoiceListResponse.build(kind.value, session.invoices(kind))


@router.post("/{kind}/detail-all", response_model=DetailAllResponse)
async def detail_all_invoices(
    kind: CollectionKind,
    session: InvoiceSession = Depends(get_session),
) -> DetailAllResponse:
    """Queue detail jobs for every fetched invoice."""
    result = await session.detail_all(kind)
    return DetailAllResponse(
        successful=result.successful,
        failed=result.failed,
        total=result.total,
    )


@router.post("/{kind}/register", response_model=OperationResponse)
async def register_invoices(
    kind: CollectionKind,
    request: RegisterInvoicesRequest,
    session: InvoiceSession = Depends(get_session),
) -> OperationResponse:
    """Register invoices in the backend."""
    result = await session.register_invoices(kind, request.invoice_ids)
    _raise_on_failure(result)
    return OperationResponse.from_result(result)


@router.post("/{kind}/{invoice_id}/detail", response_model=DetailResponse)
async def load_invoice_detail(
    kind: CollectionKind,
    invoice_id: int,
    wait: bool = False,
    session: InvoiceSession = Depends(get_session),
) -> DetailResponse:
    """
    Request line items for one invoice.

    Returns as soon as the job is queued unless ``wait=true``.
    """
    outcome = await session.load_invoice_detail(kind, invoice_id, wait=wait)
    _raise_on_failure(outcome.as_result())
    return DetailResponse.from_outcome(outcome)
