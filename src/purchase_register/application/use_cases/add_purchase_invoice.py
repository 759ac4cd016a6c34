"""Add Purchase Invoice Use Case: manual entry of a purchase."""

from purchase_register.application.dto.requests import AddPurchaseInvoiceRequest
from purchase_register.config import get_logger
from purchase_register.core.entities.invoice import (
    CollectionKind,
    DocumentType,
    Invoice,
    InvoiceStatus,
    LineItem,
)
from purchase_register.core.exceptions import RegistrationError
from purchase_register.core.interfaces.gateway import IRemoteGateway, RegisterFromRemoteRequest
from purchase_register.core.interfaces.storage import IInvoiceStore
from purchase_register.core.services.formatting import sort_by_issue_date

logger = get_logger(__name__)


def _document_type(value: str) -> DocumentType:
    try:
        return DocumentType(value.strip().upper())
    except ValueError:
        return DocumentType.from_sunat_code(value)


class AddPurchaseInvoiceUseCase:
    """
    Register a hand-entered purchase in the backend and add it to the session.

    The invoice starts DETAILED when it carries line items, FETCHED otherwise.
    """

    def __init__(self, store: IInvoiceStore, gateway: IRemoteGateway, user_id: int = 1):
        self._store = store
        self._gateway = gateway
        self._user_id = user_id

    async def execute(self, request: AddPurchaseInvoiceRequest) -> Invoice:
        """
        Raises:
            RegistrationError: The backend did not create the invoice.
            GatewayTransportError: The backend could not be reached.
        """
        document_type = _document_type(request.document_type)
        response = await self._gateway.register_invoice_from_remote(
            RegisterFromRemoteRequest(
                issuer_ruc=request.ruc,
                series=request.series,
                number=request.number,
                issue_date=request.issue_date,
                business_name=request.business_name,
                document_type=document_type.value,
                currency=request.currency,
                total_cost=request.total_cost,
                igv=request.igv,
                total_amount=request.total_amount,
                user_id=self._user_id,
            )
        )
        if not response.success or response.invoice_id is None:
            raise RegistrationError(
                response.message or "The backend did not register the invoice",
                code="REGISTRATION_FAILED",
                details={"document_number": f"{request.series}-{request.number}"},
            )

        line_items = tuple(
            LineItem(
                description=product.description,
                quantity=product.quantity,
                unit_cost=product.unit_cost,
                unit_of_measure=product.unit_of_measure,
            )
            for product in request.products
        )
        invoice = Invoice(
            id=response.invoice_id,
            ruc=request.ruc,
            business_name=request.business_name,
            series=request.series,
            number=request.number,
            issue_date=request.issue_date,
            document_type=document_type,
            year=request.year,
            currency=request.currency,
            total_cost=request.total_cost,
            igv=request.igv,
            total_amount=request.total_amount,
            exchange_rate=request.exchange_rate,
            status=InvoiceStatus.DETAILED if line_items else InvoiceStatus.FETCHED,
            line_items=line_items,
        )
        added: list[Invoice] = []

        def _append(invoices: list[Invoice]) -> list[Invoice]:
            others = [inv for inv in invoices if inv.natural_key != invoice.natural_key]
            new = invoice
            if any(inv.id == new.id for inv in others):
                new = new.model_copy(update={"id": max(inv.id for inv in others) + 1})
            added.append(new)
            return sort_by_issue_date(others + [new])

        self._store.update(CollectionKind.PURCHASE, _append)
        result = added[-1]
        self._store.set_issuer_ruc(result.id, request.ruc)

        logger.info(
            "purchase_invoice_added",
            invoice_id=result.id,
            document=result.document_number,
            status=result.status.name,
        )
        return result
