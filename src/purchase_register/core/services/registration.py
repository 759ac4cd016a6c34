"""Bulk registration of detailed invoices in the backend."""

from collections.abc import Sequence

from purchase_register.config import get_logger
from purchase_register.core.entities.invoice import (
    CollectionKind,
    Invoice,
    InvoiceStatus,
)
from purchase_register.core.entities.outcome import OperationResult
from purchase_register.core.exceptions import GatewayError, PartialRegistrationError
from purchase_register.core.interfaces.gateway import (
    InvoiceToRegister,
    IRemoteGateway,
    ProductToRegister,
)
from purchase_register.core.interfaces.storage import IInvoiceStore
from purchase_register.core.services.lifecycle import LifecycleService

logger = get_logger(__name__)


class InvoiceRegistrationService:
    """
    Posts invoices to the backend and promotes the accepted ones.

    Each accepted invoice moves DETAILED -> REGISTERED. A batch with any
    rejected entry is reported as a failure, but accepted entries stay
    registered.
    """

    def __init__(
        self,
        store: IInvoiceStore,
        gateway: IRemoteGateway,
        lifecycle: LifecycleService,
    ):
        self._store = store
        self._gateway = gateway
        self._lifecycle = lifecycle

    def to_payload(self, invoice: Invoice) -> InvoiceToRegister:
        issuer_ruc = self._store.get_issuer_ruc(invoice.id) or invoice.ruc
        return InvoiceToRegister(
            id=invoice.id,
            issuer_ruc=issuer_ruc,
            series=invoice.series,
            number=invoice.number,
            issue_date=invoice.issue_date,
            business_name=invoice.business_name,
            document_type=invoice.document_type.value,
            currency=invoice.currency,
            total_cost=invoice.total_cost,
            igv=invoice.igv,
            total_amount=invoice.total_amount,
            products=[
                ProductToRegister(
                    description=item.description,
                    quantity=item.quantity,
                    unit_cost=item.unit_cost,
                    unit_of_measure=item.unit_of_measure,
                )
                for item in invoice.line_items
            ],
        )

    async def register(
        self,
        kind: CollectionKind,
        invoices: Sequence[Invoice],
    ) -> OperationResult:
        if not invoices:
            return OperationResult.ok("Nothing to register")

        try:
            response = await self._gateway.register_invoices_batch(
                [self.to_payload(invoice) for invoice in invoices]
            )
        except GatewayError as e:
            logger.error("registration_failed", kind=kind.value, count=len(invoices), error=e.message)
            return OperationResult.fail(e.message, e.code)

        by_id = {invoice.id: invoice for invoice in invoices}
        by_document = {invoice.document_number: invoice for invoice in invoices}
        failed: list[str] = []

        for result in response.results:
            invoice = by_id.get(result.id) if result.id is not None else None
            if invoice is None:
                invoice = by_document.get(result.document_number)

            if not result.success:
                failed.append(result.document_number or (invoice.document_number if invoice else ""))
                continue
            if invoice is not None:
                self._lifecycle.transition(kind, invoice.id, InvoiceStatus.REGISTERED)

        if failed:
            error = PartialRegistrationError(failed)
            logger.warning("registration_partial", kind=kind.value, failed=failed)
            return OperationResult.fail(error.message, error.code)

        logger.info("invoices_registered", kind=kind.value, count=len(response.results))
        return OperationResult.ok(response.message or "Invoices registered")
