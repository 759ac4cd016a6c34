"""Register Invoices Use Case: bulk backend registration."""

from purchase_register.core.entities.invoice import CollectionKind, InvoiceStatus
from purchase_register.core.entities.outcome import OperationResult
from purchase_register.core.exceptions import InvoiceNotDetailedError, InvoiceNotFoundError
from purchase_register.core.interfaces.storage import IInvoiceStore
from purchase_register.core.services.registration import InvoiceRegistrationService


class RegisterInvoicesUseCase:
    def __init__(self, store: IInvoiceStore, registration: InvoiceRegistrationService):
        self._store = store
        self._registration = registration

    async def execute(self, kind: CollectionKind, invoice_ids: list[int]) -> OperationResult:
        """
        Register the given invoices.

        Raises:
            InvoiceNotFoundError: An ID is not in the collection.
            InvoiceNotDetailedError: An invoice has not reached DETAILED.
        """
        invoices = []
        for invoice_id in invoice_ids:
            invoice = self._store.find(kind, invoice_id)
            if invoice is None:
                raise InvoiceNotFoundError(invoice_id, kind.value)
            if invoice.status is not InvoiceStatus.DETAILED:
                raise InvoiceNotDetailedError(invoice_id, invoice.status.name)
            invoices.append(invoice)

        return await self._registration.register(kind, invoices)
