"""Load Invoice Detail Use Case: the "view detail" action."""

from purchase_register.core.entities.invoice import CollectionKind
from purchase_register.core.entities.outcome import DetailOutcome
from purchase_register.core.services.detail_jobs import DetailJobOrchestrator


class LoadInvoiceDetailUseCase:
    """Request line items for one invoice, optionally waiting for the job."""

    def __init__(self, orchestrator: DetailJobOrchestrator):
        self._orchestrator = orchestrator

    async def execute(
        self,
        kind: CollectionKind,
        invoice_id: int,
        wait: bool = False,
    ) -> DetailOutcome:
        if wait:
            return await self._orchestrator.extract(kind, invoice_id)
        return await self._orchestrator.request_detail(kind, invoice_id)
