"""Detail All Invoices Use Case: queue detail jobs for a whole collection."""

import asyncio
from collections.abc import Callable
from dataclasses import dataclass

from purchase_register.config import get_logger
from purchase_register.core.entities.invoice import CollectionKind, InvoiceStatus
from purchase_register.core.interfaces.storage import IInvoiceStore
from purchase_register.core.services.detail_jobs import DetailJobOrchestrator

logger = get_logger(__name__)

ProgressCallback = Callable[[int, int], None]


@dataclass
class DetailAllResult:
    """Counts of a detail-all run."""

    successful: int = 0
    failed: int = 0
    total: int = 0


class DetailAllInvoicesUseCase:
    """Request detail for every FETCHED invoice, one after another."""

    def __init__(
        self,
        store: IInvoiceStore,
        orchestrator: DetailJobOrchestrator,
        batch_pause: float = 0.3,
    ):
        self._store = store
        self._orchestrator = orchestrator
        self._batch_pause = batch_pause

    async def execute(
        self,
        kind: CollectionKind,
        progress: ProgressCallback | None = None,
    ) -> DetailAllResult:
        pending = [
            invoice.id
            for invoice in self._store.snapshot(kind)
            if invoice.status is InvoiceStatus.FETCHED
        ]
        result = DetailAllResult(total=len(pending))
        logger.info("detail_all_started", kind=kind.value, total=result.total)

        for index, invoice_id in enumerate(pending, start=1):
            outcome = await self._orchestrator.request_detail(kind, invoice_id)
            if outcome.success:
                result.successful += 1
            else:
                result.failed += 1

            if progress is not None:
                progress(index, result.total)
            if index < result.total and self._batch_pause > 0:
                await asyncio.sleep(self._batch_pause)

        logger.info(
            "detail_all_finished",
            kind=kind.value,
            successful=result.successful,
            failed=result.failed,
        )
        return result
