"""
Detail extraction jobs.

A detail request queues a server-side scraping job, then a background loop
polls it until it completes, fails or runs out of attempts. The invoice is
kept in PROCESSING for the whole run, which is what serializes duplicate
requests for the same invoice.
"""

import asyncio
from collections.abc import Callable

from purchase_register.config import get_logger, get_settings
from purchase_register.core.entities.invoice import (
    CollectionKind,
    Invoice,
    InvoiceStatus,
    LineItem,
)
from purchase_register.core.entities.outcome import DetailOutcome, DetailOutcomeKind
from purchase_register.core.exceptions import (
    AlreadyProcessingError,
    GatewayError,
    InvoiceNotFoundError,
    JobFailedError,
    JobQueueError,
    JobTimeoutError,
    MissingCredentialsError,
    PurchaseRegisterError,
)
from purchase_register.core.interfaces.gateway import (
    IRemoteGateway,
    JobItem,
    ProductPayload,
)
from purchase_register.core.interfaces.storage import ICredentialsStore, IInvoiceStore
from purchase_register.core.services.formatting import format_amount, format_quantity
from purchase_register.core.services.lifecycle import LifecycleService
from purchase_register.core.services.task_registry import BackgroundTaskRegistry

logger = get_logger(__name__)

JobKey = tuple[CollectionKind, int]

NO_DETAILS_MESSAGE = "No details available for this invoice"


def line_item_from_job(item: JobItem) -> LineItem:
    return LineItem(
        description=item.description or "",
        quantity=format_quantity(item.quantity),
        unit_cost=format_amount(item.unit_value, default="0.00"),
        unit_of_measure=item.unit or "",
    )


def product_from_job(item: JobItem) -> ProductPayload:
    return ProductPayload(
        description=item.description or "",
        quantity=item.quantity or 0.0,
        unit_cost=item.unit_value or 0.0,
        unit_of_measure=item.unit or "",
    )


class DetailJobOrchestrator:
    """
    Queues detail jobs and drives one polling loop per invoice.

    Args:
        store: Invoice store.
        gateway: Remote gateway.
        credentials: Source of the SOL credentials.
        lifecycle: Lifecycle service used for every status change.
        tasks: Session task registry running the polling loops.
        poll_interval: Seconds slept before each poll.
        max_poll_attempts: Poll budget per job.
        on_outcome: Called with every final outcome.
        on_detailed: Called with (kind, invoice_id) when an invoice reaches DETAILED.
    """

    def __init__(
        self,
        store: IInvoiceStore,
        gateway: IRemoteGateway,
        credentials: ICredentialsStore,
        lifecycle: LifecycleService,
        tasks: BackgroundTaskRegistry,
        poll_interval: float | None = None,
        max_poll_attempts: int | None = None,
        on_outcome: Callable[[DetailOutcome], None] | None = None,
        on_detailed: Callable[[CollectionKind, int], None] | None = None,
    ):
        settings = get_settings().detail_job
        self._store = store
        self._gateway = gateway
        self._credentials = credentials
        self._lifecycle = lifecycle
        self._tasks = tasks
        self.poll_interval = poll_interval if poll_interval is not None else settings.poll_interval
        self.max_poll_attempts = (
            max_poll_attempts if max_poll_attempts is not None else settings.max_poll_attempts
        )
        self._on_outcome = on_outcome
        self._on_detailed = on_detailed
        self._active: dict[JobKey, asyncio.Future[DetailOutcome]] = {}

    def is_active(self, kind: CollectionKind, invoice_id: int) -> bool:
        return (kind, invoice_id) in self._active

    def _reject(
        self, kind: CollectionKind, invoice_id: int, error: PurchaseRegisterError
    ) -> DetailOutcome:
        logger.info("detail_request_rejected", kind=kind.value, invoice_id=invoice_id, reason=error.code)
        return DetailOutcome(
            kind=DetailOutcomeKind.REJECTED,
            collection=kind,
            invoice_id=invoice_id,
            message=error.message,
            error_code=error.code,
        )

    async def request_detail(self, kind: CollectionKind, invoice_id: int) -> DetailOutcome:
        """
        Start detail extraction for one invoice.

        Returns QUEUED as soon as the job is accepted; the final outcome is
        available through `wait_for` and the `on_outcome` hook. Any other
        outcome is final and is emitted right away.
        """
        outcome = await self._start(kind, invoice_id)
        if outcome.kind is not DetailOutcomeKind.QUEUED:
            self._emit(outcome)
        return outcome

    async def _start(self, kind: CollectionKind, invoice_id: int) -> DetailOutcome:
        invoice = self._store.find(kind, invoice_id)
        if invoice is None:
            return self._reject(kind, invoice_id, InvoiceNotFoundError(invoice_id, kind.value))

        key = (kind, invoice_id)
        if invoice.status is InvoiceStatus.PROCESSING or key in self._active:
            return self._reject(kind, invoice_id, AlreadyProcessingError(invoice_id))

        if invoice.status in (InvoiceStatus.DETAILED, InvoiceStatus.REGISTERED):
            if invoice.has_details:
                return DetailOutcome(
                    kind=DetailOutcomeKind.ALREADY_DETAILED,
                    collection=kind,
                    invoice_id=invoice_id,
                    line_items=invoice.line_items,
                )
            return DetailOutcome(
                kind=DetailOutcomeKind.FAILED,
                collection=kind,
                invoice_id=invoice_id,
                message=NO_DETAILS_MESSAGE,
                error_code="NO_DETAILS",
            )

        credentials = self._credentials.get()
        if not credentials.is_complete:
            return self._reject(
                kind, invoice_id, MissingCredentialsError(credentials.missing_fields())
            )

        # Claimed before the first await so a concurrent request sees the guard
        if not self._lifecycle.transition(kind, invoice_id, InvoiceStatus.PROCESSING):
            return self._reject(kind, invoice_id, AlreadyProcessingError(invoice_id))
        waiter: asyncio.Future[DetailOutcome] = asyncio.get_running_loop().create_future()
        self._active[key] = waiter

        issuer_ruc = self._store.get_issuer_ruc(invoice_id) or invoice.ruc
        if kind is CollectionKind.PURCHASE:
            counterparty_ruc = credentials.ruc or ""
        else:
            counterparty_ruc = invoice.ruc

        try:
            queued = await self._gateway.enqueue_detail_job(
                issuer_ruc=issuer_ruc,
                series=invoice.series,
                number=invoice.number,
                counterparty_ruc=counterparty_ruc,
                credentials=credentials,
            )
        except GatewayError as e:
            return self._fail_queue(kind, invoice_id, JobQueueError(invoice_id, e.message))
        except asyncio.CancelledError:
            self._release(key, waiter)
            raise

        if not queued.success or not queued.job_id:
            reason = queued.message or "job was not accepted"
            return self._fail_queue(kind, invoice_id, JobQueueError(invoice_id, reason))

        logger.info("detail_job_queued", kind=kind.value, invoice_id=invoice_id, job_id=queued.job_id)
        task = self._tasks.spawn(
            self._poll(kind, invoice, queued.job_id),
            name=f"detail-poll-{kind.value}-{invoice_id}",
        )
        # A task cancelled before its first step never runs the coroutine body
        task.add_done_callback(lambda _task: self._release(key, waiter))
        return DetailOutcome(
            kind=DetailOutcomeKind.QUEUED,
            collection=kind,
            invoice_id=invoice_id,
            message=f"queued job {queued.job_id}",
            job_id=queued.job_id,
        )

    def _fail_queue(
        self, kind: CollectionKind, invoice_id: int, error: JobQueueError
    ) -> DetailOutcome:
        self._lifecycle.transition(kind, invoice_id, InvoiceStatus.FETCHED)
        logger.warning("detail_job_not_queued", kind=kind.value, invoice_id=invoice_id, error=error.message)
        outcome = DetailOutcome(
            kind=DetailOutcomeKind.FAILED,
            collection=kind,
            invoice_id=invoice_id,
            message=error.message,
            error_code=error.code,
        )
        self._finish((kind, invoice_id), outcome)
        return outcome

    async def wait_for(self, kind: CollectionKind, invoice_id: int) -> DetailOutcome | None:
        """Await the final outcome of the active job; None when nothing is running."""
        waiter = self._active.get((kind, invoice_id))
        if waiter is None:
            return None
        return await asyncio.shield(waiter)

    async def extract(self, kind: CollectionKind, invoice_id: int) -> DetailOutcome:
        """Request detail and wait for the final outcome."""
        outcome = await self.request_detail(kind, invoice_id)
        if outcome.kind is not DetailOutcomeKind.QUEUED:
            return outcome
        final = await self.wait_for(kind, invoice_id)
        return final or outcome

    async def _poll(self, kind: CollectionKind, invoice: Invoice, job_id: str) -> None:
        outcome = await self._run_poll(kind, invoice, job_id)
        self._finish((kind, invoice.id), outcome)
        self._emit(outcome)

    def _release(self, key: JobKey, waiter: asyncio.Future[DetailOutcome]) -> None:
        """Drop the guard of a job that ended without an outcome."""
        if self._active.get(key) is not waiter:
            return
        del self._active[key]
        if not waiter.done():
            waiter.cancel()
        kind, invoice_id = key
        self._lifecycle.transition(kind, invoice_id, InvoiceStatus.FETCHED)
        logger.info("detail_job_abandoned", kind=kind.value, invoice_id=invoice_id)

    async def _run_poll(self, kind: CollectionKind, invoice: Invoice, job_id: str) -> DetailOutcome:
        for attempt in range(1, self.max_poll_attempts + 1):
            await asyncio.sleep(self.poll_interval)
            try:
                status = await self._gateway.poll_job_status(job_id)
            except GatewayError as e:
                logger.warning("detail_poll_error", job_id=job_id, attempt=attempt, error=e.message)
                continue

            logger.debug("detail_job_polled", job_id=job_id, attempt=attempt, state=status.state)

            if status.state == "completed":
                items = status.result.items if status.result and status.result.items else []
                return self._complete(kind, invoice, job_id, items)

            if status.state == "failed":
                error = JobFailedError(job_id, status.reason)
                self._lifecycle.transition(kind, invoice.id, InvoiceStatus.FETCHED)
                logger.warning("detail_job_failed", job_id=job_id, invoice_id=invoice.id, reason=status.reason)
                return DetailOutcome(
                    kind=DetailOutcomeKind.FAILED,
                    collection=kind,
                    invoice_id=invoice.id,
                    message=status.reason or error.message,
                    job_id=job_id,
                    error_code=error.code,
                )

        error = JobTimeoutError(job_id, self.max_poll_attempts)
        self._lifecycle.transition(kind, invoice.id, InvoiceStatus.FETCHED)
        logger.warning("detail_job_timed_out", job_id=job_id, invoice_id=invoice.id)
        return DetailOutcome(
            kind=DetailOutcomeKind.TIMED_OUT,
            collection=kind,
            invoice_id=invoice.id,
            message=error.message,
            job_id=job_id,
            error_code=error.code,
        )

    def _complete(
        self,
        kind: CollectionKind,
        invoice: Invoice,
        job_id: str,
        items: list[JobItem],
    ) -> DetailOutcome:
        line_items = tuple(line_item_from_job(item) for item in items)
        detailed = self._lifecycle.transition(
            kind, invoice.id, InvoiceStatus.DETAILED, line_items=line_items
        )

        logger.info(
            "detail_job_completed",
            job_id=job_id,
            invoice_id=invoice.id,
            items=len(line_items),
        )

        self._tasks.spawn(
            self._persist(invoice.document_number, [product_from_job(item) for item in items]),
            name=f"persist-products-{invoice.document_number}",
        )
        if detailed and self._on_detailed is not None:
            self._on_detailed(kind, invoice.id)

        return DetailOutcome(
            kind=DetailOutcomeKind.COMPLETED,
            collection=kind,
            invoice_id=invoice.id,
            job_id=job_id,
            line_items=line_items,
        )

    async def _persist(self, document_number: str, products: list[ProductPayload]) -> None:
        """Save products then flag the backend invoice as scraped; best effort."""
        try:
            await self._gateway.persist_line_items(document_number, products)
            await self._gateway.mark_extraction_complete(document_number, products)
        except GatewayError as e:
            logger.warning("line_item_persist_failed", document=document_number, error=e.message)

    def _finish(self, key: JobKey, outcome: DetailOutcome) -> None:
        waiter = self._active.pop(key, None)
        if waiter is not None and not waiter.done():
            waiter.set_result(outcome)

    def _emit(self, outcome: DetailOutcome) -> None:
        if self._on_outcome is not None:
            self._on_outcome(outcome)
