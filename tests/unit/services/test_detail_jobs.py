"""Tests for DetailJobOrchestrator."""

import asyncio

import pytest

from purchase_register.core.entities import (
    CollectionKind,
    Credentials,
    DetailOutcomeKind,
    InvoiceStatus,
)
from purchase_register.core.exceptions import GatewayTransportError
from purchase_register.core.interfaces import (
    JobItem,
    JobResult,
    JobStatusResponse,
    QueuedJobResponse,
)
from purchase_register.core.services import DetailJobOrchestrator
from purchase_register.core.services.detail_jobs import line_item_from_job
from purchase_register.infrastructure.credentials import InMemoryCredentialsStore

PURCHASE = CollectionKind.PURCHASE
SALE = CollectionKind.SALE


def _completed(*items: JobItem) -> JobStatusResponse:
    return JobStatusResponse(id="job-1", state="completed", result=JobResult(items=list(items)))


@pytest.fixture
def outcomes():
    return []


@pytest.fixture
def detailed_events():
    return []


@pytest.fixture
def orchestrator(store, mock_gateway, credentials_store, lifecycle, tasks, outcomes, detailed_events):
    mock_gateway.enqueue_detail_job.return_value = QueuedJobResponse(success=True, job_id="job-1")
    return DetailJobOrchestrator(
        store,
        mock_gateway,
        credentials_store,
        lifecycle,
        tasks,
        poll_interval=0,
        max_poll_attempts=60,
        on_outcome=outcomes.append,
        on_detailed=lambda kind, invoice_id: detailed_events.append((kind, invoice_id)),
    )


class TestLineItemMapping:
    def test_quantity_and_cost_formatting(self):
        item = line_item_from_job(JobItem(description="Cable", quantity=3.0, unit_value=10.5, unit="UN"))
        assert item.quantity == "3"
        assert item.unit_cost == "10.50"
        assert item.unit_of_measure == "UN"

    def test_missing_values(self):
        item = line_item_from_job(JobItem())
        assert item.description == ""
        assert item.quantity == "0"
        assert item.unit_cost == "0.00"
        assert item.unit_of_measure == ""


class TestCompletedJob:
    async def test_job_completes_and_persists(
        self, orchestrator, store, mock_gateway, tasks, outcomes, detailed_events, make_invoice
    ):
        store.replace(PURCHASE, [make_invoice(1)])
        mock_gateway.poll_job_status.side_effect = [
            JobStatusResponse(state="queued"),
            JobStatusResponse(state="active", progress=50),
            _completed(JobItem(description="Cable", quantity=3.0, unit_value=10.5, unit="UN")),
        ]

        queued = await orchestrator.request_detail(PURCHASE, 1)
        assert queued.kind is DetailOutcomeKind.QUEUED
        assert queued.job_id == "job-1"
        assert store.find(PURCHASE, 1).status is InvoiceStatus.PROCESSING

        final = await orchestrator.wait_for(PURCHASE, 1)
        await tasks.wait_idle()

        assert final.kind is DetailOutcomeKind.COMPLETED
        invoice = store.find(PURCHASE, 1)
        assert invoice.status is InvoiceStatus.DETAILED
        assert len(invoice.line_items) == 1
        assert invoice.line_items[0].quantity == "3"
        assert invoice.line_items[0].unit_cost == "10.50"
        assert invoice.line_items[0].unit_of_measure == "UN"

        mock_gateway.persist_line_items.assert_awaited_once()
        assert mock_gateway.persist_line_items.await_args.args[0] == "F001-1"
        mock_gateway.mark_extraction_complete.assert_awaited_once()

        assert [o.kind for o in outcomes] == [DetailOutcomeKind.COMPLETED]
        assert detailed_events == [(PURCHASE, 1)]
        assert not orchestrator.is_active(PURCHASE, 1)

    async def test_purchase_counterparty_is_own_ruc(
        self, orchestrator, store, mock_gateway, make_invoice
    ):
        store.replace(PURCHASE, [make_invoice(1)])
        store.set_issuer_ruc(1, "20555555555")
        mock_gateway.poll_job_status.return_value = _completed()

        await orchestrator.extract(PURCHASE, 1)

        kwargs = mock_gateway.enqueue_detail_job.await_args.kwargs
        assert kwargs["issuer_ruc"] == "20555555555"
        assert kwargs["counterparty_ruc"] == "20100000001"

    async def test_sale_counterparty_is_customer(self, orchestrator, store, mock_gateway, make_invoice):
        store.replace(SALE, [make_invoice(2, ruc="20999999999")])
        mock_gateway.poll_job_status.return_value = _completed()

        await orchestrator.extract(SALE, 2)

        assert mock_gateway.enqueue_detail_job.await_args.kwargs["counterparty_ruc"] == "20999999999"

    async def test_transport_errors_keep_polling(
        self, orchestrator, store, mock_gateway, make_invoice
    ):
        store.replace(PURCHASE, [make_invoice(1)])
        mock_gateway.poll_job_status.side_effect = [
            GatewayTransportError("poll_job_status", "timeout"),
            _completed(JobItem(description="Tornillo", quantity=2.5, unit_value=1)),
        ]

        final = await orchestrator.extract(PURCHASE, 1)

        assert final.kind is DetailOutcomeKind.COMPLETED
        assert final.line_items[0].quantity == "2.5"
        assert final.line_items[0].unit_cost == "1.00"

    async def test_persist_failure_is_not_fatal(
        self, orchestrator, store, mock_gateway, tasks, make_invoice
    ):
        store.replace(PURCHASE, [make_invoice(1)])
        mock_gateway.poll_job_status.return_value = _completed(JobItem(description="X", quantity=1))
        mock_gateway.persist_line_items.side_effect = GatewayTransportError("persist", "down")

        final = await orchestrator.extract(PURCHASE, 1)
        await tasks.wait_idle()

        assert final.kind is DetailOutcomeKind.COMPLETED
        assert store.find(PURCHASE, 1).status is InvoiceStatus.DETAILED
        mock_gateway.mark_extraction_complete.assert_not_awaited()

    async def test_items_and_status_committed_together(
        self, orchestrator, store, mock_gateway, make_invoice
    ):
        store.replace(PURCHASE, [make_invoice(1)])
        mock_gateway.poll_job_status.return_value = _completed(JobItem(description="X", quantity=1))
        committed: list[tuple[InvoiceStatus, int]] = []
        original_update = store.update

        def recording_update(kind, transform):
            result = original_update(kind, transform)
            committed.extend((inv.status, len(inv.line_items)) for inv in result)
            return result

        store.update = recording_update
        await orchestrator.extract(PURCHASE, 1)

        assert (InvoiceStatus.PROCESSING, 1) not in committed
        assert committed[-1] == (InvoiceStatus.DETAILED, 1)


class TestFailedJobs:
    async def test_failed_reason_is_reported_verbatim(
        self, orchestrator, store, mock_gateway, outcomes, make_invoice
    ):
        store.replace(PURCHASE, [make_invoice(1)])
        mock_gateway.poll_job_status.return_value = JobStatusResponse(
            state="failed", reason="SUNAT rejected the query"
        )

        final = await orchestrator.extract(PURCHASE, 1)

        assert final.kind is DetailOutcomeKind.FAILED
        assert final.message == "SUNAT rejected the query"
        assert final.error_code == "JOB_FAILED"
        assert store.find(PURCHASE, 1).status is InvoiceStatus.FETCHED
        assert outcomes == [final]

    async def test_timeout_after_poll_budget(self, orchestrator, store, mock_gateway, make_invoice):
        store.replace(PURCHASE, [make_invoice(1)])
        mock_gateway.poll_job_status.return_value = JobStatusResponse(state="queued")

        final = await orchestrator.extract(PURCHASE, 1)

        assert final.kind is DetailOutcomeKind.TIMED_OUT
        assert final.error_code == "JOB_TIMEOUT"
        assert mock_gateway.poll_job_status.await_count == 60
        assert store.find(PURCHASE, 1).status is InvoiceStatus.FETCHED
        mock_gateway.persist_line_items.assert_not_awaited()

    async def test_enqueue_error_rolls_back(self, orchestrator, store, mock_gateway, outcomes, make_invoice):
        store.replace(PURCHASE, [make_invoice(1)])
        mock_gateway.enqueue_detail_job.side_effect = GatewayTransportError("enqueue", "HTTP 503", 503)

        outcome = await orchestrator.request_detail(PURCHASE, 1)

        assert outcome.kind is DetailOutcomeKind.FAILED
        assert outcome.error_code == "JOB_QUEUE_ERROR"
        assert store.find(PURCHASE, 1).status is InvoiceStatus.FETCHED
        assert not orchestrator.is_active(PURCHASE, 1)
        assert outcomes == [outcome]

    async def test_job_not_accepted_rolls_back(self, orchestrator, store, mock_gateway, make_invoice):
        store.replace(PURCHASE, [make_invoice(1)])
        mock_gateway.enqueue_detail_job.return_value = QueuedJobResponse(
            success=False, message="queue full"
        )

        outcome = await orchestrator.request_detail(PURCHASE, 1)

        assert outcome.kind is DetailOutcomeKind.FAILED
        assert "queue full" in outcome.message
        assert store.find(PURCHASE, 1).status is InvoiceStatus.FETCHED


class TestPreconditions:
    async def test_unknown_invoice(self, orchestrator, mock_gateway):
        outcome = await orchestrator.request_detail(PURCHASE, 42)
        assert outcome.kind is DetailOutcomeKind.REJECTED
        assert outcome.error_code == "INVOICE_NOT_FOUND"
        mock_gateway.enqueue_detail_job.assert_not_awaited()

    async def test_already_processing(self, orchestrator, store, mock_gateway, make_invoice):
        store.replace(PURCHASE, [make_invoice(1, status=InvoiceStatus.PROCESSING)])
        outcome = await orchestrator.request_detail(PURCHASE, 1)
        assert outcome.kind is DetailOutcomeKind.REJECTED
        assert outcome.error_code == "ALREADY_PROCESSING"
        mock_gateway.enqueue_detail_job.assert_not_awaited()

    async def test_already_detailed_returns_items(
        self, orchestrator, store, mock_gateway, make_invoice, detailed_items
    ):
        store.replace(
            PURCHASE,
            [make_invoice(1, status=InvoiceStatus.DETAILED, line_items=detailed_items)],
        )
        outcome = await orchestrator.request_detail(PURCHASE, 1)
        assert outcome.kind is DetailOutcomeKind.ALREADY_DETAILED
        assert outcome.line_items == detailed_items
        mock_gateway.enqueue_detail_job.assert_not_awaited()

    async def test_registered_without_items(self, orchestrator, store, make_invoice):
        store.replace(PURCHASE, [make_invoice(1, status=InvoiceStatus.REGISTERED)])
        outcome = await orchestrator.request_detail(PURCHASE, 1)
        assert outcome.kind is DetailOutcomeKind.FAILED
        assert outcome.error_code == "NO_DETAILS"

    async def test_missing_credentials(
        self, store, mock_gateway, lifecycle, tasks, make_invoice
    ):
        orchestrator = DetailJobOrchestrator(
            store,
            mock_gateway,
            InMemoryCredentialsStore(Credentials(ruc="20100000001")),
            lifecycle,
            tasks,
            poll_interval=0,
        )
        store.replace(PURCHASE, [make_invoice(1)])

        outcome = await orchestrator.request_detail(PURCHASE, 1)

        assert outcome.kind is DetailOutcomeKind.REJECTED
        assert outcome.error_code == "MISSING_CREDENTIALS"
        assert store.find(PURCHASE, 1).status is InvoiceStatus.FETCHED
        mock_gateway.enqueue_detail_job.assert_not_awaited()


class TestConcurrency:
    async def test_simultaneous_requests_queue_one_job(
        self, orchestrator, store, mock_gateway, make_invoice
    ):
        store.replace(PURCHASE, [make_invoice(1)])
        mock_gateway.poll_job_status.return_value = JobStatusResponse(state="queued")

        first, second = await asyncio.gather(
            orchestrator.request_detail(PURCHASE, 1),
            orchestrator.request_detail(PURCHASE, 1),
        )

        kinds = sorted([first.kind, second.kind], key=lambda k: k.value)
        assert kinds == [DetailOutcomeKind.QUEUED, DetailOutcomeKind.REJECTED]
        mock_gateway.enqueue_detail_job.assert_awaited_once()

    async def test_wait_for_without_job(self, orchestrator):
        assert await orchestrator.wait_for(PURCHASE, 1) is None

    async def test_cancelling_poll_releases_invoice_guard(
        self, orchestrator, store, mock_gateway, tasks, make_invoice
    ):
        store.replace(PURCHASE, [make_invoice(1)])
        mock_gateway.poll_job_status.return_value = JobStatusResponse(state="queued")
        orchestrator.poll_interval = 10

        await orchestrator.request_detail(PURCHASE, 1)
        assert orchestrator.is_active(PURCHASE, 1)

        await tasks.cancel_all()

        assert not orchestrator.is_active(PURCHASE, 1)
        assert store.find(PURCHASE, 1).status is InvoiceStatus.FETCHED

    async def test_cancelled_poll_unblocks_waiters(
        self, orchestrator, store, mock_gateway, tasks, make_invoice
    ):
        store.replace(PURCHASE, [make_invoice(1)])
        mock_gateway.poll_job_status.return_value = JobStatusResponse(state="queued")
        orchestrator.poll_interval = 10
        await orchestrator.request_detail(PURCHASE, 1)
        waiting = asyncio.ensure_future(orchestrator.wait_for(PURCHASE, 1))
        await asyncio.sleep(0)

        await tasks.cancel_all()

        with pytest.raises(asyncio.CancelledError):
            await asyncio.wait_for(waiting, timeout=1)
        assert await orchestrator.wait_for(PURCHASE, 1) is None
