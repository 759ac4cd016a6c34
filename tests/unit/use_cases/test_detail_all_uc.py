"""Tests for DetailAllInvoicesUseCase and LoadInvoiceDetailUseCase."""

import pytest

from purchase_register.application.use_cases import (
    DetailAllInvoicesUseCase,
    LoadInvoiceDetailUseCase,
)
from purchase_register.core.entities import CollectionKind, DetailOutcomeKind, InvoiceStatus
from purchase_register.core.exceptions import GatewayTransportError
from purchase_register.core.interfaces import JobResult, JobStatusResponse, QueuedJobResponse
from purchase_register.core.services import DetailJobOrchestrator

SALE = CollectionKind.SALE


@pytest.fixture
def orchestrator(store, mock_gateway, credentials_store, lifecycle, tasks):
    mock_gateway.enqueue_detail_job.return_value = QueuedJobResponse(success=True, job_id="job-9")
    mock_gateway.poll_job_status.return_value = JobStatusResponse(
        state="completed", result=JobResult(items=[])
    )
    return DetailJobOrchestrator(
        store, mock_gateway, credentials_store, lifecycle, tasks, poll_interval=0
    )


class TestDetailAll:
    async def test_only_fetched_invoices_are_requested(
        self, store, orchestrator, mock_gateway, make_invoice
    ):
        store.replace(
            SALE,
            [
                make_invoice(1),
                make_invoice(2, status=InvoiceStatus.DETAILED),
                make_invoice(3),
                make_invoice(4, status=InvoiceStatus.REGISTERED),
            ],
        )
        progress = []

        result = await DetailAllInvoicesUseCase(store, orchestrator, batch_pause=0).execute(
            SALE, lambda done, total: progress.append((done, total))
        )

        assert (result.successful, result.failed, result.total) == (2, 0, 2)
        assert progress == [(1, 2), (2, 2)]
        assert mock_gateway.enqueue_detail_job.await_count == 2

    async def test_counts_failures(self, store, orchestrator, mock_gateway, make_invoice):
        store.replace(SALE, [make_invoice(1), make_invoice(2)])
        mock_gateway.enqueue_detail_job.side_effect = [
            QueuedJobResponse(success=True, job_id="job-1"),
            GatewayTransportError("enqueue_detail_job", "HTTP 503", 503),
        ]

        result = await DetailAllInvoicesUseCase(store, orchestrator, batch_pause=0).execute(SALE)

        assert (result.successful, result.failed) == (1, 1)
        assert store.find(SALE, 2).status is InvoiceStatus.FETCHED

    async def test_empty_collection(self, store, orchestrator):
        result = await DetailAllInvoicesUseCase(store, orchestrator).execute(SALE)
        assert result.total == 0


class TestLoadInvoiceDetail:
    async def test_returns_queued_without_waiting(self, store, orchestrator, make_invoice):
        store.replace(SALE, [make_invoice(1)])
        outcome = await LoadInvoiceDetailUseCase(orchestrator).execute(SALE, 1)
        assert outcome.kind is DetailOutcomeKind.QUEUED
        assert outcome.message == "queued job job-9"

    async def test_wait_returns_final_outcome(self, store, orchestrator, make_invoice):
        store.replace(SALE, [make_invoice(1)])
        outcome = await LoadInvoiceDetailUseCase(orchestrator).execute(SALE, 1, wait=True)
        assert outcome.kind is DetailOutcomeKind.COMPLETED
        assert store.find(SALE, 1).status is InvoiceStatus.DETAILED
