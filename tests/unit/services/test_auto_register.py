"""Tests for AutoRegistrationScheduler."""

import asyncio

import pytest

from purchase_register.core.entities import CollectionKind, InvoiceStatus
from purchase_register.core.interfaces import BatchRegistrationResponse, BatchRegistrationResult
from purchase_register.core.services import AutoRegistrationScheduler, InvoiceRegistrationService

PURCHASE = CollectionKind.PURCHASE
SALE = CollectionKind.SALE


@pytest.fixture
def registration(store, mock_gateway, lifecycle):
    mock_gateway.register_invoices_batch.return_value = BatchRegistrationResponse(
        results=[BatchRegistrationResult(success=True, id=1, document_number="F001-1")],
    )
    return InvoiceRegistrationService(store, mock_gateway, lifecycle)


def _scheduler(store, registration, tasks, grace):
    return AutoRegistrationScheduler(store, registration, tasks, grace_seconds=grace)


class TestTimers:
    async def test_registers_after_grace(
        self, store, registration, tasks, mock_gateway, make_invoice, detailed_items
    ):
        store.replace(
            PURCHASE, [make_invoice(1, status=InvoiceStatus.DETAILED, line_items=detailed_items)]
        )
        scheduler = _scheduler(store, registration, tasks, grace=0)

        assert scheduler.watch(PURCHASE, 1)
        await tasks.wait_idle()

        assert store.find(PURCHASE, 1).status is InvoiceStatus.REGISTERED
        mock_gateway.register_invoices_batch.assert_awaited_once()
        assert not scheduler.is_watching(PURCHASE, 1)

    async def test_skips_manually_registered(
        self, store, registration, tasks, mock_gateway, make_invoice
    ):
        store.replace(PURCHASE, [make_invoice(1, status=InvoiceStatus.REGISTERED)])
        scheduler = _scheduler(store, registration, tasks, grace=0)

        scheduler.watch(PURCHASE, 1)
        await tasks.wait_idle()

        mock_gateway.register_invoices_batch.assert_not_awaited()

    async def test_watch_is_idempotent(self, store, registration, tasks, make_invoice):
        store.replace(PURCHASE, [make_invoice(1, status=InvoiceStatus.DETAILED)])
        scheduler = _scheduler(store, registration, tasks, grace=60)

        assert scheduler.watch(PURCHASE, 1)
        assert not scheduler.watch(PURCHASE, 1)
        assert tasks.active == 1


class TestScan:
    async def test_starts_timers_for_detailed(self, store, registration, tasks, make_invoice):
        store.replace(
            PURCHASE,
            [
                make_invoice(1, status=InvoiceStatus.DETAILED),
                make_invoice(2, status=InvoiceStatus.FETCHED),
                make_invoice(3, status=InvoiceStatus.DETAILED),
            ],
        )
        scheduler = _scheduler(store, registration, tasks, grace=60)

        assert scheduler.scan(PURCHASE) == 2
        assert scheduler.is_watching(PURCHASE, 1)
        assert not scheduler.is_watching(PURCHASE, 2)
        assert scheduler.scan(PURCHASE) == 0

    async def test_drops_timers_no_longer_detailed(self, store, registration, tasks, make_invoice):
        store.replace(PURCHASE, [make_invoice(1, status=InvoiceStatus.DETAILED)])
        scheduler = _scheduler(store, registration, tasks, grace=60)
        scheduler.scan(PURCHASE)

        store.replace(PURCHASE, [make_invoice(1, status=InvoiceStatus.REGISTERED)])
        scheduler.scan(PURCHASE)

        assert not scheduler.is_watching(PURCHASE, 1)

    async def test_kinds_are_independent(self, store, registration, tasks, make_invoice):
        store.replace(PURCHASE, [make_invoice(1, status=InvoiceStatus.DETAILED)])
        scheduler = _scheduler(store, registration, tasks, grace=60)
        scheduler.scan(PURCHASE)

        scheduler.scan(SALE)

        assert scheduler.is_watching(PURCHASE, 1)

    async def test_run_follows_store(self, store, registration, tasks, make_invoice):
        scheduler = _scheduler(store, registration, tasks, grace=60)
        tasks.spawn(scheduler.run(), name="auto-register")
        await asyncio.sleep(0)

        store.replace(SALE, [make_invoice(7, status=InvoiceStatus.DETAILED)])
        for _ in range(5):
            await asyncio.sleep(0)

        assert scheduler.is_watching(SALE, 7)
