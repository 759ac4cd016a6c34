"""
Automatic registration of detailed invoices.

An invoice that reaches DETAILED gets a grace timer; if it is still DETAILED
when the timer fires it is registered in the backend. The grace period lets
a user register it manually first, in which case the timer does nothing.
"""

import asyncio

from purchase_register.config import get_logger, get_settings
from purchase_register.core.entities.invoice import CollectionKind, InvoiceStatus
from purchase_register.core.interfaces.storage import IInvoiceStore
from purchase_register.core.services.registration import InvoiceRegistrationService
from purchase_register.core.services.task_registry import BackgroundTaskRegistry

logger = get_logger(__name__)

TimerKey = tuple[CollectionKind, int]


class AutoRegistrationScheduler:
    """One grace timer per DETAILED invoice, run in the session task registry."""

    def __init__(
        self,
        store: IInvoiceStore,
        registration: InvoiceRegistrationService,
        tasks: BackgroundTaskRegistry,
        grace_seconds: float | None = None,
    ):
        self._store = store
        self._registration = registration
        self._tasks = tasks
        self.grace_seconds = (
            grace_seconds if grace_seconds is not None else get_settings().auto_register.grace_seconds
        )
        self._timers: dict[TimerKey, asyncio.Task] = {}
        self._registering: set[TimerKey] = set()

    def is_watching(self, kind: CollectionKind, invoice_id: int) -> bool:
        return (kind, invoice_id) in self._timers

    def watch(self, kind: CollectionKind, invoice_id: int) -> bool:
        """Start a grace timer unless one is already running for the invoice."""
        key = (kind, invoice_id)
        if key in self._timers:
            return False

        self._timers[key] = self._tasks.spawn(
            self._expire(key),
            name=f"auto-register-{kind.value}-{invoice_id}",
        )
        logger.debug("auto_register_scheduled", kind=kind.value, invoice_id=invoice_id)
        return True

    def scan(self, kind: CollectionKind) -> int:
        """
        Reconcile timers with the current collection.

        Returns:
            Number of timers started.
        """
        detailed = {
            invoice.id
            for invoice in self._store.snapshot(kind)
            if invoice.status is InvoiceStatus.DETAILED
        }

        for key in [k for k in self._timers if k[0] is kind and k[1] not in detailed]:
            if key in self._registering:
                continue
            self._timers.pop(key).cancel()
            logger.debug("auto_register_dropped", kind=kind.value, invoice_id=key[1])

        return sum(1 for invoice_id in sorted(detailed) if self.watch(kind, invoice_id))

    async def run(self) -> None:
        """Scan both collections on every store emission until cancelled."""
        await asyncio.gather(*(self._follow(kind) for kind in CollectionKind))

    async def _follow(self, kind: CollectionKind) -> None:
        async for _ in self._store.subscribe(kind):
            self.scan(kind)

    async def _expire(self, key: TimerKey) -> None:
        kind, invoice_id = key
        try:
            await asyncio.sleep(self.grace_seconds)

            invoice = self._store.find(kind, invoice_id)
            if invoice is None or invoice.status is not InvoiceStatus.DETAILED:
                logger.debug("auto_register_skipped", kind=kind.value, invoice_id=invoice_id)
                return

            self._registering.add(key)
            result = await self._registration.register(kind, [invoice])
            logger.info(
                "auto_register_finished",
                kind=kind.value,
                invoice_id=invoice_id,
                success=result.success,
                message=result.message,
            )
        finally:
            self._registering.discard(key)
            if self._timers.get(key) is asyncio.current_task():
                del self._timers[key]
