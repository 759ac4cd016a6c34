"""
In-memory invoice store.

Single source of truth for one session's purchase and sale collections,
the period cache and the issuer-RUC index. Subscribers receive conflated
snapshots: intermediate values may be skipped, the latest never is.
"""

import asyncio
import threading
from collections.abc import AsyncIterator, Sequence

from purchase_register.config import get_logger
from purchase_register.core.entities.invoice import CollectionKind, Invoice
from purchase_register.core.interfaces.storage import IInvoiceStore, InvoiceTransform

logger = get_logger(__name__)


class _Subscriber:
    """Latest-value slot for one subscriber."""

    def __init__(self, initial: list[Invoice]):
        self.latest = initial
        self.changed = asyncio.Event()
        self.changed.set()

    def push(self, snapshot: list[Invoice]) -> None:
        self.latest = snapshot
        self.changed.set()


class InMemoryInvoiceStore(IInvoiceStore):
    """
    Process-local invoice store.

    Commits are serialized by a lock, so concurrent `update` calls never lose
    writes. Subscribers must consume on the event loop that owns the session.
    """

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._collections: dict[CollectionKind, list[Invoice]] = {
            kind: [] for kind in CollectionKind
        }
        self._cache: dict[tuple[CollectionKind, str], list[Invoice]] = {}
        self._issuer_rucs: dict[int, str] = {}
        self._subscribers: dict[CollectionKind, set[_Subscriber]] = {
            kind: set() for kind in CollectionKind
        }

    # Collection operations

    def snapshot(self, kind: CollectionKind) -> list[Invoice]:
        return list(self._collections[kind])

    def update(self, kind: CollectionKind, transform: InvoiceTransform) -> list[Invoice]:
        with self._lock:
            committed = list(transform(list(self._collections[kind])))
            self._collections[kind] = committed
        self._notify(kind, committed)
        return list(committed)

    def replace(self, kind: CollectionKind, invoices: Sequence[Invoice]) -> None:
        with self._lock:
            committed = list(invoices)
            self._collections[kind] = committed
        self._notify(kind, committed)

    def find(self, kind: CollectionKind, invoice_id: int) -> Invoice | None:
        for invoice in self._collections[kind]:
            if invoice.id == invoice_id:
                return invoice
        return None

    async def subscribe(self, kind: CollectionKind) -> AsyncIterator[list[Invoice]]:
        subscriber = _Subscriber(self.snapshot(kind))
        self._subscribers[kind].add(subscriber)
        try:
            while True:
                await subscriber.changed.wait()
                subscriber.changed.clear()
                yield list(subscriber.latest)
        finally:
            self._subscribers[kind].discard(subscriber)

    def _notify(self, kind: CollectionKind, committed: list[Invoice]) -> None:
        for subscriber in list(self._subscribers[kind]):
            subscriber.push(committed)

    # Period cache operations

    def cache_get(self, kind: CollectionKind, period_key: str) -> list[Invoice] | None:
        cached = self._cache.get((kind, period_key))
        return list(cached) if cached is not None else None

    def cache_put(
        self, kind: CollectionKind, period_key: str, invoices: Sequence[Invoice]
    ) -> None:
        with self._lock:
            self._cache[(kind, period_key)] = list(invoices)
        logger.debug("period_cached", kind=kind.value, period=period_key, count=len(invoices))

    def cached_snapshots(self, kind: CollectionKind) -> list[list[Invoice]]:
        return [list(v) for (k, _), v in self._cache.items() if k == kind]

    def update_cached(self, kind: CollectionKind, transform: InvoiceTransform) -> None:
        with self._lock:
            for key in [key for key in self._cache if key[0] == kind]:
                self._cache[key] = list(transform(list(self._cache[key])))

    # Issuer-RUC index

    def set_issuer_ruc(self, invoice_id: int, ruc: str) -> None:
        with self._lock:
            self._issuer_rucs[invoice_id] = ruc

    def get_issuer_ruc(self, invoice_id: int) -> str | None:
        return self._issuer_rucs.get(invoice_id)

    def clear_all(self) -> None:
        with self._lock:
            for kind in CollectionKind:
                self._collections[kind] = []
            self._cache.clear()
            self._issuer_rucs.clear()
        for kind in CollectionKind:
            self._notify(kind, [])
        logger.info("invoice_store_cleared")
