"""
Abstract interfaces for session state storage.

Defines the contract of the invoice store and the credentials store.
"""

from abc import ABC, abstractmethod
from collections.abc import AsyncIterator, Callable, Sequence

from purchase_register.core.entities.credentials import Credentials
from purchase_register.core.entities.invoice import CollectionKind, Invoice

InvoiceTransform = Callable[[list[Invoice]], Sequence[Invoice]]


class IInvoiceStore(ABC):
    """
    Abstract interface for the per-session invoice store.

    Holds the purchase and sale collections, the period cache and the
    issuer-RUC index. Operations are in-memory and never fail.
    """

    # Collection operations
    @abstractmethod
    def snapshot(self, kind: CollectionKind) -> list[Invoice]:
        """Return the latest committed collection (a copy)."""
        pass

    @abstractmethod
    def update(self, kind: CollectionKind, transform: InvoiceTransform) -> list[Invoice]:
        """Apply a pure transform to the collection and commit it atomically."""
        pass

    @abstractmethod
    def replace(self, kind: CollectionKind, invoices: Sequence[Invoice]) -> None:
        """Unconditionally set a collection."""
        pass

    @abstractmethod
    def find(self, kind: CollectionKind, invoice_id: int) -> Invoice | None:
        """Get invoice by ID from the current collection."""
        pass

    @abstractmethod
    def subscribe(self, kind: CollectionKind) -> AsyncIterator[list[Invoice]]:
        """Stream collection snapshots, starting with the current one."""
        pass

    # Period cache operations
    @abstractmethod
    def cache_get(self, kind: CollectionKind, period_key: str) -> list[Invoice] | None:
        """Get the cached snapshot for a period, if any."""
        pass

    @abstractmethod
    def cache_put(
        self, kind: CollectionKind, period_key: str, invoices: Sequence[Invoice]
    ) -> None:
        """Store the snapshot fetched for a period."""
        pass

    @abstractmethod
    def cached_snapshots(self, kind: CollectionKind) -> list[list[Invoice]]:
        """All cached snapshots of a kind."""
        pass

    @abstractmethod
    def update_cached(self, kind: CollectionKind, transform: InvoiceTransform) -> None:
        """Apply a pure transform to every cached snapshot of a kind."""
        pass

    # Issuer-RUC index
    @abstractmethod
    def set_issuer_ruc(self, invoice_id: int, ruc: str) -> None:
        pass

    @abstractmethod
    def get_issuer_ruc(self, invoice_id: int) -> str | None:
        pass

    @abstractmethod
    def clear_all(self) -> None:
        """Empty both collections, the cache and the index."""
        pass


class ICredentialsStore(ABC):
    """Abstract interface for SUNAT credentials persistence."""

    @abstractmethod
    def get(self) -> Credentials:
        """Current credentials (possibly incomplete)."""
        pass

    @abstractmethod
    def save(self, credentials: Credentials) -> None:
        pass

    @abstractmethod
    def clear(self) -> None:
        pass
