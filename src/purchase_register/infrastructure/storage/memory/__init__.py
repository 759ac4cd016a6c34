"""In-memory storage implementations."""

from purchase_register.infrastructure.storage.memory.invoice_store import InMemoryInvoiceStore

__all__ = ["InMemoryInvoiceStore"]
