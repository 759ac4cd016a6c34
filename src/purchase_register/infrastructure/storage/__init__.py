"""Storage implementations."""

from purchase_register.infrastructure.storage.memory import InMemoryInvoiceStore

__all__ = ["InMemoryInvoiceStore"]
