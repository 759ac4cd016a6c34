"""Domain entities."""

from purchase_register.core.entities.credentials import Credentials
from purchase_register.core.entities.invoice import (
    CollectionKind,
    DocumentType,
    Invoice,
    InvoiceStatus,
    LineItem,
)
from purchase_register.core.entities.outcome import (
    DetailOutcome,
    DetailOutcomeKind,
    OperationResult,
)

__all__ = [
    # Invoice
    "CollectionKind",
    "DocumentType",
    "Invoice",
    "InvoiceStatus",
    "LineItem",
    # Credentials
    "Credentials",
    # Outcomes
    "DetailOutcome",
    "DetailOutcomeKind",
    "OperationResult",
]
