"""
Invoice lifecycle state machine.

    FETCHED -> PROCESSING -> DETAILED -> REGISTERED
                   |
                   +-> FETCHED   (job failure, timeout, queuing error)

Any other transition is a no-op so duplicate UI triggers are harmless.
"""

from collections.abc import Sequence

from purchase_register.config import get_logger
from purchase_register.core.entities.invoice import (
    CollectionKind,
    Invoice,
    InvoiceStatus,
    LineItem,
)
from purchase_register.core.interfaces.storage import IInvoiceStore

logger = get_logger(__name__)

_TRANSITIONS: dict[InvoiceStatus, frozenset[InvoiceStatus]] = {
    InvoiceStatus.FETCHED: frozenset({InvoiceStatus.PROCESSING}),
    InvoiceStatus.PROCESSING: frozenset({InvoiceStatus.DETAILED, InvoiceStatus.FETCHED}),
    InvoiceStatus.DETAILED: frozenset({InvoiceStatus.REGISTERED}),
    InvoiceStatus.REGISTERED: frozenset(),
}

_RANK = {
    InvoiceStatus.FETCHED: 0,
    InvoiceStatus.PROCESSING: 1,
    InvoiceStatus.DETAILED: 2,
    InvoiceStatus.REGISTERED: 3,
}


def can_transition(current: InvoiceStatus, target: InvoiceStatus) -> bool:
    """Whether the state machine allows moving from `current` to `target`."""
    return target in _TRANSITIONS[current]


def most_advanced(first: InvoiceStatus, second: InvoiceStatus) -> InvoiceStatus:
    """The status further along the lifecycle."""
    return first if _RANK[first] >= _RANK[second] else second


class LifecycleService:
    """
    Applies lifecycle transitions through the store's update contract.

    Changes are mirrored into cached period snapshots by natural key, so a
    cached period never shows a stale status when it is selected again.
    """

    def __init__(self, store: IInvoiceStore):
        self._store = store

    def transition(
        self,
        kind: CollectionKind,
        invoice_id: int,
        target: InvoiceStatus,
        line_items: Sequence[LineItem] | None = None,
    ) -> bool:
        """
        Move one invoice to `target` if the state machine allows it.

        `line_items`, when given, are committed in the same update as the
        status, so no snapshot shows one without the other.

        Returns:
            True when the transition was committed.
        """
        current = self._store.find(kind, invoice_id)
        if current is None:
            logger.debug("transition_missing_invoice", kind=kind.value, invoice_id=invoice_id)
            return False

        if not can_transition(current.status, target):
            logger.info(
                "transition_ignored",
                kind=kind.value,
                invoice_id=invoice_id,
                current=current.status.name,
                target=target.name,
            )
            return False

        changes: dict = {"status": target}
        if line_items is not None:
            changes["line_items"] = tuple(line_items)

        def _apply(invoices: list[Invoice]) -> list[Invoice]:
            return [
                invoice.model_copy(update=changes)
                if invoice.id == invoice_id and can_transition(invoice.status, target)
                else invoice
                for invoice in invoices
            ]

        committed = self._store.update(kind, _apply)
        updated = next((inv for inv in committed if inv.id == invoice_id), None)
        if updated is None or updated.status != target:
            return False

        self._mirror(kind, updated)
        logger.info(
            "invoice_transitioned",
            kind=kind.value,
            invoice_id=invoice_id,
            source=current.status.name,
            target=target.name,
        )
        return True

    def set_line_items(
        self,
        kind: CollectionKind,
        invoice_id: int,
        line_items: Sequence[LineItem],
    ) -> Invoice | None:
        """Replace an invoice's line items wholesale."""
        items = tuple(line_items)

        def _apply(invoices: list[Invoice]) -> list[Invoice]:
            return [
                invoice.model_copy(update={"line_items": items})
                if invoice.id == invoice_id
                else invoice
                for invoice in invoices
            ]

        committed = self._store.update(kind, _apply)
        updated = next((inv for inv in committed if inv.id == invoice_id), None)
        if updated is not None:
            self._mirror(kind, updated)
        return updated

    def _mirror(self, kind: CollectionKind, updated: Invoice) -> None:
        key = updated.natural_key
        changes = {"status": updated.status, "line_items": updated.line_items}

        def _apply(invoices: list[Invoice]) -> list[Invoice]:
            return [
                invoice.model_copy(update=changes) if invoice.natural_key == key else invoice
                for invoice in invoices
            ]

        self._store.update_cached(kind, _apply)
