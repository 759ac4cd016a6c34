"""
Reconciliation of tax authority records with backend and local state.

Freshly fetched documents are merged by natural key (counterparty RUC,
series, number) against what the backend already registered and what the
session already knows. Lifecycle state, selection, line items and exchange
rate survive a refetch; amounts, names and dates are always refreshed.
"""

from collections.abc import Iterable

from purchase_register.config import get_logger
from purchase_register.core.entities.invoice import (
    CollectionKind,
    DocumentType,
    Invoice,
    InvoiceStatus,
    LineItem,
)
from purchase_register.core.exceptions import GatewayError
from purchase_register.core.interfaces.gateway import (
    IRemoteGateway,
    RegisteredInvoice,
    RegisterFromRemoteRequest,
    SunatContentItem,
    SunatResult,
)
from purchase_register.core.interfaces.storage import IInvoiceStore
from purchase_register.core.services.formatting import (
    currency_label,
    format_amount,
    format_exchange_rate,
    parse_issue_date,
    sort_by_issue_date,
)
from purchase_register.core.services.lifecycle import most_advanced
from purchase_register.core.services.task_registry import BackgroundTaskRegistry

logger = get_logger(__name__)

NaturalKey = tuple[str, str, str]


def line_items_from_registered(invoice: RegisteredInvoice) -> tuple[LineItem, ...]:
    return tuple(
        LineItem(
            description=detail.description,
            quantity=detail.quantity,
            unit_cost=detail.unit_cost,
            unit_of_measure=detail.unit_of_measure,
        )
        for detail in invoice.details or []
    )


def invoice_from_registered(registered: RegisteredInvoice, invoice_id: int) -> Invoice:
    """Map a backend record to a session invoice."""
    parsed = parse_issue_date(registered.issue_date)
    return Invoice(
        id=invoice_id,
        ruc=registered.provider_ruc
        or (registered.provider.provider_ruc if registered.provider else ""),
        business_name=registered.provider.business_name if registered.provider else "",
        series=registered.series,
        number=registered.number,
        issue_date=registered.issue_date,
        document_type=DocumentType.INVOICE,
        year=str(parsed.year) if parsed.year != 1970 else "",
        currency=registered.currency,
        total_cost=registered.total_cost,
        igv=registered.igv,
        total_amount=registered.total_amount,
        status=InvoiceStatus.parse(registered.status),
        line_items=line_items_from_registered(registered),
    )


class _IdAllocator:
    """Hands out `max(existing) + 1` style ids, never reusing a reserved one."""

    def __init__(self, existing: Iterable[Invoice]):
        self._owners: dict[int, NaturalKey] = {}
        for invoice in existing:
            self._owners.setdefault(invoice.id, invoice.natural_key)
        self._next = max(self._owners, default=0) + 1

    def claim(self, preferred: int | None, key: NaturalKey) -> int:
        """Keep `preferred` unless another document already owns it."""
        if preferred is not None and self._owners.get(preferred, key) == key:
            self._owners[preferred] = key
            return preferred
        return self.allocate(key)

    def allocate(self, key: NaturalKey) -> int:
        while self._next in self._owners:
            self._next += 1
        invoice_id = self._next
        self._owners[invoice_id] = key
        self._next += 1
        return invoice_id


class ReconciliationService:
    """
    Turns raw tax authority results into merged invoices.

    Backend lookups are awaited one by one; documents the backend does not
    know are backfilled in the background and never block the caller.
    """

    def __init__(
        self,
        store: IInvoiceStore,
        gateway: IRemoteGateway,
        tasks: BackgroundTaskRegistry,
        user_id: int = 1,
    ):
        self._store = store
        self._gateway = gateway
        self._tasks = tasks
        self._user_id = user_id

    def _known_invoices(self) -> list[Invoice]:
        known: list[Invoice] = []
        for kind in CollectionKind:
            known.extend(self._store.snapshot(kind))
            for cached in self._store.cached_snapshots(kind):
                known.extend(cached)
        return known

    def _local_index(self, kind: CollectionKind) -> dict[NaturalKey, Invoice]:
        index: dict[NaturalKey, Invoice] = {}
        for cached in self._store.cached_snapshots(kind):
            for invoice in cached:
                index[invoice.natural_key] = invoice
        # Current collection wins over older cached snapshots
        for invoice in self._store.snapshot(kind):
            index[invoice.natural_key] = invoice
        return index

    async def reconcile(
        self,
        kind: CollectionKind,
        results: list[SunatResult],
        period_key: str | None = None,
    ) -> list[Invoice]:
        """
        Merge one period's tax authority results into the store.

        Args:
            kind: Collection the results belong to.
            results: Raw tax authority result groups.
            period_key: Period start; when given the merged list is cached
                under it before replacing the collection.

        Returns:
            Merged invoices sorted by issue date.
        """
        allocator = _IdAllocator(self._known_invoices())
        local_index = self._local_index(kind)
        merged: dict[NaturalKey, Invoice] = {}
        backfill: list[RegisterFromRemoteRequest] = []

        for result in results:
            for item in result.content:
                ruc, business_name = self._counterparty(kind, item)
                key = (ruc, item.series, item.number)
                if key in merged:
                    logger.debug("duplicate_document_skipped", document=f"{item.series}-{item.number}")
                    continue

                registered = await self._lookup(f"{item.series}-{item.number}")
                if registered is None:
                    backfill.append(self._backfill_request(item, business_name))

                invoice = self._merge(
                    item,
                    ruc=ruc,
                    business_name=business_name,
                    local=local_index.get(key),
                    registered=registered,
                    allocator=allocator,
                )
                self._store.set_issuer_ruc(invoice.id, item.issuer_ruc)
                merged[key] = invoice

        if backfill:
            self._tasks.spawn(self._register_missing(backfill), name="backfill-registrations")

        invoices = sort_by_issue_date(list(merged.values()))

        if period_key is not None:
            self._store.cache_put(kind, period_key, invoices)
        self._store.replace(kind, invoices)

        logger.info(
            "invoices_reconciled",
            kind=kind.value,
            period=period_key,
            count=len(invoices),
            backfilled=len(backfill),
        )
        return invoices

    @staticmethod
    def _counterparty(kind: CollectionKind, item: SunatContentItem) -> tuple[str, str]:
        # Purchases are tracked by supplier (issuer), sales by customer (receiver)
        if kind is CollectionKind.PURCHASE:
            return item.issuer_ruc, item.issuer_business_name
        return item.receiver_doc_number, item.receiver_name

    async def _lookup(self, document_number: str) -> RegisteredInvoice | None:
        try:
            return await self._gateway.lookup_invoice(document_number)
        except GatewayError as e:
            logger.warning("backend_lookup_failed", document=document_number, error=e.message)
            return None

    def _merge(
        self,
        item: SunatContentItem,
        *,
        ruc: str,
        business_name: str,
        local: Invoice | None,
        registered: RegisteredInvoice | None,
        allocator: _IdAllocator,
    ) -> Invoice:
        key = (ruc, item.series, item.number)

        status = InvoiceStatus.FETCHED
        line_items: tuple[LineItem, ...] = ()
        if registered is not None:
            status = InvoiceStatus.parse(registered.status)
            line_items = line_items_from_registered(registered)

        if local is not None:
            invoice_id = allocator.claim(local.id, key)
            status = most_advanced(local.status, status) if registered else local.status
            line_items = local.line_items or line_items
        elif registered is not None:
            invoice_id = allocator.claim(registered.invoice_id, key)
        else:
            invoice_id = allocator.allocate(key)

        exchange_rate = (
            local.exchange_rate
            if local is not None and local.exchange_rate
            else format_exchange_rate(item.exchange_rate, item.currency)
        )
        year = local.year if local is not None and local.year else item.period[:4]

        return Invoice(
            id=invoice_id,
            ruc=ruc,
            business_name=business_name,
            series=item.series,
            number=item.number,
            issue_date=item.issue_date,
            document_type=DocumentType.from_sunat_code(item.document_type),
            year=year,
            currency=currency_label(item.currency),
            total_cost=format_amount(item.taxable_base),
            igv=format_amount(item.igv),
            total_amount=format_amount(item.total),
            exchange_rate=exchange_rate,
            status=status,
            is_selected=local.is_selected if local is not None else False,
            line_items=line_items,
        )

    def _backfill_request(
        self, item: SunatContentItem, business_name: str
    ) -> RegisterFromRemoteRequest:
        return RegisterFromRemoteRequest(
            issuer_ruc=item.issuer_ruc,
            series=item.series,
            number=item.number,
            issue_date=item.issue_date,
            business_name=business_name,
            document_type=DocumentType.from_sunat_code(item.document_type).value,
            currency=currency_label(item.currency),
            total_cost=format_amount(item.taxable_base),
            igv=format_amount(item.igv),
            total_amount=format_amount(item.total),
            user_id=self._user_id,
        )

    async def _register_missing(self, requests: list[RegisterFromRemoteRequest]) -> None:
        """Best-effort backfill; failures are logged, never surfaced."""
        for request in requests:
            try:
                await self._gateway.register_invoice_from_remote(request)
            except GatewayError as e:
                logger.warning(
                    "backfill_registration_failed",
                    document=f"{request.series}-{request.number}",
                    error=e.message,
                )

    def merge_registered(
        self,
        kind: CollectionKind,
        registered: list[RegisteredInvoice],
    ) -> list[Invoice]:
        """
        Merge backend-registered invoices into the current collection.

        The backend record wins for documents present on both sides; local-only
        invoices are kept. The result replaces the collection.
        """
        current = self._store.snapshot(kind)
        allocator = _IdAllocator(self._known_invoices())
        merged: dict[NaturalKey, Invoice] = {invoice.natural_key: invoice for invoice in current}

        for record in registered:
            provisional = invoice_from_registered(record, record.invoice_id)
            key = provisional.natural_key
            local = merged.get(key)
            preferred = local.id if local is not None else record.invoice_id
            invoice_id = allocator.claim(preferred, key)
            merged[key] = provisional.model_copy(
                update={
                    "id": invoice_id,
                    "is_selected": local.is_selected if local is not None else False,
                    "exchange_rate": local.exchange_rate if local is not None else "",
                }
            )

        invoices = sort_by_issue_date(list(merged.values()))
        self._store.replace(kind, invoices)
        logger.info("registered_invoices_merged", kind=kind.value, count=len(invoices))
        return invoices
