"""Fetch Invoices Use Case: tax authority listing merged into the session."""

from purchase_register.config import get_logger
from purchase_register.core.entities.invoice import CollectionKind, Invoice
from purchase_register.core.exceptions import GatewayTransportError, MissingCredentialsError
from purchase_register.core.interfaces.gateway import IRemoteGateway
from purchase_register.core.interfaces.storage import ICredentialsStore, IInvoiceStore
from purchase_register.core.services.reconciliation import ReconciliationService

logger = get_logger(__name__)


class FetchInvoicesUseCase:
    """
    Load one period of purchases or sales.

    A period fetched before is served from the period cache without any
    remote call.
    """

    def __init__(
        self,
        store: IInvoiceStore,
        gateway: IRemoteGateway,
        credentials: ICredentialsStore,
        reconciliation: ReconciliationService,
    ):
        self._store = store
        self._gateway = gateway
        self._credentials = credentials
        self._reconciliation = reconciliation

    async def execute(
        self,
        kind: CollectionKind,
        period_start: str,
        period_end: str,
    ) -> list[Invoice]:
        """
        Execute the fetch.

        Raises:
            MissingCredentialsError: Credentials are incomplete.
            GatewayTransportError: The tax authority listing failed.
        """
        credentials = self._credentials.get()
        if not credentials.is_complete:
            raise MissingCredentialsError(credentials.missing_fields())

        cached = self._store.cache_get(kind, period_start)
        if cached is not None:
            logger.info("invoices_cache_hit", kind=kind.value, period=period_start, count=len(cached))
            self._store.replace(kind, cached)
            return cached

        logger.info("fetch_invoices_started", kind=kind.value, period_start=period_start, period_end=period_end)
        response = await self._gateway.fetch_invoices(period_start, period_end, credentials)
        if not response.success:
            logger.warning("fetch_invoices_unsuccessful", kind=kind.value, period=period_start)
            raise GatewayTransportError("fetch_invoices", "unsuccessful response")
        return await self._reconciliation.reconcile(kind, response.results, period_key=period_start)
