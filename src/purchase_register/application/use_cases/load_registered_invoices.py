"""Load Registered Invoices Use Case: pull the user's backend invoices."""

from purchase_register.config import get_logger
from purchase_register.core.entities.invoice import CollectionKind, Invoice
from purchase_register.core.interfaces.gateway import IRemoteGateway
from purchase_register.core.services.reconciliation import ReconciliationService

logger = get_logger(__name__)


class LoadRegisteredInvoicesUseCase:
    """Merge backend invoices into a collection; the backend record wins."""

    def __init__(
        self,
        gateway: IRemoteGateway,
        reconciliation: ReconciliationService,
        user_id: int = 1,
    ):
        self._gateway = gateway
        self._reconciliation = reconciliation
        self._user_id = user_id

    async def execute(self, kind: CollectionKind) -> list[Invoice]:
        registered = await self._gateway.list_registered_invoices(self._user_id)
        logger.info("registered_invoices_loaded", kind=kind.value, count=len(registered))
        return self._reconciliation.merge_registered(kind, registered)
