"""
Per-user session root.

The session owns the invoice store, the gateway, the credentials, the event
channels and the background task registry, and wires the core services
together. Presentation code talks only to this object.
"""

import asyncio
from collections.abc import AsyncIterator, Callable

from purchase_register.application.dto.requests import AddPurchaseInvoiceRequest
from purchase_register.application.use_cases import (
    AddPurchaseInvoiceUseCase,
    DetailAllInvoicesUseCase,
    DetailAllResult,
    FetchInvoicesUseCase,
    LoadInvoiceDetailUseCase,
    LoadRegisteredInvoicesUseCase,
    RegisterInvoicesUseCase,
)
from purchase_register.application.use_cases.detail_all_invoices import ProgressCallback
from purchase_register.config import Settings, get_logger, get_settings
from purchase_register.core.entities.credentials import Credentials
from purchase_register.core.entities.invoice import CollectionKind, Invoice
from purchase_register.core.entities.outcome import DetailOutcome, OperationResult
from purchase_register.core.exceptions import MissingCredentialsError, PurchaseRegisterError
from purchase_register.core.interfaces.gateway import IRemoteGateway
from purchase_register.core.interfaces.storage import ICredentialsStore, IInvoiceStore
from purchase_register.core.services import (
    AutoRegistrationScheduler,
    BackgroundTaskRegistry,
    DetailJobOrchestrator,
    EventChannel,
    InvoiceRegistrationService,
    LifecycleService,
    ReconciliationService,
)
from purchase_register.infrastructure.credentials import InMemoryCredentialsStore
from purchase_register.infrastructure.storage import InMemoryInvoiceStore

logger = get_logger(__name__)

DetailCallback = Callable[[bool, str | None], None]


class InvoiceSession:
    """
    Application root for one user.

    Args:
        gateway: Remote gateway; closed by `close()`.
        store: Invoice store (a fresh in-memory one by default).
        credentials: Credentials store (seeded from settings by default).
        settings: Settings override.
    """

    def __init__(
        self,
        gateway: IRemoteGateway,
        store: IInvoiceStore | None = None,
        credentials: ICredentialsStore | None = None,
        settings: Settings | None = None,
    ):
        self.settings = settings or get_settings()
        self.gateway = gateway
        self.store = store or InMemoryInvoiceStore()
        self.credentials = credentials or InMemoryCredentialsStore.from_settings(
            self.settings.credentials
        )
        self.tasks = BackgroundTaskRegistry()
        self.errors: EventChannel[str] = EventChannel()
        self.events: EventChannel[DetailOutcome] = EventChannel()

        user_id = self.settings.gateway.user_id
        self.lifecycle = LifecycleService(self.store)
        self.reconciliation = ReconciliationService(
            self.store, self.gateway, self.tasks, user_id=user_id
        )
        self.registration = InvoiceRegistrationService(self.store, self.gateway, self.lifecycle)
        self.scheduler = AutoRegistrationScheduler(
            self.store,
            self.registration,
            self.tasks,
            grace_seconds=self.settings.auto_register.grace_seconds,
        )
        self.orchestrator = DetailJobOrchestrator(
            self.store,
            self.gateway,
            self.credentials,
            self.lifecycle,
            self.tasks,
            poll_interval=self.settings.detail_job.poll_interval,
            max_poll_attempts=self.settings.detail_job.max_poll_attempts,
            on_outcome=self._on_outcome,
            on_detailed=self._on_detailed,
        )

        self._fetch = FetchInvoicesUseCase(
            self.store, self.gateway, self.credentials, self.reconciliation
        )
        self._load_detail = LoadInvoiceDetailUseCase(self.orchestrator)
        self._detail_all = DetailAllInvoicesUseCase(
            self.store, self.orchestrator, batch_pause=self.settings.detail_job.batch_pause
        )
        self._register = RegisterInvoicesUseCase(self.store, self.registration)
        self._load_registered = LoadRegisteredInvoicesUseCase(
            self.gateway, self.reconciliation, user_id=user_id
        )
        self._add_purchase = AddPurchaseInvoiceUseCase(self.store, self.gateway, user_id=user_id)

        self._scheduler_task: asyncio.Task | None = None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self) -> None:
        """Start the auto-registration scheduler; must run inside the event loop."""
        if not self.settings.auto_register.enabled:
            return
        if self._scheduler_task is not None and not self._scheduler_task.done():
            return
        self._scheduler_task = self.tasks.spawn(self.scheduler.run(), name="auto-register-scheduler")
        logger.info("session_started", grace_seconds=self.scheduler.grace_seconds)

    async def logout(self) -> None:
        """Cancel everything in flight, then forget invoices and credentials."""
        cancelled = await self.tasks.cancel_all()
        self.store.clear_all()
        self.credentials.clear()
        self.errors.clear()
        self.events.clear()
        self._scheduler_task = None
        logger.info("session_logged_out", cancelled_tasks=cancelled)
        self.start()

    async def close(self) -> None:
        await self.tasks.close()
        await self.gateway.close()
        logger.info("session_closed")

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    @property
    def purchases(self) -> list[Invoice]:
        return self.store.snapshot(CollectionKind.PURCHASE)

    @property
    def sales(self) -> list[Invoice]:
        return self.store.snapshot(CollectionKind.SALE)

    def invoices(self, kind: CollectionKind) -> list[Invoice]:
        return self.store.snapshot(kind)

    def subscribe(self, kind: CollectionKind) -> AsyncIterator[list[Invoice]]:
        return self.store.subscribe(kind)

    def get_issuer_ruc(self, invoice_id: int) -> str | None:
        return self.store.get_issuer_ruc(invoice_id)

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def _report(self, error: PurchaseRegisterError, operation: str) -> OperationResult:
        logger.warning(f"{operation}_failed", error=error.message, code=error.code)
        self.errors.publish(error.message)
        return OperationResult.fail(error.message, error.code)

    async def fetch_invoices(
        self, kind: CollectionKind, period_start: str, period_end: str
    ) -> OperationResult:
        try:
            invoices = await self._fetch.execute(kind, period_start, period_end)
        except PurchaseRegisterError as e:
            return self._report(e, "fetch_invoices")
        return OperationResult.ok(f"{len(invoices)} invoices loaded")

    async def load_invoice_detail(
        self,
        kind: CollectionKind,
        invoice_id: int,
        on_complete: DetailCallback | None = None,
        wait: bool = False,
    ) -> DetailOutcome:
        """
        "View detail" action.

        `on_complete` receives ``(success, message)`` once: for a queued job
        that is ``(True, "queued job <id>")``, the final outcome arrives on
        `events`.
        """
        outcome = await self._load_detail.execute(kind, invoice_id, wait=wait)
        if on_complete is not None:
            on_complete(outcome.success, outcome.message)
        return outcome

    async def detail_all(
        self, kind: CollectionKind, progress: ProgressCallback | None = None
    ) -> DetailAllResult:
        credentials = self.credentials.get()
        if not credentials.is_complete:
            self._report(MissingCredentialsError(credentials.missing_fields()), "detail_all")
            return DetailAllResult()
        return await self._detail_all.execute(kind, progress)

    async def register_invoices(
        self, kind: CollectionKind, invoice_ids: list[int]
    ) -> OperationResult:
        try:
            result = await self._register.execute(kind, invoice_ids)
        except PurchaseRegisterError as e:
            return self._report(e, "register_invoices")
        if not result.success and result.message:
            self.errors.publish(result.message)
        return result

    async def load_registered_invoices(self, kind: CollectionKind) -> OperationResult:
        try:
            invoices = await self._load_registered.execute(kind)
        except PurchaseRegisterError as e:
            return self._report(e, "load_registered_invoices")
        return OperationResult.ok(f"{len(invoices)} invoices loaded")

    async def add_purchase_invoice(self, request: AddPurchaseInvoiceRequest) -> Invoice | None:
        try:
            return await self._add_purchase.execute(request)
        except PurchaseRegisterError as e:
            self._report(e, "add_purchase_invoice")
            return None

    async def save_credentials(
        self, credentials: Credentials, validate: bool = True
    ) -> OperationResult:
        """Check credentials against the tax authority, then keep them."""
        missing = credentials.missing_fields()
        if missing:
            return self._report(MissingCredentialsError(missing), "save_credentials")

        if validate:
            try:
                valid = await self.gateway.validate_credentials(credentials)
            except PurchaseRegisterError as e:
                return self._report(e, "save_credentials")
            if not valid:
                message = "Invalid SUNAT credentials"
                self.errors.publish(message)
                return OperationResult.fail(message, "INVALID_CREDENTIALS")

        self.credentials.save(credentials)
        return OperationResult.ok("Credentials saved")

    # ------------------------------------------------------------------
    # Hooks
    # ------------------------------------------------------------------

    def _on_outcome(self, outcome: DetailOutcome) -> None:
        self.events.publish(outcome)
        if not outcome.success and outcome.message:
            self.errors.publish(outcome.message)

    def _on_detailed(self, kind: CollectionKind, invoice_id: int) -> None:
        if self.settings.auto_register.enabled:
            self.scheduler.watch(kind, invoice_id)

