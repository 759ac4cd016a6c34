"""Core interfaces (ports) for dependency injection."""

from purchase_register.core.interfaces.gateway import (
    BatchRegistrationResponse,
    BatchRegistrationResult,
    InvoiceToRegister,
    IRemoteGateway,
    JobItem,
    JobResult,
    JobStatusResponse,
    ProductPayload,
    ProductToRegister,
    QueuedJobResponse,
    RegisteredDetail,
    RegisteredInvoice,
    RegisteredProvider,
    RegisterFromRemoteRequest,
    RegisterFromRemoteResponse,
    SunatContentItem,
    SunatInvoicesResponse,
    SunatResult,
)
from purchase_register.core.interfaces.storage import (
    ICredentialsStore,
    IInvoiceStore,
    InvoiceTransform,
)

__all__ = [
    # Storage interfaces
    "IInvoiceStore",
    "ICredentialsStore",
    "InvoiceTransform",
    # Gateway interface
    "IRemoteGateway",
    # Tax authority payloads
    "SunatContentItem",
    "SunatResult",
    "SunatInvoicesResponse",
    # Backend payloads
    "RegisteredDetail",
    "RegisteredProvider",
    "RegisteredInvoice",
    "RegisterFromRemoteRequest",
    "RegisterFromRemoteResponse",
    "ProductPayload",
    "ProductToRegister",
    "InvoiceToRegister",
    "BatchRegistrationResult",
    "BatchRegistrationResponse",
    # Job payloads
    "QueuedJobResponse",
    "JobItem",
    "JobResult",
    "JobStatusResponse",
]
