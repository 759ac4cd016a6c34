"""Data transfer objects for the API boundary."""

from purchase_register.application.dto.requests import (
    AddPurchaseInvoiceRequest,
    FetchInvoicesRequest,
    LineItemRequest,
    RegisterInvoicesRequest,
    SaveCredentialsRequest,
)
from purchase_register.application.dto.responses import (
    DetailAllResponse,
    DetailResponse,
    ErrorResponse,
    HealthResponse,
    InvoiceListResponse,
    InvoiceResponse,
    IssuerRucResponse,
    LineItemResponse,
    OperationResponse,
)

__all__ = [
    # Requests
    "AddPurchaseInvoiceRequest",
    "FetchInvoicesRequest",
    "LineItemRequest",
    "RegisterInvoicesRequest",
    "SaveCredentialsRequest",
    # Responses
    "DetailAllResponse",
    "DetailResponse",
    "ErrorResponse",
    "HealthResponse",
    "InvoiceListResponse",
    "InvoiceResponse",
    "IssuerRucResponse",
    "LineItemResponse",
    "OperationResponse",
]
