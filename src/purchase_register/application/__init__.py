"""
Application layer - Session, use cases, DTOs, and factories.

This layer orchestrates business logic by:
1. Defining request/response DTOs for API contracts
2. Implementing use cases that coordinate core services
3. Owning per-user state in InvoiceSession
4. Providing factory functions for dependency injection
"""

from purchase_register.application.services import create_gateway, create_session
from purchase_register.application.session import InvoiceSession
from purchase_register.application.use_cases import (
    AddPurchaseInvoiceUseCase,
    DetailAllInvoicesUseCase,
    DetailAllResult,
    FetchInvoicesUseCase,
    LoadInvoiceDetailUseCase,
    LoadRegisteredInvoicesUseCase,
    RegisterInvoicesUseCase,
)

__all__ = [
    # Session
    "InvoiceSession",
    # Use Cases
    "FetchInvoicesUseCase",
    "LoadInvoiceDetailUseCase",
    "DetailAllInvoicesUseCase",
    "DetailAllResult",
    "RegisterInvoicesUseCase",
    "LoadRegisteredInvoicesUseCase",
    "AddPurchaseInvoiceUseCase",
    # Factories
    "create_gateway",
    "create_session",
]
