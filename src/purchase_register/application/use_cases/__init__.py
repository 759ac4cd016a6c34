"""Application use cases."""

from purchase_register.application.use_cases.add_purchase_invoice import AddPurchaseInvoiceUseCase
from purchase_register.application.use_cases.detail_all_invoices import (
    DetailAllInvoicesUseCase,
    DetailAllResult,
)
from purchase_register.application.use_cases.fetch_invoices import FetchInvoicesUseCase
from purchase_register.application.use_cases.load_invoice_detail import LoadInvoiceDetailUseCase
from purchase_register.application.use_cases.load_registered_invoices import (
    LoadRegisteredInvoicesUseCase,
)
from purchase_register.application.use_cases.register_invoices import RegisterInvoicesUseCase

__all__ = [
    "FetchInvoicesUseCase",
    "LoadInvoiceDetailUseCase",
    "DetailAllInvoicesUseCase",
    "DetailAllResult",
    "RegisterInvoicesUseCase",
    "LoadRegisteredInvoicesUseCase",
    "AddPurchaseInvoiceUseCase",
]
