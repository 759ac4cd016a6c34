"""Pytest configuration and fixtures."""

from collections.abc import AsyncGenerator, Callable, Generator
from typing import Any
from unittest.mock import AsyncMock

import pytest
import pytest_asyncio

from purchase_register.config import reset_settings
from purchase_register.core.entities import (
    Credentials,
    Invoice,
    InvoiceStatus,
    LineItem,
)
from purchase_register.core.interfaces import IRemoteGateway, SunatContentItem
from purchase_register.core.services import BackgroundTaskRegistry, LifecycleService
from purchase_register.infrastructure.credentials import InMemoryCredentialsStore
from purchase_register.infrastructure.storage import InMemoryInvoiceStore


@pytest.fixture(autouse=True)
def fresh_settings(monkeypatch: pytest.MonkeyPatch) -> Generator[None, None, None]:
    """Isolate tests from the developer's environment and .env file."""
    for name in ("SUNAT_RUC", "SUNAT_USERNAME", "SUNAT_PASSWORD"):
        monkeypatch.delenv(name, raising=False)
    reset_settings()
    yield
    reset_settings()


@pytest.fixture
def store() -> InMemoryInvoiceStore:
    return InMemoryInvoiceStore()


@pytest.fixture
def lifecycle(store: InMemoryInvoiceStore) -> LifecycleService:
    return LifecycleService(store)


@pytest_asyncio.fixture
async def tasks() -> AsyncGenerator[BackgroundTaskRegistry, None]:
    registry = BackgroundTaskRegistry()
    yield registry
    await registry.close()


@pytest.fixture
def credentials() -> Credentials:
    return Credentials(ruc="20100000001", username="USER01", password="secret")


@pytest.fixture
def credentials_store(credentials: Credentials) -> InMemoryCredentialsStore:
    return InMemoryCredentialsStore(credentials)


@pytest.fixture
def mock_gateway() -> AsyncMock:
    """Gateway double; by default the backend knows no invoice."""
    gateway = AsyncMock(spec=IRemoteGateway)
    gateway.lookup_invoice.return_value = None
    gateway.list_registered_invoices.return_value = []
    return gateway


@pytest.fixture
def make_invoice() -> Callable[..., Invoice]:
    """Factory for session invoices with sensible defaults."""

    def _make(invoice_id: int = 1, **overrides: Any) -> Invoice:
        data: dict[str, Any] = {
            "id": invoice_id,
            "ruc": "20123456789",
            "business_name": "PROVEEDOR SAC",
            "series": "F001",
            "number": str(invoice_id),
            "issue_date": "15/01/2024",
            "year": "2024",
            "currency": "Soles (PEN)",
            "total_cost": "100.00",
            "igv": "18.00",
            "total_amount": "118.00",
            "status": InvoiceStatus.FETCHED,
        }
        data.update(overrides)
        return Invoice(**data)

    return _make


@pytest.fixture
def make_item() -> Callable[..., SunatContentItem]:
    """Factory for tax authority rows (wire shape, camelCase)."""

    def _make(**overrides: Any) -> SunatContentItem:
        data: dict[str, Any] = {
            "issuerRuc": "20123456789",
            "issuerBusinessName": "PROVEEDOR SAC",
            "period": "202401",
            "issueDate": "15/01/2024",
            "documentType": "01",
            "series": "F001",
            "number": "10",
            "receiverDocType": "6",
            "receiverDocNumber": "20100000001",
            "receiverName": "MI EMPRESA SAC",
            "taxableBase": 100.0,
            "igv": 18.0,
            "total": 118.0,
            "currency": "PEN",
            "exchangeRate": 1.0,
        }
        data.update(overrides)
        return SunatContentItem.model_validate(data)

    return _make


@pytest.fixture
def detailed_items() -> tuple[LineItem, ...]:
    return (LineItem(description="Cable", quantity="3", unit_cost="10.50", unit_of_measure="UN"),)

