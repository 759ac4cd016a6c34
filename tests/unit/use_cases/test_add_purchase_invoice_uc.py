"""Tests for AddPurchaseInvoiceUseCase."""

import pytest

from purchase_register.application.dto import AddPurchaseInvoiceRequest, LineItemRequest
from purchase_register.application.use_cases import AddPurchaseInvoiceUseCase
from purchase_register.core.entities import CollectionKind, DocumentType, InvoiceStatus
from purchase_register.core.exceptions import RegistrationError
from purchase_register.core.interfaces import RegisterFromRemoteResponse

PURCHASE = CollectionKind.PURCHASE


def _request(**overrides) -> AddPurchaseInvoiceRequest:
    data = {
        "ruc": "20555555555",
        "business_name": "FERRETERIA SAC",
        "series": "F002",
        "number": "99",
        "issue_date": "10/02/2024",
        "currency": "Soles (PEN)",
        "total_cost": "50.00",
        "igv": "9.00",
        "total_amount": "59.00",
        "year": "2024",
    }
    data.update(overrides)
    return AddPurchaseInvoiceRequest(**data)


@pytest.fixture
def use_case(store, mock_gateway):
    mock_gateway.register_invoice_from_remote.return_value = RegisterFromRemoteResponse(
        success=True, invoice_id=30, document_number="F002-99"
    )
    return AddPurchaseInvoiceUseCase(store, mock_gateway, user_id=4)


async def test_adds_fetched_invoice(use_case, store, mock_gateway):
    invoice = await use_case.execute(_request())

    assert invoice.id == 30
    assert invoice.status is InvoiceStatus.FETCHED
    assert invoice.document_type is DocumentType.INVOICE
    assert store.find(PURCHASE, 30) == invoice
    assert store.get_issuer_ruc(30) == "20555555555"

    sent = mock_gateway.register_invoice_from_remote.await_args.args[0]
    assert sent.user_id == 4
    assert sent.document_type == "FACTURA"


async def test_products_make_it_detailed(use_case):
    invoice = await use_case.execute(
        _request(
            document_type="03",
            products=[LineItemRequest(description="Martillo", quantity="2", unit_cost="25.00")],
        )
    )

    assert invoice.status is InvoiceStatus.DETAILED
    assert invoice.document_type is DocumentType.RECEIPT
    assert invoice.line_items[0].description == "Martillo"


async def test_id_collision_gets_next_free_id(use_case, store, make_invoice):
    store.replace(PURCHASE, [make_invoice(30, number="1"), make_invoice(31, number="2")])

    invoice = await use_case.execute(_request())

    assert invoice.id == 32
    assert sorted(inv.id for inv in store.snapshot(PURCHASE)) == [30, 31, 32]


async def test_same_document_is_replaced(use_case, store, make_invoice):
    store.replace(PURCHASE, [make_invoice(30, ruc="20555555555", series="F002", number="99")])

    await use_case.execute(_request(total_amount="60.00"))

    invoices = store.snapshot(PURCHASE)
    assert len(invoices) == 1
    assert invoices[0].total_amount == "60.00"


async def test_backend_refusal_raises(use_case, store, mock_gateway):
    mock_gateway.register_invoice_from_remote.return_value = RegisterFromRemoteResponse(
        success=False, message="duplicate document"
    )

    with pytest.raises(RegistrationError) as exc_info:
        await use_case.execute(_request())

    assert exc_info.value.code == "REGISTRATION_FAILED"
    assert exc_info.value.message == "duplicate document"
    assert store.snapshot(PURCHASE) == []
