"""
Invoice domain entities with Pydantic v2 validation.

Amounts are kept as formatted decimal strings, the way the backend and the
tax authority exchange them, so values round-trip without float drift.
"""

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class CollectionKind(str, Enum):
    """Which side of the ledger an invoice belongs to."""

    PURCHASE = "purchase"
    SALE = "sale"

    @property
    def cache_prefix(self) -> str:
        return "COMPRAS" if self is CollectionKind.PURCHASE else "VENTAS"


class InvoiceStatus(str, Enum):
    """
    Invoice lifecycle status.

    Values are the labels the backend stores.
    """

    FETCHED = "CONSULTADO"
    PROCESSING = "EN PROCESO"
    DETAILED = "CON DETALLE"
    REGISTERED = "REGISTRADO"

    @classmethod
    def parse(cls, value: Any) -> "InvoiceStatus":
        """Accept a backend label or a member name; unknown values mean FETCHED."""
        if isinstance(value, cls):
            return value
        if not value:
            return cls.FETCHED
        text = str(value).strip().upper()
        for status in cls:
            if text in (status.value, status.name):
                return status
        return cls.FETCHED


class DocumentType(str, Enum):
    """Tax document type."""

    INVOICE = "FACTURA"
    RECEIPT = "BOLETA"
    OTHER = "DOCUMENTO"

    @classmethod
    def from_sunat_code(cls, code: str | None) -> "DocumentType":
        """Map SUNAT comprobante codes (01, 03, ...)."""
        if code == "01":
            return cls.INVOICE
        if code == "03":
            return cls.RECEIPT
        return cls.OTHER


class LineItem(BaseModel):
    """
    Invoice line item.

    Owned by its invoice and replaced wholesale, never edited in place.
    """

    model_config = ConfigDict(frozen=True)

    description: str = ""
    quantity: str = "0"
    unit_cost: str = "0.00"
    unit_of_measure: str = ""

    @field_validator("description", "quantity", "unit_cost", "unit_of_measure", mode="before")
    @classmethod
    def coerce_string(cls, v: Any) -> str:
        """Ensure string fields are never None."""
        if v is None:
            return ""
        return str(v).strip()


class Invoice(BaseModel):
    """
    Tax document as seen by one user session.

    `ruc` is the counterparty relevant to the collection: the issuer for
    purchases, the receiver for sales.
    """

    model_config = ConfigDict(frozen=True)

    id: int
    ruc: str = ""
    business_name: str = ""
    series: str = ""
    number: str = ""
    issue_date: str = ""
    document_type: DocumentType = DocumentType.INVOICE
    year: str = ""
    currency: str = ""

    # Amounts as two-decimal strings
    total_cost: str = ""
    igv: str = ""
    total_amount: str = ""
    exchange_rate: str = ""

    status: InvoiceStatus = InvoiceStatus.FETCHED
    is_selected: bool = False
    line_items: tuple[LineItem, ...] = Field(default_factory=tuple)

    @field_validator("status", mode="before")
    @classmethod
    def coerce_status(cls, v: Any) -> InvoiceStatus:
        return InvoiceStatus.parse(v)

    @field_validator("line_items", mode="before")
    @classmethod
    def coerce_line_items(cls, v: Any) -> tuple:
        if v is None:
            return ()
        return tuple(v)

    @property
    def document_number(self) -> str:
        """Backend document number, e.g. ``F001-10``."""
        return f"{self.series}-{self.number}"

    @property
    def natural_key(self) -> tuple[str, str, str]:
        """Cross-source identity: counterparty RUC, series, number."""
        return (self.ruc, self.series, self.number)

    @property
    def has_details(self) -> bool:
        return len(self.line_items) > 0
