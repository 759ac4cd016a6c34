"""Request DTOs for API endpoints.

Pydantic v2 models for API request validation.
These are the ONLY contracts between API and use cases.
"""

from pydantic import BaseModel, Field, SecretStr


class FetchInvoicesRequest(BaseModel):
    """Period to fetch from the tax authority."""

    period_start: str = Field(
        ...,
        description="First SUNAT period (yyyymm)",
        examples=["202401"],
    )
    period_end: str = Field(
        ...,
        description="Last SUNAT period (yyyymm)",
        examples=["202403"],
    )


class RegisterInvoicesRequest(BaseModel):
    """Invoices to register in the backend."""

    invoice_ids: list[int] = Field(
        ...,
        min_length=1,
        description="Session invoice IDs",
        examples=[[1, 2, 5]],
    )


class LineItemRequest(BaseModel):
    description: str = Field(..., description="Product description")
    quantity: str = Field(default="0", description="Quantity as text")
    unit_cost: str = Field(default="0.00", description="Unit cost, two decimals")
    unit_of_measure: str = Field(default="", description="Unit of measure")


class AddPurchaseInvoiceRequest(BaseModel):
    """Purchase entered by hand instead of fetched from the tax authority."""

    ruc: str = Field(..., description="Supplier RUC", examples=["20123456789"])
    business_name: str = Field(..., description="Supplier business name")
    series: str = Field(..., description="Document series", examples=["F001"])
    number: str = Field(..., description="Document number", examples=["10"])
    issue_date: str = Field(..., description="Issue date (dd/mm/yyyy)", examples=["15/01/2024"])
    document_type: str = Field(default="FACTURA", description="FACTURA, BOLETA, ...")
    currency: str = Field(default="", description="Currency label")
    total_cost: str = Field(default="", description="Taxable base")
    igv: str = Field(default="", description="IGV tax")
    total_amount: str = Field(default="", description="Document total")
    year: str = Field(default="", description="Fiscal year")
    exchange_rate: str = Field(default="", description="Exchange rate, empty for PEN")
    products: list[LineItemRequest] = Field(default_factory=list, description="Line items")


class SaveCredentialsRequest(BaseModel):
    """SUNAT credentials for the session."""

    ruc: str = Field(..., description="Own RUC", examples=["20123456789"])
    username: str = Field(..., description="SOL user")
    password: SecretStr = Field(..., description="SOL password")
    client_id: str | None = Field(default=None, description="SUNAT API client id")
    client_secret: SecretStr | None = Field(default=None, description="SUNAT API client secret")
    validate_remote: bool = Field(
        default=True,
        description="Check the credentials against the tax authority before saving",
    )
