"""
Value formatting shared by reconciliation and detail extraction.

Amounts follow the backend convention: two decimals, half-up rounding.
"""

from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any

LOCAL_CURRENCY_LABEL = "Soles (PEN)"
FOREIGN_CURRENCY_LABEL = "Dólares (USD)"

_TWO_PLACES = Decimal("0.01")
_EPOCH = datetime(1970, 1, 1)


def _to_decimal(value: Any) -> Decimal | None:
    if value is None or value == "":
        return None
    try:
        return Decimal(str(value).strip().replace(",", ""))
    except (InvalidOperation, ValueError):
        return None


def format_amount(value: Any, default: str = "") -> str:
    """Format a number as a two-decimal string (``118`` -> ``"118.00"``)."""
    number = _to_decimal(value)
    if number is None:
        return default
    return str(number.quantize(_TWO_PLACES, rounding=ROUND_HALF_UP))


def format_quantity(value: Any, default: str = "0") -> str:
    """Stringify a quantity without a trailing ``.0`` (``3.0`` -> ``"3"``)."""
    number = _to_decimal(value)
    if number is None:
        return default
    if number == number.to_integral_value():
        return str(number.quantize(Decimal(1)))
    return format(number.normalize(), "f")


def parse_amount(value: str | None) -> float:
    """Parse a decimal string back to float; blanks and garbage mean 0.0."""
    number = _to_decimal(value)
    return float(number) if number is not None else 0.0


def currency_label(code: str | None) -> str:
    """Map a currency code to its display label; unknown codes pass through."""
    if not code:
        return ""
    if code == "PEN":
        return LOCAL_CURRENCY_LABEL
    if code == "USD":
        return FOREIGN_CURRENCY_LABEL
    return code


def format_exchange_rate(rate: float | None, currency_code: str | None) -> str:
    """Exchange rate for display; empty when absent or a PEN 1.0 placeholder."""
    if rate is None:
        return ""
    if currency_code == "PEN" and rate == 1.0:
        return ""
    return format_amount(rate)


def parse_issue_date(text: str | None) -> datetime:
    """Parse ``dd/mm/yyyy``; unparsable dates sort as the epoch."""
    if not text:
        return _EPOCH
    try:
        return datetime.strptime(text.strip(), "%d/%m/%Y")
    except ValueError:
        return _EPOCH


def sort_by_issue_date(invoices: list) -> list:
    """Stable ascending sort on parsed issue date."""
    return sorted(invoices, key=lambda invoice: parse_issue_date(invoice.issue_date))
