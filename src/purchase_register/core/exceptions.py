"""
Domain exceptions for the purchase register.

Provides specific exception types for different error scenarios.
"""

from typing import Any


class PurchaseRegisterError(Exception):
    """Base exception for all purchase register errors."""

    def __init__(
        self,
        message: str,
        code: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code or self.__class__.__name__
        self.details = details or {}

    def to_dict(self) -> dict:
        """Convert to dictionary for API responses."""
        return {
            "error": self.code,
            "message": self.message,
            "details": self.details,
        }


# Precondition Exceptions
class PreconditionError(PurchaseRegisterError):
    """An operation was refused before touching any state."""

    pass


class MissingCredentialsError(PreconditionError):
    """SUNAT credentials are not configured."""

    def __init__(self, missing: list[str] | None = None):
        super().__init__(
            "SUNAT credentials are not configured",
            code="MISSING_CREDENTIALS",
            details={"missing": missing or []},
        )


class InvoiceNotFoundError(PreconditionError):
    """Invoice not found in the active collection."""

    def __init__(self, invoice_id: int, kind: str | None = None):
        super().__init__(
            f"Invoice not found: {invoice_id}",
            code="INVOICE_NOT_FOUND",
            details={"invoice_id": invoice_id, "kind": kind},
        )


class AlreadyProcessingError(PreconditionError):
    """A detail job is already running for the invoice."""

    def __init__(self, invoice_id: int):
        super().__init__(
            "Invoice is already being processed",
            code="ALREADY_PROCESSING",
            details={"invoice_id": invoice_id},
        )


class InvoiceNotDetailedError(PreconditionError):
    """Only invoices with extracted detail can be registered."""

    def __init__(self, invoice_id: int, status: str):
        super().__init__(
            f"Invoice {invoice_id} is not ready for registration (status: {status})",
            code="INVOICE_NOT_DETAILED",
            details={"invoice_id": invoice_id, "status": status},
        )


# Gateway Exceptions
class GatewayError(PurchaseRegisterError):
    """Base exception for remote gateway operations."""

    pass


class GatewayTransportError(GatewayError):
    """Network failure or unexpected HTTP status talking to the remote API."""

    def __init__(self, operation: str, reason: str, status_code: int | None = None):
        super().__init__(
            f"Remote call '{operation}' failed: {reason}",
            code="GATEWAY_TRANSPORT_ERROR",
            details={"operation": operation, "reason": reason, "status_code": status_code},
        )


# Detail Job Exceptions
class DetailJobError(PurchaseRegisterError):
    """Base exception for detail extraction jobs."""

    pass


class JobQueueError(DetailJobError):
    """The server refused to queue a detail job."""

    def __init__(self, invoice_id: int, reason: str):
        super().__init__(
            f"Could not queue detail job: {reason}",
            code="JOB_QUEUE_ERROR",
            details={"invoice_id": invoice_id, "reason": reason},
        )


class JobFailedError(DetailJobError):
    """The server reported that detail extraction failed."""

    def __init__(self, job_id: str, reason: str | None):
        super().__init__(
            f"Detail extraction failed: {reason}",
            code="JOB_FAILED",
            details={"job_id": job_id, "reason": reason},
        )


class JobTimeoutError(DetailJobError):
    """Polling budget exhausted without a final job state."""

    def __init__(self, job_id: str, attempts: int):
        super().__init__(
            "Timeout: detail extraction did not complete",
            code="JOB_TIMEOUT",
            details={"job_id": job_id, "attempts": attempts},
        )


# Registration Exceptions
class RegistrationError(PurchaseRegisterError):
    """Base exception for backend registration."""

    pass


class PartialRegistrationError(RegistrationError):
    """Some invoices in a batch could not be registered."""

    def __init__(self, failed: list[str]):
        super().__init__(
            "Some invoices could not be registered",
            code="PARTIAL_REGISTRATION",
            details={"failed": failed},
        )


class ConfigurationError(PurchaseRegisterError):
    """Configuration error."""

    pass
