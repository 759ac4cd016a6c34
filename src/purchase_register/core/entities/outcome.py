"""
Operation outcomes handed back to the presentation layer.

Core services never raise across their boundary for expected failures;
they return one of these values instead.
"""

from dataclasses import dataclass, field
from enum import Enum

from purchase_register.core.entities.invoice import CollectionKind, LineItem


@dataclass(frozen=True)
class OperationResult:
    """Coarse success flag plus an optional user-facing message."""

    success: bool
    message: str | None = None
    error_code: str | None = None

    @classmethod
    def ok(cls, message: str | None = None) -> "OperationResult":
        return cls(success=True, message=message)

    @classmethod
    def fail(cls, message: str, error_code: str | None = None) -> "OperationResult":
        return cls(success=False, message=message, error_code=error_code)


class DetailOutcomeKind(str, Enum):
    """How a detail request (or its polling loop) ended."""

    QUEUED = "queued"
    ALREADY_DETAILED = "already_detailed"
    COMPLETED = "completed"
    REJECTED = "rejected"
    FAILED = "failed"
    TIMED_OUT = "timed_out"

    @property
    def is_success(self) -> bool:
        return self in (
            DetailOutcomeKind.QUEUED,
            DetailOutcomeKind.ALREADY_DETAILED,
            DetailOutcomeKind.COMPLETED,
        )


@dataclass(frozen=True)
class DetailOutcome:
    """Tagged result of a detail extraction step for one invoice."""

    kind: DetailOutcomeKind
    collection: CollectionKind
    invoice_id: int
    message: str | None = None
    job_id: str | None = None
    error_code: str | None = None
    line_items: tuple[LineItem, ...] = field(default_factory=tuple)

    @property
    def success(self) -> bool:
        return self.kind.is_success

    def as_result(self) -> OperationResult:
        return OperationResult(
            success=self.success,
            message=self.message,
            error_code=self.error_code,
        )
