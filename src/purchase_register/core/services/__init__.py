"""
Core business logic services.

Layer-pure services that depend only on:
- purchase_register.core.entities
- purchase_register.core.interfaces
- purchase_register.core.exceptions

NO infrastructure imports. All dependencies injected via constructor.
"""

from purchase_register.core.services.auto_register import AutoRegistrationScheduler
from purchase_register.core.services.detail_jobs import DetailJobOrchestrator
from purchase_register.core.services.events import EventChannel
from purchase_register.core.services.lifecycle import (
    LifecycleService,
    can_transition,
    most_advanced,
)
from purchase_register.core.services.reconciliation import ReconciliationService
from purchase_register.core.services.registration import InvoiceRegistrationService
from purchase_register.core.services.task_registry import BackgroundTaskRegistry

__all__ = [
    # Lifecycle
    "LifecycleService",
    "can_transition",
    "most_advanced",
    # Reconciliation
    "ReconciliationService",
    # Detail jobs
    "DetailJobOrchestrator",
    # Registration
    "InvoiceRegistrationService",
    "AutoRegistrationScheduler",
    # Runtime
    "BackgroundTaskRegistry",
    "EventChannel",
]
