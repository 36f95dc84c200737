"""Services for the medication tracker."""

from .ledger import DoseHistoryLedger
from .notification_manager import (
    InMemoryNotificationScheduler,
    NotificationScheduler,
    ReminderManager,
    configure_notifications,
)
from .reconciliation import ReconciliationEngine
from .recorder import DoseRecorder, DoseRecordResult
from .registry import MedicationRegistry, needs_refill

__all__ = [
    "MedicationRegistry",
    "needs_refill",
    "DoseHistoryLedger",
    "ReconciliationEngine",
    "DoseRecorder",
    "DoseRecordResult",
    "NotificationScheduler",
    "InMemoryNotificationScheduler",
    "ReminderManager",
    "configure_notifications",
]
