"""Shared fixtures for tests."""

import tempfile
from datetime import datetime, timezone
from pathlib import Path

import pytest

from medtracker.data.models import DoseHistoryEntry, Medication
from medtracker.data.storage import (
    DOSE_HISTORY_KEY,
    MEDICATIONS_KEY,
    JsonCollection,
    JsonFileStore,
)
from medtracker.services.ledger import DoseHistoryLedger
from medtracker.services.notification_manager import (
    InMemoryNotificationScheduler,
    NotificationPresentation,
    ReminderManager,
)
from medtracker.services.reconciliation import ReconciliationEngine
from medtracker.services.recorder import DoseRecorder
from medtracker.services.registry import MedicationRegistry
from medtracker.tracker import MedicationTracker
from medtracker.utils import FixedClock

# Noon UTC on the "today" used across tests
NOW = datetime(2024, 1, 10, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def temp_data_dir():
    """Create temporary directory for test data.

    Yields:
        Path: Path to temporary directory
    """
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def store(temp_data_dir):
    """Create JsonFileStore with temp directory."""
    return JsonFileStore(data_dir=str(temp_data_dir))


@pytest.fixture
def clock():
    """Create FixedClock frozen at NOW (UTC)."""
    return FixedClock(NOW)


@pytest.fixture
def medications_collection(store):
    return JsonCollection(store, MEDICATIONS_KEY, Medication.from_dict, Medication.to_dict)


@pytest.fixture
def history_collection(store):
    return JsonCollection(store, DOSE_HISTORY_KEY, DoseHistoryEntry.from_dict, DoseHistoryEntry.to_dict)


@pytest.fixture
def registry(medications_collection, clock):
    """Create MedicationRegistry."""
    return MedicationRegistry(medications_collection, clock)


@pytest.fixture
def ledger(history_collection, clock):
    """Create DoseHistoryLedger."""
    return DoseHistoryLedger(history_collection, clock)


@pytest.fixture
def reconciliation_engine(registry, ledger, clock):
    """Create ReconciliationEngine."""
    return ReconciliationEngine(registry, ledger, clock)


@pytest.fixture
def recorder(registry, ledger, clock):
    """Create DoseRecorder."""
    return DoseRecorder(registry, ledger, clock)


@pytest.fixture
def notification_scheduler():
    """Create InMemoryNotificationScheduler with default presentation."""
    return InMemoryNotificationScheduler(NotificationPresentation())


@pytest.fixture
def reminder_manager(notification_scheduler):
    return ReminderManager(notification_scheduler)


@pytest.fixture
def tracker(store, notification_scheduler, clock):
    """Create MedicationTracker wired to the temp store and fixed clock."""
    return MedicationTracker(store, notification_scheduler, clock)


@pytest.fixture
def add_medication(registry):
    """Factory adding a medication with sensible defaults.

    Returns:
        Async callable accepting MedicationRegistry.add_medication overrides
    """
    async def _add(**overrides):
        fields = {
            "name": "Aspirin",
            "dosage": "100 mg",
            "times": ["09:00"],
            "start_date": "2024-01-10",
            "duration": "Ongoing",
        }
        fields.update(overrides)
        return await registry.add_medication(**fields)

    return _add
