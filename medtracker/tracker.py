"""Medication tracker facade wiring storage and services together."""

from dataclasses import dataclass, replace
from datetime import date, datetime
from typing import Optional

from loguru import logger

from medtracker.config import Settings
from medtracker.data.models import AS_NEEDED, DoseHistoryEntry, Medication
from medtracker.data.storage import (
    DOSE_HISTORY_KEY,
    MEDICATIONS_KEY,
    JsonCollection,
    JsonFileStore,
    KeyValueStore,
    SqliteStore,
)
from medtracker.services.ledger import DoseHistoryLedger
from medtracker.services.notification_manager import (
    InMemoryNotificationScheduler,
    NotificationScheduler,
    ReminderManager,
)
from medtracker.services.reconciliation import ReconciliationEngine
from medtracker.services.recorder import DoseRecorder, DoseRecordResult
from medtracker.services.registry import MedicationRegistry
from medtracker.utils import Clock, log_operation
from medtracker.utils.calendar import (
    is_medication_active_on_date,
    is_medication_due,
    next_dose_instant,
)


@dataclass
class DoseSlot:
    """One dose of one medication on one day.

    Attributes:
        medication: Medication the dose belongs to
        scheduled_time: HH:MM time, or "" for an as-needed medication
        due: Whether the dose's time has been reached
        entry: Ledger entry recorded for the dose, if any
    """

    medication: Medication
    scheduled_time: str
    due: bool
    entry: Optional[DoseHistoryEntry] = None

    @property
    def status(self) -> str:
        if self.entry is not None:
            return "taken" if self.entry.taken else "missed"
        return "due" if self.due else "upcoming"


class MedicationTracker:
    """Entry point for consumers of the dose tracking engine."""

    def __init__(
        self,
        store: KeyValueStore,
        scheduler: NotificationScheduler,
        clock: Optional[Clock] = None,
    ):
        self.store = store
        self.clock = clock or Clock()

        medications = JsonCollection(store, MEDICATIONS_KEY, Medication.from_dict, Medication.to_dict)
        history = JsonCollection(store, DOSE_HISTORY_KEY, DoseHistoryEntry.from_dict, DoseHistoryEntry.to_dict)

        self.registry = MedicationRegistry(medications, self.clock)
        self.ledger = DoseHistoryLedger(history, self.clock)
        self.reconciliation = ReconciliationEngine(self.registry, self.ledger, self.clock)
        self.recorder = DoseRecorder(self.registry, self.ledger, self.clock)
        self.reminders = ReminderManager(scheduler)

    async def add_medication(self, **fields) -> Medication:
        """Add a medication and schedule its reminders.

        Accepts the keyword arguments of MedicationRegistry.add_medication.
        """
        medication = await self.registry.add_medication(**fields)
        await self.reminders.schedule_medication_reminder(medication)
        await self.reminders.schedule_refill_reminder(medication)
        return medication

    async def update_medication(self, medication: Medication) -> bool:
        updated = await self.registry.update_medication(medication)
        if updated:
            await self.reminders.update_medication_reminders(medication)
        return updated

    async def delete_medication(self, medication_id: str) -> bool:
        await self.reminders.cancel_medication_reminders(medication_id)
        return await self.registry.delete_medication(medication_id)

    async def refill_medication(self, medication_id: str, quantity: Optional[int] = None) -> Medication:
        medication = await self.registry.refill_medication(medication_id, quantity)
        await self.reminders.update_medication_reminders(medication)
        return medication

    async def sync_missed_doses(self) -> list[DoseHistoryEntry]:
        return await self.reconciliation.sync_missed_doses()

    async def record_dose(
        self,
        medication_id: str,
        scheduled_time: str,
        taken: bool,
        timestamp: Optional[datetime] = None,
    ) -> DoseRecordResult:
        """Record a dose and raise a refill alert if supply ran low."""
        result = await self.recorder.record_dose(medication_id, scheduled_time, taken, timestamp)
        if result.supply_decremented and result.medication is not None:
            await self.reminders.schedule_refill_reminder(result.medication)
        return result

    async def get_history(self, status: str = "all") -> list[tuple[date, list[DoseHistoryEntry]]]:
        """Reconcile, then return the ledger grouped by day, newest first."""
        await self.sync_missed_doses()
        history = self.ledger.filter_history(await self.ledger.get_history(), status)
        return self.ledger.group_by_date(history)

    async def get_daily_schedule(self, day: Optional[date] = None) -> list[DoseSlot]:
        """Build the list of doses for a day.

        Args:
            day: Calendar day (default: today)

        Returns:
            DoseSlot per scheduled time of every medication active that day,
            ordered by time; as-needed medications get one slot each
        """
        now = self.clock.now()
        day = day or now.date()
        medications = await self.registry.get_medications()
        history = await self.ledger.get_history()

        slots = []
        for medication in medications:
            if not is_medication_active_on_date(medication, day, self.clock.tz):
                continue
            for scheduled_time in medication.times or [AS_NEEDED]:
                # Each slot is due on its own time, not the medication's earliest
                single = replace(medication, times=[scheduled_time] if scheduled_time else [])
                due = is_medication_due(single, day, now)
                entry = self.ledger.find_entry(history, medication.id, scheduled_time, day)
                slots.append(DoseSlot(medication, scheduled_time, due, entry))

        slots.sort(key=lambda slot: (slot.scheduled_time, slot.medication.name))
        return slots

    async def get_next_doses(self) -> list[tuple[Medication, datetime]]:
        """Get the next upcoming dose of each medication, soonest first."""
        now = self.clock.now()
        upcoming = []
        for medication in await self.registry.get_medications():
            instant = next_dose_instant(medication, now)
            if instant is not None:
                upcoming.append((medication, instant))
        upcoming.sort(key=lambda item: item[1])
        return upcoming

    async def get_refill_alerts(self) -> list[Medication]:
        return await self.registry.get_refill_alerts()

    async def clear_all_data(self) -> None:
        """Cancel every alert and remove both collections."""
        await self.reminders.cancel_all()
        await self.store.remove_all([MEDICATIONS_KEY, DOSE_HISTORY_KEY])
        logger.warning("All medication data cleared")
        log_operation("all_data_cleared")


async def create_store(settings: Settings) -> KeyValueStore:
    """Create the key-value store selected by settings."""
    if settings.storage_backend == "sqlite":
        store = SqliteStore(settings.database_path)
        await store.init()
        logger.info(f"Using SQLite store: {settings.database_path}")
        return store

    logger.info(f"Using JSON file store: {settings.data_dir}")
    return JsonFileStore(str(settings.data_dir))


async def create_tracker(
    settings: Settings,
    scheduler: Optional[NotificationScheduler] = None,
    clock: Optional[Clock] = None,
) -> MedicationTracker:
    """Create a tracker from settings.

    Notifications must already be configured when no scheduler is given.
    """
    store = await create_store(settings)
    scheduler = scheduler or InMemoryNotificationScheduler()
    clock = clock or Clock.from_offset(settings.timezone_offset)
    return MedicationTracker(store, scheduler, clock)
