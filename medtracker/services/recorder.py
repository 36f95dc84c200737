"""Dose recording for the medication tracker."""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from loguru import logger

from medtracker.data.models import AS_NEEDED, DoseHistoryEntry, Medication, new_id
from medtracker.services.ledger import DoseHistoryLedger
from medtracker.services.registry import MedicationRegistry
from medtracker.utils import Clock, log_operation


@dataclass
class DoseRecordResult:
    """Outcome of a take/skip action.

    Attributes:
        entry: Ledger entry that was created or updated
        supply_decremented: Whether one dose was taken out of supply
        medication: Medication after the supply update, if one happened
    """

    entry: DoseHistoryEntry
    supply_decremented: bool = False
    medication: Optional[Medication] = None


class DoseRecorder:
    """Applies take/skip actions to the ledger and medication supply.

    Recording a scheduled dose is exactly-once per natural key: marking the
    same dose taken twice updates one entry and takes one dose out of supply.
    """

    def __init__(
        self,
        registry: MedicationRegistry,
        ledger: DoseHistoryLedger,
        clock: Optional[Clock] = None,
    ):
        self.registry = registry
        self.ledger = ledger
        self.clock = clock or Clock()
        logger.debug("DoseRecorder initialized")

    async def record_dose(
        self,
        medication_id: str,
        scheduled_time: str,
        taken: bool,
        timestamp: Optional[datetime] = None,
    ) -> DoseRecordResult:
        """Record a dose as taken or not taken.

        Supply is decremented only when the dose goes from not taken to
        taken. Marking a taken dose as not taken does not restore supply.

        Args:
            medication_id: Medication ID
            scheduled_time: Scheduled HH:MM time, or "" for an as-needed dose
            taken: Whether the dose was taken
            timestamp: Instant to attribute the recording to (default: now)

        Returns:
            DoseRecordResult describing what changed

        Raises:
            PersistenceError: If the ledger or medication cannot be saved
        """
        timestamp = self.clock.localize(timestamp) if timestamp else self.clock.now()
        day = self.clock.day_of(timestamp)

        async with self.ledger.locked():
            history = await self.ledger.get_history()

            existing = None
            if scheduled_time != AS_NEEDED:
                existing = self.ledger.find_entry(history, medication_id, scheduled_time, day)

            if existing is not None:
                decrement = taken and not existing.taken
                existing.taken = taken
                existing.timestamp = timestamp
                entry = existing
            else:
                entry = DoseHistoryEntry(
                    id=new_id(),
                    medication_id=medication_id,
                    scheduled_time=scheduled_time,
                    timestamp=timestamp,
                    taken=taken,
                )
                history.append(entry)
                decrement = taken

            await self.ledger.save_history(history)

        logger.info(
            f"Recorded dose for medication {medication_id} at "
            f"{scheduled_time or 'as needed'} on {day.isoformat()}: "
            f"{'taken' if taken else 'not taken'}"
        )
        log_operation("dose_recorded", medication_id=medication_id, taken=taken)

        result = DoseRecordResult(entry=entry)
        if decrement:
            medication = await self.registry.decrement_supply(medication_id)
            if medication is not None:
                result.supply_decremented = True
                result.medication = medication

        return result
