"""Missed-dose reconciliation for the medication tracker."""

from datetime import timedelta
from typing import Optional

from loguru import logger

from medtracker.data.models import DoseHistoryEntry, Medication, new_id
from medtracker.services.ledger import DoseHistoryLedger
from medtracker.services.registry import MedicationRegistry
from medtracker.utils import Clock, MalformedScheduleError, log_operation
from medtracker.utils.calendar import parse_clock_time, parse_duration_days, scheduled_instant


class ReconciliationEngine:
    """Back-fills the ledger with explicit missed-dose entries.

    After a pass, every scheduled dose instant that has already elapsed has
    an entry in the ledger, even for days on which nobody looked at the
    schedule. Doses without an entry get one with taken=False, stamped with
    the scheduled instant.
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
        logger.debug("ReconciliationEngine initialized")

    async def sync_missed_doses(self) -> list[DoseHistoryEntry]:
        """Record a missed entry for every elapsed dose that has none.

        Safe to call as often as needed: when nothing has elapsed since the
        last pass, no entry is added and nothing is written.

        Returns:
            Entries that were added

        Raises:
            PersistenceError: If the store cannot be read or written
        """
        now = self.clock.now()
        medications = await self.registry.get_medications()

        async with self.ledger.locked():
            history = await self.ledger.get_history()
            added: list[DoseHistoryEntry] = []

            for medication in medications:
                # As-needed medications cannot be automatically missed
                if medication.is_as_needed:
                    continue
                added.extend(self._missing_entries(medication, history, now))

            if not added:
                logger.debug("No missed doses to record")
                return []

            await self.ledger.save_history(history)

        logger.info(f"Recorded {len(added)} missed dose(s)")
        log_operation("missed_doses_synced", added_count=len(added))
        return added

    def _missing_entries(self, medication: Medication, history: list, now) -> list[DoseHistoryEntry]:
        """Append missed entries for one medication to history and return them."""
        tz = self.clock.tz
        start = medication.start_day(tz)
        elapsed_days = (now.date() - start).days + 1
        if elapsed_days <= 0:
            return []

        duration_days = parse_duration_days(medication.duration)
        total_days = elapsed_days if duration_days is None else min(duration_days, elapsed_days)

        clock_times = []
        for value in medication.times:
            try:
                clock_times.append((value, parse_clock_time(value)))
            except MalformedScheduleError as e:
                logger.warning(f"Skipping time for medication {medication.id}: {e}")

        added = []
        for offset in range(total_days):
            day = start + timedelta(days=offset)
            for value, clock_time in clock_times:
                scheduled = scheduled_instant(day, clock_time, tz)
                if scheduled > now:
                    continue

                if self.ledger.find_entry(history, medication.id, value, day) is not None:
                    continue

                entry = DoseHistoryEntry(
                    id=new_id(),
                    medication_id=medication.id,
                    scheduled_time=value,
                    timestamp=scheduled,
                    taken=False,
                )
                history.append(entry)
                added.append(entry)
                logger.debug(
                    f"Missed dose for medication {medication.id}: "
                    f"{day.isoformat()} {value}"
                )

        return added
