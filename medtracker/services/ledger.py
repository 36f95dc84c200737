"""Dose history ledger for the medication tracker."""

from datetime import date
from typing import Iterable, Optional

from loguru import logger

from medtracker.data.models import DoseHistoryEntry
from medtracker.data.storage import JsonCollection
from medtracker.utils import Clock

HISTORY_FILTERS = ("all", "taken", "missed")


def sort_entries(history: list[DoseHistoryEntry]) -> None:
    """Sort entries in place by timestamp, oldest first."""
    history.sort(key=lambda entry: entry.timestamp)


class DoseHistoryLedger:
    """Ordered record of dose events.

    Entries are identified by their natural key: medication ID, scheduled
    time and the calendar day of the entry's timestamp. The stored ledger
    is always sorted by timestamp.
    """

    def __init__(self, collection: JsonCollection[DoseHistoryEntry], clock: Optional[Clock] = None):
        self.collection = collection
        self.clock = clock or Clock()
        logger.debug("DoseHistoryLedger initialized")

    def locked(self):
        """Hold the ledger's single-writer lock for a read-modify-write cycle."""
        return self.collection.locked()

    async def get_history(self) -> list[DoseHistoryEntry]:
        return await self.collection.load()

    async def save_history(self, history: list[DoseHistoryEntry]) -> None:
        """Sort and persist the full ledger."""
        sort_entries(history)
        await self.collection.save(history)

    async def get_todays_doses(self) -> list[DoseHistoryEntry]:
        """Get entries whose timestamp falls on today."""
        today = self.clock.today()
        return [
            entry for entry in await self.collection.load()
            if self.clock.day_of(entry.timestamp) == today
        ]

    def find_entry(
        self,
        history: Iterable[DoseHistoryEntry],
        medication_id: str,
        scheduled_time: str,
        day: date,
    ) -> Optional[DoseHistoryEntry]:
        """Find the entry with the given natural key.

        Args:
            history: Ledger entries to search
            medication_id: Medication ID
            scheduled_time: Scheduled HH:MM time
            day: Calendar day in the clock's timezone

        Returns:
            Matching entry or None
        """
        for entry in history:
            if (
                entry.medication_id == medication_id
                and entry.scheduled_time == scheduled_time
                and self.clock.day_of(entry.timestamp) == day
            ):
                return entry
        return None

    def filter_history(
        self,
        history: list[DoseHistoryEntry],
        status: str = "all",
    ) -> list[DoseHistoryEntry]:
        """Filter entries by status: "all", "taken" or "missed".

        Raises:
            ValueError: If status is unknown
        """
        if status not in HISTORY_FILTERS:
            raise ValueError(f"Unknown history filter: {status}")
        if status == "taken":
            return [entry for entry in history if entry.taken]
        if status == "missed":
            return [entry for entry in history if not entry.taken]
        return list(history)

    def group_by_date(
        self,
        history: list[DoseHistoryEntry],
    ) -> list[tuple[date, list[DoseHistoryEntry]]]:
        """Group entries by calendar day, newest day first.

        Entries keep their ledger order within a day.
        """
        grouped: dict[date, list[DoseHistoryEntry]] = {}
        for entry in history:
            grouped.setdefault(self.clock.day_of(entry.timestamp), []).append(entry)
        return sorted(grouped.items(), key=lambda item: item[0], reverse=True)
