"""Medication registry for the medication tracker."""

import random
from datetime import date, datetime
from typing import Optional, Union

from loguru import logger

from medtracker.data.models import ONGOING_DURATION, Medication, new_id
from medtracker.data.storage import JsonCollection
from medtracker.utils import Clock, NotFoundError, log_operation
from medtracker.utils.calendar import parse_clock_time

COLORS = ["#4CAF50", "#2196F3", "#FF9800", "#E91E63", "#9C27B0"]


def needs_refill(medication: Medication) -> bool:
    """Check if a medication's supply is low enough to need a refill.

    Derived on every call from the current supply; never stored.

    Args:
        medication: Medication instance

    Returns:
        True if refill reminders are on and supply is at or below refill_at
    """
    return medication.refill_reminder and medication.current_supply <= medication.refill_at


def validate_medication(medication: Medication, creating: bool = False) -> None:
    """Validate medication fields before they are persisted.

    The refill threshold is checked against supply only when creating.

    Raises:
        ValueError: If a field is invalid
        MalformedScheduleError: If a scheduled time is not HH:MM
    """
    if not medication.name.strip():
        raise ValueError("Medication name cannot be empty")
    if not medication.dosage.strip():
        raise ValueError("Dosage cannot be empty")
    for value in medication.times:
        parse_clock_time(value)
    if len(set(medication.times)) != len(medication.times):
        raise ValueError(f"Duplicate scheduled times: {medication.times}")
    if medication.current_supply < 0:
        raise ValueError("Current supply cannot be negative")
    if creating and medication.refill_reminder and medication.refill_at >= medication.current_supply:
        raise ValueError("Refill threshold must be less than current supply")


class MedicationRegistry:
    """Manager for medication definitions.

    Handles all operations on the medications collection:
    - Adding, updating and deleting medications
    - Supply decrement after a dose is taken
    - Refills and refill alerts
    """

    def __init__(self, collection: JsonCollection[Medication], clock: Optional[Clock] = None):
        """Initialize medication registry.

        Args:
            collection: Medications collection
            clock: Clock used for start and refill dates
        """
        self.collection = collection
        self.clock = clock or Clock()
        logger.debug("MedicationRegistry initialized")

    async def get_medications(self) -> list[Medication]:
        """Get all medications in stored order."""
        return await self.collection.load()

    async def get_medication(self, medication_id: str) -> Optional[Medication]:
        """Get medication by ID.

        Args:
            medication_id: Medication ID

        Returns:
            Medication instance or None if not found
        """
        for med in await self.collection.load():
            if med.id == medication_id:
                return med
        return None

    async def require_medication(self, medication_id: str) -> Medication:
        """Get medication by ID, failing if it does not exist.

        Raises:
            NotFoundError: If medication not found
        """
        medication = await self.get_medication(medication_id)
        if medication is None:
            logger.error(f"Medication {medication_id} not found")
            raise NotFoundError(medication_id)
        return medication

    async def add_medication(
        self,
        name: str,
        dosage: str,
        times: list[str],
        start_date: Optional[Union[date, datetime, str]] = None,
        duration: str = ONGOING_DURATION,
        current_supply: int = 0,
        refill_at: int = 0,
        refill_reminder: bool = False,
        reminder_enabled: bool = True,
        color: Optional[str] = None,
    ) -> Medication:
        """Add new medication.

        Args:
            name: Medication name
            dosage: Dosage information
            times: Daily times in "HH:MM" format (empty for as-needed)
            start_date: First day of the course (default: today)
            duration: Course length such as "7 days", or "Ongoing"
            current_supply: Doses on hand
            refill_at: Refill threshold
            refill_reminder: Whether refill alerts are enabled
            reminder_enabled: Whether dose reminders are enabled
            color: Display color (default: random palette color)

        Returns:
            Created Medication instance

        Raises:
            ValueError: If any field is invalid
        """
        if start_date is None:
            start_date = self.clock.today()
        if not isinstance(start_date, str):
            start_date = start_date.isoformat()

        medication = Medication(
            id=new_id(),
            name=name.strip(),
            dosage=dosage.strip(),
            times=list(times),
            start_date=start_date,
            duration=duration,
            current_supply=current_supply,
            total_supply=current_supply,
            refill_at=refill_at,
            refill_reminder=refill_reminder,
            reminder_enabled=reminder_enabled,
            color=color or random.choice(COLORS),
        )
        validate_medication(medication, creating=True)

        async with self.collection.locked():
            medications = await self.collection.load()
            medications.append(medication)
            await self.collection.save(medications)

        logger.info(
            f"Added medication {medication.id}: {medication.name} "
            f"at {', '.join(medication.times) or 'as needed'} ({medication.dosage})"
        )
        log_operation("medication_added", medication_id=medication.id)
        return medication

    async def update_medication(self, updated: Medication) -> bool:
        """Replace a stored medication with an updated copy.

        Args:
            updated: Medication with the same ID as a stored one

        Returns:
            True if the medication was updated, False if not found

        Raises:
            ValueError: If any field is invalid
        """
        validate_medication(updated)

        async with self.collection.locked():
            medications = await self.collection.load()
            for i, med in enumerate(medications):
                if med.id == updated.id:
                    medications[i] = updated
                    await self.collection.save(medications)
                    logger.info(f"Updated medication {updated.id}: {updated.name}")
                    return True

        logger.warning(f"Medication {updated.id} not found for update")
        return False

    async def delete_medication(self, medication_id: str) -> bool:
        """Delete medication by ID.

        Dose history entries for the medication are kept.

        Returns:
            True if medication was removed, False if not found
        """
        async with self.collection.locked():
            medications = await self.collection.load()
            remaining = [med for med in medications if med.id != medication_id]
            if len(remaining) == len(medications):
                logger.warning(f"Medication {medication_id} not found for deletion")
                return False
            await self.collection.save(remaining)

        logger.info(f"Deleted medication {medication_id}")
        log_operation("medication_deleted", medication_id=medication_id)
        return True

    async def decrement_supply(self, medication_id: str) -> Optional[Medication]:
        """Take one dose out of a medication's supply.

        Supply never goes below zero: when it is already zero nothing is
        written.

        Args:
            medication_id: Medication ID

        Returns:
            Updated Medication instance, or None if the medication was not
            found or had no supply left
        """
        async with self.collection.locked():
            medications = await self.collection.load()
            medication = next((m for m in medications if m.id == medication_id), None)

            if medication is None:
                logger.warning(
                    f"Medication {medication_id} not found, supply update skipped"
                )
                return None

            if medication.current_supply <= 0:
                logger.debug(f"Supply already empty for medication {medication_id}")
                return None

            medication.current_supply -= 1
            await self.collection.save(medications)

        log_operation(
            "supply_decremented",
            medication_id=medication_id,
            current_supply=medication.current_supply,
        )
        return medication

    async def refill_medication(
        self,
        medication_id: str,
        quantity: Optional[int] = None,
    ) -> Medication:
        """Record a refill.

        Args:
            medication_id: Medication ID
            quantity: New supply on hand (default: last total supply)

        Returns:
            Updated Medication instance

        Raises:
            NotFoundError: If medication not found
            ValueError: If quantity is negative
        """
        if quantity is not None and quantity < 0:
            raise ValueError("Refill quantity cannot be negative")

        async with self.collection.locked():
            medications = await self.collection.load()
            medication = next((m for m in medications if m.id == medication_id), None)
            if medication is None:
                raise NotFoundError(medication_id)

            if quantity is not None:
                medication.total_supply = quantity
            medication.current_supply = medication.total_supply
            medication.last_refill_date = self.clock.now().isoformat()
            await self.collection.save(medications)

        logger.info(
            f"Refilled medication {medication_id}: supply now {medication.current_supply}"
        )
        return medication

    async def get_refill_alerts(self) -> list[Medication]:
        """Get medications that need a refill right now."""
        return [med for med in await self.collection.load() if needs_refill(med)]
