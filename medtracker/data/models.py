"""Data models for the medication tracker."""

import uuid
from dataclasses import dataclass, field
from datetime import date, datetime, timezone, tzinfo
from typing import Optional

# Duration stored for medications taken indefinitely
ONGOING_DURATION = "Ongoing"

# Scheduled-time value used for as-needed doses
AS_NEEDED = ""


def new_id() -> str:
    """Generate a collision-resistant identifier for a new record."""
    return uuid.uuid4().hex


def parse_instant(value: str) -> datetime:
    """Parse an ISO-8601 instant; naive values are read as UTC.

    Args:
        value: ISO-8601 string, "Z" suffix accepted

    Returns:
        Timezone-aware datetime
    """
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    instant = datetime.fromisoformat(value)
    if instant.tzinfo is None:
        instant = instant.replace(tzinfo=timezone.utc)
    return instant


@dataclass
class Medication:
    """Medication data model.

    Attributes:
        id: Unique identifier for the medication
        name: Name of the medication
        dosage: Dosage information (e.g., "200 mg", "2 tablets")
        times: Daily scheduled times in HH:MM format; empty means "as needed"
        start_date: ISO-8601 date or instant; only its calendar day matters
        duration: Number of days as leading integer (e.g., "7 days") or
            anything non-numeric for ongoing
        current_supply: Doses currently on hand
        total_supply: Doses on hand after the last refill
        refill_at: Supply level at or below which a refill is needed
        refill_reminder: Whether refill alerts are enabled
        reminder_enabled: Whether dose reminders are enabled
        color: Display color
        last_refill_date: ISO-8601 instant of the last refill or None
    """

    id: str
    name: str
    dosage: str
    times: list[str] = field(default_factory=list)
    start_date: str = ""
    duration: str = ONGOING_DURATION
    current_supply: int = 0
    total_supply: int = 0
    refill_at: int = 0
    refill_reminder: bool = False
    reminder_enabled: bool = True
    color: str = ""
    last_refill_date: Optional[str] = None

    @property
    def is_as_needed(self) -> bool:
        return not self.times

    def start_day(self, tz: Optional[tzinfo] = None) -> date:
        """Calendar day the medication starts on.

        Args:
            tz: Timezone used to project an instant onto a calendar day

        Returns:
            Start day (time-of-day ignored)
        """
        value = self.start_date
        if len(value) == 10:
            return date.fromisoformat(value)
        instant = parse_instant(value)
        if tz is not None:
            instant = instant.astimezone(tz)
        return instant.date()

    def to_dict(self) -> dict:
        """Convert medication to dictionary for JSON serialization.

        Returns:
            Dictionary representation of the medication
        """
        data = {
            "id": self.id,
            "name": self.name,
            "dosage": self.dosage,
            "times": list(self.times),
            "startDate": self.start_date,
            "duration": self.duration,
            "color": self.color,
            "reminderEnabled": self.reminder_enabled,
            "currentSupply": self.current_supply,
            "totalSupply": self.total_supply,
            "refillAt": self.refill_at,
            "refillReminder": self.refill_reminder,
        }
        if self.last_refill_date is not None:
            data["lastRefillDate"] = self.last_refill_date
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "Medication":
        """Create medication from dictionary.

        Args:
            data: Dictionary with medication data

        Returns:
            Medication instance
        """
        return cls(
            id=data["id"],
            name=data["name"],
            dosage=data.get("dosage", ""),
            times=list(data.get("times", [])),
            start_date=data.get("startDate", ""),
            duration=data.get("duration", ONGOING_DURATION),
            current_supply=int(data.get("currentSupply", 0)),
            total_supply=int(data.get("totalSupply", 0)),
            refill_at=int(data.get("refillAt", 0)),
            refill_reminder=bool(data.get("refillReminder", False)),
            reminder_enabled=bool(data.get("reminderEnabled", True)),
            color=data.get("color", ""),
            last_refill_date=data.get("lastRefillDate"),
        )


@dataclass
class DoseHistoryEntry:
    """Recorded dose event.

    Attributes:
        id: Unique identifier for the entry
        medication_id: ID of the medication (may no longer exist)
        scheduled_time: Scheduled HH:MM time, or "" for as-needed doses
        timestamp: Instant the entry reflects: when a dose was recorded, or
            the scheduled instant for a synthesized missed dose
        taken: Whether the dose was taken
    """

    id: str
    medication_id: str
    scheduled_time: str
    timestamp: datetime
    taken: bool

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "medicationId": self.medication_id,
            "scheduledTime": self.scheduled_time,
            "timestamp": self.timestamp.isoformat(),
            "taken": self.taken,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "DoseHistoryEntry":
        return cls(
            id=data["id"],
            medication_id=data["medicationId"],
            scheduled_time=data.get("scheduledTime") or AS_NEEDED,
            timestamp=parse_instant(data["timestamp"]),
            taken=bool(data["taken"]),
        )


__all__ = [
    "Medication",
    "DoseHistoryEntry",
    "ONGOING_DURATION",
    "AS_NEEDED",
    "new_id",
    "parse_instant",
]
