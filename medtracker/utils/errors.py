"""Error types for the medication tracker."""


class MedTrackerError(Exception):
    """Base class for all medication tracker errors."""


class PersistenceError(MedTrackerError):
    """Raised when the durable store cannot be read or written.

    The operation that raised it is aborted; nothing in memory is kept.
    """

    def __init__(self, message: str, key: str = None):
        super().__init__(message)
        self.key = key


class NotFoundError(MedTrackerError, ValueError):
    """Raised when a medication id is absent from the registry."""

    def __init__(self, medication_id: str):
        super().__init__(f"Medication {medication_id} not found")
        self.medication_id = medication_id


class MalformedScheduleError(MedTrackerError, ValueError):
    """Raised when a scheduled clock-time string cannot be parsed."""

    def __init__(self, value):
        super().__init__(f"Invalid scheduled time: {value!r} (expected HH:MM)")
        self.value = value


__all__ = [
    "MedTrackerError",
    "PersistenceError",
    "NotFoundError",
    "MalformedScheduleError",
]
