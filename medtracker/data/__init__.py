"""Data layer for the medication tracker.

This module provides data models and durable storage for the medications
and dose-history collections.
"""

from .models import AS_NEEDED, ONGOING_DURATION, DoseHistoryEntry, Medication, new_id
from .storage import (
    DOSE_HISTORY_KEY,
    MEDICATIONS_KEY,
    JsonCollection,
    JsonFileStore,
    KeyValueStore,
    SqliteStore,
)

__all__ = [
    "Medication",
    "DoseHistoryEntry",
    "AS_NEEDED",
    "ONGOING_DURATION",
    "new_id",
    "KeyValueStore",
    "JsonFileStore",
    "SqliteStore",
    "JsonCollection",
    "MEDICATIONS_KEY",
    "DOSE_HISTORY_KEY",
]
