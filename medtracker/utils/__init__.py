"""Utility functions for the medication tracker."""

from .clock import Clock, FixedClock, local_timezone, parse_timezone_offset
from .errors import (
    MalformedScheduleError,
    MedTrackerError,
    NotFoundError,
    PersistenceError,
)
from .logger import log_operation, logger, setup_logger

__all__ = [
    # Clock utilities
    "Clock",
    "FixedClock",
    "local_timezone",
    "parse_timezone_offset",
    # Errors
    "MedTrackerError",
    "PersistenceError",
    "NotFoundError",
    "MalformedScheduleError",
    # Logger utilities
    "setup_logger",
    "log_operation",
    "logger",
]
