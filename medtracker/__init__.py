"""Medication dose scheduling and adherence tracking."""

__version__ = "0.1.0"
