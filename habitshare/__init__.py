"""Recurrence, adherence-streak and shared-item visibility core."""

__version__ = "0.1.0"
