"""
Exception hierarchy for boundary failures.

Business outcomes (conflicts, duplicates, missing teachers) are reported as
typed results, never raised. These exceptions only cover I/O at the edges.
"""


class SlotBookError(Exception):
    """Base class for all application-level errors."""


class CatalogError(SlotBookError):
    """Raised when the catalog cannot be read, fetched or parsed."""
