"""
Domain-specific exception hierarchy for the availability engine.
"""


class AvailabilityError(Exception):
    """Base class for all application-level errors."""


class InvalidIntervalError(AvailabilityError, ValueError):
    """Raised when an interval or window ends before it starts."""


class PersistenceError(AvailabilityError):
    """Raised when availability blocks cannot be written to the store."""


class CalendarStoreError(AvailabilityError):
    """Raised when busy times or events cannot be fetched or parsed."""
