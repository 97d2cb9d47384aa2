"""
Service layer helpers that orchestrate adapters and domain logic.
"""

from .availability_service import (
    AvailabilityService,
    BusyIntervalSource,
    CalendarStoreProtocol,
)

__all__ = ["AvailabilityService", "BusyIntervalSource", "CalendarStoreProtocol"]
