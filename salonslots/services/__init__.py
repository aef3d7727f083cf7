"""
Service layer helpers that orchestrate adapters and domain logic.
"""

from .availability import AvailabilityService, BookingSourceProtocol, CalendarClientProtocol

__all__ = ["AvailabilityService", "BookingSourceProtocol", "CalendarClientProtocol"]
