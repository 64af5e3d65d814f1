"""
Service layer helpers that orchestrate adapters and domain logic.
"""

from .availability import AvailabilityService, BookingContext, SalonDataSourceProtocol

__all__ = ["AvailabilityService", "BookingContext", "SalonDataSourceProtocol"]
