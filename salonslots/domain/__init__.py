"""
Domain layer - Pure business logic without external dependencies.
"""

from .exceptions import DataSourceError, SalonSlotsError, SlotUnavailableError
from .models import (
    Appointment,
    AppointmentStatus,
    BookedInterval,
    DayOff,
    MinuteSpan,
    WorkDays,
    WorkSchedule,
)
from .occupancy import booked_intervals_for
from .policies import CancellationFee, CancellationPolicy, evaluate_cancellation_fee
from .slot_calculator import AvailabilityCalculator, UnavailableReason

__all__ = [
    "Appointment",
    "AppointmentStatus",
    "AvailabilityCalculator",
    "BookedInterval",
    "CancellationFee",
    "CancellationPolicy",
    "DataSourceError",
    "DayOff",
    "MinuteSpan",
    "SalonSlotsError",
    "SlotUnavailableError",
    "UnavailableReason",
    "WorkDays",
    "WorkSchedule",
    "booked_intervals_for",
    "evaluate_cancellation_fee",
]
