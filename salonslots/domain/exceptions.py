"""
Domain-specific exception hierarchy for the salon slots application.
"""


class SalonSlotsError(Exception):
    """Base class for all application-level errors."""


class DataSourceError(SalonSlotsError):
    """Raised when salon data cannot be loaded or parsed."""


class SlotUnavailableError(SalonSlotsError):
    """Raised when a requested appointment slot cannot be booked."""

    def __init__(self, reason, message: str | None = None):
        self.reason = reason
        super().__init__(message or f"Slot unavailable: {reason.value}")
