"""
Application services for answering booking availability questions.

The service coordinates fetching schedules, days off and appointments via a
data source adapter and delegates the actual availability calculation to the
domain-level ``AvailabilityCalculator``. The data source is a simple protocol
so the JSON adapter, a database adapter or a test stub can be plugged in.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, time
from typing import List, Optional, Protocol

import pendulum
from pendulum import DateTime

from ..domain.exceptions import SlotUnavailableError
from ..domain.models import Appointment, BookedInterval, DayOff, WorkSchedule
from ..domain.occupancy import PENDING_GRACE_MINUTES, booked_intervals_for, is_specific_employee
from ..domain.slot_calculator import AvailabilityCalculator, UnavailableReason

logger = logging.getLogger(__name__)


class SalonDataSourceProtocol(Protocol):
    """Protocol describing the data access needed by the service."""

    async def get_merchant_schedule(self, merchant_id: str) -> Optional[WorkSchedule]:
        """Return the merchant's schedule, or None if unknown."""

    async def get_employee_schedule(self, merchant_id: str, employee_id: str) -> Optional[WorkSchedule]:
        """Return the own schedule of an active employee of the merchant, or None."""

    async def is_employee_active(self, merchant_id: str, employee_id: str) -> bool:
        """Return True if the employee works for the merchant and takes bookings."""

    async def get_days_off(self, employee_id: str) -> List[DayOff]:
        """Return every day off recorded for the employee."""

    async def get_appointments(self, merchant_id: str, day: date) -> List[Appointment]:
        """Return the merchant's appointments on the given date."""


@dataclass
class BookingContext:
    """Snapshot of everything the calculator reads for one request."""
    schedule: WorkSchedule
    days_off: List[DayOff]
    booked_intervals: List[BookedInterval]


class AvailabilityService:
    """
    Orchestrates data retrieval and availability calculation.

    Unknown merchants and inactive employees degrade to "no slots" or
    "unavailable" rather than raising.
    """

    def __init__(
        self,
        data_source: SalonDataSourceProtocol,
        calculator: AvailabilityCalculator,
        timezone: str = "America/Sao_Paulo",
        pending_grace_minutes: int = PENDING_GRACE_MINUTES,
    ) -> None:
        self._data_source = data_source
        self._calculator = calculator
        self._timezone = timezone
        self._pending_grace_minutes = pending_grace_minutes

    def now(self) -> DateTime:
        return pendulum.now(self._timezone)

    async def list_available_slots(
        self,
        *,
        merchant_id: str,
        day: date,
        service_duration: int,
        employee_id: Optional[str] = None,
        now: Optional[DateTime] = None,
    ) -> List[str]:
        """Free ``HH:MM`` start times for the merchant, optionally one employee."""
        now = now or self.now()
        context = await self.load_context(
            merchant_id=merchant_id,
            day=day,
            employee_id=employee_id,
            now=now,
        )
        if context is None:
            return []

        return self._calculator.available_slots(
            context.schedule,
            day,
            context.booked_intervals,
            service_duration,
            now,
            employee_id=employee_id if is_specific_employee(employee_id) else None,
            days_off=context.days_off,
        )

    async def find_unavailability(
        self,
        *,
        merchant_id: str,
        employee_id: Optional[str],
        day: date,
        start: str | time,
        duration: int,
        now: Optional[DateTime] = None,
    ) -> Optional[UnavailableReason]:
        """Reason the slot cannot be booked, or None when it is free."""
        now = now or self.now()
        context = await self.load_context(
            merchant_id=merchant_id,
            day=day,
            employee_id=employee_id,
            now=now,
        )
        if context is None:
            return UnavailableReason.INVALID_SCHEDULE

        return self._calculator.unavailability_reason(
            employee_id if is_specific_employee(employee_id) else None,
            day,
            start,
            duration,
            context.schedule,
            context.days_off,
            context.booked_intervals,
            now,
        )

    async def check_availability(
        self,
        *,
        merchant_id: str,
        employee_id: Optional[str],
        day: date,
        start: str | time,
        duration: int,
        now: Optional[DateTime] = None,
    ) -> bool:
        """Boolean form of ``find_unavailability``."""
        reason = await self.find_unavailability(
            merchant_id=merchant_id,
            employee_id=employee_id,
            day=day,
            start=start,
            duration=duration,
            now=now,
        )
        return reason is None

    async def ensure_available(
        self,
        *,
        merchant_id: str,
        employee_id: Optional[str],
        day: date,
        start: str | time,
        duration: int,
        now: Optional[DateTime] = None,
    ) -> None:
        """
        Raise SlotUnavailableError if the slot cannot be booked.

        This is a read-time check only; the write path must still enforce
        one booking per employee and slot.
        """
        reason = await self.find_unavailability(
            merchant_id=merchant_id,
            employee_id=employee_id,
            day=day,
            start=start,
            duration=duration,
            now=now,
        )
        if reason is not None:
            raise SlotUnavailableError(reason)

    async def load_context(
        self,
        *,
        merchant_id: str,
        day: date,
        employee_id: Optional[str],
        now: DateTime,
    ) -> Optional[BookingContext]:
        """
        Gather schedule, days off and booked intervals for one request.

        The employee's own schedule wins when one is selected and on file;
        otherwise the merchant's opening hours apply.
        """
        schedule = await self._data_source.get_merchant_schedule(merchant_id)
        if schedule is None:
            logger.warning("Unknown merchant %s, no availability", merchant_id)
            return None

        days_off: List[DayOff] = []
        if is_specific_employee(employee_id):
            if not await self._data_source.is_employee_active(merchant_id, employee_id):
                logger.warning(
                    "Employee %s is unknown, inactive or not with merchant %s, no availability",
                    employee_id,
                    merchant_id,
                )
                return None
            employee_schedule = await self._data_source.get_employee_schedule(merchant_id, employee_id)
            if employee_schedule is not None:
                schedule = employee_schedule
            days_off = await self._data_source.get_days_off(employee_id)

        appointments = await self._data_source.get_appointments(merchant_id, day)
        booked = booked_intervals_for(
            appointments,
            day,
            employee_id=employee_id,
            now=now,
            pending_grace_minutes=self._pending_grace_minutes,
        )
        logger.debug(
            "Merchant %s on %s: %d appointments, %d occupying",
            merchant_id,
            day,
            len(appointments),
            len(booked),
        )
        return BookingContext(schedule=schedule, days_off=days_off, booked_intervals=booked)
