"""
Core business logic for calculating bookable appointment slots.

This is the heart of the application - pure domain logic without any
external dependencies (no API calls, no database, no I/O). Every method is a
function of its arguments and of the ``now`` it is handed.
"""

import logging
from datetime import date, time
from enum import Enum
from typing import Iterable, List, Optional, Sequence

from pendulum import DateTime

from .models import (
    BookedInterval,
    DayOff,
    MinuteSpan,
    WorkSchedule,
    format_clock,
    parse_clock,
)

logger = logging.getLogger(__name__)

SLOT_STEP_MINUTES = 30
OCCUPIED_BLOCK_MINUTES = 30


class UnavailableReason(str, Enum):
    """Why a single slot cannot be booked."""
    PAST_DATE = "past_date"
    DAY_OFF = "day_off"
    CLOSED_DAY = "closed_day"
    INVALID_SCHEDULE = "invalid_schedule"
    INVALID_TIME = "invalid_time"
    OUTSIDE_HOURS = "outside_hours"
    DURING_BREAK = "during_break"
    SLOT_TAKEN = "slot_taken"


class AvailabilityCalculator:
    """
    Answers "is this slot free?" and "which slots are free on this date?".

    Algorithm:
    1. Walk the opening hours in fixed steps to get candidate start times
    2. Drop candidates that already passed when the date is today
    3. Drop candidates whose service span overlaps a booked interval

    The defaults reproduce the booking behaviour salons already rely on:
    a booked appointment blocks a fixed 30-minute block from its start, and
    break windows are not carved out of the candidates. ``exclude_breaks``
    and ``use_booked_duration`` switch to the stricter rules.
    """

    def __init__(
        self,
        step_minutes: int = SLOT_STEP_MINUTES,
        occupied_block_minutes: int = OCCUPIED_BLOCK_MINUTES,
        exclude_breaks: bool = False,
        use_booked_duration: bool = False,
    ):
        if step_minutes <= 0:
            raise ValueError("step_minutes must be greater than zero")
        if occupied_block_minutes <= 0:
            raise ValueError("occupied_block_minutes must be greater than zero")
        self.step_minutes = step_minutes
        self.occupied_block_minutes = occupied_block_minutes
        self.exclude_breaks = exclude_breaks
        self.use_booked_duration = use_booked_duration

    def generate_candidate_slots(
        self,
        schedule: WorkSchedule,
        day: date,
        now: DateTime,
    ) -> List[str]:
        """
        List every step between opening and closing time as ``HH:MM``.

        Args:
            schedule: Merchant or employee work schedule
            day: Target date
            now: Current time in the salon's timezone

        Returns:
            Ordered candidate start times; empty when start >= end
        """
        opening = schedule.opening_span()
        if opening is None:
            logger.debug("Schedule %s-%s has no opening hours", schedule.start_time, schedule.end_time)
            return []

        pause = schedule.break_span() if self.exclude_breaks else None
        is_today = day == now.date()
        now_minute = now.hour * 60 + now.minute

        candidates: List[str] = []
        for minute in range(opening.start, opening.end, self.step_minutes):
            # Slots already started today cannot be offered
            if is_today and minute <= now_minute:
                continue
            if pause is not None and pause.start <= minute < pause.end:
                continue
            candidates.append(format_clock(minute))

        return candidates

    def is_slot_occupied(
        self,
        candidate_start: str | time,
        candidate_duration: int,
        booked_intervals: Iterable[BookedInterval],
    ) -> bool:
        """
        Check whether ``[candidate_start, candidate_start + duration)``
        overlaps any booked interval.

        An unparsable candidate counts as occupied.
        """
        start = parse_clock(candidate_start)
        if start is None:
            logger.debug("Unparsable candidate start %r treated as occupied", candidate_start)
            return True
        end = start + candidate_duration

        for booked in booked_intervals:
            occupied = booked.span(
                block_minutes=self.occupied_block_minutes,
                use_end_time=self.use_booked_duration,
            )
            if start < occupied.end and end > occupied.start:
                return True

        return False

    def available_slots(
        self,
        schedule: WorkSchedule,
        day: date,
        booked_intervals: Iterable[BookedInterval],
        service_duration: int,
        now: DateTime,
        *,
        employee_id: Optional[str] = None,
        days_off: Sequence[DayOff] = (),
    ) -> List[str]:
        """
        Free ``HH:MM`` start times for a service of ``service_duration``.

        Past dates, non-working weekdays, malformed schedules and employee days
        off give an empty list, as does a fully booked day.
        """
        if day < now.date():
            return []
        if not schedule.works_on(day):
            return []
        if not schedule.is_well_formed():
            logger.debug("Schedule %s-%s is malformed, no slots", schedule.start_time, schedule.end_time)
            return []
        if any(day_off.matches(employee_id, day) for day_off in days_off):
            return []

        booked = list(booked_intervals)
        free: List[str] = []
        for candidate in self.generate_candidate_slots(schedule, day, now):
            if self.is_slot_occupied(candidate, service_duration, booked):
                continue
            if self.exclude_breaks and self._schedule_conflict(schedule, candidate, service_duration):
                continue
            free.append(candidate)

        return free

    def unavailability_reason(
        self,
        employee_id: Optional[str],
        day: date,
        start: str | time,
        duration: int,
        schedule: WorkSchedule,
        days_off: Sequence[DayOff],
        booked_intervals: Iterable[BookedInterval],
        now: DateTime,
    ) -> Optional[UnavailableReason]:
        """
        Return the first rule that rules out the slot, or None if it is free.
        """
        if day < now.date():
            return UnavailableReason.PAST_DATE
        if any(day_off.matches(employee_id, day) for day_off in days_off):
            return UnavailableReason.DAY_OFF
        if not schedule.works_on(day):
            return UnavailableReason.CLOSED_DAY
        if not schedule.is_well_formed():
            return UnavailableReason.INVALID_SCHEDULE
        if parse_clock(start) is None:
            return UnavailableReason.INVALID_TIME
        if self.exclude_breaks:
            conflict = self._schedule_conflict(schedule, start, duration)
            if conflict is not None:
                return conflict
        if self.is_slot_occupied(start, duration, booked_intervals):
            return UnavailableReason.SLOT_TAKEN
        return None

    def is_available(
        self,
        employee_id: Optional[str],
        day: date,
        start: str | time,
        duration: int,
        schedule: WorkSchedule,
        days_off: Sequence[DayOff],
        booked_intervals: Iterable[BookedInterval],
        now: DateTime,
    ) -> bool:
        """Single-slot check used when an appointment is submitted."""
        reason = self.unavailability_reason(
            employee_id, day, start, duration, schedule, days_off, booked_intervals, now
        )
        if reason is not None:
            logger.debug("Slot %s on %s unavailable: %s", start, day, reason.value)
        return reason is None

    def _schedule_conflict(
        self,
        schedule: WorkSchedule,
        start: str | time,
        duration: int,
    ) -> Optional[UnavailableReason]:
        """Check the service span against opening hours and the break window."""
        opening = schedule.opening_span()
        begin = parse_clock(start)
        if opening is None or begin is None:
            return UnavailableReason.INVALID_SCHEDULE

        if duration <= 0:
            requested = MinuteSpan(start=begin, end=begin + 1)
        else:
            requested = MinuteSpan(start=begin, end=begin + duration)
        if not opening.contains(requested):
            return UnavailableReason.OUTSIDE_HOURS

        pause = schedule.break_span()
        if pause is not None and requested.overlaps(pause):
            return UnavailableReason.DURING_BREAK
        return None
