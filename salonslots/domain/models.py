"""
Domain models for salon schedules, bookings and minute-of-day spans.
"""

import json
import logging
from dataclasses import dataclass
from datetime import date, time
from enum import Enum
from typing import Any, Iterable, List, Mapping, Optional, Tuple

logger = logging.getLogger(__name__)

MINUTES_PER_DAY = 24 * 60

WEEKDAY_NAMES = (
    "Sunday",
    "Monday",
    "Tuesday",
    "Wednesday",
    "Thursday",
    "Friday",
    "Saturday",
)


def parse_clock(value: Any) -> Optional[int]:
    """
    Parse an ``HH:MM`` string into minutes since midnight.

    Returns None for anything that is not a valid wall-clock time.
    """
    if isinstance(value, time):
        return minute_of_day(value)
    if not isinstance(value, str):
        return None

    parts = value.strip().split(":")
    if len(parts) < 2 or not all(part.isdecimal() for part in parts[:2]):
        return None

    hours, minutes = int(parts[0]), int(parts[1])
    if not (0 <= hours <= 23 and 0 <= minutes <= 59):
        return None
    return hours * 60 + minutes


def format_clock(minutes: int) -> str:
    """Format minutes since midnight as ``HH:MM``."""
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def minute_of_day(value: time) -> int:
    return value.hour * 60 + value.minute


def clock_to_time(value: Any) -> Optional[time]:
    """Parse an ``HH:MM`` string into a time, or None when malformed."""
    minutes = parse_clock(value)
    if minutes is None:
        return None
    return time(hour=minutes // 60, minute=minutes % 60)


def sunday_weekday(day: date) -> int:
    """Weekday index with Sunday = 0 ... Saturday = 6."""
    return day.isoweekday() % 7


@dataclass(frozen=True)
class WorkDays:
    """
    Fixed set of seven weekday flags, indexed 0-6 with Sunday = 0.
    """
    flags: Tuple[bool, ...] = (False,) * 7

    def __post_init__(self):
        if len(self.flags) != 7:
            raise ValueError(f"WorkDays needs exactly 7 flags, got {len(self.flags)}")

    @classmethod
    def of(cls, weekdays: Iterable[int]) -> "WorkDays":
        """Build from weekday integers. Raises ValueError outside 0-6."""
        flags = [False] * 7
        for weekday in weekdays:
            if weekday not in range(7):
                raise ValueError(f"Weekday must be between 0 and 6, got {weekday}")
            flags[weekday] = True
        return cls(flags=tuple(flags))

    @classmethod
    def parse(cls, raw: Any) -> "WorkDays":
        """
        Leniently read the data layer's work days field.

        Accepts a JSON-encoded array (``"[1,2,3]"``) or a list of ints.
        Anything unreadable becomes an empty set, i.e. a closed schedule.
        """
        values = raw
        if isinstance(raw, str):
            try:
                values = json.loads(raw)
            except ValueError:
                logger.warning("Unparsable work days %r, treating as closed", raw)
                return cls()

        if not isinstance(values, (list, tuple, set, frozenset)):
            logger.warning("Unexpected work days value %r, treating as closed", raw)
            return cls()

        try:
            return cls.of(int(value) for value in values)
        except (TypeError, ValueError, OverflowError):
            logger.warning("Invalid weekday in %r, treating as closed", raw)
            return cls()

    def __contains__(self, weekday: object) -> bool:
        return isinstance(weekday, int) and 0 <= weekday <= 6 and self.flags[weekday]

    def days(self) -> List[int]:
        return [weekday for weekday, enabled in enumerate(self.flags) if enabled]

    def __str__(self) -> str:
        return ", ".join(WEEKDAY_NAMES[weekday][:3] for weekday in self.days()) or "-"


@dataclass(frozen=True)
class MinuteSpan:
    """
    Immutable half-open span ``[start, end)`` in minutes since midnight.

    Invariant: start must be before end.
    """
    start: int
    end: int

    def __post_init__(self):
        if self.start >= self.end:
            raise ValueError(f"Start minute {self.start} must be before end minute {self.end}")

    def overlaps(self, other: "MinuteSpan") -> bool:
        """Check if this span overlaps with another."""
        return self.start < other.end and self.end > other.start

    def contains(self, other: "MinuteSpan") -> bool:
        return self.start <= other.start and other.end <= self.end

    def __str__(self) -> str:
        return f"{format_clock(self.start)} - {format_clock(self.end)}"


@dataclass(frozen=True)
class WorkSchedule:
    """
    Working days and daily hours of a merchant or an employee.

    A malformed schedule is representable on purpose: it simply has no slots.
    """
    work_days: WorkDays
    start_time: time
    end_time: time
    break_start_time: Optional[time] = None
    break_end_time: Optional[time] = None

    @classmethod
    def closed(cls) -> "WorkSchedule":
        return cls(work_days=WorkDays(), start_time=time(0, 0), end_time=time(0, 0))

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "WorkSchedule":
        """
        Build a schedule from a merchant or employee row.

        Expects the data layer's keys: workDays, startTime, endTime and the
        optional breakStartTime / breakEndTime.
        """
        start = clock_to_time(record.get("startTime"))
        end = clock_to_time(record.get("endTime"))
        if start is None or end is None:
            logger.warning(
                "Unparsable opening hours %r-%r, treating as closed",
                record.get("startTime"),
                record.get("endTime"),
            )
            return cls.closed()

        break_start = clock_to_time(record.get("breakStartTime"))
        break_end = clock_to_time(record.get("breakEndTime"))
        if break_start is None or break_end is None:
            break_start = break_end = None

        return cls(
            work_days=WorkDays.parse(record.get("workDays")),
            start_time=start,
            end_time=end,
            break_start_time=break_start,
            break_end_time=break_end,
        )

    def has_break(self) -> bool:
        return self.break_start_time is not None and self.break_end_time is not None

    def opening_span(self) -> Optional[MinuteSpan]:
        """Daily open/close range, or None when start is not before end."""
        start = minute_of_day(self.start_time)
        end = minute_of_day(self.end_time)
        if start >= end:
            return None
        return MinuteSpan(start=start, end=end)

    def break_span(self) -> Optional[MinuteSpan]:
        if not self.has_break():
            return None
        start = minute_of_day(self.break_start_time)
        end = minute_of_day(self.break_end_time)
        if start >= end:
            return None
        return MinuteSpan(start=start, end=end)

    def is_well_formed(self) -> bool:
        opening = self.opening_span()
        if opening is None:
            return False
        if not self.has_break():
            return True
        pause = self.break_span()
        return pause is not None and opening.contains(pause)

    def works_on(self, day: date) -> bool:
        """Check if the given date falls on one of the working weekdays."""
        return sunday_weekday(day) in self.work_days


@dataclass(frozen=True)
class DayOff:
    """A calendar date on which an employee is fully unavailable."""
    employee_id: str
    date: date

    def matches(self, employee_id: Optional[str], day: date) -> bool:
        return employee_id is not None and self.employee_id == employee_id and self.date == day


class AppointmentStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    SCHEDULED = "scheduled"
    LATE = "late"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    NO_SHOW = "no_show"

    @property
    def occupies_slot(self) -> bool:
        return self in ACTIVE_STATUSES


ACTIVE_STATUSES = frozenset(
    {
        AppointmentStatus.PENDING,
        AppointmentStatus.CONFIRMED,
        AppointmentStatus.SCHEDULED,
        AppointmentStatus.LATE,
    }
)


@dataclass(frozen=True)
class Appointment:
    """
    Read-only snapshot of an appointment row.
    """
    id: str
    merchant_id: str
    date: date
    start_time: time
    status: AppointmentStatus
    employee_id: Optional[str] = None
    end_time: Optional[time] = None
    duration_minutes: Optional[int] = None

    def booked_interval(self) -> "BookedInterval":
        end_time = self.end_time
        if end_time is None and self.duration_minutes:
            end_minute = minute_of_day(self.start_time) + self.duration_minutes
            if end_minute < MINUTES_PER_DAY:
                end_time = time(hour=end_minute // 60, minute=end_minute % 60)
        return BookedInterval(
            start_time=self.start_time,
            end_time=end_time,
            employee_id=self.employee_id,
        )


@dataclass(frozen=True)
class BookedInterval:
    """
    Occupied time derived from a non-cancelled appointment.

    The real end time is kept for reference; by default the calculator only
    blocks a fixed block from ``start_time``.
    """
    start_time: time
    end_time: Optional[time] = None
    employee_id: Optional[str] = None

    @classmethod
    def at(cls, clock: str, employee_id: Optional[str] = None) -> "BookedInterval":
        """Create an interval starting at an ``HH:MM`` string."""
        start = clock_to_time(clock)
        if start is None:
            raise ValueError(f"Invalid time '{clock}', expected HH:MM")
        return cls(start_time=start, employee_id=employee_id)

    def span(self, block_minutes: int = 30, use_end_time: bool = False) -> MinuteSpan:
        start = minute_of_day(self.start_time)
        if use_end_time and self.end_time is not None:
            end = minute_of_day(self.end_time)
            if end > start:
                return MinuteSpan(start=start, end=end)
        return MinuteSpan(start=start, end=start + block_minutes)
