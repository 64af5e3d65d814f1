"""
Derive booked intervals from the appointments stored for a date.
"""

import logging
from datetime import date
from typing import Dict, Iterable, List, Optional

from pendulum import DateTime

from .models import Appointment, AppointmentStatus, BookedInterval, minute_of_day

logger = logging.getLogger(__name__)

PENDING_GRACE_MINUTES = 5

# Employee selector meaning "no specific employee"
ANY_EMPLOYEE = "any"


def is_specific_employee(employee_id: Optional[str]) -> bool:
    return bool(employee_id) and employee_id != ANY_EMPLOYEE


def booked_intervals_for(
    appointments: Iterable[Appointment],
    day: date,
    *,
    employee_id: Optional[str] = None,
    now: Optional[DateTime] = None,
    pending_grace_minutes: int = PENDING_GRACE_MINUTES,
) -> List[BookedInterval]:
    """
    Select the appointments that still occupy time on ``day``.

    Rules:
    - only pending, confirmed, scheduled and late appointments count
    - on today, a pending appointment whose start passed by more than the
      grace period no longer holds its slot
    - a specific employee only sees their own appointments; without one,
      every appointment of the merchant blocks the slot
    - appointments sharing a start time collapse into one interval

    Args:
        appointments: Appointment rows of the merchant
        day: Target date
        employee_id: Selected employee, or None / "any"
        now: Current time in the salon's timezone
        pending_grace_minutes: Minutes a late pending booking keeps its slot

    Returns:
        Booked intervals ordered by start time
    """
    is_today = now is not None and day == now.date()
    now_minute = now.hour * 60 + now.minute if now is not None else 0
    only_employee = employee_id if is_specific_employee(employee_id) else None

    by_start: Dict[int, BookedInterval] = {}
    for appointment in appointments:
        if appointment.date != day:
            continue
        if not appointment.status.occupies_slot:
            continue

        start_minute = minute_of_day(appointment.start_time)
        if (
            is_today
            and appointment.status is AppointmentStatus.PENDING
            and start_minute + pending_grace_minutes < now_minute
        ):
            logger.debug("Pending appointment %s expired, slot released", appointment.id)
            continue

        if only_employee is not None and appointment.employee_id != only_employee:
            continue

        by_start.setdefault(start_minute, appointment.booked_interval())

    return [by_start[minute] for minute in sorted(by_start)]
