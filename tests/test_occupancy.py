"""
Tests for deriving booked intervals from appointments.
"""

from datetime import time

import pendulum

from salonslots.domain.models import Appointment, AppointmentStatus
from salonslots.domain.occupancy import booked_intervals_for

TZ = "America/Sao_Paulo"
MONDAY = pendulum.date(2024, 11, 25)


def _appointment(
    appointment_id: str,
    clock: time,
    status: AppointmentStatus = AppointmentStatus.CONFIRMED,
    employee_id: str | None = "e1",
    day=MONDAY,
) -> Appointment:
    return Appointment(
        id=appointment_id,
        merchant_id="m1",
        date=day,
        start_time=clock,
        status=status,
        employee_id=employee_id,
    )


def _starts(intervals):
    return [interval.start_time for interval in intervals]


class TestBookedIntervalsFor:
    """Tests for booked_intervals_for."""

    def test_only_active_statuses_occupy(self):
        """Test that finished and cancelled appointments free their slot."""
        appointments = [
            _appointment("a1", time(9, 0), AppointmentStatus.PENDING),
            _appointment("a2", time(9, 30), AppointmentStatus.CONFIRMED),
            _appointment("a3", time(10, 0), AppointmentStatus.SCHEDULED),
            _appointment("a4", time(10, 30), AppointmentStatus.LATE),
            _appointment("a5", time(11, 0), AppointmentStatus.CANCELLED),
            _appointment("a6", time(11, 30), AppointmentStatus.COMPLETED),
            _appointment("a7", time(12, 0), AppointmentStatus.NO_SHOW),
        ]

        intervals = booked_intervals_for(appointments, MONDAY)

        assert _starts(intervals) == [time(9, 0), time(9, 30), time(10, 0), time(10, 30)]

    def test_other_dates_ignored(self):
        """Test that appointments on other dates are skipped."""
        appointments = [_appointment("a1", time(9, 0), day=pendulum.date(2024, 11, 26))]

        assert booked_intervals_for(appointments, MONDAY) == []

    def test_expired_pending_releases_slot_today(self):
        """Test the pending grace period on the current date."""
        now = pendulum.datetime(2024, 11, 25, 10, 0, tz=TZ)
        appointments = [
            _appointment("expired", time(9, 50), AppointmentStatus.PENDING),
            _appointment("grace", time(9, 56), AppointmentStatus.PENDING),
            _appointment("confirmed", time(9, 0), AppointmentStatus.CONFIRMED),
        ]

        intervals = booked_intervals_for(appointments, MONDAY, now=now)

        assert _starts(intervals) == [time(9, 0), time(9, 56)]

    def test_pending_kept_on_future_dates(self):
        """Test that the grace period only applies to today."""
        now = pendulum.datetime(2024, 11, 24, 23, 0, tz=TZ)
        appointments = [_appointment("a1", time(9, 0), AppointmentStatus.PENDING)]

        assert len(booked_intervals_for(appointments, MONDAY, now=now)) == 1

    def test_specific_employee_filter(self):
        """Test that a selected employee only sees their own bookings."""
        appointments = [
            _appointment("a1", time(9, 0), employee_id="e1"),
            _appointment("a2", time(10, 0), employee_id="e2"),
            _appointment("a3", time(11, 0), employee_id=None),
        ]

        intervals = booked_intervals_for(appointments, MONDAY, employee_id="e1")

        assert _starts(intervals) == [time(9, 0)]
        assert intervals[0].employee_id == "e1"

    def test_any_employee_keeps_everything(self):
        """Test that 'any' and no selection are merchant-wide."""
        appointments = [
            _appointment("a1", time(9, 0), employee_id="e1"),
            _appointment("a2", time(10, 0), employee_id="e2"),
        ]

        assert len(booked_intervals_for(appointments, MONDAY, employee_id="any")) == 2
        assert len(booked_intervals_for(appointments, MONDAY, employee_id="")) == 2
        assert len(booked_intervals_for(appointments, MONDAY)) == 2

    def test_duplicate_start_times_collapse(self):
        """Test that two bookings at the same time produce one interval."""
        appointments = [
            _appointment("a2", time(10, 0), employee_id="e2"),
            _appointment("a1", time(9, 0), employee_id="e1"),
            _appointment("a3", time(10, 0), employee_id="e3"),
        ]

        intervals = booked_intervals_for(appointments, MONDAY)

        assert _starts(intervals) == [time(9, 0), time(10, 0)]
