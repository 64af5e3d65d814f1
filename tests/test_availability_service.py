"""
Tests for the AvailabilityService orchestration layer.
"""

import asyncio
from datetime import time
from typing import Dict, List, Optional

import pendulum
import pytest

from salonslots.domain.exceptions import SlotUnavailableError
from salonslots.domain.models import Appointment, AppointmentStatus, DayOff, WorkDays, WorkSchedule
from salonslots.domain.slot_calculator import AvailabilityCalculator, UnavailableReason
from salonslots.services.availability import AvailabilityService

TZ = "America/Sao_Paulo"
MONDAY = pendulum.date(2024, 11, 25)
NOW = pendulum.datetime(2024, 11, 24, 12, 0, tz=TZ)

MERCHANT_SCHEDULE = WorkSchedule(
    work_days=WorkDays.of([1, 2, 3, 4, 5]),
    start_time=time(9, 0),
    end_time=time(18, 0),
)


class StubDataSource:
    """Minimal stub matching SalonDataSourceProtocol."""

    def __init__(
        self,
        employees: Optional[Dict[str, Optional[WorkSchedule]]] = None,
        days_off: Optional[List[DayOff]] = None,
        appointments: Optional[List[Appointment]] = None,
        employee_merchants: Optional[Dict[str, str]] = None,
    ):
        self._employees = employees or {}
        self._employee_merchants = employee_merchants or {}
        self._days_off = days_off or []
        self._appointments = appointments or []
        self.calls: List[str] = []

    async def get_merchant_schedule(self, merchant_id):
        self.calls.append(f"merchant:{merchant_id}")
        return MERCHANT_SCHEDULE if merchant_id == "m1" else None

    async def get_employee_schedule(self, merchant_id, employee_id):
        if not await self.is_employee_active(merchant_id, employee_id):
            return None
        return self._employees.get(employee_id)

    async def is_employee_active(self, merchant_id, employee_id):
        self.calls.append(f"employee:{merchant_id}:{employee_id}")
        return (
            employee_id in self._employees
            and self._employee_merchants.get(employee_id, "m1") == merchant_id
        )

    async def get_days_off(self, employee_id):
        return [day_off for day_off in self._days_off if day_off.employee_id == employee_id]

    async def get_appointments(self, merchant_id, day):
        self.calls.append(f"appointments:{merchant_id}:{day.isoformat()}")
        return [appointment for appointment in self._appointments if appointment.date == day]


def _appointment(clock: time, employee_id: Optional[str], status=AppointmentStatus.CONFIRMED) -> Appointment:
    return Appointment(
        id=f"{employee_id}-{clock}",
        merchant_id="m1",
        date=MONDAY,
        start_time=clock,
        status=status,
        employee_id=employee_id,
    )


def _build_service(data_source: StubDataSource) -> AvailabilityService:
    return AvailabilityService(
        data_source=data_source,
        calculator=AvailabilityCalculator(),
        timezone=TZ,
    )


def test_merchant_wide_slots_consider_all_appointments():
    """Without an employee every booking of the salon blocks its slot."""
    data_source = StubDataSource(
        employees={"e1": None, "e2": None},
        appointments=[_appointment(time(9, 0), "e1"), _appointment(time(10, 0), "e2")],
    )
    service = _build_service(data_source)

    slots = asyncio.run(
        service.list_available_slots(merchant_id="m1", day=MONDAY, service_duration=30, now=NOW)
    )

    assert "09:00" not in slots
    assert "10:00" not in slots
    assert len(slots) == 16
    assert data_source.calls == ["merchant:m1", "appointments:m1:2024-11-25"]


def test_employee_slots_only_consider_own_appointments():
    """A selected employee is only blocked by their own bookings."""
    data_source = StubDataSource(
        employees={"e1": None, "e2": None},
        appointments=[
            _appointment(time(9, 0), "e1"),
            _appointment(time(10, 0), "e2"),
            _appointment(time(11, 0), "e1", AppointmentStatus.CANCELLED),
        ],
    )
    service = _build_service(data_source)

    slots = asyncio.run(
        service.list_available_slots(
            merchant_id="m1", day=MONDAY, service_duration=30, employee_id="e1", now=NOW
        )
    )

    assert "09:00" not in slots
    assert "10:00" in slots
    assert "11:00" in slots
    assert len(slots) == 17


def test_employee_own_schedule_wins():
    """An employee with hours on file is offered those hours."""
    employee_schedule = WorkSchedule(
        work_days=WorkDays.of([1]),
        start_time=time(13, 0),
        end_time=time(15, 0),
    )
    service = _build_service(StubDataSource(employees={"e1": employee_schedule}))

    slots = asyncio.run(
        service.list_available_slots(
            merchant_id="m1", day=MONDAY, service_duration=30, employee_id="e1", now=NOW
        )
    )

    assert slots == ["13:00", "13:30", "14:00", "14:30"]


def test_unknown_merchant_and_inactive_employee_degrade():
    """Missing records give no slots instead of raising."""
    service = _build_service(StubDataSource(employees={"e1": None}))

    unknown_merchant = asyncio.run(
        service.list_available_slots(merchant_id="nope", day=MONDAY, service_duration=30, now=NOW)
    )
    inactive_employee = asyncio.run(
        service.list_available_slots(
            merchant_id="m1", day=MONDAY, service_duration=30, employee_id="ghost", now=NOW
        )
    )

    assert unknown_merchant == []
    assert inactive_employee == []


def test_day_off_makes_employee_unavailable():
    """A day off rules out the employee whatever the bookings."""
    service = _build_service(
        StubDataSource(employees={"e1": None}, days_off=[DayOff(employee_id="e1", date=MONDAY)])
    )
    arguments = dict(merchant_id="m1", employee_id="e1", day=MONDAY, start="10:00", duration=30, now=NOW)

    assert asyncio.run(service.check_availability(**arguments)) is False
    with pytest.raises(SlotUnavailableError) as excinfo:
        asyncio.run(service.ensure_available(**arguments))
    assert excinfo.value.reason is UnavailableReason.DAY_OFF


def test_check_availability_free_and_taken():
    """Submission-time check uses the booked intervals of the employee."""
    service = _build_service(
        StubDataSource(employees={"e1": None}, appointments=[_appointment(time(10, 0), "e1")])
    )

    free = asyncio.run(
        service.check_availability(
            merchant_id="m1", employee_id="e1", day=MONDAY, start="10:30", duration=30, now=NOW
        )
    )
    taken = asyncio.run(
        service.find_unavailability(
            merchant_id="m1", employee_id="e1", day=MONDAY, start="09:45", duration=30, now=NOW
        )
    )

    assert free is True
    assert taken is UnavailableReason.SLOT_TAKEN
    asyncio.run(
        service.ensure_available(
            merchant_id="m1", employee_id="e1", day=MONDAY, start="11:00", duration=30, now=NOW
        )
    )


def test_employee_of_another_merchant_is_rejected():
    """An employee of another salon is never checked against this salon."""
    other_schedule = WorkSchedule(
        work_days=WorkDays.of([1]),
        start_time=time(8, 0),
        end_time=time(12, 0),
    )
    data_source = StubDataSource(
        employees={"e9": other_schedule},
        employee_merchants={"e9": "m2"},
        appointments=[_appointment(time(9, 0), "e9")],
    )
    service = _build_service(data_source)

    slots = asyncio.run(
        service.list_available_slots(
            merchant_id="m1", day=MONDAY, service_duration=30, employee_id="e9", now=NOW
        )
    )
    reason = asyncio.run(
        service.find_unavailability(
            merchant_id="m1", employee_id="e9", day=MONDAY, start="10:00", duration=30, now=NOW
        )
    )

    assert slots == []
    assert reason is UnavailableReason.INVALID_SCHEDULE
    assert "employee:m1:e9" in data_source.calls
    assert not any(call.startswith("appointments:") for call in data_source.calls)
