"""
Salon data source backed by a JSON export of the booking database.
"""

import json
import logging
from datetime import date
from pathlib import Path
from typing import Any, Dict, List, Optional

import pendulum

from ..domain.exceptions import DataSourceError
from ..domain.models import (
    Appointment,
    AppointmentStatus,
    DayOff,
    WorkSchedule,
    clock_to_time,
)
from ..domain.policies import CancellationPolicy

logger = logging.getLogger(__name__)


class JsonSalonStore:
    """
    Reads merchants, employees, days off and appointments from a JSON file.

    The file mirrors the booking database tables with their camelCase column
    names::

        {
          "merchants": [{"id": "m1", "workDays": "[1,2,3,4,5]",
                         "startTime": "09:00", "endTime": "18:00"}],
          "employees": [{"id": "e1", "merchantId": "m1", ...}],
          "daysOff": [{"employeeId": "e1", "date": "2024-11-25"}],
          "appointments": [{"id": "a1", "merchantId": "m1", "employeeId": "e1",
                            "appointmentDate": "2024-11-25",
                            "appointmentTime": "10:00", "status": "confirmed"}]
        }

    Malformed rows are skipped with a warning; a missing or unreadable file
    raises DataSourceError.
    """

    def __init__(self, data_file: Path):
        self.data_file = data_file
        self._data = self._load_data()

    def _load_data(self) -> Dict[str, List[Dict[str, Any]]]:
        """Load salon data from the JSON file."""
        if not self.data_file.exists():
            raise DataSourceError(f"Salon data file not found: {self.data_file}")

        try:
            with open(self.data_file, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as exc:
            raise DataSourceError(f"Could not read salon data from {self.data_file}: {exc}") from exc

        if not isinstance(data, dict):
            raise DataSourceError("Salon data file must contain a mapping at the root level.")

        tables: Dict[str, List[Dict[str, Any]]] = {}
        for table in ("merchants", "employees", "daysOff", "appointments"):
            rows = data.get(table) or []
            if not isinstance(rows, list):
                raise DataSourceError(f"'{table}' must be a list in {self.data_file}")
            tables[table] = [row for row in rows if isinstance(row, dict)]
        return tables

    def _find(self, table: str, row_id: str) -> Optional[Dict[str, Any]]:
        for row in self._data[table]:
            if str(row.get("id")) == row_id:
                return row
        return None

    async def get_merchant_schedule(self, merchant_id: str) -> Optional[WorkSchedule]:
        merchant = self._find("merchants", merchant_id)
        if merchant is None:
            return None
        return WorkSchedule.from_record(merchant)

    def _find_employee(self, merchant_id: str, employee_id: str) -> Optional[Dict[str, Any]]:
        """Active employee row of the merchant, or None."""
        employee = self._find("employees", employee_id)
        if employee is None or str(employee.get("merchantId")) != merchant_id:
            return None
        if not employee.get("isActive", True):
            return None
        return employee

    async def get_employee_schedule(self, merchant_id: str, employee_id: str) -> Optional[WorkSchedule]:
        """Own hours of an active employee of the merchant; None when there are none."""
        employee = self._find_employee(merchant_id, employee_id)
        if employee is None:
            return None
        if not employee.get("startTime") or not employee.get("endTime"):
            return None
        return WorkSchedule.from_record(employee)

    async def is_employee_active(self, merchant_id: str, employee_id: str) -> bool:
        return self._find_employee(merchant_id, employee_id) is not None

    async def get_days_off(self, employee_id: str) -> List[DayOff]:
        days_off: List[DayOff] = []
        for row in self._data["daysOff"]:
            if str(row.get("employeeId")) != employee_id:
                continue
            day = _parse_date(row.get("date"))
            if day is None:
                logger.warning("Skipping day off with invalid date: %r", row)
                continue
            days_off.append(DayOff(employee_id=employee_id, date=day))
        return days_off

    async def get_appointments(self, merchant_id: str, day: date) -> List[Appointment]:
        appointments: List[Appointment] = []
        for row in self._data["appointments"]:
            if str(row.get("merchantId")) != merchant_id:
                continue
            appointment = _parse_appointment(row)
            if appointment is not None and appointment.date == day:
                appointments.append(appointment)
        return appointments

    def get_appointment(self, appointment_id: str) -> Optional[Appointment]:
        row = self._find("appointments", appointment_id)
        if row is None:
            return None
        return _parse_appointment(row)

    def get_cancellation_policy(self, merchant_id: str) -> Optional[CancellationPolicy]:
        merchant = self._find("merchants", merchant_id)
        if merchant is None:
            return None
        return CancellationPolicy(
            fee_enabled=bool(merchant.get("cancellationFeeEnabled", False)),
            fee_amount_cents=int(merchant.get("cancellationFeeAmount") or 0),
            policy_hours=int(merchant.get("cancellationPolicyHours") or 24),
        )


def _parse_date(value: Any) -> Optional[date]:
    if not isinstance(value, str):
        return None
    try:
        return pendulum.from_format(value, "YYYY-MM-DD").date()
    except ValueError:
        return None


def _parse_appointment(row: Dict[str, Any]) -> Optional[Appointment]:
    """Convert an appointment row, or None when it cannot be interpreted."""
    day = _parse_date(row.get("appointmentDate"))
    start = clock_to_time(row.get("appointmentTime"))
    try:
        status = AppointmentStatus(row.get("status", AppointmentStatus.PENDING.value))
    except ValueError:
        status = None

    if day is None or start is None or status is None:
        logger.warning("Skipping malformed appointment row: %r", row.get("id"))
        return None

    duration = row.get("duration")
    employee_id = row.get("employeeId")
    return Appointment(
        id=str(row.get("id")),
        merchant_id=str(row.get("merchantId")),
        date=day,
        start_time=start,
        status=status,
        employee_id=str(employee_id) if employee_id else None,
        end_time=clock_to_time(row.get("endTime")),
        duration_minutes=int(duration) if isinstance(duration, int) else None,
    )
