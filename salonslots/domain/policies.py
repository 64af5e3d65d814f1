"""
Cancellation fee and reschedule rules applied to existing appointments.
"""

from dataclasses import dataclass
from typing import Optional

from pendulum import DateTime

from .models import AppointmentStatus

# Cancelling with less than 23h59 of notice is always charged
ALWAYS_CHARGED_MINUTES = 1439
FREE_CANCELLATION_HOURS = 24
CLIENT_RESCHEDULE_NOTICE_HOURS = 24

STAFF_ROLES = frozenset({"merchant", "employee"})


@dataclass(frozen=True)
class CancellationPolicy:
    """Merchant settings for late-cancellation fees."""
    fee_enabled: bool = False
    fee_amount_cents: int = 0
    policy_hours: int = FREE_CANCELLATION_HOURS


@dataclass(frozen=True)
class CancellationFee:
    charged: bool
    amount_cents: int
    hours_before: float

    def format_amount(self) -> str:
        return f"{self.amount_cents / 100:.2f}"


@dataclass(frozen=True)
class PolicyDecision:
    allowed: bool
    reason: Optional[str] = None


def hours_until(appointment_start: DateTime, now: DateTime) -> float:
    """Hours between now and the appointment; negative once it started."""
    return (appointment_start - now).total_seconds() / 3600


def evaluate_cancellation_fee(
    policy: CancellationPolicy,
    appointment_start: DateTime,
    now: DateTime,
) -> CancellationFee:
    """
    Decide whether cancelling now incurs the merchant's fee.

    Under 1439 minutes of notice is charged, over 24 hours is free, and the
    window in between falls back to the merchant's policy hours.
    """
    hours_before = hours_until(appointment_start, now)

    if not policy.fee_enabled:
        return CancellationFee(charged=False, amount_cents=0, hours_before=hours_before)

    if hours_before * 60 < ALWAYS_CHARGED_MINUTES:
        charged = True
    elif hours_before > FREE_CANCELLATION_HOURS:
        charged = False
    else:
        charged = hours_before < policy.policy_hours

    amount = policy.fee_amount_cents if charged else 0
    if amount <= 0:
        charged = False
        amount = 0
    return CancellationFee(charged=charged, amount_cents=amount, hours_before=hours_before)


def can_cancel(status: AppointmentStatus) -> PolicyDecision:
    if status is AppointmentStatus.CANCELLED:
        return PolicyDecision(False, "Appointment is already cancelled")
    if status is AppointmentStatus.COMPLETED:
        return PolicyDecision(False, "Cannot cancel a completed appointment")
    return PolicyDecision(True)


def can_reschedule(
    status: AppointmentStatus,
    role: str,
    appointment_start: DateTime,
    now: DateTime,
) -> PolicyDecision:
    """
    Staff may move any open appointment; clients need 24 hours of notice.
    """
    if status in (
        AppointmentStatus.COMPLETED,
        AppointmentStatus.CANCELLED,
        AppointmentStatus.NO_SHOW,
    ):
        return PolicyDecision(False, "Appointment is already finished or cancelled")

    if role in STAFF_ROLES:
        return PolicyDecision(True)

    if role == "client" and hours_until(appointment_start, now) < CLIENT_RESCHEDULE_NOTICE_HOURS:
        return PolicyDecision(
            False,
            f"Appointments can only be rescheduled up to {CLIENT_RESCHEDULE_NOTICE_HOURS} hours in advance",
        )

    if status in (
        AppointmentStatus.PENDING,
        AppointmentStatus.CONFIRMED,
        AppointmentStatus.SCHEDULED,
    ):
        return PolicyDecision(True)

    return PolicyDecision(False, "Appointment status does not allow rescheduling")
