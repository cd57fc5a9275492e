"""Bookable time slots and appointment booking."""

from dataclasses import dataclass
from datetime import date
from typing import Optional
from uuid import uuid4

from loguru import logger

from clinisched.schedule.enums import AppointmentStatus
from clinisched.schedule.errors import ValidationError
from clinisched.schedule.models import Appointment
from clinisched.schedule.utils import format_time, format_time_display, parse_time
from clinisched.settings import settings


@dataclass(frozen=True)
class SlotConfig:
    """Config for slot generation. The end hour is exclusive."""

    start_hour: int = 9
    end_hour: int = 17
    step_minutes: int = 30

    @classmethod
    def from_settings(cls) -> "SlotConfig":
        return cls(
            start_hour=settings.SLOT_START_HOUR,
            end_hour=settings.SLOT_END_HOUR,
            step_minutes=settings.SLOT_STEP_MINUTES,
        )

    def slots(self) -> list[str]:
        return generate_slots(self.start_hour, self.end_hour, self.step_minutes)


def generate_slots(
    start_hour: int = 9,
    end_hour: int = 17,
    step_minutes: int = 30,
) -> list[str]:
    """
    Generate slot start times as zero-padded "HH:MM" strings.

    Args:
        start_hour: First hour of the day with slots
        end_hour: Hour at which slots stop, exclusive
        step_minutes: Width of one slot

    Returns:
        Slot boundaries, e.g. ["09:00", "09:30", ..., "16:30"]

    Raises:
        ValidationError: If the bounds or the step are out of range
    """
    if step_minutes <= 0:
        raise ValidationError("step must be a positive number of minutes", "step_minutes")
    if not 0 <= start_hour < end_hour <= 24:
        raise ValidationError(
            f"invalid slot hours {start_hour}-{end_hour}",
            "start_hour",
        )

    slots = []
    for minute in range(start_hour * 60, end_hour * 60, step_minutes):
        slots.append(f"{minute // 60:02d}:{minute % 60:02d}")
    return slots


def book_appointment(
    patient_id: str,
    patient_name: str,
    clinician_id: str,
    appointment_date: date,
    slot: str,
    reason: Optional[str] = None,
    config: Optional[SlotConfig] = None,
    appointment_id: Optional[str] = None,
) -> Appointment:
    """
    Book a patient appointment in one of the generated slots.

    The slot may be given as "14:30" or "2:30 PM". No check against existing
    bookings is made.

    Raises:
        ValidationError: If the slot is malformed or not a generated slot
    """
    config = config or SlotConfig.from_settings()
    try:
        slot_time = parse_time(slot)
    except ValueError as e:
        raise ValidationError(str(e), "slot") from e

    if format_time(slot_time) not in config.slots():
        raise ValidationError(f"{slot} is not a bookable slot", "slot")

    appointment = Appointment(
        id=appointment_id or uuid4().hex,
        patient_id=patient_id,
        patient_name=patient_name,
        clinician_id=clinician_id,
        appointment_date=appointment_date,
        appointment_time=format_time_display(slot_time),
        status=AppointmentStatus.SCHEDULED,
        reason=reason,
    )
    logger.info(
        f"Booked appointment {appointment.id} for patient {patient_id} "
        f"with {clinician_id} on {appointment_date} at {appointment.appointment_time}",
    )
    return appointment
