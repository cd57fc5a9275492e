from datetime import date
from typing import Iterable, Optional

from loguru import logger

from clinisched.db.models.appointments import AppointmentRecord
from clinisched.db.services.base import BaseService
from clinisched.schedule.enums import AppointmentStatus
from clinisched.schedule.models import Appointment
from clinisched.schedule.utils import parse_time


def _by_visit_time(records: Iterable[AppointmentRecord]) -> list[Appointment]:
    appointments = [record.to_appointment() for record in records]
    return sorted(
        appointments,
        key=lambda a: (a.appointment_date, parse_time(a.appointment_time)),
    )


class AppointmentsService(BaseService[AppointmentRecord]):
    """Service for working with patient appointments."""

    model = AppointmentRecord

    async def add_appointment(self, appointment: Appointment) -> Appointment:
        """Store a new appointment."""
        await self.add_model(AppointmentRecord.from_appointment(appointment))
        return appointment

    async def get_appointment(self, appointment_id: str) -> Optional[Appointment]:
        record = await self.find_one_or_none(id=appointment_id)
        return record.to_appointment() if record else None

    async def find_for_day(self, clinician_id: str, day: date) -> list[Appointment]:
        """Appointments of a clinician on one day, earliest first."""
        records = await self.find_all_where(
            AppointmentRecord.clinician_id == clinician_id,
            AppointmentRecord.appointment_date == day,
        )
        return _by_visit_time(records)

    async def find_for_clinician(
        self,
        clinician_id: str,
        status: Optional[AppointmentStatus] = None,
        start: Optional[date] = None,
        end: Optional[date] = None,
    ) -> list[Appointment]:
        """
        Appointments of a clinician, earliest first.

        Args:
            clinician_id: Clinician ID.
            status: Only appointments in this status.
            start: First visit date, inclusive.
            end: Last visit date, inclusive.
        """
        clauses = [AppointmentRecord.clinician_id == clinician_id]
        if status is not None:
            clauses.append(AppointmentRecord.status == status)
        if start is not None:
            clauses.append(AppointmentRecord.appointment_date >= start)
        if end is not None:
            clauses.append(AppointmentRecord.appointment_date <= end)

        return _by_visit_time(await self.find_all_where(*clauses))

    async def update_status(
        self,
        appointment_id: str,
        status: AppointmentStatus,
    ) -> Optional[Appointment]:
        """
        Set the status of an appointment.

        Returns:
            The updated appointment, or None if there is no such appointment.
        """
        appointment = await self.get_appointment(appointment_id)
        if appointment is None:
            return None

        await self.update_where(AppointmentRecord.id == appointment_id, status=status)
        logger.info(
            f"Appointment {appointment_id}: {appointment.status} -> {status}",
        )
        return appointment.model_copy(update={"status": status})
