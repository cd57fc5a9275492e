from datetime import date

from sqlalchemy import Date, Enum, String
from sqlalchemy.orm import Mapped, mapped_column

from clinisched.db.base import Base
from clinisched.db.types import (
    content_an,
    created_at_an,
    ref_id_an,
    str_id_an,
    updated_at_an,
)
from clinisched.schedule.enums import AppointmentStatus
from clinisched.schedule.models import Appointment


class AppointmentRecord(Base):
    """Stored patient appointment."""

    __tablename__ = "appointments"

    id: Mapped[str_id_an]
    patient_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    patient_name: Mapped[str] = mapped_column(String(255), nullable=False)
    clinician_id: Mapped[ref_id_an]

    appointment_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    appointment_time: Mapped[str] = mapped_column(String(16), nullable=False)  # 9:00 AM

    status: Mapped[AppointmentStatus] = mapped_column(
        Enum(AppointmentStatus),
        default=AppointmentStatus.SCHEDULED,
    )
    reason: Mapped[content_an]

    created_at: Mapped[created_at_an]
    updated_at: Mapped[updated_at_an]

    @classmethod
    def from_appointment(cls, appointment: Appointment) -> "AppointmentRecord":
        return cls(**appointment.model_dump())

    def to_appointment(self) -> Appointment:
        return Appointment.model_validate(self.to_dict())
