import datetime as dt

from sqlalchemy import Date, Enum, String, Time
from sqlalchemy.orm import Mapped, mapped_column

from clinisched.db.base import Base
from clinisched.db.types import (
    content_an,
    created_at_an,
    ref_id_an,
    str_id_an,
    updated_at_an,
)
from clinisched.schedule.enums import Priority, ScheduleStatus, ScheduleType
from clinisched.schedule.models import ScheduleItem


class ScheduleRecord(Base):
    """Stored schedule item."""

    __tablename__ = "schedule_items"

    id: Mapped[str_id_an]
    clinician_id: Mapped[ref_id_an]
    hospital_id: Mapped[ref_id_an]

    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[content_an]
    notes: Mapped[content_an]
    type: Mapped[ScheduleType] = mapped_column(Enum(ScheduleType), nullable=False)

    # When
    date: Mapped[dt.date] = mapped_column(Date, nullable=False, index=True)
    start_time: Mapped[dt.time] = mapped_column(Time, nullable=False)
    end_time: Mapped[dt.time] = mapped_column(Time, nullable=False)

    # Where
    location: Mapped[str | None] = mapped_column(String(255))
    room: Mapped[str | None] = mapped_column(String(100))

    # Who assigned it
    assigned_by: Mapped[str | None] = mapped_column(String(255))
    assigned_by_id: Mapped[str | None] = mapped_column(String(64))
    requires_approval: Mapped[bool] = mapped_column(default=False)

    priority: Mapped[Priority] = mapped_column(Enum(Priority), default=Priority.MEDIUM)
    patient_id: Mapped[str | None] = mapped_column(String(64))
    patient_name: Mapped[str | None] = mapped_column(String(255))

    # Workflow status
    status: Mapped[ScheduleStatus] = mapped_column(
        Enum(ScheduleStatus),
        nullable=False,
        index=True,
    )
    rejection_reason: Mapped[str | None] = mapped_column(String(255))

    created_at: Mapped[created_at_an]
    updated_at: Mapped[updated_at_an]

    @classmethod
    def values_from_item(cls, item: ScheduleItem) -> dict:
        """Column values for a domain item."""
        return item.model_dump()

    @classmethod
    def from_item(cls, item: ScheduleItem) -> "ScheduleRecord":
        return cls(**cls.values_from_item(item))

    def to_item(self) -> ScheduleItem:
        return ScheduleItem.model_validate(self.to_dict())
