"""Pydantic models of the scheduling core."""

import datetime as dt
from typing import Any, Iterator, Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_serializer,
    field_validator,
    model_validator,
)

from clinisched.schedule.enums import (
    ActorRole,
    AppointmentStatus,
    Operation,
    Priority,
    ScheduleStatus,
    ScheduleType,
)
from clinisched.schedule.utils import format_time, parse_time
from clinisched.settings import settings


def _coerce_time(value: Any) -> Any:
    if isinstance(value, str):
        return parse_time(value)
    return value


class ScheduleItemBase(BaseModel):
    """Fields shared by schedule items and their creation input."""

    model_config = ConfigDict(populate_by_name=True)

    title: str = Field(..., description="Short label")
    description: Optional[str] = Field(None, description="Free text description")
    notes: Optional[str] = Field(None, description="Free text notes")
    type: ScheduleType = Field(..., description="Kind of work")
    date: dt.date = Field(..., description="Calendar date, naive")
    start_time: dt.time = Field(..., description="Local start time", alias="startTime")
    end_time: dt.time = Field(..., description="Local end time", alias="endTime")
    location: Optional[str] = Field(None, description="Location")
    room: Optional[str] = Field(None, description="Room")
    assigned_by: Optional[str] = Field(
        None,
        description="Name of the originator when not the clinician",
        alias="assignedBy",
    )
    assigned_by_id: Optional[str] = Field(
        None,
        description="ID of the originator",
        alias="assignedById",
    )
    priority: Priority = Field(Priority.MEDIUM, description="Display priority")
    patient_id: Optional[str] = Field(None, description="Patient ID", alias="patientId")
    patient_name: Optional[str] = Field(
        None,
        description="Patient name",
        alias="patientName",
    )
    clinician_id: Optional[str] = Field(
        None,
        description="Assigned clinician",
        alias="clinicianId",
    )
    hospital_id: Optional[str] = Field(None, description="Hospital", alias="hospitalId")

    @field_validator("title")
    @classmethod
    def title_not_blank(cls, v: str) -> str:
        """Strip the title and refuse empty ones."""
        v = v.strip()
        if not v:
            raise ValueError("title must not be empty")
        return v

    @field_validator("start_time", "end_time", mode="before")
    @classmethod
    def parse_times(cls, v: Any) -> Any:
        """Parse "HH:MM" and "h:MM AM" strings."""
        return _coerce_time(v)

    @model_validator(mode="after")
    def check_time_order(self) -> "ScheduleItemBase":
        """Start must come before end."""
        if settings.ENFORCE_TIME_ORDER and self.start_time >= self.end_time:
            raise ValueError(
                f"start time {format_time(self.start_time)} must be before "
                f"end time {format_time(self.end_time)}",
            )
        return self

    @field_serializer("start_time", "end_time", when_used="json")
    def serialize_time(self, value: dt.time) -> str:
        return format_time(value)


class ScheduleItemCreate(ScheduleItemBase):
    """Input for creating a schedule item."""

    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    id: Optional[str] = Field(None, description="Pre-assigned ID")
    requires_approval: Optional[bool] = Field(
        None,
        description="Explicit approval flag, derived from assignment when omitted",
        alias="requiresApproval",
    )


class ScheduleItem(ScheduleItemBase):
    """A single unit of clinician work."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    id: str = Field(..., description="Stable ID")
    status: ScheduleStatus = Field(..., description="Workflow status")
    requires_approval: bool = Field(
        False,
        description="Must pass pending -> approved before work starts",
        alias="requiresApproval",
    )
    rejection_reason: Optional[str] = Field(
        None,
        description="Reason given on rejection",
        alias="rejectionReason",
    )
    created_at: dt.datetime = Field(..., description="Creation time")
    updated_at: Optional[dt.datetime] = Field(None, description="Last change")

    @property
    def sort_key(self) -> tuple[dt.date, dt.time]:
        return (self.date, self.start_time)

    @property
    def duration_minutes(self) -> int:
        start = self.start_time.hour * 60 + self.start_time.minute
        end = self.end_time.hour * 60 + self.end_time.minute
        return end - start


class ScheduleItemPatch(BaseModel):
    """Editable fields. Status and identity are not editable."""

    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    title: Optional[str] = None
    description: Optional[str] = None
    notes: Optional[str] = None
    date: Optional[dt.date] = None
    start_time: Optional[dt.time] = Field(None, alias="startTime")
    end_time: Optional[dt.time] = Field(None, alias="endTime")
    location: Optional[str] = None
    room: Optional[str] = None
    priority: Optional[Priority] = None

    @field_validator("start_time", "end_time", mode="before")
    @classmethod
    def parse_times(cls, v: Any) -> Any:
        """Parse "HH:MM" and "h:MM AM" strings."""
        return _coerce_time(v)


class Appointment(BaseModel):
    """Patient encounter booked against a clinician."""

    id: str = Field(..., description="ID of the appointment")
    patient_id: str = Field(..., description="ID of the patient")
    patient_name: str = Field(..., description="Name of the patient")
    clinician_id: str = Field(..., description="ID of the clinician")
    appointment_date: dt.date = Field(..., description="Date of the visit")
    appointment_time: str = Field(
        ...,
        description="Display formatted start, e.g. 9:00 AM",
    )
    status: AppointmentStatus = Field(AppointmentStatus.SCHEDULED)
    reason: Optional[str] = Field(None, description="Service or reason for visit")


class ActorContext(BaseModel):
    """Who triggers an operation. Resolved by the caller."""

    model_config = ConfigDict(frozen=True)

    role: ActorRole
    actor_id: Optional[str] = None
    name: Optional[str] = None


class DateRange(BaseModel):
    """Inclusive range of calendar dates."""

    model_config = ConfigDict(frozen=True)

    start: dt.date
    end: dt.date

    @model_validator(mode="after")
    def check_order(self) -> "DateRange":
        if self.start > self.end:
            raise ValueError(f"range start {self.start} is after end {self.end}")
        return self

    def __contains__(self, day: object) -> bool:
        return isinstance(day, dt.date) and self.start <= day <= self.end

    @property
    def days(self) -> int:
        return (self.end - self.start).days + 1

    def dates(self) -> Iterator[dt.date]:
        """Iterate over every day of the range."""
        for offset in range(self.days):
            yield self.start + dt.timedelta(days=offset)


class ScheduleFilters(BaseModel):
    """Optional exact-match filters. None means no constraint."""

    type: Optional[ScheduleType] = None
    status: Optional[ScheduleStatus] = None

    def matches(self, item: ScheduleItem) -> bool:
        if self.type is not None and item.type != self.type:
            return False
        return self.status is None or item.status == self.status


class ScheduleSummary(BaseModel):
    """Dashboard counts."""

    pending: int = 0
    accepted: int = 0
    completed: int = 0
    today: int = 0


class StatusChange(BaseModel):
    """Side effect of an applied operation, for notification and audit."""

    item_id: str
    operation: Operation
    previous_status: ScheduleStatus
    status: ScheduleStatus
    actor_role: ActorRole
    actor_id: Optional[str] = None
    reason: Optional[str] = None
    changed_at: dt.datetime
