from datetime import date

import pytest

from clinisched.schedule import (
    AppointmentStatus,
    SlotConfig,
    ValidationError,
    book_appointment,
    generate_slots,
)

VISIT_DAY = date(2024, 2, 20)


def test_default_slots():
    slots = generate_slots()
    assert len(slots) == 16
    assert slots[0] == "09:00"
    assert slots[1] == "09:30"
    assert slots[-1] == "16:30"
    assert "17:00" not in slots


def test_custom_slots():
    assert generate_slots(8, 10, 45) == ["08:00", "08:45", "09:30"]
    assert generate_slots(23, 24, 60) == ["23:00"]


@pytest.mark.parametrize(
    "start_hour, end_hour, step",
    [(9, 9, 30), (17, 9, 30), (-1, 5, 30), (9, 25, 30), (9, 17, 0), (9, 17, -15)],
)
def test_invalid_slot_config(start_hour, end_hour, step):
    with pytest.raises(ValidationError):
        generate_slots(start_hour, end_hour, step)


def test_slot_config():
    assert SlotConfig(start_hour=12, end_hour=13, step_minutes=20).slots() == [
        "12:00",
        "12:20",
        "12:40",
    ]
    assert SlotConfig.from_settings().slots() == generate_slots()


@pytest.mark.parametrize("slot", ["14:30", "2:30 PM", "02:30 pm"])
def test_book_appointment(slot):
    appointment = book_appointment(
        patient_id="p-1",
        patient_name="John Doe",
        clinician_id="clin-1",
        appointment_date=VISIT_DAY,
        slot=slot,
        reason="Follow-up",
        config=SlotConfig(),
        appointment_id="appt-1",
    )
    assert appointment.id == "appt-1"
    assert appointment.appointment_time == "2:30 PM"
    assert appointment.status == AppointmentStatus.SCHEDULED
    assert appointment.reason == "Follow-up"


@pytest.mark.parametrize("slot", ["17:00", "09:15", "noon", "13:00 PM"])
def test_book_appointment_outside_slots(slot):
    with pytest.raises(ValidationError) as exc_info:
        book_appointment(
            patient_id="p-1",
            patient_name="John Doe",
            clinician_id="clin-1",
            appointment_date=VISIT_DAY,
            slot=slot,
            config=SlotConfig(),
        )
    assert exc_info.value.field == "slot"
