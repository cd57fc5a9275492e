from datetime import date, datetime

import pytest

from clinisched.db.context import get_or_create_session
from clinisched.db.services import (
    AppointmentsService,
    ScheduleItemsService,
    StaleItemError,
)
from clinisched.schedule import (
    AppointmentStatus,
    InvalidTransition,
    Operation,
    PermissionDenied,
    ScheduleFilters,
    ScheduleStatus,
    SlotConfig,
    ValidationError,
)
from clinisched.workflow import AppointmentNotFound, ItemNotFound, ScheduleWorkflow

from .conftest import TODAY


def surgery(**overrides):
    data = {
        "title": "Cardiac Surgery",
        "type": "surgery",
        "date": TODAY,
        "startTime": "08:00",
        "endTime": "12:00",
        "clinicianId": "clin-1",
    }
    data.update(overrides)
    return data


@pytest.fixture
def workflow(session_factory):
    return ScheduleWorkflow(session_factory)


async def test_admin_created_item_is_pending(workflow, session_factory, admin):
    item = await workflow.create(surgery(id="s-1"), admin)

    assert item.status == ScheduleStatus.PENDING
    assert item.assigned_by == "Hospital Admin"
    assert item.assigned_by_id == "admin-1"

    async with get_or_create_session(factory=session_factory) as session:
        stored = await ScheduleItemsService(session).get_item("s-1")
    assert stored.model_dump() == item.model_dump()


async def test_clinician_created_item_is_accepted(workflow, clinician):
    item = await workflow.create(surgery(clinicianId=None), clinician)
    assert item.status == ScheduleStatus.ACCEPTED
    assert item.clinician_id == "clin-1"
    assert item.assigned_by is None


async def test_create_invalid_item_is_not_stored(workflow, session_factory, clinician):
    with pytest.raises(ValidationError):
        await workflow.create(surgery(id="bad", title=""), clinician)

    async with get_or_create_session(factory=session_factory) as session:
        assert await ScheduleItemsService(session).get_item("bad") is None


async def test_transition_is_persisted(workflow, session_factory, admin, clinician):
    await workflow.create(surgery(id="s-1"), admin)

    outcome = await workflow.transition("s-1", Operation.APPROVE, admin)
    assert outcome.change.status == ScheduleStatus.APPROVED

    outcome = await workflow.transition("s-1", "accept", clinician)
    assert outcome.item.status == ScheduleStatus.ACCEPTED

    async with get_or_create_session(factory=session_factory) as session:
        stored = await ScheduleItemsService(session).get_item("s-1")
    assert stored.status == ScheduleStatus.ACCEPTED


async def test_rejected_reason_is_persisted(workflow, session_factory, admin, clinician):
    await workflow.create(surgery(id="s-1"), admin)
    await workflow.transition("s-1", "reject", clinician, {"reason": "schedule conflict"})

    with pytest.raises(InvalidTransition):
        await workflow.transition("s-1", "accept", clinician)

    async with get_or_create_session(factory=session_factory) as session:
        stored = await ScheduleItemsService(session).get_item("s-1")
    assert stored.status == ScheduleStatus.REJECTED
    assert stored.rejection_reason == "schedule conflict"


async def test_transition_unknown_item(workflow, clinician):
    with pytest.raises(ItemNotFound):
        await workflow.transition("missing", "cancel", clinician)


async def test_transition_checks_role(workflow, admin):
    await workflow.create(surgery(id="s-1", requiresApproval=False), admin)
    with pytest.raises(PermissionDenied):
        await workflow.transition("s-1", "complete", admin)


async def test_edit_through_workflow(workflow, clinician):
    await workflow.create(surgery(id="s-1"), clinician)
    outcome = await workflow.transition(
        "s-1",
        Operation.EDIT,
        clinician,
        {"room": "OR 2", "endTime": "13:00"},
    )
    assert outcome.item.room == "OR 2"
    assert outcome.item.duration_minutes == 300


async def test_stale_write_is_refused(workflow, session_factory, clinician):
    item = await workflow.create(surgery(id="s-1"), clinician)
    await workflow.transition("s-1", "complete", clinician)

    with pytest.raises(StaleItemError):
        async with get_or_create_session(factory=session_factory) as session:
            await ScheduleItemsService(session).save_item(
                item.model_copy(update={"status": ScheduleStatus.CANCELLED}),
                expected_updated_at=item.updated_at,
            )

    async with get_or_create_session(factory=session_factory) as session:
        stored = await ScheduleItemsService(session).get_item("s-1")
    assert stored.status == ScheduleStatus.COMPLETED


async def test_save_missing_item(session_factory, make_item):
    with pytest.raises(StaleItemError):
        async with get_or_create_session(factory=session_factory) as session:
            await ScheduleItemsService(session).save_item(make_item(id="ghost"))


async def test_bulk_transition(workflow, clinician):
    await workflow.create(surgery(id="a"), clinician)
    await workflow.create(surgery(id="b"), clinician)
    await workflow.transition("b", "cancel", clinician)

    report = await workflow.bulk_transition(["a", "b", "zzz"], "complete", clinician)

    assert report.missing == ["zzz"]
    assert [outcome.item.id for outcome in report.applied] == ["a"]
    assert [outcome.item.id for outcome in report.failed] == ["b"]
    assert isinstance(report.failed[0].error, InvalidTransition)

    page = await workflow.calendar("clin-1", "today", today=TODAY)
    assert {item.id: item.status for item in page.items} == {
        "a": ScheduleStatus.COMPLETED,
        "b": ScheduleStatus.CANCELLED,
    }


async def test_bulk_transition_denied(workflow, admin):
    await workflow.create(surgery(id="a", requiresApproval=False), admin)
    report = await workflow.bulk_transition(["a"], "complete", admin)

    assert report.applied == []
    assert isinstance(report.failed[0].error, PermissionDenied)


async def test_calendar_page(workflow, clinician, admin):
    await workflow.create(surgery(id="mon", date=date(2024, 2, 12)), clinician)
    await workflow.create(
        surgery(id="thu", type="meeting", startTime="13:00", endTime="14:00"),
        admin,
    )
    await workflow.create(surgery(id="thu-early", startTime="07:00"), clinician)
    await workflow.create(surgery(id="next", date=date(2024, 2, 19)), clinician)
    await workflow.create(surgery(id="other", clinicianId="clin-2"), admin)

    page = await workflow.calendar("clin-1", "week", today=TODAY)

    assert page.date_range.start == date(2024, 2, 11)
    assert [item.id for item in page.items] == ["mon", "thu-early", "thu"]
    assert list(page.days) == [date(2024, 2, 12), TODAY]
    assert len(page.grid) == 7
    assert page.summary.pending == 1
    assert page.summary.accepted == 2
    assert page.summary.today == 2

    meetings = await workflow.calendar(
        "clin-1",
        "week",
        filters=ScheduleFilters(type="meeting"),
        today=TODAY,
    )
    assert [item.id for item in meetings.items] == ["thu"]
    assert meetings.summary.pending == 1
    assert meetings.summary.accepted == 0


async def test_book_appointment(workflow, session_factory):
    visit_day = date(2024, 2, 20)
    for slot in ("14:00", "9:30 AM"):
        await workflow.book(
            "p-1",
            "John Doe",
            "clin-1",
            visit_day,
            slot,
            config=SlotConfig(),
        )

    async with get_or_create_session(factory=session_factory) as session:
        appointments = await AppointmentsService(session).find_for_day("clin-1", visit_day)
    assert [a.appointment_time for a in appointments] == ["9:30 AM", "2:00 PM"]


async def test_book_outside_slots(workflow):
    with pytest.raises(ValidationError):
        await workflow.book("p-1", "John Doe", "clin-1", date(2024, 2, 20), "18:00")


async def test_existing_session_is_reused(session_factory, make_item):
    async with get_or_create_session(factory=session_factory) as session:
        async with get_or_create_session(session) as inner:
            assert inner is session
            await ScheduleItemsService(inner).add_item(make_item(id="x"))

    async with get_or_create_session(factory=session_factory) as session:
        assert await ScheduleItemsService(session).get_item("x") is not None


async def test_bulk_repeated_id_sees_earlier_result(workflow, session_factory, admin, clinician):
    await workflow.create(surgery(id="s-1"), admin)

    report = await workflow.bulk_transition(["s-1", "s-1"], "approve", clinician)

    assert len(report.applied) == 1
    assert isinstance(report.failed[0].error, InvalidTransition)
    assert report.failed[0].item.status == ScheduleStatus.APPROVED

    async with get_or_create_session(factory=session_factory) as session:
        stored = await ScheduleItemsService(session).get_item("s-1")
    assert stored.status == ScheduleStatus.APPROVED


async def test_bulk_stale_item_does_not_stop_batch(
    workflow,
    session_factory,
    clinician,
    monkeypatch,
):
    for item_id in ("a", "b", "c"):
        await workflow.create(surgery(id=item_id), clinician)

    save_item = ScheduleItemsService.save_item

    async def save_racing_b(self, item, expected_updated_at=None):
        if item.id == "b":
            raise StaleItemError(item.id)
        return await save_item(self, item, expected_updated_at)

    monkeypatch.setattr(ScheduleItemsService, "save_item", save_racing_b)
    report = await workflow.bulk_transition(["a", "b", "c"], "complete", clinician)

    assert [outcome.item.id for outcome in report.applied] == ["a", "c"]
    assert isinstance(report.failed[0].error, StaleItemError)
    assert report.failed[0].item.status == ScheduleStatus.ACCEPTED

    page = await workflow.calendar("clin-1", "today", today=TODAY)
    assert {item.id: item.status for item in page.items} == {
        "a": ScheduleStatus.COMPLETED,
        "b": ScheduleStatus.ACCEPTED,
        "c": ScheduleStatus.COMPLETED,
    }


async def test_unknown_operation_is_a_validation_error(workflow, clinician):
    await workflow.create(surgery(id="s-1"), clinician)
    with pytest.raises(ValidationError):
        await workflow.transition("s-1", "archive", clinician)
    with pytest.raises(ValidationError):
        await workflow.bulk_transition(["s-1"], "archive", clinician)


async def test_update_appointment_status(workflow):
    visit_day = date(2024, 2, 20)
    first = await workflow.book("p-1", "John Doe", "clin-1", visit_day, "10:00")
    second = await workflow.book("p-2", "Jane Roe", "clin-1", visit_day, "09:00")

    updated = await workflow.update_appointment_status(first.id, "no-show")
    assert updated.status == AppointmentStatus.NO_SHOW
    assert updated.patient_name == "John Doe"

    no_shows = await workflow.appointments("clin-1", status="no-show")
    assert [a.id for a in no_shows] == [first.id]

    everything = await workflow.appointments("clin-1")
    assert [a.id for a in everything] == [second.id, first.id]
    assert everything[0].status == AppointmentStatus.SCHEDULED


async def test_appointments_by_visit_dates(workflow):
    early = await workflow.book("p-1", "John Doe", "clin-1", date(2024, 2, 19), "09:00")
    await workflow.book("p-1", "John Doe", "clin-1", date(2024, 2, 26), "09:00")
    await workflow.book("p-3", "Ann Lee", "clin-2", date(2024, 2, 19), "09:00")

    found = await workflow.appointments(
        "clin-1",
        start=date(2024, 2, 18),
        end=date(2024, 2, 24),
    )
    assert [a.id for a in found] == [early.id]


async def test_update_appointment_status_errors(workflow):
    appointment = await workflow.book("p-1", "John Doe", "clin-1", date(2024, 2, 20), "10:00")

    with pytest.raises(ValidationError) as exc_info:
        await workflow.update_appointment_status(appointment.id, "lost")
    assert exc_info.value.field == "status"

    with pytest.raises(AppointmentNotFound):
        await workflow.update_appointment_status("missing", "confirmed")
