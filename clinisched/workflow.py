from __future__ import annotations

from contextlib import AbstractAsyncContextManager
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Iterable, Mapping, Optional

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from clinisched.db.context import get_or_create_session
from clinisched.db.services import (
    AppointmentsService,
    ScheduleItemsService,
    StaleItemError,
)
from clinisched.schedule import engine, permissions, views
from clinisched.schedule.engine import TransitionOutcome
from clinisched.schedule.enums import (
    ActorRole,
    AppointmentStatus,
    CalendarView,
    Operation,
)
from clinisched.schedule.errors import PermissionDenied, ScheduleError, ValidationError
from clinisched.schedule.models import (
    ActorContext,
    Appointment,
    DateRange,
    ScheduleFilters,
    ScheduleItem,
    ScheduleItemCreate,
    ScheduleSummary,
)
from clinisched.schedule.slots import SlotConfig, book_appointment


class ItemNotFound(ScheduleError):
    """No stored item with the given ID."""

    def __init__(self, item_id: str) -> None:
        super().__init__(f"Schedule item {item_id} not found")
        self.item_id = item_id


class AppointmentNotFound(ScheduleError):
    """No stored appointment with the given ID."""

    def __init__(self, appointment_id: str) -> None:
        super().__init__(f"Appointment {appointment_id} not found")
        self.appointment_id = appointment_id


@dataclass
class BulkTransitionReport:
    """Per-item results of a bulk operation."""

    outcomes: list[TransitionOutcome] = field(default_factory=list)
    missing: list[str] = field(default_factory=list)

    @property
    def applied(self) -> list[TransitionOutcome]:
        return [outcome for outcome in self.outcomes if outcome.ok]

    @property
    def failed(self) -> list[TransitionOutcome]:
        return [outcome for outcome in self.outcomes if not outcome.ok]


@dataclass
class CalendarPage:
    """Everything a schedule page renders for one view."""

    view: CalendarView
    date_range: DateRange
    items: list[ScheduleItem]
    days: dict[date, list[ScheduleItem]]
    grid: list[date]
    summary: ScheduleSummary


class ScheduleWorkflow:
    """Store-backed schedule operations for one hospital."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession] | None = None,
    ) -> None:
        self._factory = session_factory

    def _session(self) -> AbstractAsyncContextManager[AsyncSession]:
        return get_or_create_session(factory=self._factory)

    async def create(
        self,
        data: ScheduleItemCreate | Mapping[str, Any],
        actor: ActorContext,
    ) -> ScheduleItem:
        """
        Create and store an item.

        Admins creating work for a clinician are recorded as the assigner.
        A clinician creating an item without a clinician ID schedules it for
        themself.
        """
        data = engine.parse_create(data)

        update: dict[str, Any] = {}
        if permissions.is_admin(actor) and data.assigned_by is None:
            update["assigned_by"] = actor.name or actor.role.value
            update["assigned_by_id"] = actor.actor_id
        if actor.role is ActorRole.CLINICIAN and data.clinician_id is None:
            update["clinician_id"] = actor.actor_id
        if update:
            data = data.model_copy(update=update)

        item = engine.create_item(data)
        async with self._session() as session:
            await ScheduleItemsService(session).add_item(item)
        return item

    async def transition(
        self,
        item_id: str,
        operation: Operation | str,
        actor: ActorContext,
        payload: Optional[Mapping[str, Any]] = None,
    ) -> TransitionOutcome:
        """
        Load, change and write back one item.

        Raises:
            ValidationError: If the operation name or the payload is invalid
            ItemNotFound: If no item has the ID
            PermissionDenied: If the actor's role may not apply the operation
            InvalidTransition: If the item's status does not allow it
            EditRejected: If an edit targets a completed or cancelled item
            StaleItemError: If the item changed while it was being processed
        """
        operation = engine.parse_operation(operation)
        permissions.ensure_permitted(operation, actor)

        async with self._session() as session:
            service = ScheduleItemsService(session)
            item = await service.get_item(item_id)
            if item is None:
                raise ItemNotFound(item_id)

            outcome = engine.apply_transition(item, operation, actor, payload)
            await service.save_item(outcome.item, expected_updated_at=item.updated_at)
        return outcome

    async def bulk_transition(
        self,
        item_ids: Iterable[str],
        operation: Operation | str,
        actor: ActorContext,
        payload: Optional[Mapping[str, Any]] = None,
    ) -> BulkTransitionReport:
        """
        Apply one operation to many items. Failures do not stop the batch.

        Items are processed in the given order. A repeated ID sees the result
        of its earlier occurrence, so approving the same item twice reports
        the second approve as an invalid transition.
        """
        operation = engine.parse_operation(operation)
        report = BulkTransitionReport()
        permitted = permissions.is_permitted(operation, actor)

        async with self._session() as session:
            service = ScheduleItemsService(session)
            current: dict[str, ScheduleItem] = {}

            for item_id in item_ids:
                item = current.get(item_id) or await service.get_item(item_id)
                if item is None:
                    logger.warning(f"Bulk {operation}: item {item_id} not found")
                    report.missing.append(item_id)
                    continue

                if not permitted:
                    error = PermissionDenied(operation, actor.role)
                    report.outcomes.append(TransitionOutcome(item=item, error=error))
                    continue

                outcome = engine.try_transition(item, operation, actor, payload)
                if outcome.ok:
                    try:
                        await service.save_item(
                            outcome.item,
                            expected_updated_at=item.updated_at,
                        )
                    except StaleItemError as e:
                        # a refused save updates no rows
                        logger.warning(f"Bulk {operation}: {e.message}")
                        outcome = TransitionOutcome(item=item, error=e)
                    else:
                        current[item_id] = outcome.item
                report.outcomes.append(outcome)

        logger.info(
            f"Bulk {operation}: {len(report.applied)} applied, "
            f"{len(report.failed)} rejected, {len(report.missing)} missing",
        )
        return report

    async def calendar(
        self,
        clinician_id: str,
        view: CalendarView | str = CalendarView.WEEK,
        filters: Optional[ScheduleFilters] = None,
        today: Optional[date] = None,
    ) -> CalendarPage:
        """Items, day buckets, grid and counts of a clinician's view."""
        view = CalendarView(view)
        today = today or date.today()
        date_range = views.resolve_range(view, today)

        async with self._session() as session:
            stored = await ScheduleItemsService(session).find_in_range(
                date_range.start,
                date_range.end,
                clinician_id=clinician_id,
            )

        items = views.agenda(stored, view, today, filters)
        return CalendarPage(
            view=view,
            date_range=date_range,
            items=items,
            days=views.group_by_date(items),
            grid=views.view_dates(view, today),
            summary=views.summarize(items, today),
        )

    async def book(
        self,
        patient_id: str,
        patient_name: str,
        clinician_id: str,
        appointment_date: date,
        slot: str,
        reason: Optional[str] = None,
        config: Optional[SlotConfig] = None,
    ) -> Appointment:
        """Book and store a patient appointment."""
        appointment = book_appointment(
            patient_id=patient_id,
            patient_name=patient_name,
            clinician_id=clinician_id,
            appointment_date=appointment_date,
            slot=slot,
            reason=reason,
            config=config,
        )
        async with self._session() as session:
            await AppointmentsService(session).add_appointment(appointment)
        return appointment

    async def appointments(
        self,
        clinician_id: str,
        status: AppointmentStatus | str | None = None,
        start: Optional[date] = None,
        end: Optional[date] = None,
    ) -> list[Appointment]:
        """A clinician's appointments, optionally by status and visit dates."""
        if status is not None:
            status = _appointment_status(status)
        async with self._session() as session:
            return await AppointmentsService(session).find_for_clinician(
                clinician_id,
                status=status,
                start=start,
                end=end,
            )

    async def update_appointment_status(
        self,
        appointment_id: str,
        status: AppointmentStatus | str,
    ) -> Appointment:
        """
        Move an appointment to another status.

        Raises:
            ValidationError: If the status is not an appointment status
            AppointmentNotFound: If no appointment has the ID
        """
        status = _appointment_status(status)
        async with self._session() as session:
            appointment = await AppointmentsService(session).update_status(
                appointment_id,
                status,
            )
        if appointment is None:
            raise AppointmentNotFound(appointment_id)
        return appointment


def _appointment_status(value: AppointmentStatus | str) -> AppointmentStatus:
    try:
        return AppointmentStatus(value)
    except ValueError as e:
        raise ValidationError(f"Unknown appointment status: {value!r}", "status") from e
