from datetime import date, datetime
from typing import Optional

from loguru import logger

from clinisched.db.models.schedule_items import ScheduleRecord
from clinisched.db.services.base import BaseService
from clinisched.schedule.errors import ScheduleError
from clinisched.schedule.models import ScheduleItem


class StaleItemError(ScheduleError):
    """The stored item changed since it was read."""

    def __init__(self, item_id: str) -> None:
        super().__init__(f"Schedule item {item_id} was modified concurrently")
        self.item_id = item_id


class ScheduleItemsService(BaseService[ScheduleRecord]):
    """Service for working with schedule items."""

    model = ScheduleRecord

    async def get_item(self, item_id: str) -> Optional[ScheduleItem]:
        """Get a schedule item by ID."""
        record = await self.find_one_or_none(id=item_id)
        return record.to_item() if record else None

    async def find_in_range(
        self,
        start: date,
        end: date,
        clinician_id: Optional[str] = None,
        hospital_id: Optional[str] = None,
    ) -> list[ScheduleItem]:
        """
        Retrieve items dated between start and end, inclusive.

        Args:
            start: First date.
            end: Last date.
            clinician_id: Only items assigned to this clinician.
            hospital_id: Only items of this hospital.

        Returns:
            Items ordered by date and start time.
        """
        clauses = [ScheduleRecord.date >= start, ScheduleRecord.date <= end]
        if clinician_id is not None:
            clauses.append(ScheduleRecord.clinician_id == clinician_id)
        if hospital_id is not None:
            clauses.append(ScheduleRecord.hospital_id == hospital_id)

        records = await self.find_all_where(
            *clauses,
            order_by=[ScheduleRecord.date, ScheduleRecord.start_time],
        )
        return [record.to_item() for record in records]

    async def add_item(self, item: ScheduleItem) -> ScheduleItem:
        """Store a new schedule item."""
        await self.add_model(ScheduleRecord.from_item(item))
        logger.debug(f"Stored schedule item {item.id}")
        return item

    async def save_item(
        self,
        item: ScheduleItem,
        expected_updated_at: Optional[datetime] = None,
    ) -> ScheduleItem:
        """
        Write back a changed item.

        Args:
            item: The changed item.
            expected_updated_at: ``updated_at`` of the version the change was
                based on. The write fails when the stored row moved on.

        Raises:
            StaleItemError: If the row is missing or was changed meanwhile.
        """
        clauses = [ScheduleRecord.id == item.id]
        if expected_updated_at is not None:
            clauses.append(ScheduleRecord.updated_at == expected_updated_at)

        values = ScheduleRecord.values_from_item(item)
        values.pop("id")
        updated = await self.update_where(*clauses, **values)
        if updated == 0:
            raise StaleItemError(item.id)
        logger.debug(f"Saved schedule item {item.id} with status {item.status}")
        return item
