from .appointments import AppointmentsService
from .schedule_items import ScheduleItemsService, StaleItemError

__all__ = ["AppointmentsService", "ScheduleItemsService", "StaleItemError"]
