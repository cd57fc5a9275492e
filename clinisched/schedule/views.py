"""Calendar views: date ranges, filtering, grouping and counts."""

from calendar import monthrange
from collections import defaultdict
from datetime import date, timedelta
from typing import Iterable, Optional

from clinisched.schedule.enums import CalendarView, ScheduleStatus
from clinisched.schedule.errors import RangeResolutionError
from clinisched.schedule.models import (
    DateRange,
    ScheduleFilters,
    ScheduleItem,
    ScheduleSummary,
)

# Weeks run Sunday to Saturday
WEEK_DAYS = 7

ACCEPTED_BUCKET = frozenset({ScheduleStatus.ACCEPTED, ScheduleStatus.APPROVED})


def week_start(day: date) -> date:
    """Most recent Sunday on or before the day."""
    return day - timedelta(days=(day.weekday() + 1) % WEEK_DAYS)


def month_range(year: int, month: int) -> DateRange:
    """First to last day of a month."""
    _, last_day = monthrange(year, month)
    return DateRange(start=date(year, month, 1), end=date(year, month, last_day))


def previous_month(day: date) -> tuple[int, int]:
    """(year, month) of the month before the day's month."""
    if day.month == 1:
        return day.year - 1, 12
    return day.year, day.month - 1


def _as_view(view: CalendarView | str) -> CalendarView:
    try:
        return CalendarView(view)
    except ValueError as e:
        raise RangeResolutionError(str(view)) from e


def resolve_range(view: CalendarView | str, today: Optional[date] = None) -> DateRange:
    """
    Resolve a named view to an inclusive date range.

    Args:
        view: One of the calendar views
        today: Reference date, defaults to the current date

    Returns:
        DateRange with start <= end

    Raises:
        RangeResolutionError: If the view name is unknown
    """
    view = _as_view(view)
    today = today or date.today()

    match view:
        case CalendarView.TODAY:
            return DateRange(start=today, end=today)
        case CalendarView.WEEK:
            start = week_start(today)
            return DateRange(start=start, end=start + timedelta(days=WEEK_DAYS - 1))
        case CalendarView.MONTH:
            return month_range(today.year, today.month)
        case CalendarView.PREVIOUS_DAY:
            day = today - timedelta(days=1)
            return DateRange(start=day, end=day)
        case CalendarView.PREVIOUS_WEEK:
            start = week_start(today - timedelta(days=WEEK_DAYS))
            return DateRange(start=start, end=start + timedelta(days=WEEK_DAYS - 1))
        case CalendarView.PREVIOUS_MONTH:
            return month_range(*previous_month(today))


def view_dates(view: CalendarView | str, today: Optional[date] = None) -> list[date]:
    """
    Dates of the calendar grid for a view.

    Month views start with the trailing days of the previous month so that
    the first row begins on a Sunday.
    """
    view = _as_view(view)
    date_range = resolve_range(view, today)
    if view not in (CalendarView.MONTH, CalendarView.PREVIOUS_MONTH):
        return list(date_range.dates())

    padding_start = week_start(date_range.start)
    padding = [
        padding_start + timedelta(days=offset)
        for offset in range((date_range.start - padding_start).days)
    ]
    return padding + list(date_range.dates())


def select_in_range(
    items: Iterable[ScheduleItem],
    date_range: DateRange,
    filters: Optional[ScheduleFilters] = None,
) -> list[ScheduleItem]:
    """Items dated inside the range that match every given filter."""
    filters = filters or ScheduleFilters()
    return [
        item for item in items if item.date in date_range and filters.matches(item)
    ]


def sort_chronologically(items: Iterable[ScheduleItem]) -> list[ScheduleItem]:
    """Sort by date, then start time."""
    return sorted(items, key=lambda item: item.sort_key)


def group_by_date(items: Iterable[ScheduleItem]) -> dict[date, list[ScheduleItem]]:
    """
    Bucket items by calendar date.

    Keys are in ascending order and each bucket is sorted by start time.
    """
    grouped: defaultdict[date, list[ScheduleItem]] = defaultdict(list)
    for item in items:
        grouped[item.date].append(item)
    return {
        day: sorted(grouped[day], key=lambda item: item.start_time)
        for day in sorted(grouped)
    }


def summarize(
    items: Iterable[ScheduleItem],
    today: Optional[date] = None,
) -> ScheduleSummary:
    """Dashboard counts. Approved items count as accepted."""
    today = today or date.today()
    summary = ScheduleSummary()
    for item in items:
        if item.status == ScheduleStatus.PENDING:
            summary.pending += 1
        elif item.status in ACCEPTED_BUCKET:
            summary.accepted += 1
        elif item.status == ScheduleStatus.COMPLETED:
            summary.completed += 1
        if item.date == today:
            summary.today += 1
    return summary


def agenda(
    items: Iterable[ScheduleItem],
    view: CalendarView | str,
    today: Optional[date] = None,
    filters: Optional[ScheduleFilters] = None,
) -> list[ScheduleItem]:
    """Items of a view, filtered and in chronological order."""
    return sort_chronologically(
        select_in_range(items, resolve_range(view, today), filters),
    )
